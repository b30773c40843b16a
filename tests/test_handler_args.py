from datetime import datetime

from apisurface.domain.models import BodyConfig, HandlerArgs
from pydantic import BaseModel


class Workout(BaseModel):
    workoutName: str
    sets: int = 0


def test_missing_keys_read_back_as_zero_values():
    args = HandlerArgs()

    assert args.get_int("missing") == 0
    assert args.get_str("missing") == ""
    assert args.get_bool("missing") is False
    assert args.get_int_or_default("missing", 7) == 7

    before = datetime.now()
    d = args.get_date("missing")
    assert d >= before


def test_mistyped_values_read_back_as_zero_values():
    args = HandlerArgs(params={"n": "12", "s": 3, "flag": 1, "when": "2026-01-15"})

    assert args.get_int("n") == 0
    assert args.get_str("s") == ""
    assert args.get_bool("flag") is False
    # strings are not parsed: a mistyped date reads back as "now"
    assert args.get_date("when") != datetime(2026, 1, 15)


def test_bool_is_not_read_as_int():
    args = HandlerArgs(params={"verbose": True})
    assert args.get_int("verbose") == 0
    assert args.get_int_or_default("verbose", 5) == 5
    assert args.get_bool("verbose") is True


def test_present_values_are_returned():
    when = datetime(2026, 1, 15)
    args = HandlerArgs(params={"id": 42, "name": "run", "on": when, "all": True})

    assert args.get_int("id") == 42
    assert args.get_str("name") == "run"
    assert args.get_date("on") == when
    assert args.get_bool("all") is True


def test_body_param_name_from_model():
    assert BodyConfig(model=Workout).param_name == "workout"
    assert BodyConfig().param_name == "body"


def test_body_parse_uses_bound_model():
    body = BodyConfig(model=Workout)
    w = body.parse('{"workoutName": "Easy run", "sets": 2}')
    assert isinstance(w, Workout)
    assert w.workoutName == "Easy run"
    assert w.sets == 2

    assert BodyConfig().parse(b'{"a": [1, 2]}') == {"a": [1, 2]}


def test_body_adapter_is_bound_once():
    body = BodyConfig(model=Workout)
    adapter = body.adapter

    body.parse('{"workoutName": "a", "sets": 1}')
    body.parse('{"workoutName": "b", "sets": 2}')

    assert adapter is not None
    assert body.adapter is adapter
    assert BodyConfig().adapter is None
    assert BodyConfig(model=Workout) == BodyConfig(model=Workout)
