from apisurface.domain.models import Endpoint
from apisurface.recorder.plan import build_recording_plan


def test_build_recording_plan_groups_by_cassette_and_orders_dependencies():
    endpoints = [
        Endpoint(name="GetActivity", cassette="activities", depends_on="ListActivities"),
        Endpoint(name="GetSleep", cassette="sleep_daily"),
        Endpoint(name="ListActivities", cassette="activities"),
        Endpoint(name="GetCurrentDate", cassette="none"),
        Endpoint(name="Static"),
    ]
    plan = build_recording_plan(endpoints)

    assert [c.name for c in plan.cassettes] == ["activities", "sleep_daily"]

    activities = plan.cassettes[0]
    assert activities.endpoint_names == ("ListActivities", "GetActivity")


def test_build_recording_plan_is_deterministic():
    endpoints = [Endpoint(name="B", cassette="x"), Endpoint(name="A", cassette="y")]
    assert build_recording_plan(endpoints) == build_recording_plan(endpoints)
