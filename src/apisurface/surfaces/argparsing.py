from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

from pydantic_core import to_jsonable_python

from apisurface.domain.errors import InputError

DATE_FORMAT = "%Y-%m-%d"
DATE_HINT = "YYYY-MM-DD"

_INT = re.compile(r"^[+-]?\d+$")


def parse_date(value: str, what: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT)
    except ValueError as e:
        raise InputError(f"invalid {what} {value!r}: expected {DATE_HINT}") from e


def parse_int(value: str, name: str) -> int:
    text = value.strip()
    # base-10 only; int() would also accept "1_000"
    if not _INT.match(text):
        raise InputError(f"invalid integer for {name}: {value!r}")
    return int(text)


def date_description(description: str) -> str:
    if DATE_HINT.lower() in description.lower():
        return description
    return f"{description} ({DATE_HINT})".strip()


def to_json(value: Any) -> str:
    """Indented JSON for handler results (pydantic models, dataclasses, datetimes...)."""
    return json.dumps(to_jsonable_python(value), indent=2)
