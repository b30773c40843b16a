from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Literal, Optional, Union

from pydantic import TypeAdapter

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]

# cassette label of endpoints that make no HTTP calls; like "", never recorded
STATIC_CASSETTE = "none"

# Values a parsed parameter can hold. DateRange params store two DATE values.
ParamValue = Union[str, int, datetime, bool]

Handler = Callable[[Any, Any, "HandlerArgs"], Any]
ArgProvider = Callable[[Any], Optional[dict[str, ParamValue]]]


class ParamType(str, Enum):
    STRING = "string"
    INT = "int"
    DATE = "date"  # YYYY-MM-DD, defaults to now
    DATE_RANGE = "date_range"  # materializes as "start" and "end"
    BOOL = "bool"


@dataclass(frozen=True)
class Param:
    """A simple (query/path) endpoint parameter."""

    name: str
    type: ParamType = ParamType.STRING
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class BodyConfig:
    """
    A structured JSON request body.

    `model` is the concrete body type (pydantic model, dataclass, TypedDict...).
    None means the body is decoded as plain JSON.
    """

    model: Optional[type] = None
    description: str = ""
    example: str = ""
    adapter: Optional[TypeAdapter] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.model is not None:
            object.__setattr__(self, "adapter", TypeAdapter(self.model))

    @property
    def param_name(self) -> str:
        # Workout -> workout
        name = getattr(self.model, "__name__", "") if self.model is not None else ""
        if not name or name.startswith("<"):
            return "body"
        return name[:1].lower() + name[1:]

    def parse(self, data: Union[str, bytes]) -> Any:
        if self.adapter is None:
            return json.loads(data)
        return self.adapter.validate_json(data)


@dataclass
class Endpoint:
    """One operation of the wrapped API and everything the surfaces need to expose it."""

    # Identity
    name: str
    service: str = ""
    cassette: str = ""

    # API details
    path: str = ""
    http_method: HttpMethod = "GET"
    params: list[Param] = field(default_factory=list)
    body: Optional[BodyConfig] = None

    # Dependencies (fixture recording)
    depends_on: str = ""
    arg_provider: Optional[ArgProvider] = None

    # CLI
    cli_command: str = ""
    cli_subcommand: str = ""
    cli_aliases: list[str] = field(default_factory=list)

    # Tool-call surface
    tool_name: str = ""

    # Documentation
    short: str = ""
    long: str = ""

    raw_output: bool = False

    handler: Optional[Handler] = None


@dataclass
class HandlerArgs:
    """
    Parsed arguments handed to every handler.

    Accessors never raise: a missing key, or a key holding another kind of
    value, reads back as that kind's zero value.
    """

    params: dict[str, ParamValue] = field(default_factory=dict)
    body: Any = None

    def get_date(self, name: str) -> datetime:
        v = self.params.get(name)
        if isinstance(v, datetime):
            return v
        return datetime.now()

    def get_int(self, name: str) -> int:
        return self.get_int_or_default(name, 0)

    def get_int_or_default(self, name: str, default: int) -> int:
        v = self.params.get(name)
        # bool is an int subclass; keep the variants apart
        if isinstance(v, int) and not isinstance(v, bool):
            return v
        return default

    def get_str(self, name: str) -> str:
        v = self.params.get(name)
        if isinstance(v, str):
            return v
        return ""

    def get_bool(self, name: str) -> bool:
        v = self.params.get(name)
        if isinstance(v, bool):
            return v
        return False
