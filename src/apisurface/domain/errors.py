from __future__ import annotations


class ApiSurfaceError(Exception):
    """Base class for errors raised by the endpoint surfaces and the recorder."""


class InputError(ApiSurfaceError, ValueError):
    """Bad caller input: malformed date/integer, missing argument, invalid body."""


class NoBodyError(InputError):
    def __init__(self) -> None:
        super().__init__("no JSON body provided (use --json, --file, or pipe to stdin)")


class RecordingError(ApiSurfaceError):
    """A cassette could not be opened or its client could not be built."""

    def __init__(self, cassette: str, message: str) -> None:
        super().__init__(f"{cassette}: {message}")
        self.cassette = cassette


class CassetteNotFoundError(ApiSurfaceError, LookupError):
    def __init__(self, cassette: str) -> None:
        super().__init__(f"no endpoints found for cassette: {cassette}")
        self.cassette = cassette
