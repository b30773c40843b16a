from __future__ import annotations

from typing import Iterator, Optional

from apisurface.domain.models import Endpoint


class Registry:
    """
    Ordered collection of endpoints.

    Registration order is the order of CLI commands, tools and recordings.
    Nothing is rejected here; duplicates and dangling references are reported
    by the validator.
    """

    def __init__(self) -> None:
        self._endpoints: list[Endpoint] = []
        self._by_name: dict[str, Endpoint] = {}

    def register(self, endpoint: Endpoint) -> None:
        self._endpoints.append(endpoint)
        # first registration wins the name lookup
        self._by_name.setdefault(endpoint.name, endpoint)

    def by_name(self, name: str) -> Optional[Endpoint]:
        return self._by_name.get(name)

    def all(self) -> list[Endpoint]:
        return list(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)
