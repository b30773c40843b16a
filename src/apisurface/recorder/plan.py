from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from apisurface.domain.models import STATIC_CASSETTE, Endpoint
from apisurface.graph.order import sort_by_dependencies


def is_recorded(ep: Endpoint) -> bool:
    return bool(ep.cassette) and ep.cassette != STATIC_CASSETTE


@dataclass(frozen=True)
class CassettePlan:
    name: str
    endpoints: Tuple[Endpoint, ...]  # dependency order

    @property
    def endpoint_names(self) -> Tuple[str, ...]:
        return tuple(ep.name for ep in self.endpoints)


@dataclass(frozen=True)
class RecordingPlan:
    cassettes: Tuple[CassettePlan, ...]


def group_by_cassette(endpoints: Iterable[Endpoint]) -> Dict[str, List[Endpoint]]:
    """Recorded endpoints by cassette label, in first-appearance order. Static endpoints are left out."""
    by_cassette: Dict[str, List[Endpoint]] = {}
    for ep in endpoints:
        if not is_recorded(ep):
            continue
        by_cassette.setdefault(ep.cassette, []).append(ep)
    return by_cassette


def build_recording_plan(endpoints: Iterable[Endpoint]) -> RecordingPlan:
    """Group by cassette, then order each group so upstream endpoints record first. No IO."""
    return RecordingPlan(
        cassettes=tuple(
            CassettePlan(name=name, endpoints=tuple(sort_by_dependencies(group)))
            for name, group in group_by_cassette(endpoints).items()
        )
    )
