from __future__ import annotations

import logging
from typing import Iterable

from apisurface.domain.models import Endpoint

logger = logging.getLogger(__name__)


def sort_by_dependencies(endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """
    Depth-first topological sort on `depends_on` (one edge per endpoint).

    Upstreams come before their dependents; otherwise input order is kept.
    A dependency outside `endpoints` is ignored. A cycle is not an error: the
    endpoint already on the stack counts as resolved and a warning is logged.
    """
    items = list(endpoints)
    by_name = {ep.name: ep for ep in items}

    result: list[Endpoint] = []
    visited: set[str] = set()
    on_stack: set[str] = set()

    def visit(ep: Endpoint) -> None:
        if ep.name in visited:
            return
        if ep.name in on_stack:
            logger.warning("Dependency cycle through %s; ordering it as resolved", ep.name)
            return
        on_stack.add(ep.name)

        dep = by_name.get(ep.depends_on) if ep.depends_on else None
        if dep is not None:
            visit(dep)

        on_stack.discard(ep.name)
        visited.add(ep.name)
        result.append(ep)

    for ep in items:
        visit(ep)

    return result
