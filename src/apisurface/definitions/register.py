from __future__ import annotations

from apisurface.definitions.utility import UTILITY_ENDPOINTS
from apisurface.domain.registry import Registry


def register_all(registry: Registry) -> Registry:
    """Register every built-in endpoint definition. Service modules append their lists here."""
    for ep in UTILITY_ENDPOINTS:
        registry.register(ep)
    return registry
