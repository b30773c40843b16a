from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from apisurface.domain.models import STATIC_CASSETTE, Endpoint
from apisurface.domain.registry import Registry

VALID_METHODS = {"GET", "POST", "PUT", "DELETE"}

AUTH_CASSETTE = "auth"
CASSETTE_SUFFIX = ".yaml"


@dataclass(frozen=True)
class ValidatorConfig:
    cassette_dir: Path
    skip_orphaned_cassettes: bool = False


class Validator:
    """Checks endpoint declarations for completeness. Findings are data, never raised."""

    def __init__(self, registry: Registry, config: ValidatorConfig) -> None:
        self.registry = registry
        self.config = config

    def validate(self) -> list[str]:
        errors: list[str] = []
        for ep in self.registry.all():
            errors.extend(self.validate_endpoint(ep))

        if not self.config.skip_orphaned_cassettes:
            errors.extend(self.check_orphaned_cassettes())

        return errors

    def validate_endpoint(self, ep: Endpoint) -> list[str]:
        errors: list[str] = []

        if ep.handler is None:
            errors.append(f"{ep.name}: missing Handler")

        if not ep.cassette:
            errors.append(f"{ep.name}: missing Cassette")
        elif ep.cassette != STATIC_CASSETTE:
            cassette_path = self.config.cassette_dir / f"{ep.cassette}{CASSETTE_SUFFIX}"
            if not cassette_path.exists():
                errors.append(f"{ep.name}: cassette file not found: {cassette_path}")

        if not ep.cli_command and not ep.tool_name:
            errors.append(f"{ep.name}: must have CLI command or tool name (or both)")

        if not ep.short:
            errors.append(f"{ep.name}: missing Short description")
        if not ep.long:
            errors.append(f"{ep.name}: missing Long description")

        if not ep.path:
            errors.append(f"{ep.name}: missing Path")

        if ep.http_method not in VALID_METHODS:
            errors.append(f"{ep.name}: invalid HTTP method: {ep.http_method}")

        if ep.http_method in ("POST", "PUT") and ep.body is None:
            errors.append(f"{ep.name}: {ep.http_method} endpoint should have Body config")

        for p in ep.params:
            if not p.description:
                errors.append(f"{ep.name}: param {p.name} missing description")

        if ep.depends_on:
            if self.registry.by_name(ep.depends_on) is None:
                errors.append(f"{ep.name}: DependsOn references unknown endpoint: {ep.depends_on}")
            if ep.arg_provider is None:
                errors.append(f"{ep.name}: has DependsOn but missing ArgProvider")

        return errors

    def check_orphaned_cassettes(self) -> list[str]:
        used = {ep.cassette for ep in self.registry.all() if ep.cassette}

        cassette_dir = self.config.cassette_dir
        if not cassette_dir.is_dir():
            return []

        errors: list[str] = []
        for f in sorted(cassette_dir.glob(f"*{CASSETTE_SUFFIX}")):
            name = f.name[: -len(CASSETTE_SUFFIX)]
            if name == AUTH_CASSETTE:
                continue
            if name not in used:
                errors.append(f"orphaned cassette (no endpoint references it): {name}")
        return errors
