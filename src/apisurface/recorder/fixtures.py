from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import httpx

from apisurface.domain.errors import CassetteNotFoundError, RecordingError
from apisurface.domain.models import Endpoint, HandlerArgs, ParamType
from apisurface.domain.registry import Registry
from apisurface.recorder.plan import CassettePlan, build_recording_plan, group_by_cassette, is_recorded

logger = logging.getLogger(__name__)

# Transport that records (or replays) the HTTP traffic of one cassette.
NewRecorder = Callable[[str], httpx.BaseTransport]
HTTPClientFactory = Callable[[httpx.BaseTransport], httpx.Client]
ClientLoader = Callable[[httpx.Client, bytes], Any]


def _default_http_client(transport: httpx.BaseTransport) -> httpx.Client:
    return httpx.Client(transport=transport)


@dataclass
class RecorderConfig:
    new_recorder: NewRecorder
    client_loader: ClientLoader
    date: datetime = field(default_factory=datetime.now)
    session: bytes = b""
    http_client: HTTPClientFactory = _default_http_client


@dataclass
class CassetteReport:
    """What happened to each endpoint of one recorded cassette."""

    cassette: str
    recorded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class FixtureRecorder:
    """
    Replays every endpoint of a cassette against a recording transport.

    Endpoints run in dependency order; an endpoint's result is fed to the
    `arg_provider` of its dependents. Handler failures are logged and do not
    stop the cassette.
    """

    def __init__(self, registry: Registry, config: RecorderConfig) -> None:
        self.registry = registry
        self.config = config

    def list_cassettes(self) -> list[str]:
        return list(group_by_cassette(self.registry.all()))

    def endpoints_for_cassette(self, cassette: str) -> list[Endpoint]:
        return [ep for ep in self.registry.all() if is_recorded(ep) and ep.cassette == cassette]

    def record_all(self, ctx: Any = None) -> list[CassetteReport]:
        plan = build_recording_plan(self.registry.all())
        return [self._record(ctx, cassette) for cassette in plan.cassettes]

    def record_cassette(self, cassette: str, ctx: Any = None) -> CassetteReport:
        endpoints = self.endpoints_for_cassette(cassette)
        if not endpoints:
            raise CassetteNotFoundError(cassette)
        plan = build_recording_plan(endpoints)
        return self._record(ctx, plan.cassettes[0])

    def build_default_args(self, ep: Endpoint) -> HandlerArgs:
        args = HandlerArgs()
        date = self.config.date

        for p in ep.params:
            if p.type == ParamType.DATE:
                args.params[p.name] = date
            elif p.type == ParamType.DATE_RANGE:
                args.params["start"] = date - timedelta(days=7)
                args.params["end"] = date
            elif p.type == ParamType.INT:
                args.params[p.name] = 10 if p.name == "limit" else 0
            elif p.type == ParamType.STRING:
                args.params[p.name] = ""
            elif p.type == ParamType.BOOL:
                args.params[p.name] = False

        return args

    def _record(self, ctx: Any, plan: CassettePlan) -> CassetteReport:
        logger.info("Recording cassette: %s", plan.name)

        try:
            transport = self.config.new_recorder(plan.name)
        except Exception as e:
            raise RecordingError(plan.name, f"failed to open recorder: {e}") from e

        try:
            try:
                client = self.config.client_loader(self.config.http_client(transport), self.config.session)
            except Exception as e:
                raise RecordingError(plan.name, f"failed to load client: {e}") from e
            return self._replay(ctx, plan, client)
        finally:
            transport.close()

    def _replay(self, ctx: Any, plan: CassettePlan, client: Any) -> CassetteReport:
        report = CassetteReport(cassette=plan.name)
        results: dict[str, Any] = {}

        for ep in plan.endpoints:
            args = self.build_default_args(ep)

            if ep.depends_on and ep.depends_on in results and ep.arg_provider is not None:
                extra = ep.arg_provider(results[ep.depends_on])
                if extra is None:
                    logger.info("  Skipping %s: no data from %s", ep.name, ep.depends_on)
                    report.skipped.append(ep.name)
                    continue
                args.params.update(extra)

            if ep.handler is None:
                logger.warning("  %s: no handler configured", ep.name)
                report.failed[ep.name] = "no handler configured"
                continue

            logger.info("  Recording %s...", ep.name)
            try:
                result = ep.handler(ctx, client, args)
            except Exception as e:
                logger.warning("  %s: %s", ep.name, e)
                report.failed[ep.name] = str(e)
                continue

            results[ep.name] = result
            report.recorded.append(ep.name)

        return report
