from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Optional

import mcp.types as types
from mcp.server.lowlevel import Server

from apisurface.domain.errors import InputError
from apisurface.domain.models import BodyConfig, Endpoint, HandlerArgs, Param, ParamType
from apisurface.domain.registry import Registry
from apisurface.surfaces.argparsing import DATE_HINT, date_description, parse_date, to_json

logger = logging.getLogger(__name__)


def _error_result(message: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=message)], isError=True)


def _text_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


class ToolGenerator:
    """
    Projects registry endpoints onto agent tools (Model Context Protocol).

    Every failure of a call (bad arguments, bad body JSON, handler error) comes
    back as an error result; nothing raised here reaches the hosting server.
    """

    def __init__(self, registry: Registry, client: Any = None) -> None:
        self.registry = registry
        self.client = client

    def endpoints(self) -> list[Endpoint]:
        # binary payloads cannot be carried by a text tool result
        return [ep for ep in self.registry.all() if ep.tool_name and not ep.raw_output]

    def tools(self) -> list[types.Tool]:
        return [self.build_tool(ep) for ep in self.endpoints()]

    def register_tools(self, server: Server) -> None:
        tools = self.tools()

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return tools

        @server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            return self.call(name, arguments, ctx=server.request_context)

        logger.info("Registered %d tools", len(tools))

    # ----------------------------
    # Schema
    # ----------------------------

    def build_tool(self, ep: Endpoint) -> types.Tool:
        properties: dict[str, dict[str, Any]] = {}
        required: list[str] = []

        for p in ep.params:
            for prop_name, schema, is_required in self._param_properties(p):
                properties[prop_name] = schema
                if is_required and prop_name not in required:
                    required.append(prop_name)

        if ep.body is not None:
            properties[ep.body.param_name] = {"type": "string", "description": self._body_description(ep.body)}
            required.append(ep.body.param_name)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return types.Tool(name=ep.tool_name, description=ep.long, inputSchema=schema)

    @staticmethod
    def _param_properties(p: Param) -> list[tuple[str, dict[str, Any], bool]]:
        if p.type == ParamType.DATE_RANGE:
            return [
                ("start", {"type": "string", "description": f"Start date ({DATE_HINT})"}, False),
                ("end", {"type": "string", "description": f"End date ({DATE_HINT})"}, False),
            ]
        if p.type == ParamType.DATE:
            return [(p.name, {"type": "string", "description": date_description(p.description)}, p.required)]
        if p.type == ParamType.INT:
            return [(p.name, {"type": "number", "description": p.description}, p.required)]
        if p.type == ParamType.BOOL:
            return [(p.name, {"type": "boolean", "description": p.description}, False)]
        return [(p.name, {"type": "string", "description": p.description}, p.required)]

    @staticmethod
    def _body_description(body: BodyConfig) -> str:
        if body.example:
            return f"{body.description}\n\nExample:\n{body.example}"
        return body.description

    # ----------------------------
    # Calls
    # ----------------------------

    def call(self, name: str, arguments: Optional[dict[str, Any]], ctx: Any = None) -> types.CallToolResult:
        ep = next((e for e in self.endpoints() if e.tool_name == name), None)
        if ep is None:
            return _error_result(f"unknown tool: {name}")

        try:
            args = self.parse_request(ep, arguments or {})
            if ep.body is not None:
                args.body = self.parse_body(ep.body, arguments or {})
        except InputError as e:
            return _error_result(str(e))

        if ep.handler is None:
            return _error_result(f"{ep.name}: no handler configured")
        try:
            result = ep.handler(ctx, self.client, args)
        except Exception as e:
            logger.debug("Tool %s failed", name, exc_info=True)
            return _error_result(str(e))

        try:
            return _text_result(to_json(result))
        except (TypeError, ValueError) as e:
            return _error_result(f"failed to encode result: {e}")

    def parse_request(self, ep: Endpoint, arguments: dict[str, Any]) -> HandlerArgs:
        args = HandlerArgs()

        for p in ep.params:
            if p.type == ParamType.STRING:
                v = arguments.get(p.name)
                if isinstance(v, str):
                    args.params[p.name] = v
                elif p.required:
                    raise InputError(f"missing required parameter: {p.name}")

            elif p.type == ParamType.INT:
                v = arguments.get(p.name)
                if _is_number(v):
                    if not math.isfinite(v):
                        raise InputError(f"invalid integer for {p.name}: {v!r}")
                    args.params[p.name] = int(v)
                elif p.required:
                    raise InputError(f"missing required parameter: {p.name}")

            elif p.type == ParamType.DATE:
                v = arguments.get(p.name)
                if isinstance(v, str) and v:
                    args.params[p.name] = parse_date(v, f"date format for {p.name}")
                else:
                    args.params[p.name] = datetime.now()

            elif p.type == ParamType.DATE_RANGE:
                start = arguments.get("start")
                end = arguments.get("end")
                if isinstance(start, str) and start:
                    args.params["start"] = parse_date(start, "start date")
                if isinstance(end, str) and end:
                    args.params["end"] = parse_date(end, "end date")

            elif p.type == ParamType.BOOL:
                v = arguments.get(p.name)
                if isinstance(v, bool):
                    args.params[p.name] = v

        return args

    def parse_body(self, body: BodyConfig, arguments: dict[str, Any]) -> Any:
        name = body.param_name
        raw = arguments.get(name)
        if not isinstance(raw, str):
            raise InputError(f"missing required parameter: {name}")
        try:
            return body.parse(raw)
        except ValueError as e:
            raise InputError(f"invalid JSON for {name}: {e}") from e
