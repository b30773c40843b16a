from __future__ import annotations

import os
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Optional

import click

from apisurface.domain.errors import InputError, NoBodyError
from apisurface.domain.models import Endpoint, HandlerArgs, Param, ParamType
from apisurface.domain.registry import Registry
from apisurface.surfaces.argparsing import DATE_HINT, parse_date, parse_int, to_json

# click parameter names; flag dests are prefixed so a param called "start" or
# "json" cannot collide with the built-in options
_TOKENS = "tokens"
_START = "range_start"
_END = "range_end"
_BODY_FILE = "body_file"
_BODY_JSON = "body_json"
_OUTPUT = "output_path"

_UNSAFE = re.compile(r"\W")


def _dest(param_name: str) -> str:
    return "p_" + _UNSAFE.sub("_", param_name)


def build_use(base: str, params: list[Param]) -> str:
    """
    `<name>` for required params, `[name]` for optional positional (date) params.
    Date ranges and optional flag params are not positional.
    """
    parts = [base]
    for p in params:
        if p.type == ParamType.DATE_RANGE:
            continue
        if p.required:
            parts.append(f"<{p.name}>")
        elif p.type == ParamType.DATE:
            parts.append(f"[{p.name}]")
    return " ".join(parts)


class AliasResolvingMixin:
    """Lets a click group resolve commands by their `aliases` attribute."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[misc]
        if cmd is not None:
            return cmd
        for candidate in self.commands.values():  # type: ignore[attr-defined]
            if cmd_name in getattr(candidate, "aliases", ()):
                return candidate
        return None

    def resolve_command(self, ctx: click.Context, args: list[str]):
        _, cmd, rest = super().resolve_command(ctx, args)  # type: ignore[misc]
        return (cmd.name if cmd else None), cmd, rest


class CommandGroup(AliasResolvingMixin, click.Group):
    pass


class EndpointCommand(click.Command):
    """A click command generated from an endpoint; usage shows its positional tokens."""

    def __init__(self, name: str, *, use: str, aliases: list[str], **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.use = use
        self.aliases = list(aliases)

    def collect_usage_pieces(self, ctx: click.Context) -> list[str]:
        pieces = [self.options_metavar] if self.options_metavar else []
        pieces.extend(self.use.split()[1:])
        return pieces


class CLIGenerator:
    """Builds click commands for every registry endpoint that has a CLI command."""

    def __init__(self, registry: Registry, client: Any = None, output: Optional[IO] = None) -> None:
        self.registry = registry
        self.client = client
        self.output = output

    def generate_commands(self) -> list[click.Command]:
        simple: list[Endpoint] = []
        groups: dict[str, list[Endpoint]] = {}

        for ep in self.registry.all():
            if not ep.cli_command:
                continue
            if ep.cli_subcommand:
                groups.setdefault(ep.cli_command, []).append(ep)
            else:
                simple.append(ep)

        commands: list[click.Command] = [self._create_command(ep, ep.cli_command, ep.cli_aliases) for ep in simple]

        for parent_name, endpoints in groups.items():
            parent = CommandGroup(name=parent_name, help=f"{parent_name} commands")
            for ep in endpoints:
                parent.add_command(self._create_command(ep, ep.cli_subcommand, []))
            commands.append(parent)

        return commands

    # ----------------------------
    # Command construction
    # ----------------------------

    def _create_command(self, ep: Endpoint, name: str, aliases: list[str]) -> EndpointCommand:
        return EndpointCommand(
            name,
            use=build_use(name, ep.params),
            aliases=aliases,
            help=ep.long or ep.short,
            short_help=ep.short or None,
            params=self._build_params(ep),
            callback=self._run_func(ep),
        )

    def _build_params(self, ep: Endpoint) -> list[click.Parameter]:
        params: list[click.Parameter] = [click.Argument([_TOKENS], nargs=-1)]
        has_range = False

        for p in ep.params:
            if p.type == ParamType.DATE_RANGE:
                if not has_range:
                    params.append(click.Option(["--start", _START], default="", help=f"Start date ({DATE_HINT})"))
                    params.append(click.Option(["--end", _END], default="", help=f"End date ({DATE_HINT})"))
                    has_range = True
            elif p.type == ParamType.BOOL:
                params.append(click.Option([f"--{p.name}", _dest(p.name)], is_flag=True, default=False, help=p.description))
            elif p.required or p.type == ParamType.DATE:
                continue  # positional
            elif p.type == ParamType.INT:
                params.append(click.Option([f"--{p.name}", _dest(p.name)], type=int, default=0, help=p.description))
            else:
                params.append(click.Option([f"--{p.name}", _dest(p.name)], default="", help=p.description))

        if ep.body is not None:
            params.append(click.Option(["--file", "-f", _BODY_FILE], default="", help="Read JSON body from file"))
            params.append(click.Option(["--json", _BODY_JSON], default="", help="JSON body as string"))

        if ep.raw_output:
            params.append(click.Option(["--output", "-o", _OUTPUT], default="", help="Output file path"))

        return params

    def _run_func(self, ep: Endpoint):
        def run(**options: Any) -> None:
            try:
                args = self.parse_args(ep, list(options.get(_TOKENS, ())), options)
                if ep.body is not None:
                    args.body = self.parse_body(ep, options)
            except InputError as e:
                raise click.UsageError(str(e)) from e

            if ep.handler is None:
                raise click.ClickException(f"{ep.name}: no handler configured")
            try:
                result = ep.handler(click.get_current_context(), self.client, args)
            except InputError as e:
                raise click.UsageError(str(e)) from e
            except Exception as e:
                raise click.ClickException(str(e)) from e

            if ep.raw_output:
                self._write_raw(result, options.get(_OUTPUT) or "")
                return
            try:
                text = to_json(result)
            except (TypeError, ValueError) as e:
                raise click.ClickException(f"failed to encode result: {e}") from e
            click.echo(text, file=self.output)

        return run

    # ----------------------------
    # Argument parsing
    # ----------------------------

    def parse_args(self, ep: Endpoint, tokens: list[str], options: dict[str, Any]) -> HandlerArgs:
        args = HandlerArgs()
        idx = 0

        for p in ep.params:
            if p.type == ParamType.DATE_RANGE:
                start = options.get(_START) or ""
                end = options.get(_END) or ""
                if start:
                    args.params["start"] = parse_date(start, "start date")
                if end:
                    args.params["end"] = parse_date(end, "end date")

            elif p.type == ParamType.DATE:
                if idx < len(tokens) and tokens[idx] != "":
                    args.params[p.name] = parse_date(tokens[idx], f"date {p.name}")
                    idx += 1
                else:
                    args.params[p.name] = datetime.now()

            elif p.type == ParamType.INT:
                if p.required:
                    if idx >= len(tokens):
                        raise InputError(f"missing required argument: {p.name}")
                    args.params[p.name] = parse_int(tokens[idx], p.name)
                    idx += 1
                else:
                    # 0 and "not given" are indistinguishable on this surface
                    v = options.get(_dest(p.name)) or 0
                    if v != 0:
                        args.params[p.name] = v

            elif p.type == ParamType.STRING:
                if p.required:
                    if idx >= len(tokens):
                        raise InputError(f"missing required argument: {p.name}")
                    args.params[p.name] = tokens[idx]
                    idx += 1
                else:
                    v = options.get(_dest(p.name)) or ""
                    if v:
                        args.params[p.name] = v

            elif p.type == ParamType.BOOL:
                if options.get(_dest(p.name)):
                    args.params[p.name] = True

        return args

    def parse_body(self, ep: Endpoint, options: dict[str, Any]) -> Any:
        if ep.body is None:
            return None
        data = self._read_json_data(options)
        if not data:
            raise NoBodyError()
        try:
            return ep.body.parse(data)
        except ValueError as e:
            raise InputError(f"invalid JSON: {e}") from e

    def _read_json_data(self, options: dict[str, Any]) -> bytes:
        json_str = options.get(_BODY_JSON) or ""
        if json_str:
            return json_str.encode("utf-8")

        file_path = options.get(_BODY_FILE) or ""
        if file_path:
            try:
                return Path(file_path).expanduser().read_bytes()
            except OSError as e:
                raise InputError(f"failed to read file: {e}") from e

        # only piped stdin counts; never block on a terminal
        stdin = sys.stdin.buffer
        if not stdin.isatty():
            try:
                return stdin.read()
            except OSError as e:
                raise InputError(f"failed to read stdin: {e}") from e

        return b""

    # ----------------------------
    # Output
    # ----------------------------

    def _write_raw(self, result: Any, output_path: str) -> None:
        if not isinstance(result, (bytes, bytearray)):
            raise click.ClickException(f"raw output handler must return bytes, got {type(result).__name__}")
        data = bytes(result)
        if output_path:
            out = Path(output_path).expanduser()
            out.write_bytes(data)
            os.chmod(out, 0o600)
            return
        click.echo(data, file=self.output, nl=False)
