from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Optional

import click
import typer
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from rich.console import Console
from rich.table import Table
from typer.core import TyperGroup

from apisurface.config import Settings, load_settings
from apisurface.definitions.register import register_all
from apisurface.domain.registry import Registry
from apisurface.graph.builder import build_endpoint_graph, to_dot
from apisurface.lint.validator import Validator, ValidatorConfig
from apisurface.logging_config import configure_logging
from apisurface.recorder.plan import build_recording_plan
from apisurface.surfaces.cli import AliasResolvingMixin, CLIGenerator
from apisurface.surfaces.tools import ToolGenerator


class RootGroup(AliasResolvingMixin, TyperGroup):
    pass


@dataclass
class AppState:
    """Composition root: built once per process, read-only afterwards."""

    registry: Registry
    settings: Settings
    client: Any = None


app = typer.Typer(cls=RootGroup, no_args_is_help=True)

endpoints_app = typer.Typer(no_args_is_help=True)
app.add_typer(endpoints_app, name="endpoints")

graph_app = typer.Typer(no_args_is_help=True)
app.add_typer(graph_app, name="graph")

console = Console()


@app.callback()
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress (INFO)"),
    debug: bool = typer.Option(False, "--debug", help="Log everything (DEBUG)"),
) -> None:
    state = ctx.find_object(AppState)
    configure_logging(
        verbose=verbose,
        debug=debug,
        default_level=state.settings.log_level if state is not None else "WARNING",
    )


def _state(ctx: typer.Context) -> AppState:
    state = ctx.find_object(AppState)
    if state is None:
        raise typer.BadParameter("application state not initialised")
    return state


@endpoints_app.command("list")
def endpoints_list(
    ctx: typer.Context,
    service: Optional[str] = typer.Option(None, help="Filter by service"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    state = _state(ctx)
    rows = [
        {
            "name": ep.name,
            "service": ep.service,
            "method": ep.http_method,
            "path": ep.path,
            "cli": " ".join(x for x in (ep.cli_command, ep.cli_subcommand) if x),
            "tool": ep.tool_name,
            "cassette": ep.cassette,
            "depends_on": ep.depends_on,
        }
        for ep in state.registry.all()
        if service is None or ep.service == service
    ]

    if format.lower() == "json":
        typer.echo(json.dumps(rows, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("NAME", no_wrap=True)
    table.add_column("SERVICE")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("CLI")
    table.add_column("TOOL")
    table.add_column("CASSETTE")

    for r in rows:
        table.add_row(r["name"], r["service"], r["method"], r["path"], r["cli"], r["tool"], r["cassette"])

    console.print(f"[bold]Endpoints:[/bold] {len(rows)}")
    console.print(table)


@app.command()
def cassettes(ctx: typer.Context) -> None:
    """List recorded cassettes with their endpoints in recording order."""
    plan = build_recording_plan(_state(ctx).registry.all())
    for cassette in plan.cassettes:
        console.print(f"[bold]{cassette.name}[/bold]")
        for name in cassette.endpoint_names:
            console.print(f"  {name}")


@app.command()
def validate(
    ctx: typer.Context,
    cassette_dir: Optional[str] = typer.Option(None, help="Cassette directory (default: settings)"),
    skip_orphaned: bool = typer.Option(False, help="Do not report unreferenced cassette files"),
) -> None:
    """Check endpoint declarations for completeness."""
    state = _state(ctx)
    directory = Path(cassette_dir).expanduser() if cassette_dir else state.settings.cassette_dir
    errors = Validator(
        state.registry,
        ValidatorConfig(cassette_dir=directory, skip_orphaned_cassettes=skip_orphaned),
    ).validate()

    if not errors:
        console.print(f"[bold green]OK[/bold green] {len(state.registry)} endpoints")
        return

    for e in errors:
        console.print(f"[red]-[/red] {e}")
    console.print(f"[bold red]{len(errors)} problem(s)[/bold red]")
    raise typer.Exit(code=1)


@graph_app.command("export")
def graph_export(
    ctx: typer.Context,
    format: str = typer.Option("json", help="Export format: json|dot"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
) -> None:
    result = build_endpoint_graph(_state(ctx).registry.all())
    g = result.graph

    fmt = format.lower().strip()
    if fmt not in ("json", "dot"):
        raise typer.BadParameter("format must be one of: json, dot")

    if fmt == "json":
        payload = {
            "generated_at": result.generated_at,
            "nodes": [
                {"id": n.id, "type": n.type, "label": n.label}
                for n in g.sorted_nodes()
            ],
            "edges": [{"src": e.src, "dst": e.dst, "type": e.type} for e in g.edges],
        }
        text = json.dumps(payload, indent=2)
    else:
        text = to_dot(g)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] {fmt} graph to: {out_path}")
    else:
        typer.echo(text)


@app.command("mcp")
def serve_mcp(ctx: typer.Context) -> None:
    """Serve the endpoint tools over stdio (Model Context Protocol)."""
    asyncio.run(_run_stdio(build_server(_state(ctx))))


def build_server(state: AppState) -> Server:
    server: Server = Server(state.settings.server_name, version=state.settings.server_version)
    ToolGenerator(state.registry, client=state.client).register_tools(server)
    return server


async def _run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


@app.command()
def ping() -> None:
    console.print("pong")


def build_cli(
    registry: Optional[Registry] = None,
    settings: Optional[Settings] = None,
    client: Any = None,
    output: Optional[IO] = None,
) -> click.Group:
    """The console app: built-in commands plus one command per CLI-bound endpoint."""
    state = AppState(
        registry=registry if registry is not None else register_all(Registry()),
        settings=settings if settings is not None else load_settings(),
        client=client,
    )

    group = typer.main.get_command(app)
    if not isinstance(group, click.Group):
        raise TypeError(f"typer built a {type(group).__name__}, which cannot hold click commands")
    for cmd in CLIGenerator(state.registry, client=client, output=output).generate_commands():
        group.add_command(cmd)
    group.context_settings = {**group.context_settings, "obj": state}
    return group


def main() -> None:
    build_cli()()


if __name__ == "__main__":
    main()
