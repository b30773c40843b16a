import json
from pathlib import Path

import click
from click.testing import CliRunner

from apisurface.cli import AppState, build_cli, build_server
from apisurface.config import Settings
from apisurface.definitions.register import register_all
from apisurface.domain.models import Endpoint, Param, ParamType
from apisurface.domain.registry import Registry


def sample_registry(builtins: bool = True) -> Registry:
    r = register_all(Registry()) if builtins else Registry()
    r.register(
        Endpoint(
            name="ListActivities",
            service="Activities",
            cassette="activities",
            path="/activitylist-service/activities/search/activities",
            params=[Param("limit", ParamType.INT, description="Max rows")],
            cli_command="activities",
            tool_name="list_activities",
            short="List activities",
            long="List recent activities",
            handler=lambda ctx, client, args: [{"id": 1, "limit": args.get_int_or_default("limit", 20)}],
        )
    )
    r.register(
        Endpoint(
            name="GetActivity",
            service="Activities",
            cassette="activities",
            path="/activity-service/activity/{id}",
            params=[Param("id", ParamType.INT, required=True, description="Activity ID")],
            depends_on="ListActivities",
            arg_provider=lambda result: {"id": result[0]["id"]} if result else None,
            cli_command="activity",
            cli_aliases=["act"],
            short="Get an activity",
            long="Get one activity by ID",
            handler=lambda ctx, client, args: {"id": args.get_int("id")},
        )
    )
    return r


def make_app(tmp_path: Path, builtins: bool = True):
    return build_cli(registry=sample_registry(builtins), settings=Settings(cassette_dir=tmp_path))


def test_ping(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path), ["ping"])
    assert result.exit_code == 0
    assert "pong" in result.output


def test_generated_commands_are_mounted(tmp_path: Path):
    runner = CliRunner()
    app = make_app(tmp_path)

    result = runner.invoke(app, ["activities", "--limit", "3"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [{"id": 1, "limit": 3}]

    result = runner.invoke(app, ["act", "7"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"id": 7}


def test_help_lists_positional_usage(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path), ["activity", "--help"])
    assert result.exit_code == 0
    assert "activity [OPTIONS] <id>" in result.output


def test_endpoints_list_json(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path), ["endpoints", "list", "--format", "json"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert [r["name"] for r in rows] == ["GetCurrentDate", "ListActivities", "GetActivity"]
    assert rows[2]["depends_on"] == "ListActivities"


def test_cassettes_in_recording_order(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path), ["cassettes"])
    assert result.exit_code == 0, result.output
    lines = [line.strip() for line in result.output.splitlines() if line.strip()]
    assert lines == ["activities", "ListActivities", "GetActivity"]


def test_validate_reports_problems(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path, builtins=False), ["validate"])
    assert result.exit_code == 1
    assert "cassette file not found" in result.output

    (tmp_path / "activities.yaml").write_text("interactions: []\n", encoding="utf-8")
    result = CliRunner().invoke(make_app(tmp_path, builtins=False), ["validate"])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output


def test_graph_export_json(tmp_path: Path):
    out = tmp_path / "graph.json"
    result = CliRunner().invoke(make_app(tmp_path), ["graph", "export", "--out", str(out)])
    assert result.exit_code == 0, result.output

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert {"src": "endpoint:GetActivity", "dst": "endpoint:ListActivities", "type": "DEPENDS_ON"} in payload["edges"]


def test_validate_flags_builtin_without_path(tmp_path: Path):
    (tmp_path / "activities.yaml").write_text("interactions: []\n", encoding="utf-8")
    result = CliRunner().invoke(make_app(tmp_path), ["validate"])
    assert result.exit_code == 1
    assert "GetCurrentDate: missing Path" in result.output


def test_build_cli_returns_a_click_group(tmp_path: Path):
    app = make_app(tmp_path)
    assert isinstance(app, click.Group)
    assert {"activities", "activity", "ping", "validate"} <= set(app.commands)


def test_shell_completion_options_offered(tmp_path: Path):
    result = CliRunner().invoke(make_app(tmp_path), ["--help"])
    assert result.exit_code == 0, result.output
    assert "--install-completion" in result.output
    assert "--show-completion" in result.output


def test_tool_server_carries_settings(tmp_path: Path):
    settings = Settings(cassette_dir=tmp_path, server_name="garmin-tools", server_version="2.1.0")
    server = build_server(AppState(registry=sample_registry(), settings=settings))

    options = server.create_initialization_options()
    assert options.server_name == "garmin-tools"
    assert options.server_version == "2.1.0"
