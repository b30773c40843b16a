import logging
from pathlib import Path

import pytest

from apisurface.config import Settings, load_settings
from apisurface.logging_config import configure_logging, parse_log_level

FIELDS = ["CASSETTE_DIR", "SERVER_NAME", "SERVER_VERSION", "LOG_LEVEL"]


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in FIELDS:
        monkeypatch.delenv(f"APISURFACE_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults(clean_env: Path):
    s = load_settings()
    assert s.cassette_dir == Path("testdata/cassettes")
    assert s.server_name == "apisurface"
    assert s.log_level == "WARNING"


def test_prefixed_environment_variables(clean_env: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APISURFACE_CASSETTE_DIR", str(clean_env / "cassettes"))
    monkeypatch.setenv("APISURFACE_LOG_LEVEL", "debug")
    monkeypatch.setenv("CASSETTE_DIR", "/ignored")

    s = load_settings()
    assert s.cassette_dir == clean_env / "cassettes"
    assert s.log_level == "debug"


def test_dotenv_in_working_directory(clean_env: Path):
    (clean_env / ".env").write_text(
        "APISURFACE_SERVER_NAME=from-dotenv\nUNRELATED_KEY=1\n",
        encoding="utf-8",
    )
    assert load_settings().server_name == "from-dotenv"


def test_environment_wins_over_dotenv(clean_env: Path, monkeypatch: pytest.MonkeyPatch):
    (clean_env / ".env").write_text("APISURFACE_SERVER_NAME=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("APISURFACE_SERVER_NAME", "from-env")
    assert load_settings().server_name == "from-env"


def test_explicit_env_file(clean_env: Path):
    env_file = clean_env / "recording.env"
    env_file.write_text("APISURFACE_SERVER_VERSION=9.9.9\n", encoding="utf-8")
    assert load_settings(env_file).server_version == "9.9.9"


def test_init_values_override_environment(clean_env: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APISURFACE_CASSETTE_DIR", "/from/env")
    assert Settings(cassette_dir=clean_env).cassette_dir == clean_env


def test_parse_log_level():
    assert parse_log_level("info") == logging.INFO
    assert parse_log_level(" ERROR ") == logging.ERROR
    assert parse_log_level("chatty") == logging.WARNING


def test_configure_logging_priority():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, root.handlers[:]
    try:
        configure_logging(default_level="ERROR")
        assert root.level == logging.ERROR

        configure_logging(verbose=True, default_level="ERROR")
        assert root.level == logging.INFO

        configure_logging(debug=True, verbose=True)
        assert root.level == logging.DEBUG

        configure_logging(debug=True, level=logging.CRITICAL)
        assert root.level == logging.CRITICAL
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
