from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings, read from APISURFACE_* environment variables and a local .env."""

    model_config = SettingsConfigDict(
        env_prefix="APISURFACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cassette_dir: Path = Path("testdata/cassettes")
    server_name: str = "apisurface"
    server_version: str = "0.1.0"
    log_level: str = "WARNING"


def load_settings(env_file: str | Path | None = None) -> Settings:
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()
