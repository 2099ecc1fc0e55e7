"""Configuration loading from YAML and environment.

Values in the YAML file may reference environment variables as ${VAR} or
$VAR. Each section also reads its own env prefix (SERVER_, DATABASE_,
ASSIGNMENT_, LOGGING_) when built without a file.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Injected by load_config so substitution can read env
_current_env: dict[str, str] = {}


class ServerConfig(BaseSettings):
    """HTTP API server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=0, le=65535, description="Bind port (0 picks a free port)")
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds an API call may spend in the engine before its transaction is cancelled",
    )


class DatabaseConfig(BaseSettings):
    """SQLite store settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    path: str = Field(default="assigner.db", description="Database file, or :memory:")
    busy_timeout: float = Field(default=5.0, ge=0, description="Seconds to wait for the database lock")


class AssignmentConfig(BaseSettings):
    """Reviewer assignment policy."""

    model_config = SettingsConfigDict(env_prefix="ASSIGNMENT_", extra="ignore")

    reviewers_per_pull_request: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Reviewers picked when a pull request is created",
    )


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    loggers: dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger level overrides, e.g. {'assigner.store': 'DEBUG'}",
    )
    access_log: bool = Field(default=True, description="Log one line per HTTP request")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    assignment: AssignmentConfig = Field(default_factory=AssignmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        # Simple $VAR
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    A missing file gives defaults (plus env). DATABASE_PATH overrides
    database.path from the file.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    database_raw = raw.get("database") or {}
    if _current_env.get("DATABASE_PATH"):
        database_raw = {**database_raw, "path": _current_env.get("DATABASE_PATH")}

    return AppConfig(
        server=ServerConfig(**(raw.get("server") or {})),
        database=DatabaseConfig(**database_raw),
        assignment=AssignmentConfig(**(raw.get("assignment") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
