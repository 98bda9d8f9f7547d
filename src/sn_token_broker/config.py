"""Configuration management for the StreamNative token broker."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class IssuerSettings(BaseModel):
    """Settings for the external ``snctl`` token issuer."""

    executable: str = Field(
        default="snctl",
        description="snctl executable, either a path or a name on PATH",
    )
    config_dir: str | None = Field(
        default=None,
        description="snctl configuration directory; defaults to ~/.snctl",
    )
    key_dir: str | None = Field(
        default=None,
        description="Directory for transient key files; defaults to the process temp dir",
    )

    @field_validator("executable")
    @classmethod
    def _validate_executable(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("issuer executable must not be empty")
        return value


class StorageSettings(BaseModel):
    backend: Literal["memory", "sqlite"] = Field(default="sqlite")
    sqlite_path: str = Field(default="./data/secrets.sqlite")
    sqlite_wal: bool = Field(default=True)


class ServerSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8200, ge=1024, le=65535)
    mount_point: str = Field(
        default="streamnative",
        description="Path segment under /v1/ that exposes the secret paths",
    )

    @field_validator("mount_point")
    @classmethod
    def _normalize_mount_point(cls, value: str) -> str:
        value = value.strip().strip("/")
        if not value:
            raise ValueError("mount_point must not be empty")
        return value


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    issuer: IssuerSettings = Field(default_factory=IssuerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


ENV_KEYS = {
    "host": "BROKER_HOST",
    "port": "BROKER_PORT",
    "mount_point": "BROKER_MOUNT_POINT",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "snctl_path": "SNCTL_PATH",
    "snctl_config_dir": "SNCTL_CONFIG_DIR",
    "key_dir": "BROKER_KEY_DIR",
    "storage_backend": "STORAGE_BACKEND",
    "sqlite_path": "SQLITE_PATH",
    "sqlite_wal": "SQLITE_WAL",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path)
    root = _project_root().resolve()
    if candidate.is_absolute():
        resolved = candidate.resolve()
    else:
        resolved = (root / candidate).resolve()
    if not resolved.is_relative_to(root):
        raise ValueError(f"Path traversal detected: '{path}' resolves outside project root")
    return str(resolved)


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_optional(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")
    log_file_env = os.getenv(ENV_KEYS["log_file"])

    settings_data: dict[str, object] = {
        "server": {
            "host": os.getenv(ENV_KEYS["host"], ServerSettings().host),
            "port": _env_int(ENV_KEYS["port"], ServerSettings().port),
            "mount_point": os.getenv(ENV_KEYS["mount_point"], ServerSettings().mount_point),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "issuer": {
            "executable": os.getenv(ENV_KEYS["snctl_path"], IssuerSettings().executable),
            "config_dir": _env_optional(ENV_KEYS["snctl_config_dir"]),
            "key_dir": _env_optional(ENV_KEYS["key_dir"]),
        },
        "storage": {
            "backend": os.getenv(ENV_KEYS["storage_backend"], StorageSettings().backend),
            "sqlite_path": _resolve_path(
                os.getenv(ENV_KEYS["sqlite_path"], StorageSettings().sqlite_path)
            ),
            "sqlite_wal": _env_bool(ENV_KEYS["sqlite_wal"], StorageSettings().sqlite_wal),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    if settings.issuer.key_dir:
        Path(settings.issuer.key_dir).mkdir(parents=True, exist_ok=True, mode=0o700)

    return settings
