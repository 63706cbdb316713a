"""
Depository Configuration — Load and validate depository.yaml at startup.

Layering (later wins):
    1. Model defaults
    2. depository.yaml (explicit path or auto-discovered from CWD upwards)
    3. Environment variables (DEPOSITORY_STORAGE_ROOT, DEPOSITORY_ENVIRONMENT,
       DEPOSITORY_LOG_LEVEL)

Usage:
    from depository.engine.config import load_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from depository.engine.errors import ConfigurationError

CONFIG_FILE_NAME = "depository.yaml"

# Environment variable → (section, key)
ENV_OVERRIDES = {
    "DEPOSITORY_STORAGE_ROOT": ("storage", "root"),
    "DEPOSITORY_ENVIRONMENT": ("service", "environment"),
    "DEPOSITORY_LOG_LEVEL": ("logging", "level"),
}


# ---------------------------------------------------------------------------
# Pydantic models for depository.yaml
# ---------------------------------------------------------------------------

class ServiceConfig(BaseModel):
    name: str = "depository"
    environment: str = "dev"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


class StorageConfig(BaseModel):
    root: str = "data/depository"
    create_root: bool = True

    @field_validator("root")
    @classmethod
    def validate_root(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("storage root must not be empty")
        return v


class MimeConfig(BaseModel):
    default: str = "application/octet-stream"
    overrides: Dict[str, str] = Field(default_factory=dict)

    @field_validator("overrides")
    @classmethod
    def normalize_extensions(cls, v: Dict[str, str]) -> Dict[str, str]:
        normalized = {}
        for ext, content_type in v.items():
            ext = ext.strip().lower()
            if not ext.startswith("."):
                ext = f".{ext}"
            normalized[ext] = content_type
        return normalized


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".depository/logs"
    operation_log: bool = True
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level


class DepositoryConfig(BaseModel):
    """Root model for depository.yaml."""
    service: ServiceConfig = ServiceConfig()
    storage: StorageConfig = StorageConfig()
    mime: MimeConfig = MimeConfig()
    logging: LoggingConfig = LoggingConfig()

    @property
    def storage_root(self) -> Path:
        return Path(self.storage.root).expanduser()


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for depository.yaml in ``start`` (default CWD) and its parents."""
    current = start or Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
    return None


def apply_env_overrides(
    data: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Overlay DEPOSITORY_* environment variables onto raw config data."""
    environ = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            section_data = dict(data.get(section) or {})
            section_data[key] = value
            data[section] = section_data
    return data


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DepositoryConfig:
    """
    Load and validate depository.yaml.

    Args:
        config_path: Explicit path to depository.yaml. If None, auto-discovers.
        environ: Environment mapping used for overrides (defaults to os.environ).

    Returns:
        Validated DepositoryConfig instance.

    Raises:
        ConfigurationError: the file is not valid YAML or fails validation,
            or an explicit config_path does not exist.
    """
    if config_path is None:
        path = find_config_file()
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}", path=str(path))

    raw: Dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", path=str(path)) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Config root must be a mapping, got {type(raw).__name__}",
                path=str(path),
            )

    raw = apply_env_overrides(raw, environ)

    try:
        return DepositoryConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            path=str(path) if path else None,
            validation_errors=e.errors(),
        ) from e
