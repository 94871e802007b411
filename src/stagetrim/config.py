"""Configuration loader for stagetrim."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml

from stagetrim.errors import ConfigurationError
from stagetrim.stages import DEFAULT_EXCLUDE_STAGES, DEFAULT_THRESHOLD

DEFAULT_CONFIG_PATH = Path("/etc/stagetrim/config.yaml")
DEFAULT_LOG_DIR = Path("/var/log/stagetrim")

# GitHub Actions exposes `with:` inputs as INPUT_<NAME> with hyphens kept.
ACTION_INPUTS = {
    "secret_id": "INPUT_SECRET-ID",
    "region": "INPUT_AWS-REGION",
    "threshold": "INPUT_THRESHOLD",
    "dry_run": "INPUT_DRY-RUN",
    "exclude_stages": "INPUT_EXCLUDE-STAGES",
}

ENV_VARS = {
    "secret_id": "STAGETRIM_SECRET_ID",
    "region": "STAGETRIM_REGION",
    "endpoint_url": "STAGETRIM_ENDPOINT_URL",
    "threshold": "STAGETRIM_THRESHOLD",
    "dry_run": "STAGETRIM_DRY_RUN",
    "exclude_stages": "STAGETRIM_EXCLUDE_STAGES",
}

REGION_FALLBACKS = ("AWS_REGION", "AWS_DEFAULT_REGION")


@dataclass(frozen=True)
class TrimConfig:
    secret_id: str
    region: str
    threshold: int
    dry_run: bool
    exclude_stages: frozenset[str]
    endpoint_url: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    file_logging: bool
    log_dir: Path


@dataclass(frozen=True)
class AppConfig:
    trim: TrimConfig
    logging: LoggingConfig


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def parse_bool(value: Any, name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def parse_threshold(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid threshold: {value!r}")
    try:
        threshold = int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"Invalid threshold: {value!r}") from None
    if threshold < 0:
        raise ConfigurationError(f"Threshold must be non-negative, got {threshold}")
    return threshold


def parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown log level: {value!r}")
    return level


def parse_exclude_stages(value: Any) -> frozenset[str]:
    """Parse a comma separated string or a list of stage names.

    An unset or blank value means the reserved AWS stages.
    """
    if value is None:
        return DEFAULT_EXCLUDE_STAGES
    if isinstance(value, str):
        if not value.strip():
            return DEFAULT_EXCLUDE_STAGES
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = [str(item) for item in value]
    else:
        raise ConfigurationError(f"Invalid exclude_stages: {value!r}")
    return frozenset(item.strip() for item in items if item.strip())


def _config_path(path: Path | None, environ: Mapping[str, str]) -> Path | None:
    env_path = environ.get("STAGETRIM_CONFIG")
    explicit = path or (Path(env_path) if env_path else None)
    if explicit is not None:
        if not explicit.exists():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit
    for candidate in (Path.cwd() / "config" / "stagetrim.yaml", DEFAULT_CONFIG_PATH):
        if candidate.exists():
            return candidate
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config {path} must be a mapping")
    return raw


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = raw.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section {key!r} must be a mapping")
    return section


def _merge(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if _is_set(value):
            target[key] = value


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from YAML, the environment and explicit overrides.

    Later sources win: YAML file, GitHub Action inputs, STAGETRIM_*
    variables, then ``overrides`` (usually command-line options).
    """
    env = os.environ if environ is None else environ
    overrides = overrides or {}

    config_path = _config_path(path, env)
    raw = _read_yaml(config_path) if config_path else {}
    trim_raw = _section(raw, "trim")
    logging_raw = _section(raw, "logging")

    values: Dict[str, Any] = {}
    _merge(values, trim_raw)
    _merge(values, {key: env.get(name) for key, name in ACTION_INPUTS.items()})
    _merge(values, {key: env.get(name) for key, name in ENV_VARS.items()})
    _merge(values, {key: overrides.get(key) for key in ENV_VARS})

    if not _is_set(values.get("region")):
        for name in REGION_FALLBACKS:
            if _is_set(env.get(name)):
                values["region"] = env[name]
                break

    if not _is_set(values.get("secret_id")):
        raise ConfigurationError("A secret id is required")
    if not _is_set(values.get("region")):
        raise ConfigurationError("An AWS region is required")

    endpoint_url = values.get("endpoint_url")
    log_level = parse_log_level(overrides.get("log_level") or logging_raw.get("level", "INFO"))

    return AppConfig(
        trim=TrimConfig(
            secret_id=str(values["secret_id"]).strip(),
            region=str(values["region"]).strip(),
            threshold=parse_threshold(values.get("threshold", DEFAULT_THRESHOLD)),
            dry_run=parse_bool(values.get("dry_run", False), "dry_run"),
            exclude_stages=parse_exclude_stages(values.get("exclude_stages")),
            endpoint_url=str(endpoint_url).strip() if endpoint_url else None,
        ),
        logging=LoggingConfig(
            level=log_level,
            file_logging=parse_bool(logging_raw.get("file_logging", False), "file_logging"),
            log_dir=Path(logging_raw.get("log_dir", DEFAULT_LOG_DIR)),
        ),
    )
