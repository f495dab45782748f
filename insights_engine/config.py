"""Engine configuration from an optional YAML file and environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from dotenv import load_dotenv

from insights_engine.errors import ConfigurationError
from insights_engine.schema import CanonicalAttributeKey

_ENV_KEYS = {
    "top_n": "INSIGHTS_TOP_N",
    "dimension": "INSIGHTS_DIMENSION",
    "log_level": "INSIGHTS_LOG_LEVEL",
    "log_file": "INSIGHTS_LOG_FILE",
}


@dataclass(frozen=True)
class EngineConfig:
    """Settings the caller may tune without touching the lookup tables."""

    top_n: int = 5
    dimension: CanonicalAttributeKey = CanonicalAttributeKey.TYPE
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _parse_dimension(value: Any) -> CanonicalAttributeKey:
    if isinstance(value, CanonicalAttributeKey):
        return value
    text = str(value).strip()
    try:
        return CanonicalAttributeKey[text.upper()]
    except KeyError:
        pass
    try:
        return CanonicalAttributeKey(text.lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown dimension '{value}'") from exc


def _parse_top_n(value: Any) -> int:
    try:
        top_n = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"top_n must be an integer, got {value!r}") from exc
    if top_n < 0:
        raise ConfigurationError("top_n must not be negative")
    return top_n


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_path: Optional[Union[str, Path]] = None,
) -> EngineConfig:
    """Load settings; environment variables override YAML values."""

    if env_path is not None and Path(env_path).exists():
        load_dotenv(env_path)

    values: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        with open(path, encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError("Config file must contain a mapping")
        values.update(loaded.get("insights", loaded))

    for field_name, env_name in _ENV_KEYS.items():
        env_value = os.getenv(env_name)
        if env_value not in (None, ""):
            values[field_name] = env_value

    defaults = EngineConfig()
    return EngineConfig(
        top_n=_parse_top_n(values.get("top_n", defaults.top_n)),
        dimension=_parse_dimension(values.get("dimension", defaults.dimension)),
        log_level=str(values.get("log_level", defaults.log_level)).upper(),
        log_file=values.get("log_file", defaults.log_file),
    )
