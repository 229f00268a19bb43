"""Load optional board configuration from `.monday_lite/config.yaml`."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILE,
    DEFAULT_COMMIT_LATENCY_MS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_METRICS_ITERATIONS,
    DEFAULT_VALIDATE_LATENCY_MS,
    STATE_DIR_NAME,
)
from .errors import ConfigError
from .observability import ObservabilityContext

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def _default_tags() -> dict[str, str]:
    return {"workspace_type": "enterprise"}


def _default_contexts() -> dict[str, dict[str, Any]]:
    return {
        "sprint_data": {
            "id": "sprint-2024",
            "goal": "Q1 Demo",
            "team": "Platform Engineering",
            "velocity": 42,
        }
    }


@dataclass
class BoardConfig:
    validate_latency_ms: int = DEFAULT_VALIDATE_LATENCY_MS
    commit_latency_ms: int = DEFAULT_COMMIT_LATENCY_MS
    metrics_iterations: int = DEFAULT_METRICS_ITERATIONS
    log_level: str = DEFAULT_LOG_LEVEL
    workspace_tags: dict[str, str] = field(default_factory=_default_tags)
    workspace_contexts: dict[str, dict[str, Any]] = field(default_factory=_default_contexts)
    source: Optional[Path] = None

    @property
    def validate_latency(self) -> float:
        return self.validate_latency_ms / 1000

    @property
    def commit_latency(self) -> float:
        return self.commit_latency_ms / 1000

    def observability_context(self) -> ObservabilityContext:
        return ObservabilityContext(
            tags=dict(self.workspace_tags),
            contexts={k: dict(v) for k, v in self.workspace_contexts.items()},
        )


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _non_negative_int(config: dict[str, Any], default: int, *keys: str) -> int:
    raw = _get_nested(config, *keys)
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ConfigError(f"{'.'.join(keys)} must be a non-negative integer, got {raw!r}")
    return raw


def config_from_dict(data: dict[str, Any], source: Optional[Path] = None) -> BoardConfig:
    """Build a :class:`BoardConfig` from a parsed config mapping.

    Args:
        data: Parsed YAML document (may be empty).
        source: Path the mapping came from, kept for error messages.

    Returns:
        The config with defaults filled in for missing keys.

    Raises:
        ConfigError: If a key has the wrong type or value.
    """
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")

    level = _get_nested(data, "logging", "level") or DEFAULT_LOG_LEVEL
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, got {level!r}")

    tags = _get_nested(data, "workspace", "tags")
    if tags is None:
        tags = _default_tags()
    elif not isinstance(tags, dict):
        raise ConfigError("workspace.tags must be a mapping")

    contexts = _get_nested(data, "workspace", "context")
    if contexts is None:
        contexts = _default_contexts()
    elif not isinstance(contexts, dict) or not all(isinstance(v, dict) for v in contexts.values()):
        raise ConfigError("workspace.context must map names to mappings")

    return BoardConfig(
        validate_latency_ms=_non_negative_int(data, DEFAULT_VALIDATE_LATENCY_MS, "move", "validate_latency_ms"),
        commit_latency_ms=_non_negative_int(data, DEFAULT_COMMIT_LATENCY_MS, "move", "commit_latency_ms"),
        metrics_iterations=_non_negative_int(data, DEFAULT_METRICS_ITERATIONS, "metrics", "iterations"),
        log_level=level.upper(),
        workspace_tags={str(k): str(v) for k, v in tags.items()},
        workspace_contexts={str(k): dict(v) for k, v in contexts.items()},
        source=source,
    )


def default_config_path(project_dir: Optional[Path] = None) -> Path:
    """Resolve the config path.

    ``MONDAY_LITE_CONFIG`` wins; otherwise ``<project_dir>/.monday_lite/config.yaml``
    with the current directory as the default project.
    """
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()
    base = project_dir if project_dir is not None else Path.cwd()
    return (base / STATE_DIR_NAME / CONFIG_FILE).resolve()


def load_config(project_dir: Optional[Path] = None, path: Optional[Path] = None) -> BoardConfig:
    """Load the board config file; a missing file yields the defaults.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated.
    """
    path = path.expanduser().resolve() if path is not None else default_config_path(project_dir)
    if not path.exists():
        return BoardConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read config {path}: {exc}") from exc
    if data is None:
        data = {}
    return config_from_dict(data, source=path)
