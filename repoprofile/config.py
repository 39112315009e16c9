"""Configuration loading for repoprofile (.repoprofile.yml)."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

CONFIG_FILENAME = ".repoprofile.yml"

DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".vscode",
    ".idea",
    "coverage",
    "dist",
    "build",
    ".next",
    ".cache",
    "logs",
    "*.log",
    ".DS_Store",
    "Thumbs.db",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings for one analysis run, passed explicitly through every stage."""

    max_depth: int = 8
    ignore_patterns: Tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    max_examples_per_category: int = 5
    max_file_size_kb: int = 1000
    quality_sample_limit: int = 500
    documentation_sample_limit: int = 10

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_kb * 1024

    def with_overrides(self, **values: Any) -> "AnalysisConfig":
        """Return a copy with non-None values applied."""
        updates = {key: value for key, value in values.items() if value is not None}
        if "ignore_patterns" in updates:
            updates["ignore_patterns"] = tuple(updates["ignore_patterns"])
        return replace(self, **updates)


_INT_FIELDS = {
    item.name for item in fields(AnalysisConfig) if item.name != "ignore_patterns"
}


def load_config(path: Path, base: AnalysisConfig | None = None) -> AnalysisConfig:
    """Load configuration for a repository.

    `path` may be the repository root or the config file itself. A missing file
    yields `base` (or the defaults) unchanged.
    """
    config = base or AnalysisConfig()
    config_file = _resolve_config_path(path)
    if not config_file.exists():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    updates: Dict[str, Any] = {}
    for key in sorted(_INT_FIELDS):
        if key in data:
            updates[key] = _as_non_negative_int(key, data[key])

    if "ignore_patterns" in data:
        updates["ignore_patterns"] = tuple(_as_str_list("ignore_patterns", data["ignore_patterns"]))
    extra = _as_str_list("extra_ignore_patterns", data.get("extra_ignore_patterns"))
    if extra:
        current = updates.get("ignore_patterns", config.ignore_patterns)
        updates["ignore_patterns"] = tuple(current) + tuple(
            pattern for pattern in extra if pattern not in current
        )

    return config.with_overrides(**updates)


def _resolve_config_path(path: Path) -> Path:
    path = path.expanduser()
    if path.is_dir():
        return (path / CONFIG_FILENAME).resolve()
    return path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_non_negative_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer")
    if value < 0:
        raise ConfigError(f"{key} must not be negative")
    return value


def _as_str_list(key: str, value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        if not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{key} must be a list of strings")
        return [item for item in value if item.strip()]
    raise ConfigError(f"{key} must be a list of strings")


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_IGNORE_PATTERNS",
    "load_config",
]
