"""Configuration loading for umlscope (.umlscope.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".umlscope.yml"

_DIRECTIONS = {"TB", "BT", "LR", "RL"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class SpacingConfig:
    """Node and rank separation for one scope mode, in pixels."""

    node_separation: float
    rank_separation: float


@dataclass
class LayoutConfig:
    direction: str = "TB"
    file: SpacingConfig = field(default_factory=lambda: SpacingConfig(50.0, 100.0))
    project: SpacingConfig = field(default_factory=lambda: SpacingConfig(80.0, 150.0))


@dataclass
class ScopeConfig:
    max_depth: int = 5


@dataclass
class ImportConfig:
    """Extensions tried, in order, when a relative specifier has none."""

    extensions: List[str] = field(default_factory=lambda: [".ts"])


@dataclass
class ExtractorConfig:
    enabled: Optional[List[str]] = None


@dataclass
class UmlScopeConfig:
    """Represents the settings defined in .umlscope.yml."""

    root: Optional[Path] = None
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    scope: ScopeConfig = field(default_factory=ScopeConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    extractors: ExtractorConfig = field(default_factory=ExtractorConfig)


def load_config(config_path: Path) -> UmlScopeConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return UmlScopeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    layout = LayoutConfig()
    layout_data = _as_dict(data.get("layout"))
    if layout_data:
        direction = _as_str(layout_data.get("direction"))
        if direction is not None:
            direction = direction.upper()
            if direction not in _DIRECTIONS:
                raise ConfigError(
                    f"layout.direction must be one of {sorted(_DIRECTIONS)}, got {direction!r}"
                )
            layout.direction = direction
        layout.file = _spacing(layout_data.get("file"), layout.file)
        layout.project = _spacing(layout_data.get("project"), layout.project)

    scope = ScopeConfig()
    scope_data = _as_dict(data.get("scope"))
    max_depth = _as_int(scope_data.get("max_depth")) if scope_data else None
    if max_depth is not None:
        if max_depth < 0:
            raise ConfigError("scope.max_depth must not be negative")
        scope.max_depth = max_depth

    imports = ImportConfig()
    imports_data = _as_dict(data.get("imports"))
    if imports_data and imports_data.get("extensions") is not None:
        extensions = [
            ext if ext.startswith(".") else f".{ext}"
            for ext in _as_str_list(imports_data.get("extensions"))
        ]
        if extensions:
            imports.extensions = extensions

    extractors = ExtractorConfig()
    extractor_data = _as_dict(data.get("extractors"))
    if extractor_data and extractor_data.get("enabled") is not None:
        extractors.enabled = _as_str_list(extractor_data.get("enabled"))

    return UmlScopeConfig(
        root=root,
        layout=layout,
        scope=scope,
        imports=imports,
        extractors=extractors,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


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
    return loaded if loaded is not None else {}


def _spacing(value: Any, default: SpacingConfig) -> SpacingConfig:
    data = _as_dict(value)
    if not data:
        return default
    node_sep = _as_float(data.get("node_separation"))
    rank_sep = _as_float(data.get("rank_separation"))
    for label, number in (("node_separation", node_sep), ("rank_separation", rank_sep)):
        if number is not None and number < 0:
            raise ConfigError(f"layout {label} must not be negative")
    return SpacingConfig(
        node_separation=default.node_separation if node_sep is None else node_sep,
        rank_separation=default.rank_separation if rank_sep is None else rank_sep,
    )


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
