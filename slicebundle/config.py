"""Configuration loading for slicebundle (.slicebundle.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".slicebundle.yml"

STRATEGIES = ("global", "hybrid", "per-route")
UNREACHABLE_POLICIES = ("drop", "warn")


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be parsed or is structurally invalid."""


@dataclass
class PathsConfig:
    """Project-relative locations of the inputs and outputs of a run."""

    src: str = "src"
    components: Optional[str] = None
    registry: Optional[str] = None
    routes: Optional[str] = None
    output: Optional[str] = None
    slice_config: Optional[str] = None

    def components_dir(self) -> str:
        return self.components or f"{self.src}/Components"

    def registry_file(self) -> str:
        return self.registry or f"{self.components_dir()}/components.js"

    def routes_file(self) -> str:
        return self.routes or f"{self.src}/routes.js"

    def output_dir(self) -> str:
        return self.output or f"{self.src}/bundles"

    def slice_config_file(self) -> str:
        return self.slice_config or f"{self.src}/sliceConfig.json"


@dataclass
class CategoryConfig:
    """Directory and type of a component category."""

    path: str
    type: Optional[str] = None


@dataclass
class StrategyThresholds:
    """Limits that decide between the global, hybrid and per-route strategies."""

    global_max_components: int = 20
    global_min_shared_percentage: float = 60.0
    hybrid_max_components: int = 100


@dataclass
class CriticalConfig:
    """Budgets and candidate rules for the critical bundle."""

    max_size: int = 50 * 1024
    max_components: int = 15
    min_shared_usage: int = 3
    usage_weight: float = 10.0
    small_size: int = 2000
    small_min_usage: int = 2
    structural_names: List[str] = field(
        default_factory=lambda: ["Navbar", "Footer", "Layout"]
    )


@dataclass
class ClassifierConfig:
    """Route classifier selection for hybrid bundling."""

    name: str = "keyword"
    buckets: Dict[str, List[str]] = field(default_factory=dict)
    fallback: str = "general"


@dataclass
class BundlerConfig:
    """Represents the settings defined in .slicebundle.yml."""

    root: Path
    strategy: str = "auto"
    unreachable: str = "drop"
    workers: int = 4
    runtime_accessor: str = "globalThis.slice && globalThis.slice.controller"
    paths: PathsConfig = field(default_factory=PathsConfig)
    categories: Dict[str, CategoryConfig] = field(default_factory=dict)
    thresholds: StrategyThresholds = field(default_factory=StrategyThresholds)
    critical: CriticalConfig = field(default_factory=CriticalConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)


def load_config(config_path: Path) -> BundlerConfig:
    """Load configuration from disk, returning defaults when no file exists."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BundlerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = BundlerConfig(root=root)

    strategy = _as_str(data.get("strategy"))
    if strategy is not None:
        if strategy != "auto" and strategy not in STRATEGIES:
            raise ConfigError(
                f"Unknown strategy '{strategy}' (expected auto, {', '.join(STRATEGIES)})"
            )
        config.strategy = strategy

    unreachable = _as_str(data.get("unreachable"))
    if unreachable is not None:
        if unreachable not in UNREACHABLE_POLICIES:
            raise ConfigError(
                f"Unknown unreachable policy '{unreachable}' (expected drop or warn)"
            )
        config.unreachable = unreachable

    workers = _as_int(data.get("workers"))
    if workers is not None:
        config.workers = _positive(workers, "workers")

    accessor = _as_str(data.get("runtime_accessor"))
    if accessor:
        config.runtime_accessor = accessor

    paths_data = _as_dict(data.get("paths"))
    if paths_data:
        config.paths = PathsConfig(
            src=_as_str(paths_data.get("src")) or "src",
            components=_as_str(paths_data.get("components")),
            registry=_as_str(paths_data.get("registry")),
            routes=_as_str(paths_data.get("routes")),
            output=_as_str(paths_data.get("output")),
            slice_config=_as_str(paths_data.get("slice_config")),
        )

    if "categories" in data:
        config.categories = parse_categories(data.get("categories"), source=CONFIG_FILENAME)

    thresholds_data = _as_dict(data.get("thresholds"))
    if thresholds_data:
        defaults = StrategyThresholds()
        config.thresholds = StrategyThresholds(
            global_max_components=_int_or(
                thresholds_data.get("global_max_components"), defaults.global_max_components
            ),
            global_min_shared_percentage=_float_or(
                thresholds_data.get("global_min_shared_percentage"),
                defaults.global_min_shared_percentage,
            ),
            hybrid_max_components=_int_or(
                thresholds_data.get("hybrid_max_components"), defaults.hybrid_max_components
            ),
        )

    critical_data = _as_dict(data.get("critical"))
    if critical_data:
        defaults_critical = CriticalConfig()
        config.critical = CriticalConfig(
            max_size=_positive(
                _int_or(critical_data.get("max_size"), defaults_critical.max_size),
                "critical.max_size",
            ),
            max_components=_positive(
                _int_or(critical_data.get("max_components"), defaults_critical.max_components),
                "critical.max_components",
            ),
            min_shared_usage=_int_or(
                critical_data.get("min_shared_usage"), defaults_critical.min_shared_usage
            ),
            usage_weight=_float_or(
                critical_data.get("usage_weight"), defaults_critical.usage_weight
            ),
            small_size=_int_or(critical_data.get("small_size"), defaults_critical.small_size),
            small_min_usage=_int_or(
                critical_data.get("small_min_usage"), defaults_critical.small_min_usage
            ),
            structural_names=(
                _as_str_list(critical_data.get("structural_names"))
                if "structural_names" in critical_data
                else list(defaults_critical.structural_names)
            ),
        )

    classifier_data = _as_dict(data.get("classifier"))
    if classifier_data:
        buckets: Dict[str, List[str]] = {}
        for bucket, keywords in _as_dict(classifier_data.get("buckets")).items():
            buckets[str(bucket)] = _as_str_list(keywords)
        config.classifier = ClassifierConfig(
            name=_as_str(classifier_data.get("name")) or "keyword",
            buckets=buckets,
            fallback=_as_str(classifier_data.get("fallback")) or "general",
        )

    return config


def parse_categories(value: Any, *, source: str) -> Dict[str, CategoryConfig]:
    """Validate a ``category -> {path, type}`` mapping."""
    if not isinstance(value, dict):
        raise ConfigError(f"{source}: categories must be a mapping of category to settings")
    categories: Dict[str, CategoryConfig] = {}
    for name, entry in value.items():
        if isinstance(entry, str):
            categories[str(name)] = CategoryConfig(path=entry)
            continue
        if not isinstance(entry, dict):
            raise ConfigError(f"{source}: category '{name}' must be a mapping")
        path = _as_str(entry.get("path"))
        if not path:
            raise ConfigError(f"{source}: category '{name}' is missing required field 'path'")
        categories[str(name)] = CategoryConfig(path=path, type=_as_str(entry.get("type")))
    return categories


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _positive(value: int, name: str) -> int:
    if value <= 0:
        raise ConfigError(f"{name} must be a positive integer")
    return value


def _int_or(value: Any, default: int) -> int:
    parsed = _as_int(value)
    return default if parsed is None else parsed


def _float_or(value: Any, default: float) -> float:
    parsed = _as_float(value)
    return default if parsed is None else parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


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
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "BundlerConfig",
    "CategoryConfig",
    "ClassifierConfig",
    "ConfigError",
    "CriticalConfig",
    "PathsConfig",
    "StrategyThresholds",
    "load_config",
    "parse_categories",
]
