"""Route classifiers used to bucket routes into hybrid bundles."""

from __future__ import annotations

import re
from importlib import metadata
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple

from ..config import ClassifierConfig, ConfigError

RouteClassifier = Callable[[str], str]

_ENTRY_POINT_GROUP = "slicebundle.classifiers"

HOME_PATHS = ("/", "/home")

DEFAULT_BUCKETS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("documentation", ("docum",)),
    (
        "components",
        (
            "component",
            "visual",
            "card",
            "button",
            "input",
            "switch",
            "checkbox",
            "select",
            "details",
            "grid",
            "loading",
            "layout",
            "navbar",
            "treeview",
            "multiroute",
        ),
    ),
    ("configuration", ("theme", "slice", "config")),
    ("routing", ("routing", "guard")),
    ("services", ("service", "command")),
    ("advanced", ("structural", "lifecycle", "static", "build")),
    ("tools", ("playground", "creator")),
    ("misc", ("about", "404")),
)


class KeywordRouteClassifier:
    """Assigns a route to the first bucket whose keyword appears in its path.

    Total and deterministic: ``/`` and ``/home`` map to ``home`` and anything
    unmatched maps to the fallback bucket.
    """

    def __init__(
        self,
        buckets: Optional[Mapping[str, Sequence[str]]] = None,
        fallback: str = "general",
    ) -> None:
        if buckets:
            self.buckets = tuple(
                (name, tuple(keyword.lower() for keyword in keywords))
                for name, keywords in buckets.items()
            )
        else:
            self.buckets = DEFAULT_BUCKETS
        self.fallback = fallback

    def __call__(self, path: str) -> str:
        lowered = path.lower()
        if lowered in HOME_PATHS:
            return "home"
        for name, keywords in self.buckets:
            if any(keyword in lowered for keyword in keywords):
                return name
        return self.fallback


def route_to_file_name(route: str) -> str:
    """Turn a route path or bundle key into a file-name-safe slug."""
    if route == "/":
        return "home"
    slug = route.lstrip("/").replace("/", "-")
    slug = re.sub(r"[^a-zA-Z0-9-]", "", slug).lower()
    return slug or "route"


def discover_classifier(config: ClassifierConfig) -> RouteClassifier:
    """Return the configured classifier, honoring installed entry points."""
    if config.name == "keyword":
        return KeywordRouteClassifier(config.buckets or None, fallback=config.fallback)

    for entry in _iter_entry_points():
        if entry.name != config.name:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - unexpected failure
            raise ConfigError(f"Failed to load route classifier '{entry.name}': {exc}") from exc
        return _coerce_classifier(loaded)

    raise ConfigError(f"Unknown route classifier requested: {config.name}")


def _coerce_classifier(obj: object) -> RouteClassifier:
    if isinstance(obj, type):
        obj = obj()
    if callable(obj):
        return obj  # type: ignore[return-value]
    raise ConfigError("Route classifier entry point must be callable or a callable class")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "DEFAULT_BUCKETS",
    "KeywordRouteClassifier",
    "RouteClassifier",
    "discover_classifier",
    "route_to_file_name",
]
