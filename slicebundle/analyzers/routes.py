"""Route manifest loading and multiplex group detection."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from ..config import ConfigError
from ..logging import get_logger
from ..models import MULTIPLEX, BundleWarning, ComponentRecord, RouteGroup, RouteRecord
from .javascript import iter_nodes, object_properties, parse_javascript, string_value


class RouteManifestError(ConfigError):
    """Raised when the route manifest is missing or cannot be parsed."""


def multiplex_group_key(handler: str) -> str:
    return f"multiroute-{handler}"


def parse_routes(text: str, *, source_name: str = "routes.js") -> Dict[str, str]:
    """Return ``path -> component`` for every route object, in document order."""
    parsed = parse_javascript(text)
    if parsed.has_error:
        location = parsed.error_location() or "unknown location"
        raise RouteManifestError(f"Could not parse {source_name}: syntax error at {location}")

    routes: Dict[str, str] = {}
    for node in iter_nodes(parsed.root):
        if node.type != "object":
            continue
        properties = object_properties(node, parsed)
        path = string_value(properties.get("path"), parsed)
        component = string_value(properties.get("component"), parsed)
        if path is None or not component:
            continue
        routes[path] = component
    return routes


def detect_groups(
    routes: Sequence[RouteRecord], components: Sequence[ComponentRecord]
) -> List[RouteGroup]:
    """Coalesce routes served by one multiplex handler into a single group."""
    groups: List[RouteGroup] = []
    for component in components:
        if not component.declares_multiplex:
            continue
        related: List[str] = []
        for route in routes:
            if route.component == component.name and route.path not in related:
                related.append(route.path)
        if len(related) < 2:
            continue
        component.is_multiplex_handler = True
        component.multiplex_paths = list(related)
        groups.append(
            RouteGroup(
                key=multiplex_group_key(component.name),
                kind=MULTIPLEX,
                paths=related,
                handler=component.name,
            )
        )
    return groups


class RouteLoader:
    """Reads routes.js and marks which components each route targets."""

    def __init__(self, routes_file: Path) -> None:
        self.routes_file = routes_file
        self.logger = get_logger("routes")

    def load(
        self, components: Sequence[ComponentRecord]
    ) -> Tuple[List[RouteRecord], List[RouteGroup], List[BundleWarning]]:
        if not self.routes_file.is_file():
            raise RouteManifestError(f"Route manifest not found: {self.routes_file}")
        try:
            text = self.routes_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RouteManifestError(f"Could not read {self.routes_file.name}: {exc}") from exc

        by_name = {component.name: component for component in components}
        routes: List[RouteRecord] = []
        warnings: List[BundleWarning] = []
        for path, target in parse_routes(text, source_name=self.routes_file.name).items():
            routes.append(RouteRecord(path=path, component=target))
            component = by_name.get(target)
            if component is None:
                message = f"targets unregistered component {target}"
                self.logger.warning("Route %s %s", path, message)
                warnings.append(BundleWarning(scope="route", subject=path, message=message))
                continue
            component.add_route(path)

        groups = detect_groups(routes, components)
        if groups:
            group_of = {path: group.key for group in groups for path in group.paths}
            routes = [
                replace(route, group=group_of[route.path]) if route.path in group_of else route
                for route in routes
            ]
            for group in groups:
                self.logger.debug(
                    "Route group %s covers %s", group.key, ", ".join(group.paths)
                )

        self.logger.debug("Loaded %d routes", len(routes))
        return routes, groups, warnings


__all__ = ["RouteLoader", "RouteManifestError", "detect_groups", "multiplex_group_key", "parse_routes"]
