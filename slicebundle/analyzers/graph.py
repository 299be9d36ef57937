"""Dependency graph construction over registered components."""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Tuple

from ..logging import get_logger
from ..models import ComponentRecord, DependencyGraph, RouteGroup, RouteRecord


def transitive_closure(name: str, direct: Mapping[str, Sequence[str]]) -> Tuple[str, ...]:
    """Return every component reachable from ``name`` through direct edges.

    Depth-first traversal with a visited set: a node is expanded at most once,
    so cyclic input terminates. A component that reaches itself through a
    cycle appears in its own closure.
    """
    visited = {name}
    ordered: Dict[str, None] = {}
    stack = list(reversed(direct.get(name, ())))
    while stack:
        current = stack.pop()
        ordered.setdefault(current, None)
        if current in visited:
            continue
        visited.add(current)
        stack.extend(reversed(direct.get(current, ())))
    return tuple(ordered)


class DependencyGraphBuilder:
    """Builds closures, reverse usage and route usage for the analysis."""

    def __init__(self) -> None:
        self.logger = get_logger("graph")

    def build(
        self,
        components: Sequence[ComponentRecord],
        routes: Sequence[RouteRecord] = (),
        groups: Sequence[RouteGroup] = (),
    ) -> DependencyGraph:
        known = {component.name for component in components}
        graph = DependencyGraph()

        for component in components:
            graph.direct[component.name] = tuple(
                name for name in component.dependencies if name in known
            )
            unresolved = tuple(name for name in component.dependencies if name not in known)
            if unresolved:
                graph.unresolved[component.name] = unresolved
                self.logger.debug(
                    "%s references unregistered components: %s",
                    component.name,
                    ", ".join(unresolved),
                )

        for component in components:
            closure = transitive_closure(component.name, graph.direct)
            graph.transitive[component.name] = closure
            component.transitive = list(closure)

        by_name = {component.name: component for component in components}
        used_by: Dict[str, List[str]] = {name: [] for name in by_name}
        for component in components:
            for dep in graph.transitive[component.name]:
                if dep != component.name and component.name not in used_by[dep]:
                    used_by[dep].append(component.name)
        for name, users in used_by.items():
            by_name[name].used_by = users

        for route in routes:
            if route.component not in by_name:
                continue
            for name in graph.with_closure(route.component):
                by_name[name].add_route(route.path)

        for group in groups:
            if group.handler is not None:
                group.components = graph.with_closure(group.handler)

        return graph


__all__ = ["DependencyGraphBuilder", "transitive_closure"]
