"""Dependency extraction from component source files."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..logging import get_logger
from ..models import BundleWarning, ComponentRecord
from .javascript import (
    ParsedSource,
    call_arguments,
    call_target,
    iter_nodes,
    named_children,
    object_properties,
    parse_javascript,
    string_value,
)

MULTIROUTE = "MultiRoute"

_BUILD_CALLEES = {
    "slice.build",
    "window.slice.build",
    "this.slice.build",
    "globalThis.slice.build",
}


class SourceParseError(ValueError):
    """Raised when a component source cannot be parsed."""


@dataclass
class SourceReferences:
    """References declared by one component source."""

    dependencies: List[str] = field(default_factory=list)
    multiplex_routes: List[Tuple[str, str]] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)


def extract_references(source: str) -> SourceReferences:
    """Return the components and modules referenced by ``source``."""
    parsed = parse_javascript(source)
    if parsed.has_error:
        location = parsed.error_location() or "unknown location"
        raise SourceParseError(f"syntax error at {location}")

    references = SourceReferences()
    for node in iter_nodes(parsed.root):
        if node.type == "call_expression":
            _collect_build_call(node, parsed, references)
        elif node.type == "import_statement":
            _collect_import(node, parsed, references)
    return references


def _collect_build_call(node, parsed: ParsedSource, references: SourceReferences) -> None:  # type: ignore[no-untyped-def]
    if call_target(node, parsed) not in _BUILD_CALLEES:
        return
    args = call_arguments(node)
    name = string_value(args[0], parsed) if args else None
    if not name:
        return
    _append_unique(references.dependencies, name)
    if name != MULTIROUTE or len(args) < 2 or args[1].type != "object":
        return

    routes = object_properties(args[1], parsed).get("routes")
    if routes is None or routes.type != "array":
        return
    for element in named_children(routes):
        if element.type != "object":
            continue
        properties = object_properties(element, parsed)
        component = string_value(properties.get("component"), parsed)
        if not component:
            continue
        _append_unique(references.dependencies, component)
        path = string_value(properties.get("path"), parsed)
        if path is not None and (path, component) not in references.multiplex_routes:
            references.multiplex_routes.append((path, component))


def _collect_import(node, parsed: ParsedSource, references: SourceReferences) -> None:  # type: ignore[no-untyped-def]
    specifier = string_value(node.child_by_field_name("source"), parsed)
    if not specifier:
        return
    if "/Components/" in specifier:
        name = specifier.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".js"):
            name = name[: -len(".js")]
        if name:
            _append_unique(references.dependencies, name)
    elif specifier.startswith(("./", "../")):
        _append_unique(references.imports, specifier)


def _append_unique(items: list, value) -> None:  # type: ignore[no-untyped-def]
    if value not in items:
        items.append(value)


class SourceScanner:
    """Reads each component's primary source and records its references."""

    def __init__(self, workers: int = 4) -> None:
        self.workers = max(1, workers)
        self.logger = get_logger("sources")

    def scan(self, components: Sequence[ComponentRecord]) -> List[BundleWarning]:
        """Populate dependency fields in place; failures degrade to empty sets."""
        if self.workers > 1 and len(components) > 1:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="slicebundle-scan"
            ) as pool:
                outcomes = list(pool.map(self._scan_one, components))
        else:
            outcomes = [self._scan_one(component) for component in components]

        warnings: List[BundleWarning] = []
        for component, outcome in zip(components, outcomes):
            if isinstance(outcome, str):
                component.source_error = outcome
                self.logger.warning("Could not analyze %s: %s", component.name, outcome)
                warnings.append(BundleWarning(scope="source", subject=component.name, message=outcome))
                continue
            component.dependencies = [
                name for name in outcome.dependencies if name != component.name
            ]
            component.multiplex_routes = list(outcome.multiplex_routes)
            component.imports = list(outcome.imports)
            self.logger.debug(
                "%s references %s", component.name, ", ".join(component.dependencies) or "nothing"
            )
        return warnings

    @staticmethod
    def _scan_one(component: ComponentRecord) -> SourceReferences | str:
        """Return the references, or an error message when the source is unusable."""
        source_file = component.path / f"{component.name}.js"
        if not source_file.is_file():
            return f"primary source {source_file.name} not found"
        try:
            source = source_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return f"could not read {source_file.name}: {exc}"
        try:
            return extract_references(source)
        except SourceParseError as exc:
            return f"could not parse {source_file.name}: {exc}"


__all__ = ["MULTIROUTE", "SourceParseError", "SourceReferences", "SourceScanner", "extract_references"]
