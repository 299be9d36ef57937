"""Core data models shared across slicebundle components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

BUNDLE_VERSION = "2.0.0"

CRITICAL = "critical"
SECONDARY = "secondary"
GLOBAL = "global"

MULTIPLEX = "multiplex"
CATEGORICAL = "categorical"


@dataclass
class ComponentRecord:
    """A registered component and everything learned about it during analysis."""

    name: str
    category: str
    category_type: str
    path: Path
    size: int = 0
    dependencies: List[str] = field(default_factory=list)
    transitive: List[str] = field(default_factory=list)
    routes: List[str] = field(default_factory=list)
    used_by: List[str] = field(default_factory=list)
    is_multiplex_handler: bool = False
    multiplex_paths: List[str] = field(default_factory=list)
    multiplex_routes: List[Tuple[str, str]] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    source_error: Optional[str] = None

    @property
    def declares_multiplex(self) -> bool:
        return bool(self.multiplex_routes) or "MultiRoute" in self.dependencies

    def add_route(self, path: str) -> None:
        if path not in self.routes:
            self.routes.append(path)


@dataclass(frozen=True)
class RouteRecord:
    """Navigable path mapped to the component that renders it."""

    path: str
    component: str
    group: Optional[str] = None


@dataclass
class RouteGroup:
    """Routes that are bundled together as one assignment unit."""

    key: str
    kind: str
    paths: List[str]
    components: List[str] = field(default_factory=list)
    handler: Optional[str] = None


@dataclass
class DependencyGraph:
    """Direct and transitive dependency edges between registered components."""

    direct: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    transitive: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    unresolved: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def closure(self, name: str) -> Tuple[str, ...]:
        return self.transitive.get(name, ())

    def with_closure(self, name: str) -> List[str]:
        """Return ``name`` followed by its closure, without duplicates."""
        ordered = [name]
        for dep in self.closure(name):
            if dep not in ordered:
                ordered.append(dep)
        return ordered


@dataclass
class BundleWarning:
    """Component-scoped problem that degraded, but did not abort, the run."""

    scope: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"[{self.scope}] {self.subject}: {self.message}"


@dataclass
class Metrics:
    """Aggregate project statistics used to pick a strategy."""

    total_components: int
    total_routes: int
    shared_components: int
    shared_percentage: float
    total_size: int
    average_size: int
    by_category: Dict[str, int] = field(default_factory=dict)
    top_by_usage: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Output of the analysis stages, consumed by the bundling stages."""

    components: List[ComponentRecord]
    routes: List[RouteRecord]
    groups: List[RouteGroup]
    graph: DependencyGraph
    metrics: Metrics
    warnings: List[BundleWarning] = field(default_factory=list)

    def component_map(self) -> Dict[str, ComponentRecord]:
        return {component.name: component for component in self.components}


@dataclass
class Bundle:
    """One partition cell and, once emitted, its artifact details."""

    kind: str
    key: str
    components: List[ComponentRecord] = field(default_factory=list)
    paths: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    file: str = ""
    hash: str = ""
    file_size: int = 0
    omitted: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return sum(component.size for component in self.components)

    @property
    def component_names(self) -> List[str]:
        return [component.name for component in self.components]


@dataclass
class BundleManifest:
    """Description of every bundle produced by a run."""

    strategy: str
    generated: str
    initial: Optional[str]
    stats: Dict[str, Any]
    bundles: List[Bundle]
    routes: Dict[str, List[str]]
    version: str = BUNDLE_VERSION

    @property
    def critical(self) -> Optional[Bundle]:
        for bundle in self.bundles:
            if bundle.kind == CRITICAL:
                return bundle
        return None
