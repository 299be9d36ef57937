"""Analysis stages: registry, sources, routes, dependency graph and metrics."""

from __future__ import annotations

from .graph import DependencyGraphBuilder, transitive_closure
from .metrics import compute_metrics
from .project import ProjectAnalyzer
from .registry import RegistryError, RegistryLoader, parse_registry
from .routes import RouteLoader, RouteManifestError, parse_routes
from .sources import SourceParseError, SourceScanner, extract_references

__all__ = [
    "DependencyGraphBuilder",
    "ProjectAnalyzer",
    "RegistryError",
    "RegistryLoader",
    "RouteLoader",
    "RouteManifestError",
    "SourceParseError",
    "SourceScanner",
    "compute_metrics",
    "extract_references",
    "parse_registry",
    "parse_routes",
    "transitive_closure",
]
