"""Runs the analysis stages in order and gathers their output."""

from __future__ import annotations

from ..config import BundlerConfig
from ..logging import get_logger
from ..models import AnalysisResult
from ..project_scanner import ProjectLayout
from .graph import DependencyGraphBuilder
from .metrics import compute_metrics
from .registry import RegistryLoader
from .routes import RouteLoader
from .sources import SourceScanner


class ProjectAnalyzer:
    """Registry -> sources -> routes -> graph -> metrics."""

    def __init__(self, layout: ProjectLayout, config: BundlerConfig) -> None:
        self.layout = layout
        self.config = config
        self.logger = get_logger("analysis")

    def analyze(self) -> AnalysisResult:
        components, warnings = RegistryLoader(self.layout, self.config).load()
        self.logger.debug("Registry produced %d components", len(components))

        warnings.extend(SourceScanner(workers=self.config.workers).scan(components))

        routes, groups, route_warnings = RouteLoader(self.layout.routes_file).load(components)
        warnings.extend(route_warnings)

        graph = DependencyGraphBuilder().build(components, routes, groups)
        metrics = compute_metrics(components, routes)
        self.logger.info(
            "Analyzed %d components and %d routes (%d shared)",
            metrics.total_components,
            metrics.total_routes,
            metrics.shared_components,
        )
        return AnalysisResult(
            components=components,
            routes=routes,
            groups=groups,
            graph=graph,
            metrics=metrics,
            warnings=warnings,
        )


__all__ = ["ProjectAnalyzer"]
