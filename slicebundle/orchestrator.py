"""Pipeline orchestration for bundle/info/clean flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .analyzers import ProjectAnalyzer
from .bundling import (
    GLOBAL_STRATEGY,
    BundleAssigner,
    BundleEmitter,
    ConfigPersister,
    CriticalSetBuilder,
    RouteClassifier,
    StrategySelector,
    discover_classifier,
)
from .bundling.assigner import Assignment
from .bundling.critical import is_structural
from .config import BundlerConfig, load_config
from .logging import get_logger
from .models import (
    AnalysisResult,
    BundleManifest,
    BundleWarning,
    ComponentRecord,
    RouteGroup,
)
from .project_scanner import ProjectScanner


@dataclass
class BundleOutcome:
    """Result of a bundling (or analysis-only) run."""

    root: Path
    analysis: AnalysisResult
    strategy: Optional[str] = None
    manifest: Optional[BundleManifest] = None
    files: List[Path] = field(default_factory=list)
    warnings: List[BundleWarning] = field(default_factory=list)
    route_groups: List[RouteGroup] = field(default_factory=list)
    analyze_only: bool = False


class Orchestrator:
    """Coordinates the analysis and bundling stages for a single run."""

    def __init__(
        self,
        *,
        classifier: Optional[RouteClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.logger = get_logger()
        self.classifier = classifier
        self._clock = clock or (lambda: datetime.now(UTC))
        self.scanner = ProjectScanner()

    def run_bundle(
        self,
        path: str | Path,
        *,
        config_path: Optional[str | Path] = None,
        analyze_only: bool = False,
    ) -> BundleOutcome:
        """Analyze the project and, unless ``analyze_only``, write its bundles."""
        repo_path = Path(path).expanduser().resolve()
        self.logger.info("Starting bundle run for %s", repo_path)
        config = self._load_config(repo_path, config_path)
        layout = self.scanner.scan(repo_path, config)

        analysis = ProjectAnalyzer(layout, config).analyze()
        warnings = list(analysis.warnings)
        if analyze_only:
            return BundleOutcome(
                root=repo_path, analysis=analysis, warnings=warnings, analyze_only=True
            )

        strategy = StrategySelector(config).select(analysis.metrics)
        critical: List[ComponentRecord] = []
        if strategy != GLOBAL_STRATEGY:
            critical = CriticalSetBuilder(config.critical).build(analysis)

        classifier = self.classifier or discover_classifier(config.classifier)
        assignment = BundleAssigner(classifier, unreachable=config.unreachable).assign(
            analysis,
            strategy,
            critical,
            always=[
                component.name
                for component in analysis.components
                if is_structural(component, config.critical)
            ],
        )
        warnings.extend(assignment.warnings)

        generated = self._timestamp()
        emitter = BundleEmitter(
            strategy, runtime_accessor=config.runtime_accessor, workers=config.workers
        )
        artifacts = []
        for rendered in emitter.render_all(assignment.bundles, generated):
            bundle = rendered.bundle
            bundle.components = rendered.components
            bundle.omitted = rendered.omitted
            bundle.hash = rendered.hash
            bundle.file_size = rendered.file_size
            warnings.extend(rendered.warnings)
            artifacts.append((bundle.file, rendered.content))

        manifest = self._build_manifest(analysis, strategy, assignment, generated)
        files = ConfigPersister(layout.output_dir).persist(
            manifest, artifacts, runtime_accessor=config.runtime_accessor
        )
        self.logger.info(
            "Generated %d bundles with %d warnings", len(manifest.bundles), len(warnings)
        )
        return BundleOutcome(
            root=repo_path,
            analysis=analysis,
            strategy=strategy,
            manifest=manifest,
            files=files,
            warnings=warnings,
            route_groups=list(assignment.groups),
        )

    def run_info(self, path: str | Path, *, config_path: Optional[str | Path] = None) -> Dict[str, Any]:
        """Return the persisted manifest for the project at ``path``."""
        repo_path = Path(path).expanduser().resolve()
        config = self._load_config(repo_path, config_path)
        return ConfigPersister(repo_path / config.paths.output_dir()).read()

    def run_clean(self, path: str | Path, *, config_path: Optional[str | Path] = None) -> List[Path]:
        """Remove generated bundles and manifests for the project at ``path``."""
        repo_path = Path(path).expanduser().resolve()
        config = self._load_config(repo_path, config_path)
        removed = ConfigPersister(repo_path / config.paths.output_dir()).clean()
        self.logger.info("Removed %d generated files", len(removed))
        return removed

    @staticmethod
    def _load_config(repo_path: Path, config_path: Optional[str | Path]) -> BundlerConfig:
        return load_config(Path(config_path) if config_path is not None else repo_path)

    def _timestamp(self) -> str:
        return self._clock().isoformat().replace("+00:00", "Z")

    @staticmethod
    def _build_manifest(
        analysis: AnalysisResult,
        strategy: str,
        assignment: Assignment,
        generated: str,
    ) -> BundleManifest:
        metrics = analysis.metrics
        critical = assignment.critical
        if critical is not None:
            initial: Optional[str] = critical.key
        elif strategy == GLOBAL_STRATEGY and assignment.bundles:
            initial = assignment.bundles[0].key
        else:
            initial = None

        stats = {
            "totalComponents": metrics.total_components,
            "totalRoutes": metrics.total_routes,
            "sharedComponents": metrics.shared_components,
            "sharedPercentage": metrics.shared_percentage,
            "totalSize": metrics.total_size,
            "averageSize": metrics.average_size,
            "criticalSize": critical.size if critical is not None else 0,
            "criticalComponents": len(critical.components) if critical is not None else 0,
            "byCategory": dict(metrics.by_category),
            "unreachable": list(assignment.unreachable),
        }
        return BundleManifest(
            strategy=strategy,
            generated=generated,
            initial=initial,
            stats=stats,
            bundles=list(assignment.bundles),
            routes={path: list(keys) for path, keys in assignment.route_bundles.items()},
        )


__all__ = ["BundleOutcome", "Orchestrator"]
