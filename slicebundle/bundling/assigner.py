"""Assignment of reachable components to bundles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from ..logging import get_logger, log_warnings
from ..models import (
    CATEGORICAL,
    CRITICAL,
    GLOBAL,
    SECONDARY,
    AnalysisResult,
    Bundle,
    BundleWarning,
    ComponentRecord,
    RouteGroup,
)
from .classifier import KeywordRouteClassifier, RouteClassifier, route_to_file_name
from .strategy import GLOBAL_STRATEGY, HYBRID_STRATEGY


@dataclass
class Assignment:
    """Bundles for one run plus the bookkeeping the manifest needs."""

    bundles: List[Bundle]
    route_bundles: Dict[str, List[str]]
    unreachable: List[str] = field(default_factory=list)
    groups: List[RouteGroup] = field(default_factory=list)
    warnings: List[BundleWarning] = field(default_factory=list)

    @property
    def critical(self) -> Optional[Bundle]:
        for bundle in self.bundles:
            if bundle.kind == CRITICAL:
                return bundle
        return None


@dataclass
class _Unit:
    key: str
    paths: List[str]
    targets: List[str]


class BundleAssigner:
    """Places every reachable component in exactly one bundle."""

    def __init__(
        self,
        classifier: Optional[RouteClassifier] = None,
        *,
        unreachable: str = "drop",
    ) -> None:
        self.classifier = classifier or KeywordRouteClassifier()
        self.unreachable_policy = unreachable
        self.logger = get_logger("assigner")

    def assign(
        self,
        analysis: AnalysisResult,
        strategy: str,
        critical: Sequence[ComponentRecord] = (),
        always: Sequence[str] = (),
    ) -> Assignment:
        """Partition components for ``strategy``.

        ``critical`` is the admitted critical set (ignored for the global
        strategy); ``always`` names components needed on every page, which the
        global bundle includes even when no route reaches them.
        """
        if strategy == GLOBAL_STRATEGY:
            assignment = self._assign_global(analysis, always)
        else:
            assignment = self._assign_partitioned(analysis, strategy, critical)

        bundled = {name for bundle in assignment.bundles for name in bundle.component_names}
        assignment.unreachable = [
            component.name for component in analysis.components if component.name not in bundled
        ]
        if self.unreachable_policy == "warn":
            assignment.warnings.extend(
                BundleWarning(
                    scope="unreachable",
                    subject=name,
                    message="not reachable from any route; excluded from every bundle",
                )
                for name in assignment.unreachable
            )
            log_warnings(self.logger, assignment.warnings)
        else:
            for name in assignment.unreachable:
                self.logger.debug("Dropping unreachable component %s", name)
        return assignment

    def _assign_global(self, analysis: AnalysisResult, always: Sequence[str]) -> Assignment:
        reachable = self._route_reachable(analysis)
        for name in always:
            if name in analysis.graph.direct:
                reachable.update(analysis.graph.with_closure(name))
        components = [component for component in analysis.components if component.name in reachable]
        paths = [route.path for route in analysis.routes]
        bundles: List[Bundle] = []
        route_bundles: Dict[str, List[str]] = {path: [] for path in paths}
        if components:
            bundle = Bundle(kind=GLOBAL, key=GLOBAL, components=components, paths=paths)
            bundle.file = f"slice-bundle.{GLOBAL}.js"
            bundles.append(bundle)
            route_bundles = {path: [GLOBAL] for path in paths}
        return Assignment(bundles=bundles, route_bundles=route_bundles)

    def _assign_partitioned(
        self,
        analysis: AnalysisResult,
        strategy: str,
        critical: Sequence[ComponentRecord],
    ) -> Assignment:
        by_name = analysis.component_map()
        bundles: List[Bundle] = []
        used_files: Set[str] = set()
        base_dependencies: List[str] = []

        critical_names = {component.name for component in critical}
        if critical:
            bundle = Bundle(kind=CRITICAL, key=CRITICAL, components=list(critical))
            bundle.file = self._claim_file(bundle, used_files)
            bundles.append(bundle)
            base_dependencies.append(CRITICAL)

        units, categorical = self._units(analysis, strategy)
        owner: Dict[str, str] = {}
        route_bundles: Dict[str, List[str]] = {}

        for unit in units:
            needed: List[str] = []
            for target in unit.targets:
                if target not in by_name:
                    continue
                for name in analysis.graph.with_closure(target):
                    if name in by_name and name not in needed:
                        needed.append(name)

            dependencies = list(base_dependencies)
            for name in needed:
                if name in owner and owner[name] not in dependencies:
                    dependencies.append(owner[name])
            fresh = [name for name in needed if name not in critical_names and name not in owner]

            keys = list(dependencies)
            if fresh:
                bundle = Bundle(
                    kind=SECONDARY,
                    key=unit.key,
                    components=[by_name[name] for name in fresh],
                    paths=list(unit.paths),
                    dependencies=dependencies,
                )
                bundle.file = self._claim_file(bundle, used_files)
                bundles.append(bundle)
                for name in fresh:
                    owner[name] = bundle.key
                keys.append(bundle.key)
                self.logger.info(
                    "Bundle %s: %d components, %.1f KB (%d routes)",
                    bundle.key,
                    len(bundle.components),
                    bundle.size / 1024,
                    len(bundle.paths),
                )
            for path in unit.paths:
                route_bundles[path] = list(keys)

        return Assignment(bundles=bundles, route_bundles=route_bundles, groups=categorical)

    def _units(self, analysis: AnalysisResult, strategy: str) -> tuple[List[_Unit], List[RouteGroup]]:
        units = [
            _Unit(key=group.key, paths=list(group.paths), targets=[group.handler])
            for group in analysis.groups
            if group.handler is not None
        ]
        ungrouped = [route for route in analysis.routes if route.group is None]

        if strategy != HYBRID_STRATEGY:
            for route in ungrouped:
                units.append(
                    _Unit(
                        key=route_to_file_name(route.path),
                        paths=[route.path],
                        targets=[route.component],
                    )
                )
            return units, []

        buckets: Dict[str, RouteGroup] = {}
        targets: Dict[str, List[str]] = {}
        for route in ungrouped:
            bucket = self.classifier(route.path)
            group = buckets.setdefault(bucket, RouteGroup(key=bucket, kind=CATEGORICAL, paths=[]))
            group.paths.append(route.path)
            bucket_targets = targets.setdefault(bucket, [])
            if route.component not in bucket_targets:
                bucket_targets.append(route.component)
        for bucket, group in buckets.items():
            group.components = list(targets[bucket])
            units.append(_Unit(key=bucket, paths=list(group.paths), targets=targets[bucket]))
        return units, list(buckets.values())

    @staticmethod
    def _route_reachable(analysis: AnalysisResult) -> Set[str]:
        reachable: Set[str] = set()
        for route in analysis.routes:
            if route.component in analysis.graph.direct:
                reachable.update(analysis.graph.with_closure(route.component))
        return reachable

    @staticmethod
    def _claim_file(bundle: Bundle, used_files: Set[str]) -> str:
        base = bundle.key
        suffix = 1
        while True:
            file_name = f"slice-bundle.{route_to_file_name(bundle.key)}.js"
            if file_name not in used_files:
                used_files.add(file_name)
                return file_name
            suffix += 1
            bundle.key = f"{base}-{suffix}"


__all__ = ["Assignment", "BundleAssigner"]
