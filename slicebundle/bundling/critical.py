"""Greedy selection of the always-loaded critical component set."""

from __future__ import annotations

from typing import Dict, List, Mapping

from ..config import CriticalConfig
from ..logging import get_logger
from ..models import AnalysisResult, ComponentRecord


def usage_units(component: ComponentRecord, group_of: Mapping[str, str]) -> int:
    """Count route usage, treating all paths of one route group as a single unit."""
    return len({group_of.get(path, path) for path in component.routes})


def is_structural(component: ComponentRecord, config: CriticalConfig) -> bool:
    """Structural components are needed on every page regardless of routes."""
    return component.category_type == "Structural" or component.name in config.structural_names


def is_candidate(component: ComponentRecord, units: int, config: CriticalConfig) -> bool:
    if units >= config.min_shared_usage:
        return True
    if is_structural(component, config):
        return True
    return component.size < config.small_size and units >= config.small_min_usage


def priority(units: int, size: int, config: CriticalConfig) -> float:
    return units * config.usage_weight - size / 1024


class CriticalSetBuilder:
    """Admits ranked candidates, each with its closure, under size/count budgets.

    This is a bounded greedy knapsack: a unit that does not fit is skipped as a
    whole and later candidates are still considered. The result is
    deterministic, not optimal.
    """

    def __init__(self, config: CriticalConfig) -> None:
        self.config = config
        self.logger = get_logger("critical")

    def rank(self, analysis: AnalysisResult) -> List[ComponentRecord]:
        group_of = {path: group.key for group in analysis.groups for path in group.paths}
        scored = []
        for component in analysis.components:
            units = usage_units(component, group_of)
            if is_candidate(component, units, self.config):
                scored.append((priority(units, component.size, self.config), component))
        # sorted() is stable, so ties keep discovery order.
        scored = sorted(scored, key=lambda item: -item[0])
        return [component for _, component in scored]

    def build(self, analysis: AnalysisResult) -> List[ComponentRecord]:
        by_name: Dict[str, ComponentRecord] = analysis.component_map()
        admitted: List[ComponentRecord] = []
        admitted_names: set[str] = set()
        size = 0

        for candidate in self.rank(analysis):
            unit = self._unit(candidate, analysis, by_name, admitted_names)
            if not unit:
                continue
            unit_size = sum(component.size for component in unit)
            if (
                size + unit_size > self.config.max_size
                or len(admitted) + len(unit) > self.config.max_components
            ):
                self.logger.debug(
                    "Skipping critical candidate %s (%d components, %d bytes)",
                    candidate.name,
                    len(unit),
                    unit_size,
                )
                continue
            admitted.extend(unit)
            admitted_names.update(component.name for component in unit)
            size += unit_size

        self.logger.info(
            "Critical bundle: %d components, %.1f KB", len(admitted), size / 1024
        )
        return admitted

    @staticmethod
    def _unit(
        candidate: ComponentRecord,
        analysis: AnalysisResult,
        by_name: Mapping[str, ComponentRecord],
        admitted: set[str],
    ) -> List[ComponentRecord]:
        return [
            by_name[name]
            for name in analysis.graph.with_closure(candidate.name)
            if name in by_name and name not in admitted
        ]


__all__ = ["CriticalSetBuilder", "is_candidate", "is_structural", "priority", "usage_units"]
