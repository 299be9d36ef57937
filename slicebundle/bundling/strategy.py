"""Partition strategy selection."""

from __future__ import annotations

from ..config import BundlerConfig, StrategyThresholds
from ..logging import get_logger
from ..models import Metrics

GLOBAL_STRATEGY = "global"
HYBRID_STRATEGY = "hybrid"
PER_ROUTE_STRATEGY = "per-route"

_DESCRIPTIONS = {
    GLOBAL_STRATEGY: "global bundle (small project or highly shared)",
    HYBRID_STRATEGY: "hybrid (critical + grouped routes)",
    PER_ROUTE_STRATEGY: "per route (large project)",
}


def select_strategy(
    total_components: int, shared_percentage: float, thresholds: StrategyThresholds
) -> str:
    """Pick a strategy from the aggregate metrics; a pure function of its inputs."""
    if (
        total_components < thresholds.global_max_components
        or shared_percentage > thresholds.global_min_shared_percentage
    ):
        return GLOBAL_STRATEGY
    if total_components < thresholds.hybrid_max_components:
        return HYBRID_STRATEGY
    return PER_ROUTE_STRATEGY


class StrategySelector:
    """Applies configured thresholds, or a forced strategy, to the metrics."""

    def __init__(self, config: BundlerConfig) -> None:
        self.config = config
        self.logger = get_logger("strategy")

    def select(self, metrics: Metrics) -> str:
        if self.config.strategy != "auto":
            strategy = self.config.strategy
            self.logger.info("Strategy: %s (forced by configuration)", _DESCRIPTIONS[strategy])
            return strategy
        strategy = select_strategy(
            metrics.total_components, metrics.shared_percentage, self.config.thresholds
        )
        self.logger.info("Strategy: %s", _DESCRIPTIONS[strategy])
        return strategy


__all__ = [
    "GLOBAL_STRATEGY",
    "HYBRID_STRATEGY",
    "PER_ROUTE_STRATEGY",
    "StrategySelector",
    "select_strategy",
]
