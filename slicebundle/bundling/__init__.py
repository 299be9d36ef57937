"""Bundling stages: strategy, critical set, assignment, emission and persistence."""

from __future__ import annotations

from .assigner import Assignment, BundleAssigner
from .classifier import KeywordRouteClassifier, RouteClassifier, discover_classifier, route_to_file_name
from .critical import CriticalSetBuilder
from .emitter import BundleEmitter, RenderedBundle, clean_javascript
from .persister import ConfigPersister, manifest_payload
from .strategy import (
    GLOBAL_STRATEGY,
    HYBRID_STRATEGY,
    PER_ROUTE_STRATEGY,
    StrategySelector,
    select_strategy,
)

__all__ = [
    "Assignment",
    "BundleAssigner",
    "BundleEmitter",
    "ConfigPersister",
    "CriticalSetBuilder",
    "GLOBAL_STRATEGY",
    "HYBRID_STRATEGY",
    "KeywordRouteClassifier",
    "PER_ROUTE_STRATEGY",
    "RenderedBundle",
    "RouteClassifier",
    "StrategySelector",
    "clean_javascript",
    "discover_classifier",
    "manifest_payload",
    "route_to_file_name",
    "select_strategy",
]
