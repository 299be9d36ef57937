"""Aggregate project metrics."""

from __future__ import annotations

from typing import Dict, Sequence

from ..models import ComponentRecord, Metrics, RouteRecord

SHARED_MIN_ROUTES = 2
TOP_USAGE_LIMIT = 10


def compute_metrics(
    components: Sequence[ComponentRecord], routes: Sequence[RouteRecord]
) -> Metrics:
    total_components = len(components)
    shared = [component for component in components if len(component.routes) >= SHARED_MIN_ROUTES]
    total_size = sum(component.size for component in components)

    by_category: Dict[str, int] = {}
    for component in components:
        by_category[component.category] = by_category.get(component.category, 0) + 1

    # sorted() is stable, so equal usage keeps discovery order.
    top = sorted(components, key=lambda component: -len(component.routes))[:TOP_USAGE_LIMIT]

    return Metrics(
        total_components=total_components,
        total_routes=len(routes),
        shared_components=len(shared),
        shared_percentage=(
            round(len(shared) / total_components * 100, 1) if total_components else 0.0
        ),
        total_size=total_size,
        average_size=round(total_size / total_components) if total_components else 0,
        by_category=by_category,
        top_by_usage=[
            {"name": component.name, "routes": len(component.routes), "size": component.size}
            for component in top
        ],
    )


__all__ = ["SHARED_MIN_ROUTES", "compute_metrics"]
