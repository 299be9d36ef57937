"""Plain-text reports printed by the CLI."""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence

from .models import AnalysisResult, BundleWarning
from .orchestrator import BundleOutcome


def _kb(size: float) -> str:
    return f"{size / 1024:.1f} KB"


def format_analysis_report(analysis: AnalysisResult) -> str:
    """Describe project metrics, usage leaders and multiplex groups."""
    metrics = analysis.metrics
    lines = [
        "Project analysis",
        f"  Components: {metrics.total_components}",
        f"  Routes: {metrics.total_routes}",
        f"  Shared components: {metrics.shared_components} ({metrics.shared_percentage}%)",
        f"  Total size: {_kb(metrics.total_size)} (average {_kb(metrics.average_size)})",
    ]
    if metrics.by_category:
        lines.append("  By category:")
        for category, count in metrics.by_category.items():
            lines.append(f"    {category}: {count}")
    if metrics.top_by_usage:
        lines.append("  Most used components:")
        for entry in metrics.top_by_usage:
            lines.append(f"    {entry['name']}: {entry['routes']} routes, {_kb(entry['size'])}")
    if analysis.groups:
        lines.append("  Multiplex groups:")
        for group in analysis.groups:
            lines.append(f"    {group.key}: {', '.join(group.paths)}")
    lines.extend(_format_warnings(analysis.warnings))
    return "\n".join(lines)


def format_summary(outcome: BundleOutcome) -> str:
    """Summarize a completed bundling run."""
    manifest = outcome.manifest
    if manifest is None:
        return format_analysis_report(outcome.analysis)

    total_components = outcome.analysis.metrics.total_components
    lines = [
        f"Strategy: {manifest.strategy}",
        f"Bundles: {len(manifest.bundles)}",
    ]
    for bundle in manifest.bundles:
        lines.append(
            f"  {bundle.key}: {len(bundle.components)} components, {_kb(bundle.size)} -> {bundle.file}"
        )
    if outcome.route_groups:
        lines.append("Route groups:")
        for group in outcome.route_groups:
            lines.append(f"  {group.key}: {', '.join(group.paths)}")
    if total_components:
        reduction = round((1 - len(manifest.bundles) / total_components) * 100)
        lines.append(
            f"Requests: {len(manifest.bundles)} bundles instead of {total_components} "
            f"component files ({reduction}% fewer)"
        )
    unreachable = manifest.stats.get("unreachable") or []
    if unreachable:
        lines.append(f"Unreachable components: {', '.join(unreachable)}")
    lines.extend(_format_warnings(outcome.warnings))
    return "\n".join(lines)


def format_info(payload: Mapping[str, Any]) -> str:
    """Describe a persisted manifest as returned by ``Orchestrator.run_info``."""
    stats = payload.get("stats") or {}
    bundles = payload.get("bundles") or {}
    lines = [
        f"Strategy: {payload.get('strategy')}",
        f"Generated: {payload.get('generated')}",
        f"Initial bundle: {payload.get('initial') or '(none)'}",
        f"Components: {stats.get('totalComponents', 0)}",
        f"Routes: {stats.get('totalRoutes', 0)}",
        f"Bundles: {len(bundles)}",
    ]
    for key, descriptor in bundles.items():
        components = descriptor.get("components") or []
        lines.append(
            f"  {key}: {len(components)} components, "
            f"{_kb(descriptor.get('size', 0))} -> {descriptor.get('file')}"
        )
    return "\n".join(lines)


def _format_warnings(warnings: Sequence[BundleWarning]) -> List[str]:
    if not warnings:
        return []
    lines = [f"Warnings ({len(warnings)}):"]
    lines.extend(f"  {warning}" for warning in warnings)
    return lines


__all__ = ["format_analysis_report", "format_info", "format_summary"]
