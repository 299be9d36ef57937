"""Tests for slicebundle.orchestrator."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator

import pytest

from slicebundle.analyzers import RouteManifestError
from slicebundle.config import ConfigError
from slicebundle.orchestrator import Orchestrator
from slicebundle.project_scanner import ProjectStructureError
from tests._fixtures.project_builder import ProjectBuilder


def _clock(*moments: datetime):  # type: ignore[no-untyped-def]
    iterator: Iterator[datetime] = iter(moments)
    return lambda: next(iterator)


def _manifest(project_builder: ProjectBuilder) -> dict:
    return json.loads(
        (project_builder.output_dir() / "bundle.config.json").read_text(encoding="utf-8")
    )


def _scenario_a(project_builder: ProjectBuilder) -> None:
    project_builder.component("A", depends_on=["D"])
    project_builder.component("B", depends_on=["D"])
    project_builder.component("C")
    project_builder.component("D")
    project_builder.component("E")
    project_builder.routes([("/r1", "A"), ("/r2", "B"), ("/r3", "C")])


def test_small_project_gets_single_global_bundle(project_builder: ProjectBuilder) -> None:
    _scenario_a(project_builder)
    moment = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

    outcome = Orchestrator(clock=lambda: moment).run_bundle(project_builder.path())

    assert outcome.strategy == "global"
    manifest = _manifest(project_builder)
    assert manifest["strategy"] == "global"
    assert manifest["generated"] == "2026-01-02T03:04:05Z"
    assert manifest["initial"] == "global"
    assert list(manifest["bundles"]) == ["global"]
    assert manifest["bundles"]["global"]["components"] == ["A", "B", "C", "D"]
    assert manifest["stats"]["unreachable"] == ["E"]
    assert manifest["stats"]["totalComponents"] == 5
    assert manifest["routes"]["/r1"] == ["global"]
    assert (project_builder.output_dir() / "slice-bundle.global.js").is_file()
    assert (project_builder.output_dir() / "bundle.config.js").is_file()
    assert outcome.warnings == []


def test_shared_dependency_goes_critical_and_unreachable_warns(
    project_builder: ProjectBuilder,
) -> None:
    project_builder.config("strategy: per-route\nunreachable: warn\n")
    _scenario_a(project_builder)

    outcome = Orchestrator().run_bundle(project_builder.path())

    manifest = _manifest(project_builder)
    assert manifest["initial"] == "critical"
    assert manifest["bundles"]["critical"]["components"] == ["D"]
    assert manifest["stats"]["criticalComponents"] == 1
    assert manifest["routes"]["/r1"] == ["critical", "r1"]
    bundled = [name for bundle in manifest["bundles"].values() for name in bundle["components"]]
    assert sorted(bundled) == ["A", "B", "C", "D"]
    assert manifest["stats"]["unreachable"] == ["E"]
    assert [(warning.scope, warning.subject) for warning in outcome.warnings] == [
        ("unreachable", "E")
    ]


def test_parse_failure_degrades_to_warning(project_builder: ProjectBuilder) -> None:
    project_builder.component("HomePage", depends_on=["Widget"])
    project_builder.component("Widget", source="export default class Widget {\n")
    project_builder.routes([("/", "HomePage")])

    outcome = Orchestrator().run_bundle(project_builder.path())

    assert [(warning.scope, warning.subject) for warning in outcome.warnings] == [
        ("source", "Widget")
    ]
    widget = outcome.analysis.component_map()["Widget"]
    assert widget.dependencies == []
    assert (project_builder.output_dir() / "bundle.config.json").is_file()


def test_undecodable_stylesheet_does_not_abort_run(project_builder: ProjectBuilder) -> None:
    home = project_builder.component("Home")
    project_builder.component("Other")
    (home / "Home.css").write_bytes(b".home {}\xff\xfe")
    project_builder.routes([("/", "Home"), ("/other", "Other")])

    outcome = Orchestrator().run_bundle(project_builder.path())

    assert [(warning.scope, warning.subject) for warning in outcome.warnings] == [
        ("emit", "Home")
    ]
    manifest = _manifest(project_builder)
    assert manifest["bundles"]["global"]["components"] == ["Home", "Other"]


def test_multiplex_group_is_bundled_once(project_builder: ProjectBuilder) -> None:
    project_builder.config("strategy: per-route\n")
    project_builder.component("M", multiroute=[("/x", "X"), ("/y", "Y"), ("/z", "Z")])
    for name in ("X", "Y", "Z"):
        project_builder.component(name, size=4000)
    project_builder.routes([("/guide/x", "M"), ("/guide/y", "M"), ("/guide/z", "M")])

    Orchestrator().run_bundle(project_builder.path())

    manifest = _manifest(project_builder)
    assert list(manifest["bundles"]) == ["multiroute-M"]
    assert manifest["bundles"]["multiroute-M"]["components"] == ["M", "X", "Y", "Z"]
    assert manifest["initial"] is None


def test_runs_are_idempotent_apart_from_timestamp(project_builder: ProjectBuilder) -> None:
    project_builder.config("strategy: hybrid\n")
    _scenario_a(project_builder)
    orchestrator = Orchestrator(
        clock=_clock(
            datetime(2026, 1, 1, tzinfo=UTC),
            datetime(2026, 2, 1, tzinfo=UTC),
        )
    )

    orchestrator.run_bundle(project_builder.path())
    first = _manifest(project_builder)
    orchestrator.run_bundle(project_builder.path())
    second = _manifest(project_builder)

    assert first["generated"] != second["generated"]
    first.pop("generated")
    second.pop("generated")
    assert first == second


def test_analyze_only_writes_nothing(project_builder: ProjectBuilder) -> None:
    _scenario_a(project_builder)

    outcome = Orchestrator().run_bundle(project_builder.path(), analyze_only=True)

    assert outcome.analyze_only is True
    assert outcome.manifest is None
    assert outcome.analysis.metrics.total_components == 5
    assert not project_builder.output_dir().exists()


def test_fatal_route_error_leaves_previous_output(project_builder: ProjectBuilder) -> None:
    _scenario_a(project_builder)
    orchestrator = Orchestrator()
    orchestrator.run_bundle(project_builder.path())
    before = sorted(path.name for path in project_builder.output_dir().iterdir())
    project_builder.write({"src/routes.js": "const routes = [ { path: '/' ;\n"})

    with pytest.raises(RouteManifestError):
        orchestrator.run_bundle(project_builder.path())

    assert sorted(path.name for path in project_builder.output_dir().iterdir()) == before


def test_missing_project_raises(tmp_path: Path) -> None:
    with pytest.raises(ProjectStructureError):
        Orchestrator().run_bundle(tmp_path / "missing")


def test_invalid_config_is_fatal(project_builder: ProjectBuilder) -> None:
    project_builder.config("strategy: everything\n")

    with pytest.raises(ConfigError):
        Orchestrator().run_bundle(project_builder.path())


def test_explicit_config_path_is_used(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    _scenario_a(project_builder)
    config_file = tmp_path / "custom.yml"
    config_file.write_text("strategy: per-route\n", encoding="utf-8")

    outcome = Orchestrator().run_bundle(project_builder.path(), config_path=config_file)

    assert outcome.strategy == "per-route"


def test_info_and_clean_round_trip(project_builder: ProjectBuilder) -> None:
    _scenario_a(project_builder)
    orchestrator = Orchestrator()
    orchestrator.run_bundle(project_builder.path())

    info = orchestrator.run_info(project_builder.path())
    removed = orchestrator.run_clean(project_builder.path())

    assert info["strategy"] == "global"
    assert {path.name for path in removed} == {
        "slice-bundle.global.js",
        "bundle.config.json",
        "bundle.config.js",
    }
    with pytest.raises(FileNotFoundError):
        orchestrator.run_info(project_builder.path())
