"""Tests for slicebundle.project_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from slicebundle.config import load_config
from slicebundle.project_scanner import ProjectScanner, ProjectStructureError, directory_size
from tests._fixtures.project_builder import ProjectBuilder


def test_scan_resolves_default_layout(project_builder: ProjectBuilder) -> None:
    layout = project_builder.layout()
    root = project_builder.path().resolve()

    assert layout.root == root
    assert layout.components_dir == root / "src" / "Components"
    assert layout.registry_file == root / "src" / "Components" / "components.js"
    assert layout.routes_file == root / "src" / "routes.js"
    assert layout.output_dir == root / "src" / "bundles"
    assert layout.slice_config_file == root / "src" / "sliceConfig.json"


def test_scan_rejects_missing_project(tmp_path: Path) -> None:
    with pytest.raises(ProjectStructureError, match="Project path not found"):
        ProjectScanner().scan(tmp_path / "nope", load_config(tmp_path))


def test_scan_rejects_file_as_project(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(NotADirectoryError):
        ProjectScanner().scan(target, load_config(tmp_path))


def test_scan_reports_missing_routes_file(project_builder: ProjectBuilder) -> None:
    (project_builder.path() / "src" / "routes.js").unlink()

    with pytest.raises(ProjectStructureError, match="src/routes.js"):
        project_builder.layout()


def test_scan_reports_missing_components_directory(tmp_path: Path) -> None:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)

    with pytest.raises(ProjectStructureError, match="src/Components"):
        ProjectScanner().scan(root, load_config(root))


def test_directory_size_counts_direct_files_only(tmp_path: Path) -> None:
    (tmp_path / "a.js").write_text("12345", encoding="utf-8")
    (tmp_path / "a.css").write_text("123", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "ignored.js").write_text("1234567890", encoding="utf-8")

    assert directory_size(tmp_path) == 8
