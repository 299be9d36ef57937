"""Tests for manifest and artifact persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from slicebundle.bundling.persister import (
    MANIFEST_JS,
    MANIFEST_JSON,
    ConfigPersister,
    manifest_payload,
)
from slicebundle.models import CRITICAL, SECONDARY, Bundle, BundleManifest, ComponentRecord


def _manifest() -> BundleManifest:
    navbar = ComponentRecord(
        name="Navbar", category="Structural", category_type="Structural", path=Path("/tmp"), size=2048
    )
    page = ComponentRecord(
        name="HomePage", category="Visual", category_type="Visual", path=Path("/tmp"), size=1024
    )
    critical = Bundle(
        kind=CRITICAL,
        key=CRITICAL,
        components=[navbar],
        file="slice-bundle.critical.js",
        hash="abc",
        file_size=10,
    )
    home = Bundle(
        kind=SECONDARY,
        key="home",
        components=[page],
        paths=["/"],
        dependencies=[CRITICAL],
        file="slice-bundle.home.js",
    )
    return BundleManifest(
        strategy="hybrid",
        generated="2026-01-01T00:00:00Z",
        initial=CRITICAL,
        stats={"totalComponents": 2, "unreachable": []},
        bundles=[critical, home],
        routes={"/": [CRITICAL, "home"]},
    )


def test_manifest_payload_describes_every_bundle() -> None:
    payload = manifest_payload(_manifest())

    assert payload["version"] == "2.0.0"
    assert list(payload["bundles"]) == [CRITICAL, "home"]
    home = payload["bundles"]["home"]
    assert home["kind"] == SECONDARY
    assert home["components"] == ["HomePage"]
    assert home["size"] == 1024
    assert home["dependencies"] == [CRITICAL]
    assert payload["routes"] == {"/": [CRITICAL, "home"]}


def test_persist_writes_artifacts_and_manifest_pair(tmp_path: Path) -> None:
    output = tmp_path / "bundles"
    persister = ConfigPersister(output)

    files = persister.persist(
        _manifest(),
        [("slice-bundle.critical.js", "// critical"), ("slice-bundle.home.js", "// home")],
        runtime_accessor="window.runtime",
    )

    assert [path.name for path in files] == [
        "slice-bundle.critical.js",
        "slice-bundle.home.js",
        MANIFEST_JSON,
        MANIFEST_JS,
    ]
    assert json.loads((output / MANIFEST_JSON).read_text(encoding="utf-8"))["initial"] == CRITICAL
    script = (output / MANIFEST_JS).read_text(encoding="utf-8")
    assert "export const SLICE_BUNDLE_CONFIG = {" in script
    assert 'const INITIAL_BUNDLE = "./slice-bundle.critical.js";' in script
    assert script.rstrip().endswith("install(window.runtime);")
    assert persister.read()["strategy"] == "hybrid"


def test_persist_removes_stale_bundles(tmp_path: Path) -> None:
    output = tmp_path / "bundles"
    output.mkdir()
    (output / "slice-bundle.old.js").write_text("// old", encoding="utf-8")
    (output / "keep.txt").write_text("user file", encoding="utf-8")

    ConfigPersister(output).persist(
        _manifest(), [("slice-bundle.home.js", "// home")], runtime_accessor="null"
    )

    assert not (output / "slice-bundle.old.js").exists()
    assert (output / "keep.txt").exists()


def test_read_requires_manifest(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ConfigPersister(tmp_path).read()


def test_read_rejects_corrupt_manifest(tmp_path: Path) -> None:
    (tmp_path / MANIFEST_JSON).write_text("{broken", encoding="utf-8")

    with pytest.raises(RuntimeError, match=MANIFEST_JSON):
        ConfigPersister(tmp_path).read()


def test_clean_removes_generated_files_only(tmp_path: Path) -> None:
    persister = ConfigPersister(tmp_path)
    persister.persist(_manifest(), [("slice-bundle.home.js", "// home")], runtime_accessor="null")
    (tmp_path / "notes.md").write_text("keep", encoding="utf-8")

    removed = persister.clean()

    assert sorted(path.name for path in removed) == sorted(
        ["slice-bundle.home.js", MANIFEST_JSON, MANIFEST_JS]
    )
    assert (tmp_path / "notes.md").exists()
    assert persister.clean() == []
