"""Tests for bundle artifact rendering."""

from __future__ import annotations

import json
from pathlib import Path

from slicebundle.bundling.emitter import BundleEmitter, bundle_hash, clean_javascript
from slicebundle.models import SECONDARY, Bundle, ComponentRecord


def _payload(content: str) -> dict:
    start = content.index("export const SLICE_BUNDLE = ") + len("export const SLICE_BUNDLE = ")
    end = content.index("};\n", start) + 1
    return json.loads(content[start:end])


def _component(directory: Path, name: str, js: str, **files: str) -> ComponentRecord:
    path = directory / name
    path.mkdir(parents=True)
    (path / f"{name}.js").write_text(js, encoding="utf-8")
    for suffix, content in files.items():
        (path / f"{name}.{suffix}").write_text(content, encoding="utf-8")
    return ComponentRecord(
        name=name, category="Visual", category_type="Visual", path=path, size=len(js)
    )


def test_clean_javascript_strips_module_syntax() -> None:
    cleaned = clean_javascript(
        "import Helper from './helper.js';\n"
        "import '/Components/Visual/Icon/Icon.js';\n"
        "export default class Card extends HTMLElement {\n"
        "  init() {}\n"
        "}\n"
        "customElements.define('slice-card', Card);\n",
        "Card",
    )

    assert "import" not in cleaned
    assert "export" not in cleaned
    assert cleaned.startswith("class Card extends HTMLElement {")
    assert "window.Card = Card;\ncustomElements.define('slice-card', Card);" in cleaned
    assert cleaned.endswith("return Card;")


def test_clean_javascript_handles_trailing_export() -> None:
    cleaned = clean_javascript(
        "class Service {}\nexport default Service;\n",
        "Service",
    )

    assert cleaned == "class Service {}\nwindow.Service = Service;\nreturn Service;"


def test_render_includes_sources_and_registers_with_runtime(tmp_path: Path) -> None:
    card = _component(
        tmp_path,
        "Card",
        "import { fmt } from './format.js';\nexport default class Card {}\n",
        html="<div></div>",
        css=".card {}",
    )
    (card.path / "format.js").write_text("export const fmt = (v) => v;\n", encoding="utf-8")
    card.imports = ["./format.js"]
    card.dependencies = ["Icon"]
    bundle = Bundle(kind=SECONDARY, key="docs", components=[card], paths=["/docs"])
    emitter = BundleEmitter("hybrid", runtime_accessor="window.runtime", workers=1)

    rendered = emitter.render(bundle, "2026-01-01T00:00:00Z")

    payload = _payload(rendered.content)
    assert payload["metadata"]["type"] == SECONDARY
    assert payload["metadata"]["routes"] == ["/docs"]
    assert payload["metadata"]["componentCount"] == 1
    data = payload["components"]["Card"]
    assert data["html"] == "<div></div>"
    assert data["css"] == ".card {}"
    assert data["componentDependencies"] == ["Icon"]
    assert data["externalDependencies"] == {"format": "export const fmt = (v) => v;\n"}
    assert data["js"].endswith("return Card;")
    assert "export function register(runtime)" in rendered.content
    assert "const __sliceRuntime = (window.runtime);" in rendered.content
    assert rendered.warnings == []
    assert rendered.file_size == len(rendered.content.encode("utf-8"))


def test_missing_primary_source_is_omitted_with_warning(tmp_path: Path) -> None:
    present = _component(tmp_path, "Present", "export default class Present {}\n")
    missing = _component(tmp_path, "Missing", "export default class Missing {}\n")
    (missing.path / "Missing.js").unlink()
    bundle = Bundle(kind=SECONDARY, key="page", components=[present, missing])

    rendered = BundleEmitter("per-route", runtime_accessor="null", workers=1).render(
        bundle, "2026-01-01T00:00:00Z"
    )

    assert [component.name for component in rendered.components] == ["Present"]
    assert rendered.omitted == ["Missing"]
    assert [(warning.scope, warning.subject) for warning in rendered.warnings] == [
        ("emit", "Missing")
    ]
    assert list(_payload(rendered.content)["components"]) == ["Present"]


def test_unreadable_relative_import_is_skipped_with_warning(tmp_path: Path) -> None:
    card = _component(tmp_path, "Card", "export default class Card {}\n")
    card.imports = ["./nowhere.js"]
    bundle = Bundle(kind=SECONDARY, key="page", components=[card])

    rendered = BundleEmitter("per-route", runtime_accessor="null", workers=1).render(
        bundle, "2026-01-01T00:00:00Z"
    )

    assert rendered.omitted == []
    assert len(rendered.warnings) == 1
    assert "./nowhere.js" in rendered.warnings[0].message


def test_undecodable_stylesheet_is_embedded_as_null_with_warning(tmp_path: Path) -> None:
    home = _component(tmp_path, "Home", "export default class Home {}\n", html="<main></main>")
    (home.path / "Home.css").write_bytes(b".home { color: red; }\xff\xfe")
    bundle = Bundle(kind=SECONDARY, key="home", components=[home])

    rendered = BundleEmitter("per-route", runtime_accessor="null", workers=1).render(
        bundle, "2026-01-01T00:00:00Z"
    )

    assert rendered.omitted == []
    data = _payload(rendered.content)["components"]["Home"]
    assert data["css"] is None
    assert data["html"] == "<main></main>"
    assert [(warning.scope, warning.subject) for warning in rendered.warnings] == [
        ("emit", "Home")
    ]
    assert "Home.css" in rendered.warnings[0].message


def test_hash_ignores_generation_timestamp(tmp_path: Path) -> None:
    card = _component(tmp_path, "Card", "export default class Card {}\n")
    bundle = Bundle(kind=SECONDARY, key="page", components=[card])
    emitter = BundleEmitter("per-route", runtime_accessor="null", workers=1)

    first = emitter.render(bundle, "2026-01-01T00:00:00Z")
    second = emitter.render(bundle, "2026-06-01T12:00:00Z")

    assert first.content != second.content
    assert first.hash == second.hash
    assert len(first.hash) == 16
    assert bundle_hash("x") == bundle_hash("x")


def test_render_all_preserves_bundle_order(tmp_path: Path) -> None:
    bundles = []
    for index in range(5):
        component = _component(tmp_path, f"Comp{index}", f"export default class Comp{index} {{}}\n")
        bundles.append(Bundle(kind=SECONDARY, key=f"b{index}", components=[component]))

    rendered = BundleEmitter("per-route", runtime_accessor="null", workers=4).render_all(
        bundles, "2026-01-01T00:00:00Z"
    )

    assert [item.bundle.key for item in rendered] == ["b0", "b1", "b2", "b3", "b4"]
