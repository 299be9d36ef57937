"""Writing bundle artifacts and the bundle manifest."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import Bundle, BundleManifest

MANIFEST_JSON = "bundle.config.json"
MANIFEST_JS = "bundle.config.js"
BUNDLE_GLOB = "slice-bundle.*.js"


def bundle_descriptor(bundle: Bundle) -> Dict[str, Any]:
    return {
        "kind": bundle.kind,
        "file": bundle.file,
        "size": bundle.size,
        "fileSize": bundle.file_size,
        "hash": bundle.hash,
        "components": bundle.component_names,
        "omitted": list(bundle.omitted),
        "paths": list(bundle.paths),
        "dependencies": list(bundle.dependencies),
    }


def manifest_payload(manifest: BundleManifest) -> Dict[str, Any]:
    """Return the JSON-serializable form of ``manifest``."""
    return {
        "version": manifest.version,
        "strategy": manifest.strategy,
        "generated": manifest.generated,
        "initial": manifest.initial,
        "stats": manifest.stats,
        "bundles": {bundle.key: bundle_descriptor(bundle) for bundle in manifest.bundles},
        "routes": manifest.routes,
    }


def render_manifest_json(manifest: BundleManifest) -> str:
    return json.dumps(manifest_payload(manifest), indent=2, ensure_ascii=False) + "\n"


def render_manifest_js(manifest: BundleManifest, runtime_accessor: str) -> str:
    """Render the companion module that exposes the manifest without a fetch."""
    payload = json.dumps(manifest_payload(manifest), indent=2, ensure_ascii=False)
    initial_file: Optional[str] = None
    for bundle in manifest.bundles:
        if bundle.key == manifest.initial:
            initial_file = bundle.file
    initial_import = json.dumps(f"./{initial_file}") if initial_file else "null"
    return f"""/**
 * Slice.js Bundle Configuration
 * Generated: {manifest.generated}
 * Strategy: {manifest.strategy}
 */

// Direct bundle configuration (no fetch required)
export const SLICE_BUNDLE_CONFIG = {payload};

const INITIAL_BUNDLE = {initial_import};

// Hands the configuration to a runtime and loads the initial bundle once.
export function install(runtime) {{
  if (!runtime) {{
    return SLICE_BUNDLE_CONFIG;
  }}
  runtime.bundleConfig = SLICE_BUNDLE_CONFIG;
  if (INITIAL_BUNDLE && !runtime.initialBundleLoaded) {{
    runtime.initialBundleLoaded = true;
    import(INITIAL_BUNDLE).catch((err) => console.warn('Failed to load initial bundle:', err));
  }}
  return SLICE_BUNDLE_CONFIG;
}}

install({runtime_accessor});
"""


class ConfigPersister:
    """Owns the output directory: bundle artifacts plus the manifest pair."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.logger = get_logger("persister")

    def persist(
        self,
        manifest: BundleManifest,
        artifacts: Sequence[tuple[str, str]],
        *,
        runtime_accessor: str,
    ) -> List[Path]:
        """Replace previous output with ``artifacts`` and the manifest pair."""
        manifest_json = render_manifest_json(manifest)
        manifest_js = render_manifest_js(manifest, runtime_accessor)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        keep = {file_name for file_name, _ in artifacts}
        for stale in sorted(self.output_dir.glob(BUNDLE_GLOB)):
            if stale.name not in keep:
                stale.unlink()
                self.logger.debug("Removed stale bundle %s", stale.name)

        written: List[Path] = []
        for file_name, content in artifacts:
            path = self.output_dir / file_name
            path.write_text(content, encoding="utf-8")
            written.append(path)

        json_path = self.output_dir / MANIFEST_JSON
        json_path.write_text(manifest_json, encoding="utf-8")
        js_path = self.output_dir / MANIFEST_JS
        js_path.write_text(manifest_js, encoding="utf-8")
        self.logger.info("Configuration saved to %s", json_path)
        self.logger.debug("JavaScript config generated: %s", js_path)
        return written + [json_path, js_path]

    def read(self) -> Dict[str, Any]:
        """Load the persisted manifest."""
        path = self.output_dir / MANIFEST_JSON
        if not path.is_file():
            raise FileNotFoundError(f"Bundle configuration not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Could not parse {path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise RuntimeError(f"{path.name} must contain a JSON object")
        return data

    def clean(self) -> List[Path]:
        """Delete generated bundles and manifests; return what was removed."""
        if not self.output_dir.is_dir():
            return []
        removed: List[Path] = []
        targets = sorted(self.output_dir.glob(BUNDLE_GLOB))
        targets.extend(self.output_dir / name for name in (MANIFEST_JSON, MANIFEST_JS))
        for path in targets:
            if path.is_file():
                path.unlink()
                removed.append(path)
        return removed


__all__ = [
    "ConfigPersister",
    "MANIFEST_JS",
    "MANIFEST_JSON",
    "bundle_descriptor",
    "manifest_payload",
    "render_manifest_js",
    "render_manifest_json",
]
