"""Serialization of bundles into self-registering JavaScript artifacts."""

from __future__ import annotations

import hashlib
import json
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..analyzers.javascript import parse_javascript
from ..logging import get_logger, log_warnings
from ..models import BUNDLE_VERSION, Bundle, BundleWarning, ComponentRecord

_IMPORT_EXTENSIONS = (".js", ".json", ".mjs")
_DEFINE_PATTERN = re.compile(r"^[ \t]*customElements\.define\(", re.MULTILINE)


@dataclass
class RenderedBundle:
    """Artifact content for one bundle and the facts derived from it."""

    bundle: Bundle
    content: str
    hash: str
    components: List[ComponentRecord]
    omitted: List[str] = field(default_factory=list)
    warnings: List[BundleWarning] = field(default_factory=list)

    @property
    def file_size(self) -> int:
        return len(self.content.encode("utf-8"))


def clean_javascript(code: str, component_name: str) -> str:
    """Strip module linkage so the source can be evaluated as a function body.

    Top-level ``import`` statements are removed, ``export`` wrappers are
    unwrapped, the class is exposed on ``window`` and returned.
    """
    parsed = parse_javascript(code)
    edits: List[Tuple[int, int, str]] = []
    for node in parsed.root.children:
        if node.type == "import_statement":
            edits.append((node.start_byte, _consume_newline(parsed.source, node.end_byte), ""))
        elif node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            value = node.child_by_field_name("value")
            if declaration is not None:
                replacement = parsed.text(declaration)
            elif value is not None and value.type != "identifier":
                replacement = parsed.text(value).rstrip(";") + ";"
            else:
                replacement = ""
            end = node.end_byte if replacement else _consume_newline(parsed.source, node.end_byte)
            edits.append((node.start_byte, end, replacement))

    source = parsed.source
    for start, end, replacement in reversed(edits):
        source = source[:start] + replacement.encode("utf-8") + source[end:]
    cleaned = source.decode("utf-8").strip()

    expose = f"window.{component_name} = {component_name};"
    match = _DEFINE_PATTERN.search(cleaned)
    if match is not None:
        cleaned = f"{cleaned[: match.start()]}{expose}\n{cleaned[match.start():]}"
    else:
        cleaned = f"{cleaned}\n{expose}"
    return f"{cleaned}\nreturn {component_name};"


def _consume_newline(source: bytes, end: int) -> int:
    while end < len(source) and source[end : end + 1] in (b" ", b"\t", b"\r"):
        end += 1
    if end < len(source) and source[end : end + 1] == b"\n":
        end += 1
    return end


def bundle_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


class BundleEmitter:
    """Renders bundle artifacts; file writes are left to the persister."""

    def __init__(
        self,
        strategy: str,
        *,
        runtime_accessor: str,
        workers: int = 4,
    ) -> None:
        self.strategy = strategy
        self.runtime_accessor = runtime_accessor
        self.workers = max(1, workers)
        self.logger = get_logger("emitter")

    def render_all(self, bundles: Sequence[Bundle], generated: str) -> List[RenderedBundle]:
        """Render every bundle, preserving bundle order regardless of worker scheduling."""
        if self.workers > 1 and len(bundles) > 1:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="slicebundle-emit"
            ) as pool:
                rendered = list(pool.map(lambda bundle: self.render(bundle, generated), bundles))
        else:
            rendered = [self.render(bundle, generated) for bundle in bundles]
        for item in rendered:
            log_warnings(self.logger, item.warnings)
        return rendered

    def render(self, bundle: Bundle, generated: str) -> RenderedBundle:
        warnings: List[BundleWarning] = []
        components_data: Dict[str, Dict[str, Any]] = {}
        included: List[ComponentRecord] = []
        omitted: List[str] = []

        for component in bundle.components:
            data = self._component_payload(component, warnings)
            if data is None:
                omitted.append(component.name)
                continue
            components_data[component.name] = data
            included.append(component)

        metadata: Dict[str, Any] = {
            "version": BUNDLE_VERSION,
            "type": bundle.kind,
            "key": bundle.key,
            "routes": list(bundle.paths),
            "generated": generated,
            "strategy": self.strategy,
            "componentCount": len(included),
            "totalSize": sum(component.size for component in included),
        }
        content = self._format(metadata, components_data)
        stable = self._format({**metadata, "generated": None}, components_data)
        return RenderedBundle(
            bundle=bundle,
            content=content,
            hash=bundle_hash(stable),
            components=included,
            omitted=omitted,
            warnings=warnings,
        )

    def _component_payload(
        self, component: ComponentRecord, warnings: List[BundleWarning]
    ) -> Optional[Dict[str, Any]]:
        js_path = component.path / f"{component.name}.js"
        try:
            js_content = js_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            warnings.append(
                BundleWarning(
                    scope="emit",
                    subject=component.name,
                    message=f"omitted from bundle; could not read {js_path.name} ({exc.__class__.__name__})",
                )
            )
            return None

        return {
            "name": component.name,
            "category": component.category,
            "categoryType": component.category_type,
            "js": clean_javascript(js_content, component.name),
            "externalDependencies": self._external_dependencies(component, warnings),
            "componentDependencies": list(component.dependencies),
            "html": _read_optional(component, "html", warnings),
            "css": _read_optional(component, "css", warnings),
            "size": component.size,
        }

    @staticmethod
    def _external_dependencies(
        component: ComponentRecord, warnings: List[BundleWarning]
    ) -> Dict[str, str]:
        contents: Dict[str, str] = {}
        for specifier in component.imports:
            resolved = _resolve_import(component.path, specifier)
            content = None
            if resolved is not None:
                try:
                    content = resolved.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError):
                    content = None
            if resolved is None or content is None:
                warnings.append(
                    BundleWarning(
                        scope="emit",
                        subject=component.name,
                        message=f"import {specifier} could not be read; skipped",
                    )
                )
                continue
            contents[resolved.stem] = content
        return contents

    def _format(self, metadata: Dict[str, Any], components: Dict[str, Dict[str, Any]]) -> str:
        payload = json.dumps({"metadata": metadata, "components": components}, indent=2, ensure_ascii=False)
        return f"""/**
 * Slice.js Bundle
 * Type: {metadata['type']}
 * Generated: {metadata['generated']}
 * Strategy: {metadata['strategy']}
 * Components: {metadata['componentCount']}
 * Total Size: {metadata['totalSize'] / 1024:.1f} KB
 */

export const SLICE_BUNDLE = {payload};

// Registers the bundle with a runtime that implements registerBundle(bundle).
export function register(runtime) {{
  if (!runtime || typeof runtime.registerBundle !== 'function') {{
    throw new TypeError('Bundle runtime must implement registerBundle(bundle)');
  }}
  runtime.registerBundle(SLICE_BUNDLE);
  return SLICE_BUNDLE;
}}

const __sliceRuntime = ({self.runtime_accessor});
if (__sliceRuntime && typeof __sliceRuntime.registerBundle === 'function') {{
  __sliceRuntime.registerBundle(SLICE_BUNDLE);
}}
"""


def _read_optional(
    component: ComponentRecord, suffix: str, warnings: List[BundleWarning]
) -> Optional[str]:
    path = component.path / f"{component.name}.{suffix}"
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        warnings.append(
            BundleWarning(
                scope="emit",
                subject=component.name,
                message=f"{path.name} could not be read ({exc.__class__.__name__}); embedded as null",
            )
        )
        return None


def _resolve_import(base: Path, specifier: str) -> Optional[Path]:
    resolved = (base / specifier).resolve()
    if resolved.suffix:
        return resolved if resolved.is_file() else None
    for extension in _IMPORT_EXTENSIONS:
        candidate = resolved.with_name(resolved.name + extension)
        if candidate.is_file():
            return candidate
    return None


__all__ = ["BundleEmitter", "RenderedBundle", "bundle_hash", "clean_javascript"]
