"""Component registry loading (components.js + category directories)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config import BundlerConfig, CategoryConfig, ConfigError, parse_categories
from ..logging import get_logger
from ..models import BundleWarning, ComponentRecord
from ..project_scanner import ProjectLayout, directory_size
from .javascript import iter_nodes, named_children, parse_javascript, property_key, string_value

_REGISTRY_BINDING = "components"

_KNOWN_CATEGORY_TYPES = ("Visual", "Service", "Structural", "Provider")


class RegistryError(ConfigError):
    """Raised when the component registry cannot be parsed."""


def parse_registry(text: str, *, source_name: str = "components.js") -> Dict[str, str]:
    """Return the ``component -> category`` mapping declared in the registry.

    The registry must bind an object literal of string keys and string values
    to ``components``. It is read structurally and never evaluated.
    """
    parsed = parse_javascript(text)
    if parsed.has_error:
        location = parsed.error_location() or "unknown location"
        raise RegistryError(f"Could not parse {source_name}: syntax error at {location}")

    for node in iter_nodes(parsed.root):
        if node.type != "variable_declarator":
            continue
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name is None or value is None or parsed.text(name) != _REGISTRY_BINDING:
            continue
        if value.type != "object":
            raise RegistryError(f"{source_name}: `{_REGISTRY_BINDING}` must be an object literal")

        registry: Dict[str, str] = {}
        for child in named_children(value):
            if child.type != "pair":
                raise RegistryError(
                    f"{source_name}: unsupported entry `{parsed.text(child)}` in registry"
                )
            key = property_key(child, parsed)
            category = string_value(child.child_by_field_name("value"), parsed)
            if key is None or category is None:
                raise RegistryError(
                    f"{source_name}: registry entries must map names to category strings"
                )
            registry[key] = category
        return registry

    raise RegistryError(f"Could not find `const {_REGISTRY_BINDING} = {{...}}` in {source_name}")


def infer_category_type(category: str, declared: Optional[str] = None) -> str:
    if declared:
        return declared
    if category in _KNOWN_CATEGORY_TYPES:
        return category
    return "Visual"


class RegistryLoader:
    """Builds one ComponentRecord per registered component found on disk."""

    def __init__(self, layout: ProjectLayout, config: BundlerConfig) -> None:
        self.layout = layout
        self.config = config
        self.logger = get_logger("registry")

    def load(self) -> Tuple[List[ComponentRecord], List[BundleWarning]]:
        registry_file = self.layout.registry_file
        try:
            text = registry_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RegistryError(f"Could not read {registry_file.name}: {exc}") from exc
        registry = parse_registry(text, source_name=registry_file.name)
        categories = self.resolve_categories()

        components: List[ComponentRecord] = []
        warnings: List[BundleWarning] = []
        for name, category in registry.items():
            category_path, category_type = categories.get(
                category, (self.layout.components_dir / category, None)
            )
            component_dir = category_path / name
            if not component_dir.is_dir():
                message = f"directory not found at {component_dir}"
                self.logger.warning("Skipping component %s: %s", name, message)
                warnings.append(BundleWarning(scope="registry", subject=name, message=message))
                continue
            components.append(
                ComponentRecord(
                    name=name,
                    category=category,
                    category_type=infer_category_type(category, category_type),
                    path=component_dir,
                    size=directory_size(component_dir),
                )
            )

        self.logger.debug(
            "Registry lists %d components; %d found on disk", len(registry), len(components)
        )
        return components, warnings

    def resolve_categories(self) -> Dict[str, Tuple[Path, Optional[str]]]:
        """Return absolute category directories and declared category types."""
        if self.config.categories:
            return {
                name: (self.layout.root / _strip_root(entry.path), entry.type)
                for name, entry in self.config.categories.items()
            }

        slice_categories = self._slice_config_categories()
        return {
            name: (self.layout.src_dir / _strip_root(entry.path), entry.type)
            for name, entry in slice_categories.items()
        }

    def _slice_config_categories(self) -> Dict[str, CategoryConfig]:
        path = self.layout.slice_config_file
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must contain a JSON object")
        paths = data.get("paths")
        if not isinstance(paths, dict) or "components" not in paths:
            return {}
        return parse_categories(paths["components"], source=path.name)


def _strip_root(path: str) -> str:
    return path.lstrip("/\\")


__all__ = ["RegistryError", "RegistryLoader", "infer_category_type", "parse_registry"]
