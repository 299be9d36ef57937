"""Project layout resolution and filesystem helpers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import BundlerConfig


class ProjectStructureError(FileNotFoundError):
    """Raised when a required project file or directory is missing."""


@dataclass
class ProjectLayout:
    """Absolute locations of everything a bundling run reads or writes."""

    root: Path
    src_dir: Path
    components_dir: Path
    registry_file: Path
    routes_file: Path
    output_dir: Path
    slice_config_file: Path


def directory_size(path: Path) -> int:
    """Sum the sizes of the files directly inside ``path`` (no recursion)."""
    total = 0
    for entry in path.iterdir():
        if entry.is_file():
            total += entry.stat().st_size
    return total


class ProjectScanner:
    """Resolves and validates the Slice.js project structure."""

    def scan(self, root: str | Path, config: BundlerConfig) -> ProjectLayout:
        """Return the project layout or raise when required pieces are missing."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise ProjectStructureError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        paths = config.paths
        layout = ProjectLayout(
            root=root_path,
            src_dir=root_path / paths.src,
            components_dir=root_path / paths.components_dir(),
            registry_file=root_path / paths.registry_file(),
            routes_file=root_path / paths.routes_file(),
            output_dir=root_path / paths.output_dir(),
            slice_config_file=root_path / paths.slice_config_file(),
        )

        for directory in (layout.src_dir, layout.components_dir):
            if not directory.is_dir():
                raise ProjectStructureError(
                    f"Required directory not found: {_relative(directory, root_path)}"
                )
        for required in (layout.registry_file, layout.routes_file):
            if not required.is_file():
                raise ProjectStructureError(
                    f"Required file not found: {_relative(required, root_path)}"
                )
        return layout


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


__all__ = ["ProjectLayout", "ProjectScanner", "ProjectStructureError", "directory_size"]
