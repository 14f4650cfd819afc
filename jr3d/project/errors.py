from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProjectIOError(Exception):
    """Base for export/import failures."""
    message: str
    path: str | None = None

    def __str__(self) -> str:  # pragma: no cover - formatting
        loc = f" [{self.path}]" if self.path else ""
        return f"{self.message}{loc}"


# --- abort the whole call ---

class StructuralError(ProjectIOError):
    """manifest.json / project-state.json missing or unparsable."""


class VersionIncompatibleError(ProjectIOError):
    """Manifest major version differs from the supported one."""


class NoExportableContentError(ProjectIOError):
    """Neither 3D models nor 2D layers are enabled for export."""


# --- caught per entity, logged and skipped ---

class AssetMissingError(ProjectIOError):
    pass


class ReferenceUnresolvedError(ProjectIOError):
    pass


class RemoteFetchError(ProjectIOError):
    pass
