"""
Archive Reader - 读取与版本检查

The only stage allowed to abort an import: a container without readable
``manifest.json``/``project-state.json`` or with an unsupported major
version is rejected before any live state is touched.
"""
from __future__ import annotations

import io
import json
import logging
import zipfile
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import ProjectIOError, StructuralError, VersionIncompatibleError
from .packager import MANIFEST_PATH, PROJECT_STATE_PATH
from .state import ProjectManifest, ProjectState, is_version_compatible

logger = logging.getLogger(__name__)


class ProjectContainer:
    """Read-only view over the container's entries."""

    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf
        self._names = set(zf.namelist())

    def has(self, path: str) -> bool:
        return path in self._names

    def read(self, path: str) -> Optional[bytes]:
        """Entry bytes, or ``None`` when absent or unreadable."""
        if path not in self._names:
            return None
        try:
            return self._zf.read(path)
        except (zipfile.BadZipFile, OSError, RuntimeError) as e:
            logger.warning("cannot read %s: %s", path, e)
            return None

    def names(self, prefix: str = "") -> List[str]:
        return sorted(n for n in self._names if n.startswith(prefix) and not n.endswith('/'))

    def close(self) -> None:
        self._zf.close()


@dataclass
class OpenedArchive:
    container: ProjectContainer
    manifest: ProjectManifest
    project_state: ProjectState


def _load_document(container: ProjectContainer, path: str) -> Dict[str, Any]:
    raw = container.read(path)
    if raw is None:
        raise StructuralError("missing document", path=path)
    try:
        data = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StructuralError(f"unparsable document: {e}", path=path) from e
    if not isinstance(data, dict):
        raise StructuralError("document is not a JSON object", path=path)
    return data


class ArchiveReader:
    """打开容器并校验 manifest / project-state"""

    def __init__(self, supported_major: str = "1") -> None:
        self.supported_major = supported_major

    def open(self, data: bytes) -> OpenedArchive:
        """
        Raises:
            StructuralError: not a ZIP, or a reserved document is missing/unparsable
            VersionIncompatibleError: manifest major version is not supported
        """
        try:
            zf = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, ValueError) as e:
            raise StructuralError(f"not a project container: {e}") from e
        container = ProjectContainer(zf)
        try:
            return self._validate(container)
        except ProjectIOError:
            container.close()
            raise

    def _validate(self, container: ProjectContainer) -> OpenedArchive:
        manifest_data = _load_document(container, MANIFEST_PATH)
        try:
            manifest = ProjectManifest.from_dict(manifest_data)
        except (KeyError, TypeError, ValueError) as e:
            raise StructuralError(f"invalid manifest: {e}", path=MANIFEST_PATH) from e

        if not is_version_compatible(manifest.version, self.supported_major):
            raise VersionIncompatibleError(
                f"unsupported project version {manifest.version} "
                f"(supported: {self.supported_major}.x.x)",
                path=MANIFEST_PATH,
            )

        state_data = _load_document(container, PROJECT_STATE_PATH)
        try:
            state = ProjectState.from_dict(state_data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StructuralError(f"invalid project state: {e}", path=PROJECT_STATE_PATH) from e

        logger.info("opened project %r v%s: %d models", manifest.project_name,
                    manifest.version, len(state.models))
        return OpenedArchive(container, manifest, state)
