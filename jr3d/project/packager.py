"""
Asset Packager - 打包

Writes ``manifest.json``, ``project-state.json`` and every asset entry into
one ZIP container.  Entries sharing a path are not detected: the last one
wins.
"""
from __future__ import annotations

import io
import json
import logging
import zipfile
from typing import Any, Dict, Iterable, List, Optional

from ..adapters.images import read_bytes
from .serializers import AssetEntry
from .state import ProjectManifest, ProjectState

logger = logging.getLogger(__name__)

MANIFEST_PATH = "manifest.json"
PROJECT_STATE_PATH = "project-state.json"


def dump_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def pack(
    manifest: ProjectManifest,
    project_state: ProjectState,
    entries: Iterable[AssetEntry],
    compression_level: int = 6,
    warnings: Optional[List[str]] = None,
) -> bytes:
    """
    打包为 .jr3d 容器

    Args:
        manifest: 快速版本检查用的描述
        project_state: 完整状态
        entries: 资源条目（路径由序列化器保证唯一）
        compression_level: DEFLATE 等级 0-9
        warnings: 无法读取的资源在此追加警告

    Returns:
        容器字节
    """
    files: Dict[str, Any] = {}
    for entry in entries:
        files[entry.path] = entry.source

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', compression=zipfile.ZIP_DEFLATED,
                         compresslevel=compression_level) as zf:
        zf.writestr(MANIFEST_PATH, dump_json(manifest.to_dict()))
        zf.writestr(PROJECT_STATE_PATH, dump_json(project_state.to_dict()))
        for path, source in files.items():
            try:
                data = read_bytes(source)
            except Exception as e:
                data = None
                reason = str(e)
            else:
                reason = f"no readable bytes ({type(source).__name__})"
            if data is None:
                message = f"asset {path} skipped: {reason}"
                logger.warning(message)
                if warnings is not None:
                    warnings.append(message)
                continue
            zf.writestr(path, data)

    logger.info("packed %d assets, %d bytes", len(files), buf.tell())
    return buf.getvalue()
