"""
jr3d - 项目封装引擎 / project archive engine

Serializes an editing session (3D models, cut clips, shader groups, effects,
2D layers, Spine instances, director timeline) into a single ``.jr3d``
archive and restores an equivalent live session from it.

包含:
- domain: 编辑会话中的实时对象
- project: 导出/导入流程（序列化、打包、读取、还原）
- adapters: 字节来源与远程资源获取
"""

__version__ = "1.0.0"

from .config import EngineConfig
from .project import (
    ExportOptions,
    ExportProjectParams,
    ExportProjectResult,
    LoadProjectResult,
    ProjectExporter,
    ProjectLoader,
    export_project,
    export_and_save,
    load_project,
)

__all__ = [
    'EngineConfig',
    'ExportOptions',
    'ExportProjectParams',
    'ExportProjectResult',
    'LoadProjectResult',
    'ProjectExporter',
    'ProjectLoader',
    'export_project',
    'export_and_save',
    'load_project',
]
