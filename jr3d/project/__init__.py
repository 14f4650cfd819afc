"""
Project export / import - 项目导出与载入

- options / state: 导出选项与可序列化记录
- serializers / effects: 实体序列化与特效资源解析
- packager / reader: 容器写入与读取
- ledger / rehydrators / loader: ID 映射与还原流程
"""

from .errors import (
    AssetMissingError,
    NoExportableContentError,
    ProjectIOError,
    ReferenceUnresolvedError,
    RemoteFetchError,
    StructuralError,
    VersionIncompatibleError,
)
from .options import ExportOptions, ExportPolicy, evaluate, validate
from .state import ProjectManifest, ProjectState, is_version_compatible
from .ledger import IdRemapLedger
from .callbacks import (
    DirectorCallbacks,
    DirectorSession,
    ModelCallbacks,
    ModelRegistry,
    RestoreCollaborators,
)
from .reader import ArchiveReader
from .loader import LoadProjectResult, ProjectLoader, load_project
from .exporter import (
    ExportProjectParams,
    ExportProjectResult,
    ProjectExporter,
    export_and_save,
    export_project,
)

__all__ = [
    'AssetMissingError', 'NoExportableContentError', 'ProjectIOError', 'ReferenceUnresolvedError',
    'RemoteFetchError', 'StructuralError', 'VersionIncompatibleError',
    'ExportOptions', 'ExportPolicy', 'evaluate', 'validate',
    'ProjectManifest', 'ProjectState', 'is_version_compatible',
    'IdRemapLedger',
    'DirectorCallbacks', 'DirectorSession', 'ModelCallbacks', 'ModelRegistry', 'RestoreCollaborators',
    'ArchiveReader',
    'LoadProjectResult', 'ProjectLoader', 'load_project',
    'ExportProjectParams', 'ExportProjectResult', 'ProjectExporter', 'export_and_save', 'export_project',
]
