"""
Project Exporter - 项目导出

导出流程:
1. 检查导出选项（无可导出内容时直接失败，不生成容器）
2. 解析特效资源（唯一可能访问网络/磁盘的步骤）
3. 序列化各实体，收集资源条目
4. 打包 manifest.json + project-state.json + 资源
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..adapters.resources import IResourceFetcher, make_fetcher
from ..config import PROJECT_FILE_EXTENSION, EngineConfig
from ..domain.director import DirectorTimeline, DirectorTrack
from ..domain.layers import Layer
from ..domain.model import ModelInstance
from ..domain.spine import SpineInstance
from .effects import build_effect_dto, resolve_effect_assets
from .errors import NoExportableContentError
from .options import ExportOptions, validate
from .packager import pack
from .serializers import (
    AssetSink,
    serialize_director,
    serialize_layers,
    serialize_model,
    serialize_spine_instance,
)
from .state import GlobalSettings, ProjectManifest, ProjectState, SerializableEffect

logger = logging.getLogger(__name__)


@dataclass
class ExportProjectParams:
    project_name: str
    export_options: ExportOptions = field(default_factory=ExportOptions)
    models: List[ModelInstance] = field(default_factory=list)
    director_tracks: List[DirectorTrack] = field(default_factory=list)
    director_timeline: DirectorTimeline = field(default_factory=DirectorTimeline)
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    layers: List[Layer] = field(default_factory=list)
    spine_instances: List[SpineInstance] = field(default_factory=list)


@dataclass
class ExportProjectResult:
    success: bool
    data: Optional[bytes] = None
    file_name: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def project_file_name(project_name: str) -> str:
    safe = project_name.replace('/', '_').replace('\\', '_').strip() or 'project'
    return f"{safe}{PROJECT_FILE_EXTENSION}"


class ProjectExporter:
    """Builds a ``.jr3d`` container from a live session."""

    def __init__(self, config: Optional[EngineConfig] = None,
                 fetcher: Optional[IResourceFetcher] = None) -> None:
        self.config = config or EngineConfig()
        self.fetcher = fetcher or make_fetcher(self.config.effect_resource_root, self.config.fetch_timeout)

    def export(self, params: ExportProjectParams) -> ExportProjectResult:
        """Never raises; failures come back as ``success=False``."""
        try:
            options = validate(params.export_options)
        except NoExportableContentError as e:
            logger.error("export refused: %s", e)
            return ExportProjectResult(success=False, error=str(e))

        try:
            return self._export(params, options)
        except Exception as e:
            logger.exception("project export failed")
            return ExportProjectResult(success=False, error=str(e) or type(e).__name__)

    def _effects_for(self, model: ModelInstance, sink: AssetSink) -> List[SerializableEffect]:
        dtos = []
        for effect in model.effects:
            resolved = resolve_effect_assets(model.id, effect, self.fetcher, self.config.fetch_workers)
            sink.extend(resolved.entries)
            sink.warnings.extend(resolved.warnings)
            dtos.append(build_effect_dto(effect, model, resolved.resource_paths))
        return dtos

    def _export(self, params: ExportProjectParams, options: ExportOptions) -> ExportProjectResult:
        now = _timestamp()
        sink = AssetSink()
        fps = self.config.default_fps

        models = []
        if options.include_3d_models:
            for model in params.models:
                effects = self._effects_for(model, sink) if options.include_effects else None
                models.append(serialize_model(model, options, sink, fps, effects))

        director = None
        if options.include_animations:
            director = serialize_director(params.director_tracks, params.director_timeline)

        layers = spines = None
        if options.include_2d:
            layers = serialize_layers(params.layers, sink)
            spines = [serialize_spine_instance(s, sink) for s in params.spine_instances]

        state = ProjectState(
            version=self.config.project_version,
            name=params.project_name,
            created_at=now,
            updated_at=now,
            export_options=options,
            models=models,
            director=director,
            global_settings=params.global_settings,
            layers=layers,
            spine_instances=spines,
        )
        manifest = ProjectManifest(
            version=self.config.project_version,
            created_at=now,
            app_version=self.config.app_version,
            project_name=params.project_name,
            model_count=len(models),
            has_animations=options.include_animations,
        )

        data = pack(manifest, state, sink.entries, self.config.compression_level, sink.warnings)
        logger.info("exported %r: %d models, %d assets, %d warnings",
                    params.project_name, len(models), len(sink), len(sink.warnings))
        return ExportProjectResult(
            success=True,
            data=data,
            file_name=project_file_name(params.project_name),
            warnings=list(sink.warnings),
        )


def export_project(params: ExportProjectParams, config: Optional[EngineConfig] = None,
                   fetcher: Optional[IResourceFetcher] = None) -> ExportProjectResult:
    return ProjectExporter(config, fetcher).export(params)


def export_and_save(params: ExportProjectParams, directory: Path,
                    config: Optional[EngineConfig] = None,
                    fetcher: Optional[IResourceFetcher] = None) -> Optional[Path]:
    """
    导出并写入 ``<directory>/<projectName>.jr3d``

    Returns:
        写入的路径，导出失败时为 None
    """
    result = export_project(params, config, fetcher)
    if not result.success or result.data is None:
        logger.error("export failed: %s", result.error)
        return None
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / result.file_name
    path.write_bytes(result.data)
    logger.info("project saved to %s", path)
    return path
