"""
Project Loader - 项目载入

还原顺序（进度 0-100）:
    5   打开容器
    10  manifest + 版本检查
    15  project-state
    20-60 模型
    65  Transform
    70  Shader
    80  动作片段
    85  特效（在片段之后，触发器需要片段映射）
    88  Spine 实例（在图层与导演模式之前）
    92  2D 图层
    96  导演模式
    100 完成

Only the reader stage can abort.  Every later stage skips the failing
entity, records a warning and continues.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import EngineConfig
from ..domain.model import ModelInstance
from .callbacks import DirectorCallbacks, ModelCallbacks, RestoreCollaborators
from .errors import AssetMissingError, ProjectIOError
from .ledger import IdRemapLedger
from .reader import ArchiveReader, OpenedArchive
from .rehydrators import (
    RestoreReport,
    read_model_files,
    restore_clips,
    restore_director,
    restore_effect,
    restore_layers,
    restore_shader_groups,
    restore_spine_instance,
    transform_changes,
)
from .state import ProjectState, SerializableModelState

logger = logging.getLogger(__name__)


@dataclass
class LoadProjectResult:
    success: bool
    project_state: Optional[ProjectState] = None
    model_id_map: Dict[str, str] = field(default_factory=dict)
    clip_id_map: Dict[str, str] = field(default_factory=dict)
    spine_id_map: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None


class ProjectLoader:
    """Restores a ``.jr3d`` container into the caller's session stores."""

    def __init__(self, collaborators: Optional[RestoreCollaborators] = None,
                 config: Optional[EngineConfig] = None) -> None:
        self.collaborators = collaborators or RestoreCollaborators()
        self.config = config or EngineConfig()

    def load(self, data: bytes, model_callbacks: ModelCallbacks,
             director_callbacks: Optional[DirectorCallbacks] = None) -> LoadProjectResult:
        """Never raises; failures come back as ``success=False``."""
        report = RestoreReport()
        try:
            model_callbacks.on_progress(5, "opening project container")
            reader = ArchiveReader(self.config.supported_major)
            model_callbacks.on_progress(10, "checking project version")
            opened = reader.open(data)
            model_callbacks.on_progress(15, "reading project state")
        except ProjectIOError as e:
            logger.error("project rejected: %s", e)
            return LoadProjectResult(success=False, error=str(e))
        except Exception as e:
            logger.exception("unexpected error while opening project")
            return LoadProjectResult(success=False, error=str(e) or type(e).__name__)

        ledger = IdRemapLedger()
        try:
            self._restore(opened, ledger, report, model_callbacks, director_callbacks)
        except Exception as e:
            logger.exception("project restore failed")
            return LoadProjectResult(
                success=False,
                error=str(e) or type(e).__name__,
                warnings=report.warnings,
            )
        finally:
            opened.container.close()

        model_callbacks.on_progress(100, "project loaded")
        logger.info("project %r loaded: %d models, %d clips, %d spine instances, %d warnings",
                    opened.manifest.project_name, len(ledger.model_ids), len(ledger.clip_ids),
                    len(ledger.spine_ids), len(report.warnings))
        return LoadProjectResult(
            success=True,
            project_state=opened.project_state,
            model_id_map=dict(ledger.model_ids),
            clip_id_map=dict(ledger.clip_ids),
            spine_id_map=dict(ledger.spine_ids),
            warnings=report.warnings,
        )

    # ------------------------------------------------------------------

    def _restore(self, opened: OpenedArchive, ledger: IdRemapLedger, report: RestoreReport,
                 callbacks: ModelCallbacks, director: Optional[DirectorCallbacks]) -> None:
        state = opened.project_state
        options = state.export_options
        container = opened.container
        collab = self.collaborators

        callbacks.clear_models()

        # 模型
        loaded: List[tuple] = []          # (saved, live model)
        total = len(state.models)
        for i, saved in enumerate(state.models):
            percent = 20 + int(40 * i / total) if total else 20
            callbacks.on_progress(percent, f"loading model {i + 1}/{total}: {saved.name}")
            model = self._load_model(opened, saved, report, callbacks)
            if model is None:
                continue
            ledger.record_model(saved.id, model.id)
            loaded.append((saved, model))

        # Transform
        callbacks.on_progress(65, "restoring model transforms")
        for saved, model in loaded:
            callbacks.update_model(model.id, transform_changes(saved))

        if options.include_shader:
            callbacks.on_progress(70, "restoring shader groups")
            for saved, model in loaded:
                if not saved.shader_groups:
                    continue
                groups = restore_shader_groups(container, saved, report)
                enabled = saved.is_shader_enabled if saved.is_shader_enabled is not None else True
                callbacks.update_model(model.id, {'shader_groups': groups, 'is_shader_enabled': enabled})

        if options.include_animations:
            callbacks.on_progress(80, "restoring animation clips")
            for saved, model in loaded:
                if not saved.created_clips:
                    continue
                live = callbacks.get_model(model.id) or model
                clips = restore_clips(live, saved.created_clips, collab.create_sub_clip, ledger, report)
                if clips:
                    callbacks.update_model(model.id, {'created_clips': clips})

        if options.include_effects:
            callbacks.on_progress(85, "restoring effects")
            for saved, model in loaded:
                if not saved.effects:
                    continue
                live = callbacks.get_model(model.id) or model
                effects = []
                for saved_effect in saved.effects:
                    try:
                        effects.append(restore_effect(container, saved_effect, live, ledger,
                                                      report, collab.load_effect))
                    except Exception as e:
                        report.warn(f"effect {saved_effect.name!r} not restored: {e}")
                if effects:
                    callbacks.update_model(model.id, {'effects': effects})

        if state.spine_instances:
            callbacks.on_progress(88, "restoring spine instances")
            callbacks.clear_spine_instances()
            for saved_spine in state.spine_instances:
                try:
                    instance = restore_spine_instance(container, saved_spine, report, collab.load_spine)
                except AssetMissingError as e:
                    report.warn(str(e))
                    continue
                except Exception as e:
                    report.warn(f"spine {saved_spine.name!r} not restored: {e}")
                    continue
                ledger.record_spine(saved_spine.id, instance.id)
                callbacks.add_spine_instance(instance)

        if state.layers and callbacks.accepts_layers:
            callbacks.on_progress(92, "restoring 2D layers")
            callbacks.set_layers(restore_layers(container, state.layers, ledger, report))

        if state.director is not None and director is not None:
            callbacks.on_progress(96, "restoring director timeline")
            created = restore_director(state.director, ledger, director, report)
            logger.info("director restored: %d tracks, %d clips", len(state.director.tracks), created)

    def _load_model(self, opened: OpenedArchive, saved: SerializableModelState,
                    report: RestoreReport, callbacks: ModelCallbacks) -> Optional[ModelInstance]:
        try:
            files = read_model_files(opened.container, saved, report)
        except AssetMissingError as e:
            report.warn(f"{e}; model skipped")
            return None
        try:
            model = self.collaborators.load_model(files, saved.name)
        except Exception as e:
            report.warn(f"model {saved.name!r} failed to decode: {e}")
            return None
        callbacks.add_model(model)
        logger.debug("model %s restored as %s", saved.id, model.id)
        return model


def load_project(
    data: bytes,
    model_callbacks: ModelCallbacks,
    director_callbacks: Optional[DirectorCallbacks] = None,
    collaborators: Optional[RestoreCollaborators] = None,
    config: Optional[EngineConfig] = None,
) -> LoadProjectResult:
    return ProjectLoader(collaborators, config).load(data, model_callbacks, director_callbacks)
