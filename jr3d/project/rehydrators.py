"""
Entity Rehydrators - 实体还原

Inverse of the serializers: a record plus the container bytes give back a
live entity.  Missing assets are reported and skipped here; nothing in this
module aborts an import.
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import fields
from typing import Any, Dict, List, Optional

from ..adapters.images import to_data_url
from ..domain.clips import IdentifiableClip
from ..domain.effects import EffectItem, EffectSourceType, EffectTrigger
from ..domain.files import BinaryFile
from ..domain.layers import (
    ELEMENT_TYPES,
    Element2D,
    Element2DPosition,
    Element2DSize,
    ImageElement2D,
    Layer,
    SpineElement2D,
)
from ..domain.model import ModelInstance
from ..domain.shader import ShaderFeature, ShaderGroup, new_feature_id, params_from_dict
from ..domain.spine import SpineInstance, SpineSkeletonInfo, new_spine_id
from .callbacks import DirectorCallbacks, EffectLoader, SpineLoader, SubClipFactory
from .errors import AssetMissingError, ReferenceUnresolvedError
from .ledger import IdRemapLedger
from .reader import ProjectContainer
from .serializers import IMAGE_ASSET_DIR, SHADER_TEXTURE_DIR, camel_case, model_folder, spine_folder
from .state import (
    SerializableClipInfo,
    SerializableDirectorClip,
    SerializableDirectorState,
    SerializableEffect,
    SerializableLayer,
    SerializableModelState,
    SerializableSpineInstance,
)

logger = logging.getLogger(__name__)


class RestoreReport:
    """Warnings collected during one import."""

    def __init__(self) -> None:
        self.warnings: List[str] = []

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def _basename(path: str) -> str:
    return path.replace('\\', '/').split('/')[-1]


# ============================================================================
# 模型
# ============================================================================

def read_model_files(container: ProjectContainer, saved: SerializableModelState,
                     report: RestoreReport) -> List[BinaryFile]:
    """
    读取模型 FBX 与贴图

    Raises:
        AssetMissingError: the model file itself is not in the container
    """
    folder = model_folder(saved.id)
    fbx_path = f"{folder}/{saved.model_path}"
    fbx = container.read(fbx_path)
    if fbx is None:
        raise AssetMissingError(f"model {saved.name!r}: model file missing", path=fbx_path)

    files = [BinaryFile(saved.model_path, fbx, 'model/fbx')]
    for texture_path in saved.texture_paths:
        full = f"{folder}/{texture_path}"
        data = container.read(full)
        if data is None:
            report.warn(f"model {saved.name!r}: texture missing: {full}")
            continue
        files.append(BinaryFile(texture_path, data))
    return files


def transform_changes(saved: SerializableModelState) -> Dict[str, Any]:
    return {
        'name': saved.name,
        'position': tuple(saved.position),
        'rotation': tuple(saved.rotation),
        'scale': tuple(saved.scale),
        'render_priority': saved.render_priority,
        'visible': saved.visible,
        'opacity': saved.opacity,
        'is_loop_enabled': saved.is_loop_enabled,
        'view_snapshots': list(saved.view_snapshots or []),
        'transform_snapshots': list(saved.transform_snapshots or []),
    }


# ============================================================================
# 动作片段
# ============================================================================

def restore_clips(
    model: ModelInstance,
    saved_clips: List[SerializableClipInfo],
    create_sub_clip: SubClipFactory,
    ledger: IdRemapLedger,
    report: RestoreReport,
) -> List[IdentifiableClip]:
    """
    从原始动画重新切出保存的片段

    One failing clip is reported and skipped; the others go on.
    """
    if model.original_clip is None:
        report.warn(f"model {model.name!r}: no original animation, {len(saved_clips)} clips not restored")
        return []

    restored: List[IdentifiableClip] = []
    for saved in saved_clips:
        try:
            clip = create_sub_clip(
                model.original_clip,
                saved.display_name,
                saved.start_frame,
                saved.end_frame,
                saved.fps,
                [c.display_name or c.name for c in restored],
            )
        except Exception as e:
            report.warn(f"model {model.name!r}: clip {saved.display_name!r} not restored: {e}")
            continue
        ledger.record_clip(saved.custom_id, clip.custom_id or clip.uuid)
        restored.append(clip)
    return restored


# ============================================================================
# Shader
# ============================================================================

def restore_shader_groups(container: ProjectContainer, saved: SerializableModelState,
                          report: RestoreReport) -> List[ShaderGroup]:
    """Texture slots are read back from ``models/<oldId>/shader/textures``; a missing one becomes ``None``."""
    folder = model_folder(saved.id)
    groups: List[ShaderGroup] = []
    for saved_group in saved.shader_groups or []:
        features: List[ShaderFeature] = []
        for saved_feature in saved_group.features:
            params = params_from_dict(saved_feature.type, saved_feature.params)
            textures: Dict[str, Optional[BinaryFile]] = {}
            for key, value, is_texture in params.items():
                if not (is_texture and isinstance(value, str) and value.startswith(SHADER_TEXTURE_DIR + '/')):
                    continue
                data = container.read(f"{folder}/{value}")
                if data is None:
                    report.warn(f"shader texture missing: {folder}/{value}")
                    textures[key] = None
                else:
                    textures[key] = BinaryFile(_basename(value), data)
            features.append(ShaderFeature(
                id=new_feature_id(saved_feature.type),
                type=saved_feature.type,
                name=saved_feature.name,
                params=params.replace_textures(textures),
                description=saved_feature.description,
                icon=saved_feature.icon,
                enabled=saved_feature.enabled,
                expanded=False,
            ))
        groups.append(ShaderGroup(
            id=saved_group.id or new_feature_id('group'),
            name=saved_group.name,
            selected_meshes=list(saved_group.selected_meshes),
            features=features,
            enabled=saved_group.enabled,
            expanded=True,
        ))
    return groups


# ============================================================================
# 特效
# ============================================================================

def restore_effect(
    container: ProjectContainer,
    saved: SerializableEffect,
    model: ModelInstance,
    ledger: IdRemapLedger,
    report: RestoreReport,
    load_effect: Optional[EffectLoader] = None,
) -> EffectItem:
    bone = model.find_bone(saved.bound_bone_name)
    if saved.bound_bone_name and bone is None:
        report.warn(f"effect {saved.name!r}: bone {saved.bound_bone_name!r} not found, left unbound")

    triggers = []
    for t in saved.triggers:
        if ledger.clip(t.clip_id) is None:
            report.warn(f"effect {saved.name!r}: trigger clip {t.clip_id} not restored, keeping old id")
        triggers.append(EffectTrigger(
            id=t.id,
            clip_id=ledger.clip_or_stale(t.clip_id),
            frame=t.frame,
            clip_name=t.clip_name,
            duration=t.duration,
        ))

    files: List[BinaryFile] = []
    for path in saved.resource_paths:
        data = container.read(path)
        if data is None:
            report.warn(f"effect {saved.name!r}: resource missing: {path}")
            continue
        # keep the folder structure below assets/effects/<modelId>/<effectId>/
        parts = path.split('/', 4)
        rel = parts[4] if len(parts) == 5 else _basename(path)
        files.append(BinaryFile(_basename(path), data, relative_path=rel))

    is_loaded = False
    if files and load_effect is not None:
        try:
            load_effect(saved.id, files)
            is_loaded = True
        except Exception as e:
            report.warn(f"effect {saved.name!r}: runtime load failed: {e}")

    return EffectItem(
        id=saved.id,
        name=saved.name,
        path=saved.path,
        source_type=EffectSourceType.parse(saved.source_type),
        position=tuple(saved.position),
        rotation=tuple(saved.rotation),
        scale=tuple(saved.scale),
        speed=saved.speed,
        is_looping=saved.is_looping,
        is_visible=saved.is_visible,
        bound_bone_uuid=bone.uuid if bone else None,
        triggers=triggers,
        color=saved.color,
        raw_files=files,
        is_loaded=is_loaded,
    )


# ============================================================================
# Spine
# ============================================================================

def restore_spine_instance(
    container: ProjectContainer,
    saved: SerializableSpineInstance,
    report: RestoreReport,
    load_spine: Optional[SpineLoader] = None,
) -> SpineInstance:
    """
    Raises:
        AssetMissingError: skeleton.skel or skeleton.atlas is absent
    """
    folder = spine_folder(saved.id)
    skel = container.read(f"{folder}/skeleton.skel")
    if skel is None:
        raise AssetMissingError(f"spine {saved.name!r}: skeleton missing", path=f"{folder}/skeleton.skel")
    atlas = container.read(f"{folder}/skeleton.atlas")
    if atlas is None:
        raise AssetMissingError(f"spine {saved.name!r}: atlas missing", path=f"{folder}/skeleton.atlas")

    images: Dict[str, Any] = {}
    for name in saved.image_file_names:
        data = container.read(f"{folder}/textures/{name}")
        if data is None:
            report.warn(f"spine {saved.name!r}: texture missing: {name}")
            continue
        images[name] = data

    instance = SpineInstance(
        id=new_spine_id(),
        name=saved.name,
        skel_file_name=saved.skel_file_name,
        atlas_file_name=saved.atlas_file_name,
        image_file_names=list(saved.image_file_names),
        skel_data=skel,
        atlas_text=atlas.decode('utf-8', errors='replace'),
        images=images,
        skeleton_info=SpineSkeletonInfo.from_dict(saved.skeleton_info),
        current_animation=saved.current_animation,
        current_skin=saved.current_skin,
        loop=saved.loop,
        time_scale=saved.time_scale,
    )
    if load_spine is not None:
        info = load_spine(instance)
        if info is not None:
            instance.skeleton_info = info
    return instance


# ============================================================================
# 2D 图层
# ============================================================================

def element_from_dict(data: Dict[str, Any]) -> Optional[Element2D]:
    cls = ELEMENT_TYPES.get(data.get('type', ''))
    if cls is None:
        return None
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        key = camel_case(f.name)
        if key not in data:
            continue
        value = data[key]
        if f.name == 'position' and isinstance(value, dict):
            value = Element2DPosition(**value)
        elif f.name == 'size' and isinstance(value, dict):
            value = Element2DSize(**value)
        kwargs[f.name] = value
    return cls(**kwargs)


def restore_element(container: ProjectContainer, data: Dict[str, Any], ledger: IdRemapLedger,
                    report: RestoreReport) -> Optional[Element2D]:
    try:
        element = element_from_dict(data)
    except TypeError as e:
        report.warn(f"2D element {data.get('id')!r} not restored: {e}")
        return None
    if element is None:
        report.warn(f"2D element {data.get('id')!r}: unknown type {data.get('type')!r}")
        return None

    if isinstance(element, ImageElement2D) and isinstance(element.src, str) \
            and element.src.startswith(IMAGE_ASSET_DIR + '/'):
        raw = container.read(element.src)
        if raw is None:
            report.warn(f"2D image missing: {element.src}")
            return None
        element.src = to_data_url(raw, element.src)

    if isinstance(element, SpineElement2D):
        new_id = ledger.spine(element.spine_instance_id)
        if new_id is None:
            report.warn(f"2D element {element.id!r}: spine instance {element.spine_instance_id} not restored")
        else:
            element.spine_instance_id = new_id
    return element


def restore_layers(container: ProjectContainer, saved_layers: List[SerializableLayer],
                   ledger: IdRemapLedger, report: RestoreReport) -> List[Layer]:
    layers: List[Layer] = []
    for saved in saved_layers:
        children = []
        for data in saved.children:
            element = restore_element(container, data, ledger, report)
            if element is not None:
                children.append(element)
        layers.append(Layer(
            id=saved.id,
            name=saved.name,
            type=saved.type,
            priority=saved.priority,
            visible=saved.visible,
            locked=saved.locked,
            expanded=saved.expanded,
            opacity=saved.opacity,
            children=children,
            created_at=saved.created_at,
            updated_at=saved.updated_at,
        ))
    return layers


# ============================================================================
# 导演模式
# ============================================================================

def _resolve_clip_source(saved: SerializableDirectorClip, ledger: IdRemapLedger,
                         report: RestoreReport) -> Dict[str, Any]:
    """Source ids for a timeline clip; raises ReferenceUnresolvedError when it must be dropped."""
    if saved.source_type == 'spine':
        new_model_id = ledger.spine(saved.source_model_id)
        if new_model_id is None:
            raise ReferenceUnresolvedError(f"spine instance {saved.source_model_id} not restored", saved.id)
        spine_id = saved.spine_instance_id
        if spine_id:
            spine_id = ledger.spine(spine_id) or spine_id
        # spine clips reference animations by name
        return {'source_model_id': new_model_id, 'source_animation_id': saved.source_animation_id,
                'spine_instance_id': spine_id}

    new_model_id = ledger.model(saved.source_model_id)
    if new_model_id is None:
        raise ReferenceUnresolvedError(f"model {saved.source_model_id} not restored", saved.id)
    if saved.source_type == 'procedural':
        animation_id = saved.source_animation_id
    else:
        animation_id = ledger.clip(saved.source_animation_id)
        if animation_id is None:
            report.warn(f"director clip {saved.id}: animation {saved.source_animation_id} not restored, keeping old id")
            animation_id = saved.source_animation_id
    return {'source_model_id': new_model_id, 'source_animation_id': animation_id,
            'spine_instance_id': saved.spine_instance_id}


def restore_director(saved: SerializableDirectorState, ledger: IdRemapLedger,
                     callbacks: DirectorCallbacks, report: RestoreReport) -> int:
    """
    还原导演模式时间轴

    Returns:
        number of timeline clips created
    """
    callbacks.reset()
    callbacks.set_fps(saved.fps)
    callbacks.set_total_frames(saved.total_frames)
    if saved.loop_in is not None:
        callbacks.set_in_point(saved.loop_in)
    if saved.loop_out is not None:
        callbacks.set_out_point(saved.loop_out)
    if saved.loop_enabled:
        callbacks.toggle_loop_region()

    created = 0
    for saved_track in saved.tracks:
        track = callbacks.add_track(saved_track.name)
        callbacks.update_track(track.id, {'is_locked': saved_track.is_locked, 'is_muted': saved_track.is_muted})

        for saved_clip in saved_track.clips:
            try:
                if _restore_director_clip(saved_clip, track.id, ledger, callbacks, report):
                    created += 1
            except ReferenceUnresolvedError as e:
                report.warn(f"director clip {saved_clip.id}: {e.message}, dropped")
            except Exception as e:
                report.warn(f"director clip {saved_clip.id} not restored: {e}")
    return created


def _restore_director_clip(saved_clip: SerializableDirectorClip, track_id: str, ledger: IdRemapLedger,
                           callbacks: DirectorCallbacks, report: RestoreReport) -> bool:
    source = _resolve_clip_source(saved_clip, ledger, report)
    clip = callbacks.add_clip({
        'track_id': track_id,
        'source_type': saved_clip.source_type,
        'source_model_name': saved_clip.source_model_name,
        'source_animation_name': saved_clip.source_animation_name,
        'source_animation_duration': saved_clip.source_animation_duration,
        'start_frame': saved_clip.start_frame,
        'end_frame': saved_clip.end_frame,
        'blend_in': saved_clip.blend_in,
        'blend_out': saved_clip.blend_out,
        'color': saved_clip.color,
        'spine_layer_id': saved_clip.spine_layer_id,
        'spine_element_id': saved_clip.spine_element_id,
        'spine_skin': saved_clip.spine_skin,
        'procedural_type': saved_clip.procedural_type,
        **source,
    })
    if clip is None:
        report.warn(f"director clip {saved_clip.id}: refused by the director store")
        return False
    changes: Dict[str, Any] = {
        'trim_start': saved_clip.trim_start,
        'trim_end': saved_clip.trim_end,
        'speed': saved_clip.speed,
        'loop': saved_clip.loop,
    }
    if saved_clip.procedural_config is not None:
        changes['procedural_config'] = dict(saved_clip.procedural_config)
    callbacks.update_clip(clip.id, changes)
    return True
