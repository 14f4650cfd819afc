"""
Entity Serializers - 实体序列化

Each live entity kind maps to its binary-free record.  Embedded binary
content never goes into the record: it is pushed into an ``AssetSink`` as
``(archive path, byte source)`` and the record keeps the path instead.

路径规则（由实体 ID 决定，重复导出得到相同的路径集合）:
    models/<modelId>/<modelPath>
    models/<modelId>/<textureName>
    models/<modelId>/shader/textures/<key>_<group>_<feature>_<n>.<ext>
    assets/images/<elementId>.<ext>
    assets/spine/<instanceId>/skeleton.skel | skeleton.atlas | textures/<name>
    assets/effects/<modelId>/<effectId>/<fileName>
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from ..adapters.images import is_data_url, is_extractable, parse_data_url, source_extension
from ..domain.clips import IdentifiableClip
from ..domain.director import DirectorClip, DirectorTimeline, DirectorTrack
from ..domain.files import BinaryFile, file_extension
from ..domain.layers import Element2D, Element2DPosition, Element2DSize, ImageElement2D, Layer
from ..domain.model import ModelInstance
from ..domain.shader import ShaderGroup
from ..domain.spine import SpineInstance
from .options import ExportOptions
from .state import (
    SerializableClipInfo,
    SerializableDirectorClip,
    SerializableDirectorState,
    SerializableEffect,
    SerializableLayer,
    SerializableModelState,
    SerializableShaderFeature,
    SerializableShaderGroup,
    SerializableSpineInstance,
    SerializableTrack,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "model.fbx"
SHADER_TEXTURE_DIR = "shader/textures"
IMAGE_ASSET_DIR = "assets/images"
SPINE_ASSET_DIR = "assets/spine"


# ============================================================================
# 资源收集
# ============================================================================

@dataclass(frozen=True)
class AssetEntry:
    """One binary file destined for the archive."""
    path: str
    source: Any                 # bytes | BinaryFile | data URL | pygame.Surface | str


class AssetSink:
    """Append-only collector of asset entries and export warnings."""

    def __init__(self) -> None:
        self._entries: List[AssetEntry] = []
        self.warnings: List[str] = []

    def add(self, path: str, source: Any) -> str:
        self._entries.append(AssetEntry(path, source))
        return path

    def extend(self, entries: Iterable[AssetEntry]) -> None:
        self._entries.extend(entries)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    @property
    def entries(self) -> List[AssetEntry]:
        return list(self._entries)

    def paths(self) -> List[str]:
        return [e.path for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AssetEntry]:
        return iter(list(self._entries))


def model_folder(model_id: str) -> str:
    return f"models/{model_id}"


def spine_folder(instance_id: str) -> str:
    return f"{SPINE_ASSET_DIR}/{instance_id}"


# ============================================================================
# 动作片段
# ============================================================================

def serialize_clip(clip: IdentifiableClip, fps: float = 30) -> SerializableClipInfo:
    return SerializableClipInfo(
        custom_id=clip.custom_id or clip.uuid,
        display_name=clip.display_name or clip.name,
        original_name=clip.name,
        start_frame=clip.start_frame if clip.start_frame is not None else 0,
        end_frame=clip.end_frame if clip.end_frame is not None else round(clip.duration * fps),
        duration=clip.duration,
        fps=fps,
    )


def serialize_created_clips(clips: Sequence[IdentifiableClip], fps: float = 30) -> List[SerializableClipInfo]:
    return [serialize_clip(c, fps) for c in clips]


# ============================================================================
# Shader
# ============================================================================

def serialize_shader_groups(model_id: str, groups: Sequence[ShaderGroup],
                            sink: AssetSink) -> List[SerializableShaderGroup]:
    """
    序列化 Shader 组合

    Texture slots come from each feature's parameter schema.  An uploaded
    file is pushed to the sink under the model folder and replaced by its
    model-relative path; any other slot value is copied as is.
    """
    result: List[SerializableShaderGroup] = []
    for group_idx, group in enumerate(groups):
        features: List[SerializableShaderFeature] = []
        for feature_idx, feature in enumerate(group.features):
            params: Dict[str, Any] = {}
            n = 0
            for key, value, is_texture in feature.params.items():
                if is_texture and isinstance(value, BinaryFile):
                    n += 1
                    ext = file_extension(value.name)
                    rel = f"{SHADER_TEXTURE_DIR}/{key}_{group_idx}_{feature_idx}_{n}.{ext}"
                    sink.add(f"{model_folder(model_id)}/{rel}", value)
                    params[key] = rel
                else:
                    params[key] = value
            features.append(SerializableShaderFeature(
                type=feature.type,
                name=feature.name,
                description=feature.description,
                icon=feature.icon,
                enabled=feature.enabled,
                params=params,
            ))
        result.append(SerializableShaderGroup(
            id=group.id,
            name=group.name,
            selected_meshes=list(group.selected_meshes),
            features=features,
            enabled=group.enabled,
        ))
    return result


# ============================================================================
# 模型
# ============================================================================

def serialize_model(
    model: ModelInstance,
    options: ExportOptions,
    sink: AssetSink,
    fps: float = 30,
    effects: Optional[List[SerializableEffect]] = None,
) -> SerializableModelState:
    """
    序列化单个模型

    ``effects`` are built by the effect stage beforehand (their resources
    need fetching); they are recorded only when effects export is enabled.
    """
    folder = model_folder(model.id)

    model_path = model.file.name if model.file is not None else DEFAULT_MODEL_PATH
    if model.file is not None:
        sink.add(f"{folder}/{model_path}", model.file)
    else:
        sink.warn(f"model {model.name!r} has no source file")

    texture_paths: List[str] = []
    for texture in model.texture_files:
        if texture.name in texture_paths:
            continue
        sink.add(f"{folder}/{texture.name}", texture)
        texture_paths.append(texture.name)

    return SerializableModelState(
        id=model.id,
        name=model.name,
        model_path=model_path,
        texture_paths=texture_paths,
        position=tuple(model.position),
        rotation=tuple(model.rotation),
        scale=tuple(model.scale),
        render_priority=model.render_priority,
        visible=model.visible,
        opacity=model.opacity,
        is_loop_enabled=model.is_loop_enabled,
        created_clips=serialize_created_clips(model.created_clips, fps) if options.include_animations else None,
        shader_groups=serialize_shader_groups(model.id, model.shader_groups, sink) if options.include_shader else None,
        is_shader_enabled=model.is_shader_enabled if options.include_shader else None,
        effects=list(effects or []) if options.include_effects else None,
        view_snapshots=[dict(s) for s in model.view_snapshots],
        transform_snapshots=[dict(s) for s in model.transform_snapshots],
    )


# ============================================================================
# 导演模式
# ============================================================================

def serialize_director_clip(clip: DirectorClip) -> SerializableDirectorClip:
    return SerializableDirectorClip(
        id=clip.id,
        track_id=clip.track_id,
        source_type=clip.source_type,
        source_model_id=clip.source_model_id,
        source_model_name=clip.source_model_name,
        source_animation_id=clip.source_animation_id,
        source_animation_name=clip.source_animation_name,
        source_animation_duration=clip.source_animation_duration,
        start_frame=clip.start_frame,
        end_frame=clip.end_frame,
        trim_start=clip.trim_start,
        trim_end=clip.trim_end,
        speed=clip.speed,
        loop=clip.loop,
        blend_in=clip.blend_in,
        blend_out=clip.blend_out,
        color=clip.color,
        spine_instance_id=clip.spine_instance_id,
        spine_layer_id=clip.spine_layer_id,
        spine_element_id=clip.spine_element_id,
        spine_skin=clip.spine_skin,
        procedural_type=clip.procedural_type,
        procedural_config=dict(clip.procedural_config) if clip.procedural_config is not None else None,
    )


def serialize_track(track: DirectorTrack) -> SerializableTrack:
    return SerializableTrack(
        id=track.id,
        name=track.name,
        order=track.order,
        is_locked=track.is_locked,
        is_muted=track.is_muted,
        clips=[serialize_director_clip(c) for c in track.clips],
    )


def serialize_director(tracks: Sequence[DirectorTrack], timeline: DirectorTimeline) -> SerializableDirectorState:
    region = timeline.loop_region
    return SerializableDirectorState(
        total_frames=timeline.total_frames,
        fps=timeline.fps,
        loop_in=region.in_point,
        loop_out=region.out_point,
        loop_enabled=region.enabled,
        tracks=[serialize_track(t) for t in tracks],
    )


# ============================================================================
# 2D 图层
# ============================================================================

def camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def element_to_dict(element: Element2D, sink: AssetSink) -> Optional[Dict[str, Any]]:
    """
    2D 元素转为 JSON 记录

    Image sources holding bytes (data URL, uploaded file, surface) are
    written to ``assets/images/<id>.<ext>``; remote URLs stay as they are.
    An image whose data URL cannot be decoded is dropped with a warning.
    """
    data: Dict[str, Any] = {'type': element.type}
    for f in fields(element):
        value = getattr(element, f.name)
        if isinstance(value, (Element2DPosition, Element2DSize)):
            value = {g.name: getattr(value, g.name) for g in fields(value)}
        if value is None:
            continue
        data[camel_case(f.name)] = value

    if isinstance(element, ImageElement2D) and is_extractable(element.src):
        if is_data_url(element.src):
            try:
                parse_data_url(element.src)
            except ValueError as e:
                sink.warn(f"image {element.name!r} ({element.id}): unreadable data URL, dropped: {e}")
                return None
        path = f"{IMAGE_ASSET_DIR}/{element.id}.{source_extension(element.src)}"
        data['src'] = sink.add(path, element.src)
    return data


def serialize_layer(layer: Layer, sink: AssetSink) -> SerializableLayer:
    return SerializableLayer(
        id=layer.id,
        name=layer.name,
        type=layer.type,
        priority=layer.priority,
        visible=layer.visible,
        locked=layer.locked,
        expanded=layer.expanded,
        opacity=layer.opacity,
        children=[d for d in (element_to_dict(e, sink) for e in layer.children) if d is not None],
        created_at=layer.created_at,
        updated_at=layer.updated_at,
    )


def serialize_layers(layers: Sequence[Layer], sink: AssetSink) -> List[SerializableLayer]:
    return [serialize_layer(layer, sink) for layer in layers]


# ============================================================================
# Spine
# ============================================================================

def serialize_spine_instance(instance: SpineInstance, sink: AssetSink) -> SerializableSpineInstance:
    folder = spine_folder(instance.id)
    sink.add(f"{folder}/skeleton.skel", instance.skel_data)
    sink.add(f"{folder}/skeleton.atlas", instance.atlas_text)

    image_names: List[str] = []
    for name in instance.image_file_names:
        source = instance.images.get(name)
        if source is None:
            sink.warn(f"spine {instance.name!r}: texture {name!r} has no data")
            continue
        sink.add(f"{folder}/textures/{name}", source)
        image_names.append(name)

    return SerializableSpineInstance(
        id=instance.id,
        name=instance.name,
        skel_file_name=instance.skel_file_name,
        atlas_file_name=instance.atlas_file_name,
        image_file_names=image_names,
        skeleton_info=instance.skeleton_info.to_dict(),
        current_animation=instance.current_animation,
        current_skin=instance.current_skin,
        loop=instance.loop,
        time_scale=instance.time_scale,
    )
