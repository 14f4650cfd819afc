"""
Project State - 项目状态（可序列化）

Binary-free records written into ``project-state.json`` and
``manifest.json``.  Every record is created fresh per export and is not
modified afterwards; ``to_dict``/``from_dict`` map them to the camelCase
JSON layout of the archive.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..config import PROJECT_VERSION
from .options import ExportOptions

Vector3 = Tuple[float, float, float]


def _vec3(value: Any, default: Vector3) -> Vector3:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        return default
    return (float(value[0]), float(value[1]), float(value[2]))


def _put(data: Dict[str, Any], key: str, value: Any) -> None:
    """Optional keys are left out instead of being written as null."""
    if value is not None:
        data[key] = value


def is_version_compatible(version: str, supported_major: str = "1") -> bool:
    """Only the major component of ``X.Y.Z`` is compared."""
    if not isinstance(version, str) or not version:
        return False
    return version.split('.')[0] == supported_major


@dataclass(frozen=True)
class ProjectManifest:
    version: str
    created_at: str
    app_version: str
    project_name: str
    model_count: int
    has_animations: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'createdAt': self.created_at,
            'appVersion': self.app_version,
            'projectName': self.project_name,
            'modelCount': self.model_count,
            'hasAnimations': self.has_animations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectManifest':
        return cls(
            version=str(data['version']),
            created_at=data.get('createdAt', ''),
            app_version=data.get('appVersion', ''),
            project_name=data.get('projectName', ''),
            model_count=int(data.get('modelCount', 0)),
            has_animations=bool(data.get('hasAnimations', False)),
        )


@dataclass(frozen=True)
class SerializableClipInfo:
    custom_id: str
    display_name: str
    original_name: str
    start_frame: int
    end_frame: int
    duration: float
    fps: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'customId': self.custom_id,
            'displayName': self.display_name,
            'originalName': self.original_name,
            'startFrame': self.start_frame,
            'endFrame': self.end_frame,
            'duration': self.duration,
            'fps': self.fps,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableClipInfo':
        return cls(
            custom_id=data['customId'],
            display_name=data.get('displayName', ''),
            original_name=data.get('originalName', ''),
            start_frame=int(data.get('startFrame', 0)),
            end_frame=int(data.get('endFrame', 0)),
            duration=float(data.get('duration', 0.0)),
            fps=data.get('fps', 30),
        )


@dataclass(frozen=True)
class SerializableShaderFeature:
    type: str
    name: str
    description: str
    icon: str
    enabled: bool
    params: Dict[str, Any]          # texture slots hold archive-relative paths

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
            'enabled': self.enabled,
            'params': dict(self.params),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableShaderFeature':
        return cls(
            type=data.get('type', ''),
            name=data.get('name', ''),
            description=data.get('description', ''),
            icon=data.get('icon', ''),
            enabled=bool(data.get('enabled', True)),
            params=dict(data.get('params') or {}),
        )


@dataclass(frozen=True)
class SerializableShaderGroup:
    id: str
    name: str
    selected_meshes: List[str]
    features: List[SerializableShaderFeature]
    enabled: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'selectedMeshes': list(self.selected_meshes),
            'features': [f.to_dict() for f in self.features],
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableShaderGroup':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            selected_meshes=list(data.get('selectedMeshes') or []),
            features=[SerializableShaderFeature.from_dict(f) for f in data.get('features') or []],
            enabled=bool(data.get('enabled', True)),
        )


@dataclass(frozen=True)
class SerializableEffectTrigger:
    id: str
    clip_id: str
    clip_name: str
    frame: int
    duration: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'clipId': self.clip_id,
            'clipName': self.clip_name,
            'frame': self.frame,
        }
        _put(data, 'duration', self.duration)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableEffectTrigger':
        return cls(
            id=data.get('id', ''),
            clip_id=data.get('clipId', ''),
            clip_name=data.get('clipName', ''),
            frame=int(data.get('frame', 0)),
            duration=data.get('duration'),
        )


@dataclass(frozen=True)
class SerializableEffect:
    id: str
    name: str
    path: str
    source_type: str                # "public" | "uploaded"
    position: Vector3
    rotation: Vector3
    scale: Vector3
    speed: float
    is_looping: bool
    is_visible: bool
    bound_bone_name: Optional[str]
    triggers: List[SerializableEffectTrigger]
    color: str
    resource_paths: List[str]       # archive paths under assets/effects/<modelId>/<effectId>/

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'path': self.path,
            'sourceType': self.source_type,
            'position': list(self.position),
            'rotation': list(self.rotation),
            'scale': list(self.scale),
            'speed': self.speed,
            'isLooping': self.is_looping,
            'isVisible': self.is_visible,
            'triggers': [t.to_dict() for t in self.triggers],
            'color': self.color,
            'resourcePaths': list(self.resource_paths),
        }
        _put(data, 'boundBoneName', self.bound_bone_name)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableEffect':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            path=data.get('path', ''),
            source_type=data.get('sourceType') or 'public',
            position=_vec3(data.get('position'), (0.0, 0.0, 0.0)),
            rotation=_vec3(data.get('rotation'), (0.0, 0.0, 0.0)),
            scale=_vec3(data.get('scale'), (1.0, 1.0, 1.0)),
            speed=float(data.get('speed', 1.0)),
            is_looping=bool(data.get('isLooping', False)),
            is_visible=bool(data.get('isVisible', True)),
            bound_bone_name=data.get('boundBoneName'),
            triggers=[SerializableEffectTrigger.from_dict(t) for t in data.get('triggers') or []],
            color=data.get('color', '#ffffff'),
            resource_paths=list(data.get('resourcePaths') or []),
        )


@dataclass(frozen=True)
class SerializableModelState:
    id: str
    name: str
    model_path: str
    texture_paths: List[str]
    position: Vector3 = (0.0, 0.0, 0.0)
    rotation: Vector3 = (0.0, 0.0, 0.0)
    scale: Vector3 = (1.0, 1.0, 1.0)
    render_priority: int = 0
    visible: bool = True
    opacity: float = 1.0
    is_loop_enabled: bool = True
    created_clips: Optional[List[SerializableClipInfo]] = None
    shader_groups: Optional[List[SerializableShaderGroup]] = None
    is_shader_enabled: Optional[bool] = None
    effects: Optional[List[SerializableEffect]] = None
    view_snapshots: Optional[List[Dict[str, Any]]] = None
    transform_snapshots: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'name': self.name,
            'modelPath': self.model_path,
            'texturePaths': list(self.texture_paths),
            'position': list(self.position),
            'rotation': list(self.rotation),
            'scale': list(self.scale),
            'renderPriority': self.render_priority,
            'visible': self.visible,
            'opacity': self.opacity,
            'isLoopEnabled': self.is_loop_enabled,
        }
        if self.created_clips is not None:
            data['createdClips'] = [c.to_dict() for c in self.created_clips]
        if self.shader_groups is not None:
            data['shaderGroups'] = [g.to_dict() for g in self.shader_groups]
        _put(data, 'isShaderEnabled', self.is_shader_enabled)
        if self.effects is not None:
            data['effects'] = [e.to_dict() for e in self.effects]
        _put(data, 'viewSnapshots', self.view_snapshots)
        _put(data, 'transformSnapshots', self.transform_snapshots)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableModelState':
        clips = data.get('createdClips')
        groups = data.get('shaderGroups')
        effects = data.get('effects')
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            model_path=data.get('modelPath') or 'model.fbx',
            texture_paths=list(data.get('texturePaths') or []),
            position=_vec3(data.get('position'), (0.0, 0.0, 0.0)),
            rotation=_vec3(data.get('rotation'), (0.0, 0.0, 0.0)),
            scale=_vec3(data.get('scale'), (1.0, 1.0, 1.0)),
            render_priority=int(data.get('renderPriority', 0)),
            visible=bool(data.get('visible', True)),
            opacity=float(data.get('opacity', 1.0)),
            is_loop_enabled=bool(data.get('isLoopEnabled', True)),
            created_clips=None if clips is None else [SerializableClipInfo.from_dict(c) for c in clips],
            shader_groups=None if groups is None else [SerializableShaderGroup.from_dict(g) for g in groups],
            is_shader_enabled=data.get('isShaderEnabled'),
            effects=None if effects is None else [SerializableEffect.from_dict(e) for e in effects],
            view_snapshots=data.get('viewSnapshots'),
            transform_snapshots=data.get('transformSnapshots'),
        )


@dataclass(frozen=True)
class SerializableDirectorClip:
    id: str
    track_id: str
    source_type: str
    source_model_id: str
    source_model_name: str
    source_animation_id: str
    source_animation_name: str
    source_animation_duration: int
    start_frame: int
    end_frame: int
    trim_start: int = 0
    trim_end: int = 0
    speed: float = 1.0
    loop: bool = False
    blend_in: int = 0
    blend_out: int = 0
    color: str = "#3b82f6"
    spine_instance_id: Optional[str] = None
    spine_layer_id: Optional[str] = None
    spine_element_id: Optional[str] = None
    spine_skin: Optional[str] = None
    procedural_type: Optional[str] = None
    procedural_config: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'trackId': self.track_id,
            'sourceType': self.source_type,
            'sourceModelId': self.source_model_id,
            'sourceModelName': self.source_model_name,
            'sourceAnimationId': self.source_animation_id,
            'sourceAnimationName': self.source_animation_name,
            'sourceAnimationDuration': self.source_animation_duration,
            'startFrame': self.start_frame,
            'endFrame': self.end_frame,
            'trimStart': self.trim_start,
            'trimEnd': self.trim_end,
            'speed': self.speed,
            'loop': self.loop,
            'blendIn': self.blend_in,
            'blendOut': self.blend_out,
            'color': self.color,
        }
        _put(data, 'spineInstanceId', self.spine_instance_id)
        _put(data, 'spineLayerId', self.spine_layer_id)
        _put(data, 'spineElementId', self.spine_element_id)
        _put(data, 'spineSkin', self.spine_skin)
        _put(data, 'proceduralType', self.procedural_type)
        _put(data, 'proceduralConfig', self.procedural_config)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableDirectorClip':
        return cls(
            id=data.get('id', ''),
            track_id=data.get('trackId', ''),
            source_type=data.get('sourceType') or '3d-model',
            source_model_id=data.get('sourceModelId', ''),
            source_model_name=data.get('sourceModelName', ''),
            source_animation_id=data.get('sourceAnimationId', ''),
            source_animation_name=data.get('sourceAnimationName', ''),
            source_animation_duration=int(data.get('sourceAnimationDuration', 0)),
            start_frame=int(data.get('startFrame', 0)),
            end_frame=int(data.get('endFrame', 0)),
            trim_start=int(data.get('trimStart', 0)),
            trim_end=int(data.get('trimEnd', 0)),
            speed=float(data.get('speed', 1.0)),
            loop=bool(data.get('loop', False)),
            blend_in=int(data.get('blendIn', 0)),
            blend_out=int(data.get('blendOut', 0)),
            color=data.get('color', '#3b82f6'),
            spine_instance_id=data.get('spineInstanceId'),
            spine_layer_id=data.get('spineLayerId'),
            spine_element_id=data.get('spineElementId'),
            spine_skin=data.get('spineSkin'),
            procedural_type=data.get('proceduralType'),
            procedural_config=data.get('proceduralConfig'),
        )


@dataclass(frozen=True)
class SerializableTrack:
    id: str
    name: str
    order: int
    is_locked: bool
    is_muted: bool
    clips: List[SerializableDirectorClip]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'order': self.order,
            'isLocked': self.is_locked,
            'isMuted': self.is_muted,
            'clips': [c.to_dict() for c in self.clips],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableTrack':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            order=int(data.get('order', 0)),
            is_locked=bool(data.get('isLocked', False)),
            is_muted=bool(data.get('isMuted', False)),
            clips=[SerializableDirectorClip.from_dict(c) for c in data.get('clips') or []],
        )


@dataclass(frozen=True)
class SerializableDirectorState:
    total_frames: int
    fps: int
    loop_in: Optional[int]
    loop_out: Optional[int]
    loop_enabled: bool
    tracks: List[SerializableTrack]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timeline': {
                'totalFrames': self.total_frames,
                'fps': self.fps,
                'loopRegion': {
                    'inPoint': self.loop_in,
                    'outPoint': self.loop_out,
                    'enabled': self.loop_enabled,
                },
            },
            'tracks': [t.to_dict() for t in self.tracks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableDirectorState':
        timeline = data.get('timeline') or {}
        region = timeline.get('loopRegion') or {}
        return cls(
            total_frames=int(timeline.get('totalFrames', 300)),
            fps=int(timeline.get('fps', 30)),
            loop_in=region.get('inPoint'),
            loop_out=region.get('outPoint'),
            loop_enabled=bool(region.get('enabled', False)),
            tracks=[SerializableTrack.from_dict(t) for t in data.get('tracks') or []],
        )


@dataclass(frozen=True)
class SerializableLayer:
    id: str
    name: str
    type: str
    priority: int
    visible: bool
    locked: bool
    expanded: bool
    opacity: float
    children: List[Dict[str, Any]]      # element records, images replaced by archive paths
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'priority': self.priority,
            'visible': self.visible,
            'locked': self.locked,
            'expanded': self.expanded,
            'opacity': self.opacity,
            'children': [dict(c) for c in self.children],
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableLayer':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            type=data.get('type', '2d'),
            priority=int(data.get('priority', 1)),
            visible=bool(data.get('visible', True)),
            locked=bool(data.get('locked', False)),
            expanded=bool(data.get('expanded', True)),
            opacity=float(data.get('opacity', 1.0)),
            children=[dict(c) for c in data.get('children') or []],
            created_at=data.get('createdAt', 0),
            updated_at=data.get('updatedAt', 0),
        )


@dataclass(frozen=True)
class SerializableSpineInstance:
    id: str
    name: str
    skel_file_name: str
    atlas_file_name: str
    image_file_names: List[str]
    skeleton_info: Dict[str, Any]
    current_animation: Optional[str] = None
    current_skin: Optional[str] = None
    loop: bool = True
    time_scale: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'skelFileName': self.skel_file_name,
            'atlasFileName': self.atlas_file_name,
            'imageFileNames': list(self.image_file_names),
            'skeletonInfo': dict(self.skeleton_info),
            'loop': self.loop,
            'timeScale': self.time_scale,
        }
        _put(data, 'currentAnimation', self.current_animation)
        _put(data, 'currentSkin', self.current_skin)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableSpineInstance':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            skel_file_name=data.get('skelFileName', 'skeleton.skel'),
            atlas_file_name=data.get('atlasFileName', 'skeleton.atlas'),
            image_file_names=list(data.get('imageFileNames') or []),
            skeleton_info=dict(data.get('skeletonInfo') or {}),
            current_animation=data.get('currentAnimation'),
            current_skin=data.get('currentSkin'),
            loop=bool(data.get('loop', True)),
            time_scale=float(data.get('timeScale', 1.0)),
        )


@dataclass(frozen=True)
class GlobalSettings:
    """相机与场景设置；未设置的项不写入"""
    camera_fov: Optional[float] = None
    camera_near: Optional[float] = None
    camera_far: Optional[float] = None
    scene_bg_color: Optional[str] = None
    show_grid: Optional[bool] = None
    show_ground_plane: Optional[bool] = None

    _KEYS = (
        ('camera_fov', 'cameraFov'),
        ('camera_near', 'cameraNear'),
        ('camera_far', 'cameraFar'),
        ('scene_bg_color', 'sceneBgColor'),
        ('show_grid', 'showGrid'),
        ('show_ground_plane', 'showGroundPlane'),
    )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for attr, key in self._KEYS:
            _put(data, key, getattr(self, attr))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlobalSettings':
        return cls(**{attr: data.get(key) for attr, key in cls._KEYS})


@dataclass(frozen=True)
class ProjectState:
    name: str
    created_at: str
    updated_at: str
    export_options: ExportOptions
    models: List[SerializableModelState] = field(default_factory=list)
    director: Optional[SerializableDirectorState] = None
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    layers: Optional[List[SerializableLayer]] = None
    spine_instances: Optional[List[SerializableSpineInstance]] = None
    version: str = PROJECT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'version': self.version,
            'name': self.name,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'exportOptions': self.export_options.to_dict(),
            'models': [m.to_dict() for m in self.models],
            'globalSettings': self.global_settings.to_dict(),
        }
        if self.director is not None:
            data['director'] = self.director.to_dict()
        if self.layers is not None:
            data['layers'] = [layer.to_dict() for layer in self.layers]
        if self.spine_instances is not None:
            data['spineInstances'] = [s.to_dict() for s in self.spine_instances]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectState':
        director = data.get('director')
        layers = data.get('layers')
        spines = data.get('spineInstances')
        return cls(
            version=str(data.get('version', PROJECT_VERSION)),
            name=data.get('name', ''),
            created_at=data.get('createdAt', ''),
            updated_at=data.get('updatedAt', ''),
            export_options=ExportOptions.from_dict(data.get('exportOptions') or {}),
            models=[SerializableModelState.from_dict(m) for m in data.get('models') or []],
            director=None if director is None else SerializableDirectorState.from_dict(director),
            global_settings=GlobalSettings.from_dict(data.get('globalSettings') or {}),
            layers=None if layers is None else [SerializableLayer.from_dict(x) for x in layers],
            spine_instances=None if spines is None else [SerializableSpineInstance.from_dict(s) for s in spines],
        )
