"""
Restoration collaborators - 还原回调接口

The loader never owns live state.  It writes restored entities through:

- ``ModelCallbacks``: the model registry of the editing session
- ``DirectorCallbacks``: the director-mode store
- ``RestoreCollaborators``: decoders the engine does not implement itself
  (FBX loading, sub-clip extraction, Spine/effect runtimes)

``ModelRegistry`` and ``DirectorSession`` are plain in-memory
implementations, usable headless and in tests.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..domain.clips import create_sub_clip
from ..domain.director import DirectorClip, DirectorTimeline, DirectorTrack
from ..domain.files import BinaryFile
from ..domain.layers import Layer
from ..domain.model import ModelInstance, new_model_id
from ..domain.spine import SpineInstance, SpineSkeletonInfo

logger = logging.getLogger(__name__)


class ModelCallbacks(ABC):
    """Model registry the loader restores into."""

    # set to True by registries that can hold 2D layers
    accepts_layers: bool = False

    @abstractmethod
    def add_model(self, model: ModelInstance) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def update_model(self, model_id: str, changes: Dict[str, Any]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def get_model(self, model_id: str) -> Optional[ModelInstance]:  # pragma: no cover - interface
        raise NotImplementedError

    # Optional hooks
    def clear_models(self) -> None:
        pass

    def on_progress(self, percent: int, message: str) -> None:
        pass

    def set_layers(self, layers: List[Layer]) -> None:
        pass

    def add_spine_instance(self, instance: SpineInstance) -> None:
        pass

    def clear_spine_instances(self) -> None:
        pass


class DirectorCallbacks(ABC):
    """Director-mode store the loader rebuilds the timeline into."""

    @abstractmethod
    def reset(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_fps(self, fps: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_total_frames(self, total_frames: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_in_point(self, frame: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_out_point(self, frame: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def toggle_loop_region(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def add_track(self, name: Optional[str] = None) -> DirectorTrack:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def update_track(self, track_id: str, changes: Dict[str, Any]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def add_clip(self, fields: Dict[str, Any]) -> Optional[DirectorClip]:  # pragma: no cover - interface
        """Return the created clip, or ``None`` when the store refuses it."""
        raise NotImplementedError

    @abstractmethod
    def update_clip(self, clip_id: str, changes: Dict[str, Any]) -> None:  # pragma: no cover - interface
        raise NotImplementedError


# ============================================================================
# 外部解码器
# ============================================================================

ModelLoader = Callable[[List[BinaryFile], Optional[str]], ModelInstance]
SubClipFactory = Callable[..., Any]
SpineLoader = Callable[[SpineInstance], Optional[SpineSkeletonInfo]]
EffectLoader = Callable[[str, List[BinaryFile]], None]


def load_model_files(files: List[BinaryFile], name: Optional[str] = None) -> ModelInstance:
    """
    默认模型加载器：不解析 FBX

    Builds an instance around the files with a fresh id; the first ``.fbx``
    is the model file and the rest are textures.  Real sessions plug in a
    decoder that also extracts bones and the original clip.
    """
    model_file = next((f for f in files if f.name.lower().endswith('.fbx')), None)
    if model_file is None and files:
        model_file = files[0]
    return ModelInstance(
        id=new_model_id(),
        name=name or (model_file.name.rsplit('.', 1)[0] if model_file else 'model'),
        file=model_file,
        texture_files=[f for f in files if f is not model_file],
    )


@dataclass
class RestoreCollaborators:
    load_model: ModelLoader = load_model_files
    create_sub_clip: SubClipFactory = create_sub_clip
    load_spine: Optional[SpineLoader] = None
    load_effect: Optional[EffectLoader] = None


# ============================================================================
# 内存实现
# ============================================================================

class ModelRegistry(ModelCallbacks):
    """In-memory model registry."""

    accepts_layers = True

    def __init__(self) -> None:
        self.models: Dict[str, ModelInstance] = {}
        self.layers: List[Layer] = []
        self.spine_instances: Dict[str, SpineInstance] = {}
        self.progress: List[tuple] = []

    def add_model(self, model: ModelInstance) -> None:
        self.models[model.id] = model

    def update_model(self, model_id: str, changes: Dict[str, Any]) -> None:
        model = self.models.get(model_id)
        if model is None:
            raise KeyError(model_id)
        for key, value in changes.items():
            if not hasattr(model, key):
                raise AttributeError(f"ModelInstance has no field {key!r}")
            setattr(model, key, value)

    def get_model(self, model_id: str) -> Optional[ModelInstance]:
        return self.models.get(model_id)

    def clear_models(self) -> None:
        self.models.clear()

    def on_progress(self, percent: int, message: str) -> None:
        self.progress.append((percent, message))
        logger.debug("[%3d%%] %s", percent, message)

    def set_layers(self, layers: List[Layer]) -> None:
        self.layers = list(layers)

    def add_spine_instance(self, instance: SpineInstance) -> None:
        self.spine_instances[instance.id] = instance

    def clear_spine_instances(self) -> None:
        self.spine_instances.clear()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class DirectorSession(DirectorCallbacks):
    """In-memory director-mode store."""

    def __init__(self) -> None:
        self.timeline = DirectorTimeline()
        self.tracks: List[DirectorTrack] = []

    def reset(self) -> None:
        self.timeline = DirectorTimeline()
        self.tracks = []

    def set_fps(self, fps: int) -> None:
        self.timeline.fps = fps

    def set_total_frames(self, total_frames: int) -> None:
        self.timeline.total_frames = total_frames

    def set_in_point(self, frame: int) -> None:
        self.timeline.loop_region.in_point = frame

    def set_out_point(self, frame: int) -> None:
        self.timeline.loop_region.out_point = frame

    def toggle_loop_region(self) -> None:
        region = self.timeline.loop_region
        region.enabled = not region.enabled

    def add_track(self, name: Optional[str] = None) -> DirectorTrack:
        track = DirectorTrack(
            id=_new_id('track'),
            name=name or f"Track {len(self.tracks) + 1}",
            order=len(self.tracks),
        )
        self.tracks.append(track)
        return track

    def find_track(self, track_id: str) -> Optional[DirectorTrack]:
        return next((t for t in self.tracks if t.id == track_id), None)

    def find_clip(self, clip_id: str) -> Optional[DirectorClip]:
        for track in self.tracks:
            for clip in track.clips:
                if clip.id == clip_id:
                    return clip
        return None

    def update_track(self, track_id: str, changes: Dict[str, Any]) -> None:
        track = self.find_track(track_id)
        if track is None:
            raise KeyError(track_id)
        for key, value in changes.items():
            setattr(track, key, value)

    def add_clip(self, fields: Dict[str, Any]) -> Optional[DirectorClip]:
        track = self.find_track(fields.get('track_id', ''))
        if track is None:
            return None
        start = int(fields.get('start_frame', 0))
        duration = int(fields.get('source_animation_duration', 0))
        values = dict(fields)
        values.setdefault('end_frame', start + duration)
        clip = DirectorClip(id=_new_id('clip'), **values)
        track.clips.append(clip)
        return clip

    def update_clip(self, clip_id: str, changes: Dict[str, Any]) -> None:
        clip = self.find_clip(clip_id)
        if clip is None:
            raise KeyError(clip_id)
        for key, value in changes.items():
            setattr(clip, key, value)

    @property
    def clip_count(self) -> int:
        return sum(len(t.clips) for t in self.tracks)

    def all_clips(self) -> Sequence[DirectorClip]:
        return [c for t in self.tracks for c in t.clips]
