"""
Director mode timeline - 导演模式

Tracks hold clips placed at absolute frames.  A clip points at its source
by id: a model id plus a cut clip ``custom_id`` for 3D sources, a Spine
instance id plus an animation name for Spine sources.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AnimationSourceType(Enum):
    MODEL_3D = "3d-model"
    SPINE = "spine"
    PROCEDURAL = "procedural"


@dataclass
class LoopRegion:
    in_point: Optional[int] = None
    out_point: Optional[int] = None
    enabled: bool = False


@dataclass
class DirectorTimeline:
    total_frames: int = 300
    fps: int = 30
    loop_region: LoopRegion = field(default_factory=LoopRegion)


@dataclass
class DirectorClip:
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


@dataclass
class DirectorTrack:
    id: str
    name: str
    order: int = 0
    is_locked: bool = False
    is_muted: bool = False
    clips: List[DirectorClip] = field(default_factory=list)
