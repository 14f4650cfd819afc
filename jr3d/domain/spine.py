"""
Spine skeletal instances - Spine 实例
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def new_spine_id() -> str:
    return f"spine_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class SpineAnimationInfo:
    name: str
    duration: float
    frame_count: int = 0


@dataclass
class SpineSkeletonInfo:
    width: float = 0.0
    height: float = 0.0
    version: str = ""
    fps: float = 30.0
    animations: List[SpineAnimationInfo] = field(default_factory=list)
    skins: List[str] = field(default_factory=list)
    bone_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'version': self.version,
            'fps': self.fps,
            'animations': [
                {'name': a.name, 'duration': a.duration, 'frameCount': a.frame_count}
                for a in self.animations
            ],
            'skins': [{'name': s} for s in self.skins],
            'boneCount': self.bone_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SpineSkeletonInfo':
        return cls(
            width=data.get('width', 0.0),
            height=data.get('height', 0.0),
            version=data.get('version', ''),
            fps=data.get('fps', 30.0),
            animations=[
                SpineAnimationInfo(a.get('name', ''), a.get('duration', 0.0), a.get('frameCount', 0))
                for a in data.get('animations', [])
            ],
            skins=[s.get('name', '') if isinstance(s, dict) else str(s) for s in data.get('skins', [])],
            bone_count=data.get('boneCount', 0),
        )


@dataclass
class SpineInstance:
    """A loaded skeleton plus the raw files needed to load it again.

    ``images`` maps texture file name to a byte source (bytes, BinaryFile,
    data URL or pygame.Surface).
    """
    id: str
    name: str
    skel_file_name: str = "skeleton.skel"
    atlas_file_name: str = "skeleton.atlas"
    image_file_names: List[str] = field(default_factory=list)
    skel_data: bytes = b""
    atlas_text: str = ""
    images: Dict[str, Any] = field(default_factory=dict)
    skeleton_info: SpineSkeletonInfo = field(default_factory=SpineSkeletonInfo)

    is_playing: bool = False
    current_time: float = 0.0
    current_animation: Optional[str] = None
    current_skin: Optional[str] = None
    loop: bool = True
    time_scale: float = 1.0
