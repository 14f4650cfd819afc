"""
Model instance - 模型实例

One loaded FBX with everything the editor hangs off it: cut clips, shader
groups, effects, transform and snapshots.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .clips import IdentifiableClip
from .effects import EffectItem
from .files import BinaryFile
from .shader import ShaderGroup

Vector3 = Tuple[float, float, float]


def new_model_id() -> str:
    return f"model_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class Bone:
    name: str
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class ModelInstance:
    id: str
    name: str
    file: Optional[BinaryFile] = None
    texture_files: List[BinaryFile] = field(default_factory=list)
    mesh_names: List[str] = field(default_factory=list)
    bones: List[Bone] = field(default_factory=list)

    original_clip: Optional[IdentifiableClip] = None
    created_clips: List[IdentifiableClip] = field(default_factory=list)

    shader_groups: List[ShaderGroup] = field(default_factory=list)
    is_shader_enabled: bool = True
    effects: List[EffectItem] = field(default_factory=list)

    position: Vector3 = (0.0, 0.0, 0.0)
    rotation: Vector3 = (0.0, 0.0, 0.0)      # degrees
    scale: Vector3 = (1.0, 1.0, 1.0)
    render_priority: int = 0
    visible: bool = True
    opacity: float = 1.0
    is_loop_enabled: bool = True

    # camera+model and transform presets, stored as plain JSON objects
    view_snapshots: List[Dict[str, Any]] = field(default_factory=list)
    transform_snapshots: List[Dict[str, Any]] = field(default_factory=list)

    def find_bone(self, name: Optional[str]) -> Optional[Bone]:
        if not name:
            return None
        for bone in self.bones:
            if bone.name == name:
                return bone
        return None

    def bone_name(self, bone_uuid: Optional[str]) -> Optional[str]:
        if not bone_uuid:
            return None
        for bone in self.bones:
            if bone.uuid == bone_uuid:
                return bone.name
        return None
