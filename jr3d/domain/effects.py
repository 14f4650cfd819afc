from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .files import BinaryFile

Vector3 = Tuple[float, float, float]


class EffectSourceType(Enum):
    PUBLIC = "public"           # 公共特效库，导出时从资源根目录获取
    UPLOADED = "uploaded"       # 用户上传，资源已在内存中

    @classmethod
    def parse(cls, value: Optional[str]) -> 'EffectSourceType':
        if value == cls.UPLOADED.value:
            return cls.UPLOADED
        return cls.PUBLIC


@dataclass
class EffectTrigger:
    id: str
    clip_id: str                # IdentifiableClip.custom_id
    frame: int
    clip_name: str = ""
    duration: Optional[int] = None


@dataclass
class EffectItem:
    """Particle effect placed on a model, optionally bound to a bone.

    ``path`` is the effect file relative to the public resource root;
    ``dependencies`` lists the resources it declares (textures, materials),
    relative to the effect's folder unless they start with ``/``.
    """
    id: str
    name: str
    path: str = ""
    source_type: EffectSourceType = EffectSourceType.PUBLIC
    position: Vector3 = (0.0, 0.0, 0.0)
    rotation: Vector3 = (0.0, 0.0, 0.0)
    scale: Vector3 = (1.0, 1.0, 1.0)
    speed: float = 1.0
    is_looping: bool = False
    is_visible: bool = True
    bound_bone_uuid: Optional[str] = None
    triggers: List[EffectTrigger] = field(default_factory=list)
    color: str = "#ffffff"
    raw_files: List[BinaryFile] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    is_loaded: bool = False
