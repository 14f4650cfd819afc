"""
Shader feature configuration

Each feature type owns a typed parameter record.  Texture slots are declared
with ``texture_field()`` so serializers can walk them from the schema instead
of guessing from parameter names.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union

from .files import BinaryFile

# A texture slot holds an uploaded file, an archive-relative path while
# serialized, or nothing.
TextureSource = Union[BinaryFile, str, None]


class ShaderFeatureType(Enum):
    MATCAP = "matcap"
    MATCAP_ADD = "matcap_add"
    NORMAL_MAP = "normal_map"
    RIM_LIGHT = "rim_light"
    DISSOLVE = "dissolve"
    BLEACH = "bleach"
    FLASH = "flash"
    ALPHA_TEST = "alpha_test"


def texture_field(key: str) -> Any:
    return field(default=None, metadata={'key': key, 'texture': True})


def scalar_field(key: str, default: Any) -> Any:
    return field(default=default, metadata={'key': key, 'texture': False})


@dataclass
class FeatureParams:
    """Base for typed parameter records."""

    def items(self) -> Iterator[Tuple[str, Any, bool]]:
        """Yield ``(wire_key, value, is_texture)`` in declaration order."""
        for f in fields(self):
            yield f.metadata['key'], getattr(self, f.name), f.metadata['texture']

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value, _ in self.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FeatureParams':
        kwargs = {}
        for f in fields(cls):
            key = f.metadata['key']
            if key in data:
                kwargs[f.name] = data[key]
        return cls(**kwargs)

    def replace_textures(self, values: Dict[str, TextureSource]) -> 'FeatureParams':
        """Copy of this record with texture slots replaced by wire key."""
        kwargs = {}
        for f in fields(self):
            key = f.metadata['key']
            if f.metadata['texture'] and key in values:
                kwargs[f.name] = values[key]
            else:
                kwargs[f.name] = getattr(self, f.name)
        return type(self)(**kwargs)


@dataclass
class MatcapParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    mask_texture: TextureSource = texture_field('maskTexture')
    progress: float = scalar_field('progress', 0.5)


@dataclass
class MatcapAddParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    mask_texture: TextureSource = texture_field('maskTexture')
    strength: float = scalar_field('strength', 1.0)
    color: str = scalar_field('color', '#ffffff')


@dataclass
class NormalMapParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    strength: float = scalar_field('strength', 1.0)


@dataclass
class RimLightParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    color: str = scalar_field('color', '#ffffff')
    power: float = scalar_field('power', 2.7)
    intensity: float = scalar_field('intensity', 1.0)


@dataclass
class DissolveParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    threshold: float = scalar_field('threshold', 0.0)
    edge_width: float = scalar_field('edgeWidth', 0.15)
    color1: str = scalar_field('color1', '#ffff00')
    color2: str = scalar_field('color2', '#ff0000')


@dataclass
class BleachParams(FeatureParams):
    color: str = scalar_field('color', '#ffffff')
    intensity: float = scalar_field('intensity', 0.0)


@dataclass
class FlashParams(FeatureParams):
    texture: TextureSource = texture_field('texture')
    mask_texture: TextureSource = texture_field('maskTexture')
    color: str = scalar_field('color', '#ffffff')
    intensity: float = scalar_field('intensity', 1.0)
    speed: float = scalar_field('speed', 1.5)
    width: float = scalar_field('width', 0.5)
    reverse: bool = scalar_field('reverse', False)


@dataclass
class AlphaTestParams(FeatureParams):
    threshold: float = scalar_field('threshold', 0.5)


class GenericParams(FeatureParams):
    """Verbatim bag for feature types this build does not know.

    Every value is treated as scalar; nothing is extracted into the archive.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self.values: Dict[str, Any] = dict(values or {})

    def __eq__(self, other: object) -> bool:
        return isinstance(other, GenericParams) and other.values == self.values

    def __repr__(self) -> str:
        return f"GenericParams({self.values!r})"

    def items(self) -> Iterator[Tuple[str, Any, bool]]:
        for key, value in self.values.items():
            yield key, value, False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GenericParams':
        return cls(data)

    def replace_textures(self, values: Dict[str, TextureSource]) -> 'GenericParams':
        return GenericParams(self.values)


PARAMS_BY_TYPE: Dict[ShaderFeatureType, Type[FeatureParams]] = {
    ShaderFeatureType.MATCAP: MatcapParams,
    ShaderFeatureType.MATCAP_ADD: MatcapAddParams,
    ShaderFeatureType.NORMAL_MAP: NormalMapParams,
    ShaderFeatureType.RIM_LIGHT: RimLightParams,
    ShaderFeatureType.DISSOLVE: DissolveParams,
    ShaderFeatureType.BLEACH: BleachParams,
    ShaderFeatureType.FLASH: FlashParams,
    ShaderFeatureType.ALPHA_TEST: AlphaTestParams,
}


def parse_feature_type(value: str) -> Optional[ShaderFeatureType]:
    try:
        return ShaderFeatureType(value)
    except ValueError:
        return None


def params_from_dict(feature_type: str, data: Dict[str, Any]) -> FeatureParams:
    known = parse_feature_type(feature_type)
    if known is None:
        return GenericParams.from_dict(data)
    return PARAMS_BY_TYPE[known].from_dict(data)


def new_feature_id(feature_type: str) -> str:
    return f"{feature_type}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class ShaderFeature:
    id: str
    type: str                       # ShaderFeatureType value, or an unknown type name
    name: str
    params: FeatureParams
    description: str = ""
    icon: str = ""
    enabled: bool = True
    expanded: bool = False


@dataclass
class ShaderGroup:
    id: str
    name: str
    selected_meshes: List[str] = field(default_factory=list)
    features: List[ShaderFeature] = field(default_factory=list)
    enabled: bool = True
    expanded: bool = True
