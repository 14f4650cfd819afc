"""Live session entities read by the serializers and produced by restoration."""

from .files import BinaryFile, guess_mime_type
from .clips import (
    AnimationClip,
    IdentifiableClip,
    KeyframeTrack,
    create_sub_clip,
    generate_unique_clip_id,
    generate_unique_display_name,
)
from .shader import (
    ShaderFeatureType,
    FeatureParams,
    GenericParams,
    ShaderFeature,
    ShaderGroup,
)
from .effects import EffectItem, EffectSourceType, EffectTrigger
from .model import Bone, ModelInstance, new_model_id
from .layers import (
    Element2D,
    Element2DPosition,
    Element2DSize,
    HtmlElement2D,
    ImageElement2D,
    Layer,
    ShapeElement2D,
    SpineElement2D,
    TextElement2D,
)
from .spine import SpineInstance, SpineSkeletonInfo, new_spine_id
from .director import (
    AnimationSourceType,
    DirectorClip,
    DirectorTimeline,
    DirectorTrack,
    LoopRegion,
)

__all__ = [
    'BinaryFile', 'guess_mime_type',
    'AnimationClip', 'IdentifiableClip', 'KeyframeTrack',
    'create_sub_clip', 'generate_unique_clip_id', 'generate_unique_display_name',
    'ShaderFeatureType', 'FeatureParams', 'GenericParams', 'ShaderFeature', 'ShaderGroup',
    'EffectItem', 'EffectSourceType', 'EffectTrigger',
    'Bone', 'ModelInstance', 'new_model_id',
    'Element2D', 'Element2DPosition', 'Element2DSize', 'HtmlElement2D', 'ImageElement2D',
    'Layer', 'ShapeElement2D', 'SpineElement2D', 'TextElement2D',
    'SpineInstance', 'SpineSkeletonInfo', 'new_spine_id',
    'AnimationSourceType', 'DirectorClip', 'DirectorTimeline', 'DirectorTrack', 'LoopRegion',
]
