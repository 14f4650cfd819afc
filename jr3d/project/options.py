"""
Export option policy - 导出选项检查

Decides which top-level sections an export may contain:

- animations / director timeline need 3D models or 2D layers
- shader configuration needs 3D models
- effects hang off models, so they need 3D models too
- audio is reserved and always off
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .errors import NoExportableContentError


@dataclass(frozen=True)
class ExportOptions:
    include_3d_models: bool = True
    include_2d: bool = False
    include_animations: bool = True
    include_shader: bool = True
    include_effects: bool = False
    include_audio: bool = False         # 预留

    def to_dict(self) -> Dict[str, Any]:
        return {
            'include3DModels': self.include_3d_models,
            'include2D': self.include_2d,
            'includeAnimations': self.include_animations,
            'includeShader': self.include_shader,
            'includeEffects': self.include_effects,
            'includeAudio': self.include_audio,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExportOptions':
        return cls(
            include_3d_models=bool(data.get('include3DModels', True)),
            include_2d=bool(data.get('include2D', False)),
            include_animations=bool(data.get('includeAnimations', False)),
            include_shader=bool(data.get('includeShader', False)),
            # older archives used the Effekseer name for the effects switch
            include_effects=bool(data.get('includeEffects', data.get('includeEffekseer', False))),
            include_audio=False,
        )


@dataclass(frozen=True)
class ExportPolicy:
    can_export: bool
    can_export_animations: bool
    can_export_shader: bool


def evaluate(options: ExportOptions) -> ExportPolicy:
    """Pure derivation of what the enabled sections allow."""
    has_content = options.include_3d_models or options.include_2d
    return ExportPolicy(
        can_export=has_content,
        can_export_animations=has_content,
        can_export_shader=options.include_3d_models,
    )


def validate(options: ExportOptions) -> ExportOptions:
    """
    Check the options and return the effective ones to record in the archive.

    Raises:
        NoExportableContentError: neither 3D models nor 2D layers are enabled
    """
    policy = evaluate(options)
    if not policy.can_export:
        raise NoExportableContentError("no exportable content: enable 3D models or 2D layers")
    return ExportOptions(
        include_3d_models=options.include_3d_models,
        include_2d=options.include_2d,
        include_animations=options.include_animations and policy.can_export_animations,
        include_shader=options.include_shader and policy.can_export_shader,
        include_effects=options.include_effects and options.include_3d_models,
        include_audio=False,
    )
