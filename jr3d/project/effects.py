"""
Effect asset resolution - 特效资源解析

Two stages:

1. ``resolve_effect_assets`` gathers the bytes an effect needs (the only
   step that may touch the network or disk).
2. ``build_effect_dto`` turns an effect plus its resolved archive paths
   into a record; it does no I/O.

``uploaded`` effects already hold their files in memory; each goes to
``assets/effects/<modelId>/<effectId>/<fileName>`` with the folder
structure of the upload flattened.  ``public`` effects fetch the main
file and every declared dependency from the resource root; a failed fetch
drops that one resource and leaves a warning.
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..adapters.resources import IResourceFetcher
from ..domain.effects import EffectItem, EffectSourceType
from ..domain.model import ModelInstance
from .errors import RemoteFetchError
from .serializers import AssetEntry
from .state import SerializableEffect, SerializableEffectTrigger

logger = logging.getLogger(__name__)

EFFECT_ASSET_DIR = "assets/effects"


def effect_folder(model_id: str, effect_id: str) -> str:
    return f"{EFFECT_ASSET_DIR}/{model_id}/{effect_id}"


@dataclass
class ResolvedEffectAssets:
    effect_id: str
    entries: List[AssetEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def resource_paths(self) -> List[str]:
        return [e.path for e in self.entries]

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def public_resource_plan(effect: EffectItem) -> List[Tuple[str, str]]:
    """
    ``(fetch path, archive name)`` for the main file and its dependencies.

    Dependencies are relative to the effect's folder unless they start with
    ``/`` (relative to the resource root).  Archive names keep the path
    relative to the effect's folder, so ``Texture/glow.png`` stays nested;
    anything outside that folder is flattened to its file name.
    """
    if not effect.path:
        return []
    main = effect.path.lstrip('/')
    base_dir = posixpath.dirname(main)

    plan: List[Tuple[str, str]] = [(main, posixpath.basename(main))]
    seen = {plan[0][1]}
    for dep in effect.dependencies:
        if not dep:
            continue
        if dep.startswith('/'):
            fetch = posixpath.normpath(dep.lstrip('/'))
        else:
            fetch = posixpath.normpath(posixpath.join(base_dir, dep))
        name = posixpath.relpath(fetch, base_dir) if base_dir else fetch
        if name.startswith('..'):
            name = posixpath.basename(fetch)
        if name in seen:
            continue
        seen.add(name)
        plan.append((fetch, name))
    return plan


def resolve_effect_assets(
    model_id: str,
    effect: EffectItem,
    fetcher: Optional[IResourceFetcher] = None,
    max_workers: int = 1,
) -> ResolvedEffectAssets:
    """
    收集特效需要打包的资源

    Never raises for a single missing resource.  Entry order follows the
    input order (files of the upload, or main file then dependencies), not
    fetch completion order.
    """
    folder = effect_folder(model_id, effect.id)
    resolved = ResolvedEffectAssets(effect.id)

    if effect.source_type is EffectSourceType.UPLOADED:
        seen = set()
        for f in effect.raw_files:
            name = f.recorded_path.replace('\\', '/').split('/')[-1]
            if name in seen:
                logger.debug("effect %s: duplicate upload name %s skipped", effect.id, name)
                continue
            seen.add(name)
            resolved.entries.append(AssetEntry(f"{folder}/{name}", f))
        if not resolved.entries:
            resolved.warn(f"effect {effect.name!r}: uploaded effect has no files")
        return resolved

    plan = public_resource_plan(effect)
    if not plan:
        resolved.warn(f"effect {effect.name!r}: public effect has no path")
        return resolved
    if fetcher is None:
        resolved.warn(f"effect {effect.name!r}: no resource root configured, resources omitted")
        return resolved

    outcomes = fetcher.fetch_all([fetch for fetch, _ in plan], max_workers=max_workers)
    for (fetch, name), (_, result) in zip(plan, outcomes):
        if isinstance(result, RemoteFetchError):
            resolved.warn(f"effect {effect.name!r}: {result}")
            continue
        resolved.entries.append(AssetEntry(f"{folder}/{name}", result))
    return resolved


def build_effect_dto(effect: EffectItem, model: ModelInstance,
                     resource_paths: Sequence[str]) -> SerializableEffect:
    """Bones are recorded by name; skeleton uuids change on every load."""
    return SerializableEffect(
        id=effect.id,
        name=effect.name,
        path=effect.path,
        source_type=effect.source_type.value,
        position=tuple(effect.position),
        rotation=tuple(effect.rotation),
        scale=tuple(effect.scale),
        speed=effect.speed,
        is_looping=effect.is_looping,
        is_visible=effect.is_visible,
        bound_bone_name=model.bone_name(effect.bound_bone_uuid),
        triggers=[
            SerializableEffectTrigger(
                id=t.id,
                clip_id=t.clip_id,
                clip_name=t.clip_name,
                frame=t.frame,
                duration=t.duration,
            )
            for t in effect.triggers
        ],
        color=effect.color,
        resource_paths=list(resource_paths),
    )
