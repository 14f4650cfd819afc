"""
Animation clips - 动作片段

A model carries one full-length ``original_clip``; users cut named frame
ranges out of it (``created_clips``).  Each cut clip gets a ``custom_id``
that director clips and effect triggers use as their reference key.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


def generate_unique_clip_id() -> str:
    """``clip_<ms>_<rand>``; independent of any runtime clip uuid."""
    return f"clip_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def generate_unique_display_name(base_name: str, existing_names: Sequence[str]) -> str:
    """Append ``_1``, ``_2``... until the name is unused.

    >>> generate_unique_display_name('Attack', ['Attack', 'Attack_1'])
    'Attack_2'
    """
    if base_name not in existing_names:
        return base_name
    counter = 1
    while f"{base_name}_{counter}" in existing_names:
        counter += 1
    return f"{base_name}_{counter}"


@dataclass
class KeyframeTrack:
    """One animated property: ``times[i]`` owns ``values[i*value_size:(i+1)*value_size]``."""
    name: str
    times: List[float] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    value_size: int = 1


@dataclass
class AnimationClip:
    name: str
    duration: float
    tracks: List[KeyframeTrack] = field(default_factory=list)
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class IdentifiableClip(AnimationClip):
    """AnimationClip plus the identity/range data the editor attaches to cut clips."""
    custom_id: Optional[str] = None
    display_name: Optional[str] = None
    start_frame: Optional[int] = None
    end_frame: Optional[int] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name


def create_sub_clip(
    source_clip: AnimationClip,
    name: str,
    start_frame: int,
    end_frame: int,
    fps: float = 30,
    existing_names: Sequence[str] = (),
) -> IdentifiableClip:
    """
    从原始片段切出 [start_frame, end_frame] 区间

    Keeps every keyframe whose time lies inside the range, rebases the
    times to start at 0 and gives the result a fresh ``custom_id``.

    Raises:
        ValueError: ``end_frame`` is not after ``start_frame``
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    if end_frame <= start_frame:
        raise ValueError(f"end frame {end_frame} must be after start frame {start_frame}")

    start_time = start_frame / fps
    end_time = end_frame / fps

    new_tracks: List[KeyframeTrack] = []
    for track in source_clip.tracks:
        size = track.value_size
        times: List[float] = []
        values: List[float] = []
        for i, t in enumerate(track.times):
            if start_time <= t <= end_time:
                times.append(t - start_time)
                values.extend(track.values[i * size:(i + 1) * size])
        if times:
            new_tracks.append(KeyframeTrack(track.name, times, values, size))

    return IdentifiableClip(
        name=name,
        duration=(end_frame - start_frame) / fps,
        tracks=new_tracks,
        custom_id=generate_unique_clip_id(),
        display_name=generate_unique_display_name(name, existing_names),
        start_frame=start_frame,
        end_frame=end_frame,
    )
