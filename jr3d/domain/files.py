from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


_MIME_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'tga': 'image/x-tga',
    'fbx': 'model/fbx',
}


def guess_mime_type(file_name: str) -> str:
    ext = file_name.rsplit('.', 1)[-1].lower() if '.' in file_name else ''
    return _MIME_TYPES.get(ext, 'application/octet-stream')


def file_extension(file_name: str, default: str = 'png') -> str:
    if '.' not in file_name:
        return default
    return file_name.rsplit('.', 1)[-1].lower() or default


@dataclass
class BinaryFile:
    """In-memory binary handle (uploaded texture, FBX original, effect resource).

    ``relative_path`` keeps the folder structure recorded at upload time, e.g.
    ``"Laser01/Texture/glow.png"``; ``name`` is always the bare file name.
    """
    name: str
    data: bytes
    mime_type: str = ""
    relative_path: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.mime_type:
            self.mime_type = guess_mime_type(self.name)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def recorded_path(self) -> str:
        return self.relative_path or self.name
