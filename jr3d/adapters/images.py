"""
Byte sources - 字节来源

Serializers hand the packager whatever the live object holds: raw bytes,
uploaded ``BinaryFile`` handles, ``data:`` URLs from the 2D editor, or
pygame surfaces from canvas tools.  Everything is turned into bytes here.
"""
from __future__ import annotations

import base64
import binascii
import io
from typing import Any, Optional, Tuple
from urllib.parse import unquote_to_bytes

import pygame

from ..domain.files import BinaryFile, file_extension

_EXT_BY_MIME = {
    'image/png': 'png',
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/bmp': 'bmp',
    'image/x-tga': 'tga',
}
_MIME_BY_EXT = {ext: mime for mime, ext in _EXT_BY_MIME.items()}
_MIME_BY_EXT['jpg'] = _MIME_BY_EXT['jpeg'] = 'image/jpeg'


def is_data_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith('data:')


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """Return ``(mime_type, payload)``; raises ValueError on malformed input."""
    if not is_data_url(url) or ',' not in url:
        raise ValueError("not a data URL")
    header, payload = url[5:].split(',', 1)
    parts = header.split(';')
    mime = parts[0] or 'text/plain'
    if 'base64' in parts[1:]:
        try:
            return mime, base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"bad base64 payload: {e}") from e
    return mime, unquote_to_bytes(payload)


def to_data_url(data: bytes, file_name: str) -> str:
    mime = _MIME_BY_EXT.get(file_extension(file_name, ''), 'application/octet-stream')
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def encode_surface(surface: pygame.Surface) -> bytes:
    """Encode a canvas surface as PNG."""
    buf = io.BytesIO()
    pygame.image.save(surface, buf, "png")
    return buf.getvalue()


def source_extension(source: Any, default: str = 'png') -> str:
    """File extension the packaged copy of ``source`` should carry."""
    if isinstance(source, BinaryFile):
        return file_extension(source.name, default)
    if is_data_url(source):
        mime = source[5:].split(';', 1)[0].split(',', 1)[0]
        return _EXT_BY_MIME.get(mime.lower(), default)
    if isinstance(source, pygame.Surface):
        return 'png'
    return default


def is_extractable(source: Any) -> bool:
    """True when ``source`` holds bytes that belong inside the archive."""
    return isinstance(source, (bytes, bytearray, BinaryFile, pygame.Surface)) or is_data_url(source)


def read_bytes(source: Any) -> Optional[bytes]:
    """Materialize a byte source; ``None`` when it holds no bytes."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, BinaryFile):
        return source.data
    if isinstance(source, pygame.Surface):
        return encode_surface(source)
    if is_data_url(source):
        return parse_data_url(source)[1]
    if isinstance(source, str):
        return source.encode('utf-8')
    return None
