"""Adapter interfaces and default implementations for pluggable I/O backends.

Currently provides:
- images: byte-source materialization (bytes, BinaryFile, data URL, pygame.Surface)
- resources: IResourceFetcher for public effect resources (filesystem / http)
"""

from .images import is_data_url, parse_data_url, read_bytes, to_data_url  # noqa: F401
from .resources import (  # noqa: F401
    IResourceFetcher,
    FileSystemResourceFetcher,
    HttpResourceFetcher,
    make_fetcher,
)
