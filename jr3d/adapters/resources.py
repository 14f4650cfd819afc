from __future__ import annotations

import http.client
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..project.errors import RemoteFetchError

FetchOutcome = Tuple[str, Union[bytes, RemoteFetchError]]


class IResourceFetcher(ABC):
    """Reads public-library effect resources by path relative to a resource root."""

    @abstractmethod
    def fetch(self, rel_path: str) -> bytes:  # pragma: no cover - interface
        """Return the resource bytes or raise RemoteFetchError."""
        raise NotImplementedError

    def fetch_all(self, rel_paths: Sequence[str], *, max_workers: int = 1) -> List[FetchOutcome]:
        """Fetch every path; outcomes come back in input order, failures included."""
        if max_workers <= 1 or len(rel_paths) <= 1:
            return [(p, self._fetch_safe(p)) for p in rel_paths]
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(self._fetch_safe, rel_paths))
        return list(zip(rel_paths, results))

    def _fetch_safe(self, rel_path: str) -> Union[bytes, RemoteFetchError]:
        try:
            return self.fetch(rel_path)
        except RemoteFetchError as e:
            return e


class FileSystemResourceFetcher(IResourceFetcher):
    """Resource root is a local directory (e.g. ``public/effekseer``)."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def fetch(self, rel_path: str) -> bytes:
        path = self._root / rel_path.lstrip('/')
        try:
            return path.read_bytes()
        except OSError as e:
            raise RemoteFetchError(f"cannot read resource: {e}", path=rel_path) from e


class HttpResourceFetcher(IResourceFetcher):
    """Resource root is an http(s) base URL."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self._base = base_url.rstrip('/') + '/'
        self._timeout = timeout

    def fetch(self, rel_path: str) -> bytes:
        url = urllib.parse.urljoin(self._base, urllib.parse.quote(rel_path.lstrip('/')))
        req = urllib.request.Request(url, method='GET')
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                return resp.read()
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise RemoteFetchError(f"fetch failed: {e}", path=rel_path) from e


def make_fetcher(root: Optional[str], timeout: float = 30.0) -> Optional[IResourceFetcher]:
    if not root:
        return None
    if root.startswith(('http://', 'https://')):
        return HttpResourceFetcher(root, timeout=timeout)
    return FileSystemResourceFetcher(Path(root))
