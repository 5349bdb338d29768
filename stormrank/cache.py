"""
Source cache (download once, reuse while fresh)
===============================================

The Storm Data file is ~50 MB compressed, so it is downloaded once and kept
in a cache directory. Next to each cached file sits a JSON sidecar
(`<file>.meta.json`) with the source URL, download time and SHA-256.

A cached file is reused only when:
- the file and its sidecar exist,
- the file's checksum matches the sidecar, and
- it is younger than `ttl_hours` (if a TTL is set).
Anything else triggers a fresh download.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import hashlib
import json
import os
import tempfile
import time
from urllib.parse import unquote, urlparse
import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

log = structlog.get_logger(__name__)

class SourceUnavailableError(RuntimeError):
    """The source file could not be downloaded."""

def sha256_file(path: str, chunk_size: int = 1 << 20) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()

@dataclass
class SourceCache:
    cache_dir: str
    ttl_hours: Optional[float] = None
    timeout: float = 60.0

    def path_for(self, url: str) -> str:
        name = os.path.basename(unquote(urlparse(url).path)) or "source.csv"
        return os.path.join(self.cache_dir, name)

    def _meta_path(self, path: str) -> str:
        return path + ".meta.json"

    def is_fresh(self, url: str) -> bool:
        path = self.path_for(url)
        meta_path = self._meta_path(path)
        if not (os.path.exists(path) and os.path.exists(meta_path)):
            return False
        try:
            with open(meta_path, "r", encoding="utf-8") as f:
                meta = json.load(f)
        except (OSError, ValueError):
            log.warning("unreadable cache metadata", path=meta_path)
            return False
        if meta.get("url") != url:
            return False
        if self.ttl_hours is not None:
            try:
                downloaded_at = float(meta.get("downloaded_at", 0))
            except (TypeError, ValueError):
                log.warning("invalid cache timestamp", path=meta_path)
                return False
            age_h = (time.time() - downloaded_at) / 3600.0
            if age_h > self.ttl_hours:
                log.info("cache entry expired", path=path, age_hours=round(age_h, 2))
                return False
        if sha256_file(path) != meta.get("sha256"):
            log.warning("cache checksum mismatch", path=path)
            return False
        return True

    def fetch(self, url: str) -> str:
        """Return a local path for `url`, downloading only if the cache is stale."""
        path = self.path_for(url)
        if self.is_fresh(url):
            log.info("using cached source", path=path)
            return path

        os.makedirs(self.cache_dir, exist_ok=True)
        log.info("downloading source", url=url, path=path)
        try:
            self._download(url, path)
        except (httpx.HTTPError, OSError) as e:
            raise SourceUnavailableError(f"Could not download {url}: {e}") from e

        meta = {"url": url, "downloaded_at": time.time(), "sha256": sha256_file(path)}
        with open(self._meta_path(path), "w", encoding="utf-8") as f:
            json.dump(meta, f, indent=2)
        return path

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    def _download(self, url: str, path: str) -> None:
        """Stream `url` into a temp file, then move it into place."""
        fd, tmp = tempfile.mkstemp(dir=self.cache_dir, suffix=".part")
        try:
            with os.fdopen(fd, "wb") as out:
                with httpx.stream("GET", url, timeout=self.timeout, follow_redirects=True) as resp:
                    resp.raise_for_status()
                    for chunk in resp.iter_bytes():
                        out.write(chunk)
            os.replace(tmp, path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
