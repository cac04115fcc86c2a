"""
cache.py

Responsibility: persistent, content-addressed skip-cache for optimized images.

Entries live under `<root>/<key[:2]>/<key>` and are never evicted; only
`clear_all()` removes them. The cache sits outside any build output so it
survives the build's clean step. There is no locking: a second concurrent build
sharing the same cache is not guarded against.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def cache_key(data: bytes, salt: str = "") -> str:
    h = hashlib.sha256()
    h.update(salt.encode("utf-8"))
    h.update(b"\0")
    h.update(data)
    return h.hexdigest()


class ImageCache:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.hits = 0
        self.misses = 0

    def _entry(self, key: str) -> Path:
        return self.root / key[:2] / key

    def lookup(self, key: str) -> bytes | None:
        path = self._entry(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            self.misses += 1
            return None
        self.hits += 1
        logger.debug("Cache hit %s", key[:12])
        return data

    def store(self, key: str, data: bytes) -> None:
        path = self._entry(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".tmp-", dir=str(path.parent))
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def clear_all(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)
            logger.info("Cleared image cache at %s", self.root)
