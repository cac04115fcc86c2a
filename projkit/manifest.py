"""
manifest.py

Responsibility: content-hashed revision names and the per-class revision manifest.

A manifest maps an original path (POSIX, relative to the source root) to its
revisioned path, e.g. `css/a.css` -> `css/a-1b2c3d4e5f.css`. Each asset class
writes its own fragment to `{revision_dir}/{class}/rev-manifest.json`; the
reference rewriter reads the union of all fragments.
"""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from projkit.errors import BuildError

MANIFEST_NAME = "rev-manifest.json"
HASH_LENGTH = 10


def content_hash(data: bytes, length: int = HASH_LENGTH) -> str:
    """Short hex digest used in revisioned filenames."""
    return hashlib.md5(data).hexdigest()[:length]


def revisioned_name(rel_path: str, data: bytes) -> str:
    """
    Insert the content hash before the final suffix: `dir/name.ext` -> `dir/name-<hash>.ext`.
    """
    p = PurePosixPath(rel_path)
    return str(p.with_name(f"{p.stem}-{content_hash(data)}{p.suffix}"))


def _write_json_atomic(path: Path, data: dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".rev-", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
            fh.write("\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


@dataclass
class RevisionManifest:
    asset_class: str
    entries: dict[str, str] = field(default_factory=dict)

    def add(self, original: str, revisioned: str) -> None:
        self.entries[original] = revisioned

    def path_in(self, revision_dir: str | Path) -> Path:
        return Path(revision_dir) / self.asset_class / MANIFEST_NAME

    def write(self, revision_dir: str | Path) -> Path:
        """
        Persist the fragment. The file is renamed into place so readers never
        observe a partially written manifest.
        """
        path = self.path_in(revision_dir)
        _write_json_atomic(path, self.entries)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "RevisionManifest":
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise BuildError(f"Cannot read revision manifest: {p}") from e
        if not isinstance(data, dict):
            raise BuildError(f"Revision manifest must be a JSON object: {p}")
        return cls(asset_class=p.parent.name, entries={str(k): str(v) for k, v in data.items()})


def load_manifests(revision_dir: str | Path) -> dict[str, str]:
    """
    Union of every class fragment under revision_dir (sorted class order).
    """
    root = Path(revision_dir)
    merged: dict[str, str] = {}
    if not root.is_dir():
        return merged
    for path in sorted(root.glob(f"*/{MANIFEST_NAME}")):
        merged.update(RevisionManifest.load(path).entries)
    return merged
