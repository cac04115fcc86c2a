"""
compressors.py

Responsibility: the three asset compressors (CSS, JS, images) and the source
tree partition they work from.

Every compressor shares one contract: read the class's files from the source
root, write compressed output to `{dest}/{class dir}/...` (relative structure
preserved) and write a manifest fragment to the revision directory. With
filename hashing enabled the output names embed the content hash; otherwise
output names equal source names and the fragment is empty.

A missing class directory yields an empty result. Any other failure propagates
to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable

import rcssmin
import rjsmin

from projkit.cache import ImageCache, cache_key
from projkit.fsutil import iter_files, rel_posix
from projkit.images import IMAGE_SUFFIXES, OPTIMIZER_VERSION, optimize_image
from projkit.manifest import RevisionManifest, revisioned_name

logger = logging.getLogger(__name__)

CSS = "css"
JS = "js"
IMAGES = "images"

# asset class -> (top-level source directory, accepted suffixes)
ASSET_CLASSES: dict[str, tuple[str, tuple[str, ...]]] = {
    CSS: ("css", (".css",)),
    JS: ("js", (".js",)),
    IMAGES: ("images", IMAGE_SUFFIXES),
}


@dataclass(frozen=True)
class SourceTree:
    """Files under the source root (POSIX relative paths), partitioned by asset class."""

    root: Path
    css: tuple[str, ...] = ()
    js: tuple[str, ...] = ()
    images: tuple[str, ...] = ()
    other: tuple[str, ...] = ()

    def files(self, asset_class: str) -> tuple[str, ...]:
        return getattr(self, asset_class)


def classify(rel_path: str) -> str | None:
    parts = PurePosixPath(rel_path).parts
    if len(parts) < 2:
        return None
    for asset_class, (top, suffixes) in ASSET_CLASSES.items():
        if parts[0] == top and rel_path.lower().endswith(suffixes):
            return asset_class
    return None


def scan_source(source_dir: str | Path, *, skip_dirs: tuple[str | Path, ...] = ()) -> SourceTree:
    root = Path(source_dir)
    buckets: dict[str, list[str]] = {CSS: [], JS: [], IMAGES: [], "other": []}
    if root.is_dir():
        for path in iter_files(root, skip_dirs=skip_dirs):
            rel = rel_posix(path, root)
            buckets[classify(rel) or "other"].append(rel)
    return SourceTree(root=root, **{k: tuple(v) for k, v in buckets.items()})


@dataclass
class CompressResult:
    asset_class: str
    manifest: RevisionManifest
    written: list[str] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0
    bytes_in: int = 0
    bytes_out: int = 0


def _emit(
    result: CompressResult,
    *,
    rel: str,
    data: bytes,
    dest_dir: Path,
    filename_hash: bool,
) -> None:
    out_rel = revisioned_name(rel, data) if filename_hash else rel
    out_path = dest_dir / out_rel
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    result.written.append(out_rel)
    result.bytes_out += len(data)
    if filename_hash:
        result.manifest.add(rel, out_rel)


def _compress_text(
    asset_class: str,
    minify: Callable[[str], str],
    tree: SourceTree,
    dest_dir: str | Path,
    revision_dir: str | Path,
    filename_hash: bool,
) -> CompressResult:
    result = CompressResult(asset_class=asset_class, manifest=RevisionManifest(asset_class))
    for rel in tree.files(asset_class):
        source = (tree.root / rel).read_text(encoding="utf-8")
        result.bytes_in += len(source.encode("utf-8"))
        data = minify(source).encode("utf-8")
        _emit(result, rel=rel, data=data, dest_dir=Path(dest_dir), filename_hash=filename_hash)
    result.manifest.write(revision_dir)
    logger.info("%s: %d file(s), %d -> %d bytes", asset_class, len(result.written), result.bytes_in, result.bytes_out)
    return result


def minify_css(source: str) -> str:
    return rcssmin.cssmin(source, keep_bang_comments=True)


def minify_js(source: str) -> str:
    return rjsmin.jsmin(source, keep_bang_comments=True)


def compress_css(
    tree: SourceTree, dest_dir: str | Path, revision_dir: str | Path, filename_hash: bool
) -> CompressResult:
    return _compress_text(CSS, minify_css, tree, dest_dir, revision_dir, filename_hash)


def compress_js(
    tree: SourceTree, dest_dir: str | Path, revision_dir: str | Path, filename_hash: bool
) -> CompressResult:
    return _compress_text(JS, minify_js, tree, dest_dir, revision_dir, filename_hash)


def optimize_cached(rel: str, data: bytes, cache: ImageCache) -> tuple[bytes, bool]:
    """
    Return (optimized bytes, cache hit). The optimizer only runs on a miss.
    """
    key = cache_key(data, OPTIMIZER_VERSION)
    cached = cache.lookup(key)
    if cached is not None:
        return cached, True
    out = optimize_image(PurePosixPath(rel).suffix, data)
    cache.store(key, out)
    return out, False


def compress_images(
    tree: SourceTree,
    dest_dir: str | Path,
    revision_dir: str | Path | None,
    filename_hash: bool,
    cache: ImageCache,
    *,
    files: tuple[str, ...] | None = None,
) -> CompressResult:
    """
    Optimize images with the content-addressed cache. A cache hit skips the
    optimizer but still produces the output file and manifest entry.

    `files` overrides the image partition (used by the standalone imagemin pass);
    `revision_dir=None` skips writing a fragment.
    """
    result = CompressResult(asset_class=IMAGES, manifest=RevisionManifest(IMAGES))
    for rel in tree.images if files is None else files:
        data = (tree.root / rel).read_bytes()
        result.bytes_in += len(data)
        out, hit = optimize_cached(rel, data, cache)
        if hit:
            result.cache_hits += 1
        else:
            result.cache_misses += 1
        _emit(result, rel=rel, data=out, dest_dir=Path(dest_dir), filename_hash=filename_hash)
    if revision_dir is not None:
        result.manifest.write(revision_dir)
    logger.info(
        "images: %d file(s), %d cached, %d -> %d bytes",
        len(result.written),
        result.cache_hits,
        result.bytes_in,
        result.bytes_out,
    )
    return result
