"""
pipeline.py

Responsibility: orchestrate the `build` and `imagemin` asset pipelines.

Build stages (strict order):

    INIT -> CLEAN -> IMAGES -> {CSS, JS concurrently} -> REWRITE -> (CLEANUP_MANIFEST) -> DONE

Any stage raising moves the build to FAILED: remaining stages are skipped and a
`BuildError` is raised. Nothing is rolled back; the destination may be left
partially populated. The rewrite stage is a barrier: it only starts after every
manifest fragment has been written.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from projkit.cache import ImageCache
from projkit.compressors import (
    CSS,
    IMAGES,
    JS,
    CompressResult,
    SourceTree,
    compress_css,
    compress_images,
    compress_js,
    scan_source,
)
from projkit.errors import BuildError
from projkit.fsutil import VCS_DIRS, remove_tree
from projkit.images import is_image
from projkit.manifest import load_manifests
from projkit.rewriter import RewriteResult, rewrite_references

logger = logging.getLogger(__name__)


class BuildState(str, enum.Enum):
    INIT = "init"
    CLEAN = "clean"
    IMAGES = "images"
    CSS_JS = "css+js"
    REWRITE = "rewrite"
    CLEANUP_MANIFEST = "cleanup-manifest"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildConfig:
    source_dir: Path
    dest_dir: Path
    revision_dir: Path
    cache_dir: Path
    filename_hash: bool = True
    clear_cache: bool = False


@dataclass
class BuildReport:
    state: BuildState = BuildState.INIT
    history: list[BuildState] = field(default_factory=list)
    results: dict[str, CompressResult] = field(default_factory=dict)
    rewrite: RewriteResult | None = None


def _check_output_dirs(cfg: BuildConfig) -> None:
    """
    Refuse dest or revision dirs that are the source root or one of its ancestors;
    CLEAN would delete the sources.
    """
    src = cfg.source_dir.resolve()
    for label, path in (("Destination", cfg.dest_dir), ("Revision", cfg.revision_dir)):
        resolved = path.resolve()
        if src == resolved or src.is_relative_to(resolved):
            raise BuildError(f"{label} directory {resolved} would contain the source directory {src}")


class Builder:
    """Runs one build for a fixed `BuildConfig`."""

    def __init__(self, config: BuildConfig, cache: ImageCache | None = None) -> None:
        self.config = config
        self.cache = cache or ImageCache(config.cache_dir)
        self.report = BuildReport(history=[BuildState.INIT])

    def _enter(self, state: BuildState) -> None:
        logger.info("build: %s -> %s", self.report.state.value, state.value)
        self.report.state = state
        self.report.history.append(state)

    def _clean(self) -> None:
        remove_tree(self.config.dest_dir)
        remove_tree(self.config.revision_dir)
        if self.config.clear_cache:
            self.cache.clear_all()

    async def _compress_css_js(self, tree: SourceTree) -> None:
        cfg = self.config
        css, js = await asyncio.gather(
            asyncio.to_thread(compress_css, tree, cfg.dest_dir, cfg.revision_dir, cfg.filename_hash),
            asyncio.to_thread(compress_js, tree, cfg.dest_dir, cfg.revision_dir, cfg.filename_hash),
        )
        self.report.results[CSS] = css
        self.report.results[JS] = js

    def _rewrite(self, tree: SourceTree) -> None:
        cfg = self.config
        outputs = self.report.results[CSS].written + self.report.results[JS].written
        self.report.rewrite = rewrite_references(
            manifest=load_manifests(cfg.revision_dir),
            passthrough=[(tree.root / rel, rel) for rel in tree.other],
            outputs=outputs,
            dest_dir=cfg.dest_dir,
        )

    async def run(self) -> BuildReport:
        cfg = self.config
        if not cfg.source_dir.is_dir():
            raise BuildError(f"Source directory is not accessible: {cfg.source_dir}")
        _check_output_dirs(cfg)

        try:
            self._enter(BuildState.CLEAN)
            self._clean()
            tree = scan_source(cfg.source_dir, skip_dirs=(*VCS_DIRS, cfg.dest_dir.resolve(), cfg.revision_dir.resolve()))

            self._enter(BuildState.IMAGES)
            self.report.results[IMAGES] = await asyncio.to_thread(
                compress_images, tree, cfg.dest_dir, cfg.revision_dir, cfg.filename_hash, self.cache
            )

            self._enter(BuildState.CSS_JS)
            await self._compress_css_js(tree)

            self._enter(BuildState.REWRITE)
            self._rewrite(tree)

            if not cfg.filename_hash:
                self._enter(BuildState.CLEANUP_MANIFEST)
                remove_tree(cfg.revision_dir)
        except Exception as e:
            failed_in = self.report.state
            self._enter(BuildState.FAILED)
            raise BuildError(f"Build failed during {failed_in.value}: {e}") from e

        self._enter(BuildState.DONE)
        return self.report


def run_build(config: BuildConfig, cache: ImageCache | None = None) -> BuildReport:
    return asyncio.run(Builder(config, cache).run())


def run_imagemin(
    root: str | Path,
    dest_dir: str | Path,
    cache: ImageCache,
    *,
    clear_cache: bool = False,
) -> CompressResult:
    """
    Standalone image pass over the whole working tree (excluding dest and VCS
    directories). Output keeps relative paths; no hashing, no manifest.
    """
    root_path = Path(root)
    dest = Path(dest_dir)
    if not dest.is_absolute():
        dest = root_path / dest
    if clear_cache:
        cache.clear_all()
    tree = scan_source(root_path, skip_dirs=(*VCS_DIRS, "node_modules", dest.resolve()))
    files = tuple(sorted(rel for rel in (*tree.css, *tree.js, *tree.images, *tree.other) if is_image(rel)))
    return compress_images(tree, dest, None, False, cache, files=files)
