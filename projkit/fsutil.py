"""
fsutil.py

Responsibility: deterministic file walking and small filesystem helpers shared by
template rendering and the asset pipeline.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

VCS_DIRS = frozenset({".git", ".svn", ".hg"})


def is_binary_file(path: Path) -> bool:
    """
    Best-effort: treat a file as binary if it cannot be decoded as UTF-8.
    """
    try:
        path.read_text(encoding="utf-8")
        return False
    except UnicodeDecodeError:
        return True


def iter_files(root: Path, *, skip_dirs: Iterable[str | Path] = ()) -> list[Path]:
    """
    Return all files under root, in deterministic lexicographic order
    (relative path ordering).

    `skip_dirs` holds directory names (pruned anywhere) or absolute paths
    (pruned exactly).
    """
    names = {str(s) for s in skip_dirs if not Path(s).is_absolute()}
    paths = {Path(s).resolve() for s in skip_dirs if Path(s).is_absolute()}

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        here = Path(dirpath)
        dirnames[:] = [d for d in dirnames if d not in names and (here / d).resolve() not in paths]
        for name in filenames:
            files.append(here / name)
    files.sort(key=lambda p: rel_posix(p, root))
    return files


def rel_posix(path: Path, root: Path) -> str:
    return str(path.relative_to(root)).replace(os.sep, "/")


def remove_tree(path: str | Path) -> None:
    """
    Delete a directory recursively; silently succeeds when it is absent.
    """
    p = Path(path)
    if p.is_dir():
        shutil.rmtree(p)
        logger.debug("Removed %s", p)
    elif p.exists():
        p.unlink()
