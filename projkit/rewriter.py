"""
rewriter.py

Responsibility: rewrite textual references to original asset paths with their
revisioned counterparts.

Matching rules:
- A reference matches only on path boundaries: the characters immediately
  before and after it must not be filename characters, so `css/a.css` does not
  match inside `css/aa.css` or `xcss/a.css`.
- A reference carrying a directory prefix (`../css/a.css`, `/css/a.css`) is
  resolved against the referencing file (a leading `/` means the source root)
  and rewritten only when it lands on the manifest key, so `vendor/css/a.css`
  is left alone.
- Longer originals are tried first so nested names resolve to the most specific key.
- Binary files are copied byte-for-byte.
"""

from __future__ import annotations

import logging
import posixpath
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from projkit.errors import BuildError
from projkit.fsutil import is_binary_file

logger = logging.getLogger(__name__)

_NAME_CHARS = r"A-Za-z0-9_.\-"
_REF_STOP = frozenset(" \t\r\n\"'()<>=,;`")


@dataclass(frozen=True)
class RewriteResult:
    rewritten_files: int
    copied_files: int
    replacements: int


def compile_manifest(manifest: dict[str, str]) -> re.Pattern[str] | None:
    if not manifest:
        return None
    alternatives = "|".join(re.escape(k) for k in sorted(manifest, key=lambda k: (-len(k), k)))
    return re.compile(rf"(?<![{_NAME_CHARS}])(?:{alternatives})(?![{_NAME_CHARS}])")


def resolve_reference(ref: str, referrer: str) -> str:
    if ref.startswith("/"):
        return posixpath.normpath(ref.lstrip("/"))
    return posixpath.normpath(posixpath.join(posixpath.dirname(referrer), ref))


def _reference_start(text: str, pos: int) -> int:
    while pos > 0 and text[pos - 1] not in _REF_STOP:
        pos -= 1
    return pos


def rewrite_text(
    text: str,
    manifest: dict[str, str],
    pattern: re.Pattern[str] | None = None,
    *,
    referrer: str = "",
) -> tuple[str, int]:
    """
    Replace every occurrence of a manifest key referenced from `referrer` (the
    POSIX path of the file, relative to the source root). Returns (new text,
    number of replacements).
    """
    if pattern is None:
        pattern = compile_manifest(manifest)
    if pattern is None:
        return text, 0

    count = 0

    def replace(m: re.Match[str]) -> str:
        nonlocal count
        key = m.group(0)
        start = _reference_start(text, m.start())
        if start != m.start() and resolve_reference(text[start : m.end()], referrer) != key:
            return key
        count += 1
        return manifest[key]

    return pattern.sub(replace, text), count


def verify_outputs(manifest: dict[str, str], dest_dir: Path) -> None:
    missing = sorted(v for v in manifest.values() if not (dest_dir / v).is_file())
    if missing:
        raise BuildError(f"Manifest references files missing from {dest_dir}: {', '.join(missing)}")


def rewrite_references(
    *,
    manifest: dict[str, str],
    passthrough: list[tuple[Path, str]],
    outputs: list[str],
    dest_dir: str | Path,
) -> RewriteResult:
    """
    Rewrite references in place for compressed outputs already in dest_dir, and
    write rewritten copies of passthrough files `(source path, relative path)`
    into dest_dir.
    """
    dst = Path(dest_dir)
    verify_outputs(manifest, dst)
    pattern = compile_manifest(manifest)

    rewritten = copied = replacements = 0

    for rel in outputs:
        path = dst / rel
        text, n = rewrite_text(path.read_bytes().decode("utf-8"), manifest, pattern, referrer=rel)
        if n:
            path.write_bytes(text.encode("utf-8"))
            rewritten += 1
            replacements += n

    for src_path, rel in passthrough:
        dst_path = dst / rel
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        if is_binary_file(src_path):
            shutil.copy2(src_path, dst_path)
            copied += 1
            continue
        text, n = rewrite_text(src_path.read_bytes().decode("utf-8"), manifest, pattern, referrer=rel)
        dst_path.write_bytes(text.encode("utf-8"))
        shutil.copystat(src_path, dst_path)
        rewritten += 1
        replacements += n

    logger.info("rewrite: %d text file(s), %d binary, %d reference(s)", rewritten, copied, replacements)
    return RewriteResult(rewritten_files=rewritten, copied_files=copied, replacements=replacements)
