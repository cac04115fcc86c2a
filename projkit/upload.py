"""
upload.py

Responsibility: the `www1` command, pushing files to a remote receiver.

The receiver is a plain HTTP endpoint accepting one multipart POST per file:
field `file` carries the content and form field `to` the absolute remote path.
Remote paths are built as `<root>/<cwd name>/<path relative to cwd>`;
`ignore_cwd` drops the cwd name and `ignore_dir` keeps only the file name.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

import requests

from projkit.context import Context
from projkit.errors import ConfigError, UploadError
from projkit.fsutil import VCS_DIRS, iter_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadTarget:
    receiver: str
    root: str = "/"


@dataclass
class UploadReport:
    uploaded: list[str] = field(default_factory=list)


def resolve_target(ctx: Context, *, ignore_config: bool) -> UploadTarget:
    receiver = None if ignore_config else ctx.project_config.upload.receiver
    root = None if ignore_config else ctx.project_config.upload.root
    receiver = receiver or ctx.user_config.get("upload.receiver")
    root = root or ctx.user_config.get("upload.root") or "/"
    if not receiver:
        raise ConfigError("No upload receiver configured (set `upload.receiver` with `projkit user --set`)")
    return UploadTarget(receiver=str(receiver), root=str(root))


def collect_files(ctx: Context, files: list[str], *, ignore_config: bool) -> list[Path]:
    if files:
        roots = [Path(f) if Path(f).is_absolute() else ctx.cwd / f for f in files]
    else:
        dest = None if ignore_config else ctx.cwd / ctx.project_config.build.dest
        roots = [dest if dest is not None and dest.is_dir() else ctx.cwd]

    out: list[Path] = []
    for root in roots:
        if root.is_dir():
            out.extend(iter_files(root, skip_dirs=VCS_DIRS))
        elif root.is_file():
            out.append(root)
        else:
            raise UploadError(f"No such file or directory: {root}")
    return out


def remote_path(path: Path, ctx: Context, target: UploadTarget, *, ignore_cwd: bool, ignore_dir: bool) -> str:
    try:
        rel = path.resolve().relative_to(ctx.cwd).as_posix()
    except ValueError:
        rel = path.name
    if ignore_dir:
        rel = posixpath.basename(rel)
    parts = [target.root.rstrip("/") or "/"]
    if not ignore_cwd:
        parts.append(ctx.cwd.name)
    parts.append(rel)
    return posixpath.join(*parts)


def upload_files(
    ctx: Context,
    files: list[str],
    *,
    ignore_config: bool = False,
    ignore_cwd: bool = False,
    ignore_dir: bool = False,
    timeout: float = 30,
) -> UploadReport:
    target = resolve_target(ctx, ignore_config=ignore_config)
    report = UploadReport()
    for path in collect_files(ctx, files, ignore_config=ignore_config):
        to = remote_path(path, ctx, target, ignore_cwd=ignore_cwd, ignore_dir=ignore_dir)
        try:
            with path.open("rb") as fh:
                r = requests.post(target.receiver, data={"to": to}, files={"file": (path.name, fh)}, timeout=timeout)
        except requests.RequestException as e:
            raise UploadError(f"Upload of {path} failed: {e}") from e
        if r.status_code >= 400:
            raise UploadError(f"Receiver rejected {path} -> {to}: HTTP {r.status_code} {r.text.strip()}")
        logger.info("%s >> %s", path, to)
        report.uploaded.append(to)
    return report
