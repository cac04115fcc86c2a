"""
renderer.py

Responsibility: turn a fetched template checkout into a project directory.

A template is a directory tree plus an optional `template.yml` whose
`variables` mapping supplies default render values. Files are visited in
sorted order; VCS metadata and `template.yml` itself never reach the project.
Text files containing Jinja2 markers are rendered (undefined names are errors),
everything else is copied with its permissions.

Template fetching and CLI parsing live elsewhere.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml
from jinja2 import Environment, StrictUndefined

from projkit.errors import RenderError
from projkit.fsutil import VCS_DIRS, is_binary_file, iter_files, rel_posix

TEMPLATE_META_NAME = "template.yml"
_MARKERS = ("{{", "{%", "{#")


@dataclass(frozen=True)
class RenderResult:
    rendered_files: int
    copied_files: int


def load_template_variables(template_dir: str | Path) -> dict[str, Any]:
    """
    Read the optional `variables` mapping from `template.yml` at the template root.
    """
    meta = Path(template_dir) / TEMPLATE_META_NAME
    if not meta.exists():
        return {}
    try:
        data = yaml.safe_load(meta.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise RenderError(f"Invalid {TEMPLATE_META_NAME}: {e}") from e
    variables = data.get("variables") if isinstance(data, dict) else None
    if variables is None:
        return {}
    if not isinstance(variables, dict):
        raise RenderError(f"`variables` in {TEMPLATE_META_NAME} must be a mapping.")
    return dict(sorted(variables.items(), key=lambda kv: str(kv[0])))


@dataclass
class ProjectTemplate:
    root: Path
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def open(cls, template_dir: str | Path) -> "ProjectTemplate":
        root = Path(template_dir).resolve()
        if not root.is_dir():
            raise RenderError(f"Template directory not found: {root}")
        return cls(root=root, variables=load_template_variables(root))

    def files(self) -> Iterator[tuple[Path, str]]:
        """Yield `(path, posix relative path)` for every file that belongs in a project."""
        for path in iter_files(self.root, skip_dirs=VCS_DIRS):
            rel = rel_posix(path, self.root)
            if rel != TEMPLATE_META_NAME:
                yield path, rel

    def render_values(self, context: dict[str, Any]) -> dict[str, Any]:
        # caller values override template defaults; `variables` stays the raw mapping
        return {**self.variables, "variables": dict(self.variables), **context}

    def render_into(self, destination_dir: str | Path, context: dict[str, Any]) -> RenderResult:
        env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)
        values = self.render_values(context)
        dst_root = Path(destination_dir).resolve()

        rendered = copied = 0
        for src, rel in self.files():
            dst = dst_root / rel
            dst.parent.mkdir(parents=True, exist_ok=True)
            if _render_file(env, src, dst, rel, values):
                rendered += 1
            else:
                copied += 1
        return RenderResult(rendered_files=rendered, copied_files=copied)


def _render_file(env: Environment, src: Path, dst: Path, rel: str, values: dict[str, Any]) -> bool:
    """Write one project file; True when it went through Jinja2."""
    if is_binary_file(src):
        shutil.copy2(src, dst)
        return False
    text = src.read_text(encoding="utf-8")
    if not any(marker in text for marker in _MARKERS):
        shutil.copy2(src, dst)
        return False
    try:
        out = env.from_string(text).render(**values)
    except Exception as e:  # noqa: BLE001 - surface as RenderError
        raise RenderError(f"Failed rendering template file: {rel}") from e
    dst.write_text(out, encoding="utf-8", newline="\n")
    shutil.copystat(src, dst)
    return True


def render_template_dir(
    *,
    template_dir: str | Path,
    destination_dir: str | Path,
    context: dict[str, Any],
) -> RenderResult:
    """
    Render `template_dir` into `destination_dir`. `template.yml` variables are
    available to every file; keys in `context` take precedence.
    """
    return ProjectTemplate.open(template_dir).render_into(destination_dir, context)
