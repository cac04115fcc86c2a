"""
scaffold.py

Responsibility: the `create` flow (fetch template -> prepare target -> render).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from projkit.context import Context, Outcome
from projkit.fsutil import remove_tree
from projkit.renderer import render_template_dir
from projkit.templates import DEFAULT_TEMPLATE, TemplateSource, TemplateStore

logger = logging.getLogger(__name__)


def _build_context(ctx: Context, project_name: str, template_name: str) -> dict[str, Any]:
    # template.yml variables are merged in by the renderer
    return {
        "project_name": project_name,
        "template_name": template_name,
        "author": ctx.user_config.get("user.name") or ctx.user_config.get("github.username") or "",
    }


def _check_target(ctx: Context, target: Path, *, force: bool) -> Outcome:
    if target.exists() and not target.is_dir():
        return Outcome.failure(f"{target} exists and is not a directory")
    if target.is_dir() and any(target.iterdir()):
        if not force and not ctx.confirm(f"{target} is not empty. Overwrite?"):
            return Outcome.failure("declined to overwrite existing directory")
    return Outcome.success()


def _empty_dir(target: Path) -> None:
    if target.is_dir():
        for child in list(target.iterdir()):
            remove_tree(child)
    target.mkdir(parents=True, exist_ok=True)


def create_project(
    ctx: Context,
    project_name: str | None,
    template_name: str | None = None,
    *,
    offline: bool = False,
    force: bool = False,
    store: TemplateStore | None = None,
) -> Outcome:
    name = (project_name or "").strip()
    if not name:
        return Outcome.failure("project name is required")

    template = template_name or ctx.user_config.get("templates.default") or DEFAULT_TEMPLATE
    target = (ctx.cwd / name).resolve()

    checked = _check_target(ctx, target, force=force)
    if not checked.ok:
        return checked

    if store is None:
        store = TemplateStore(ctx.templates_dir, TemplateSource.from_user_config(ctx.user_config))
    template_dir = store.fetch(template, offline=offline)
    _empty_dir(target)

    result = render_template_dir(
        template_dir=template_dir,
        destination_dir=target,
        context=_build_context(ctx, name, template),
    )
    logger.info(
        "Created %s from template %s (%d rendered, %d copied)",
        target,
        template,
        result.rendered_files,
        result.copied_files,
    )
    return Outcome.success(str(target))
