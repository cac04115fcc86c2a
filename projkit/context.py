"""
context.py

Responsibility: the explicit per-invocation state threaded through command handlers.

Handlers receive a `Context` instead of reading globals: the working directory,
the loaded user and project configuration, the user-level state directory, and
the interactive collaborators (confirmation and text prompts) so tests can
replace them.
"""

from __future__ import annotations

import getpass
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from projkit.project_config import ProjectConfig, load_project_config
from projkit.userconfig import CONFIG_NAME, UserConfig, projkit_home


@dataclass(frozen=True)
class Outcome:
    """Result of an expected, user-facing outcome (not an error)."""

    ok: bool
    reason: str = ""

    @classmethod
    def success(cls, reason: str = "") -> "Outcome":
        return cls(True, reason)

    @classmethod
    def failure(cls, reason: str) -> "Outcome":
        return cls(False, reason)


def confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def prompt(question: str, *, secret: bool = False) -> str:
    if secret:
        return getpass.getpass(f"{question}: ")
    return input(f"{question}: ").strip()


@dataclass
class Context:
    cwd: Path
    home: Path
    user_config: UserConfig
    project_config: ProjectConfig = field(default_factory=ProjectConfig)
    confirm: Callable[[str], bool] = confirm
    prompt: Callable[..., str] = prompt

    @property
    def cache_dir(self) -> Path:
        return self.home / "cache" / "imagemin"

    @property
    def templates_dir(self) -> Path:
        return self.home / "templates"

    @classmethod
    def load(cls, cwd: str | Path | None = None) -> "Context":
        cwd_path = Path(cwd or Path.cwd()).resolve()
        home = projkit_home()
        return cls(
            cwd=cwd_path,
            home=home,
            user_config=UserConfig.load(home / CONFIG_NAME),
            project_config=load_project_config(cwd_path),
        )
