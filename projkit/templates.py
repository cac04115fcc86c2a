"""
templates.py

Responsibility: list remote templates and keep local (offline) copies of them.

Templates are repositories owned by one GitHub user/organization
(`templates.owner`). Discovery goes through `GitHubClient`; content is fetched
with `git clone --depth 1`, or with `svn export` when `templates.vcs` is `svn`.
Offline copies live in `<projkit home>/templates/<name>` and are replaced
whole on every refresh.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from projkit.errors import CommandError, TemplateError
from projkit.fsutil import remove_tree
from projkit.github_client import DEFAULT_API_BASE, GitHubClient
from projkit.userconfig import UserConfig

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "projkit-templates"
DEFAULT_TEMPLATE = "default"


def _run(cmd: list[str], *, cwd: Path | None = None, env: dict[str, str] | None = None) -> str:
    """
    Run a subprocess command, raising a CommandError on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=env,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise CommandError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise CommandError(f"Command failed: {' '.join(_redact(cmd))}\n\n{e.stdout}") from e
    return proc.stdout


def _redact(cmd: list[str]) -> list[str]:
    out: list[str] = []
    hide = False
    for part in cmd:
        if hide:
            out.append("***")
            hide = False
            continue
        if part == "--password":
            hide = True
        out.append(part.split("@", 1)[-1] if "x-access-token:" in part else part)
    return out


def _tokenized_https_remote(clone_url: str, token: str) -> str:
    """
    Convert https://github.com/owner/name.git into an HTTPS URL containing a token.
    """
    if not token or not clone_url.startswith("https://"):
        return clone_url
    # GitHub supports x-access-token in the username position.
    return clone_url.replace("https://", f"https://x-access-token:{token}@", 1)


@dataclass(frozen=True)
class TemplateSource:
    owner: str = DEFAULT_OWNER
    api_base: str = DEFAULT_API_BASE
    vcs: str = "git"
    svn_base: str | None = None
    token: str | None = None
    svn_username: str | None = None
    svn_password: str | None = None

    @classmethod
    def from_user_config(cls, cfg: UserConfig) -> "TemplateSource":
        return cls(
            owner=str(cfg.get("templates.owner") or DEFAULT_OWNER),
            api_base=str(cfg.get("templates.api") or DEFAULT_API_BASE),
            vcs=str(cfg.get("templates.vcs") or "git").lower(),
            svn_base=cfg.get("templates.svn_base"),
            token=cfg.get("github.token") or os.environ.get("GITHUB_TOKEN"),
            svn_username=cfg.get("svn.username"),
            svn_password=cfg.get("svn.password"),
        )


class TemplateStore:
    def __init__(self, root: Path, source: TemplateSource, client: GitHubClient | None = None) -> None:
        self.root = Path(root)
        self.source = source
        self.client = client or GitHubClient(source.token, api_base=source.api_base)

    def path(self, name: str) -> Path:
        return self.root / name

    def local_names(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir() and not p.name.startswith("."))

    def remote_names(self) -> list[str]:
        return sorted(repo.name for repo in self.client.list_repos(self.source.owner))

    def list(self, *, offline: bool = False) -> list[str]:
        return self.local_names() if offline else self.remote_names()

    def _fetch_into(self, name: str, target: Path) -> None:
        if self.source.vcs == "svn":
            if not self.source.svn_base:
                raise TemplateError("templates.svn_base must be set when templates.vcs is svn")
            cmd = ["svn", "export", "--force", "--non-interactive"]
            if self.source.svn_username:
                cmd += ["--username", self.source.svn_username]
            if self.source.svn_password:
                cmd += ["--password", self.source.svn_password]
            cmd += [f"{self.source.svn_base.rstrip('/')}/{name}", str(target)]
            _run(cmd)
            return

        repo = self.client.get_repo(self.source.owner, name)
        if repo is None:
            raise TemplateError(f"Template not found: {self.source.owner}/{name}")
        url = _tokenized_https_remote(repo.clone_url, self.source.token or "")
        _run(["git", "clone", "--depth", "1", "--quiet", url, str(target)])

    def refresh(self, name: str) -> Path:
        """
        Fetch a fresh copy of template `name` and swap it in for the offline copy.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        staging = self.root / f".tmp-{name}"
        remove_tree(staging)
        try:
            self._fetch_into(name, staging)
        except CommandError as e:
            remove_tree(staging)
            raise TemplateError(f"Failed to fetch template {name!r}: {e}") from e
        except TemplateError:
            remove_tree(staging)
            raise
        target = self.path(name)
        remove_tree(target)
        staging.rename(target)
        logger.info("Fetched template %s -> %s", name, target)
        return target

    def update_all(self) -> list[str]:
        names = self.remote_names()
        for name in names:
            self.refresh(name)
        return names

    def fetch(self, name: str, *, offline: bool = False) -> Path:
        if not offline:
            return self.refresh(name)
        path = self.path(name)
        if not path.is_dir():
            raise TemplateError(f"Template {name!r} has no offline copy (run `projkit list --update`)")
        return path
