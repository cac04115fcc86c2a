"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to the API base (api.github.com or a GitHub Enterprise host)
- Interprets GitHub API responses / error payloads

Template listing and fetching (`templates.py`) use this client for discovery;
cloning itself happens over git.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from projkit.errors import TemplateError

DEFAULT_API_BASE = "https://api.github.com"
PER_PAGE = 100


class GitHubError(TemplateError):
    pass


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str
    description: str = ""


def _repo_info(owner: str, data: dict[str, Any]) -> RepoInfo:
    return RepoInfo(
        owner=owner,
        name=data["name"],
        html_url=data.get("html_url") or "",
        clone_url=data["clone_url"],
        default_branch=data.get("default_branch") or "main",
        description=data.get("description") or "",
    )


class GitHubClient:
    def __init__(self, token: str | None = None, api_base: str = DEFAULT_API_BASE, timeout: float = 30) -> None:
        self._token = (token or "").strip()
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "projkit",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request(method, url, headers=self._headers(), params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {payload.get('message', payload)}")
        if r.status_code == 204:
            return None
        return r.json()

    def list_repos(self, owner: str) -> list[RepoInfo]:
        """
        Return every repository of `owner`, following pagination. Organizations
        are tried first, then users.
        """
        try:
            return self._paginate(owner, f"/orgs/{owner}/repos")
        except GitHubError as e:
            msg = str(e).lower()
            if "404" not in msg and "not found" not in msg:
                raise
        return self._paginate(owner, f"/users/{owner}/repos")

    def _paginate(self, owner: str, path: str) -> list[RepoInfo]:
        repos: list[RepoInfo] = []
        page = 1
        while True:
            data = self._request("GET", path, params={"per_page": PER_PAGE, "page": page})
            if not data:
                break
            repos.extend(_repo_info(owner, item) for item in data)
            if len(data) < PER_PAGE:
                break
            page += 1
        return repos

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            # Best-effort: treat 404-like messages as missing.
            msg = str(e).lower()
            if "404" in msg or "not found" in msg:
                return None
            raise
        return _repo_info(owner, data)
