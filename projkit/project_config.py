"""
project_config.py

Responsibility: load and parse the optional per-project `projkit.yml` into a
deterministic, typed model.

Recognised sections (all optional):

    build:
      src: src
      dest: dist
      rev_dir: .rev
      filename_hash: true
    upload:
      receiver: https://example.com/receiver
      root: /var/www
    serve:
      host: 127.0.0.1
      port: 8080

Command-line flags override these values; these override the built-in defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from projkit.errors import ConfigError

PROJECT_CONFIG_NAME = "projkit.yml"


@dataclass(frozen=True)
class BuildSettings:
    src: str = "src"
    dest: str = "dist"
    rev_dir: str = ".rev"
    filename_hash: bool = True


@dataclass(frozen=True)
class UploadSettings:
    receiver: str | None = None
    root: str | None = None


@dataclass(frozen=True)
class ServeSettings:
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass(frozen=True)
class ProjectConfig:
    """Parsed `projkit.yml`; defaults when the file is absent."""

    path: Path | None = None
    build: BuildSettings = field(default_factory=BuildSettings)
    upload: UploadSettings = field(default_factory=UploadSettings)
    serve: ServeSettings = field(default_factory=ServeSettings)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{name}` must be an object/mapping when provided.")
    return raw


def _opt_str(raw: dict[str, Any], key: str, default: str | None) -> str | None:
    value = raw.get(key)
    if value is None:
        return default
    return str(value).strip() or default


def parse_project_config(path: str | Path) -> ProjectConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Project config does not exist: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{p.name} must be a mapping/object at the top level.")

    b = _section(data, "build")
    defaults = BuildSettings()
    build = BuildSettings(
        src=_opt_str(b, "src", defaults.src) or defaults.src,
        dest=_opt_str(b, "dest", defaults.dest) or defaults.dest,
        rev_dir=_opt_str(b, "rev_dir", defaults.rev_dir) or defaults.rev_dir,
        filename_hash=bool(b.get("filename_hash", defaults.filename_hash)),
    )

    u = _section(data, "upload")
    upload = UploadSettings(receiver=_opt_str(u, "receiver", None), root=_opt_str(u, "root", None))

    s = _section(data, "serve")
    try:
        port = int(s.get("port", ServeSettings.port))
    except (TypeError, ValueError) as e:
        raise ConfigError("`serve.port` must be an integer.") from e
    serve = ServeSettings(host=_opt_str(s, "host", ServeSettings.host) or ServeSettings.host, port=port)

    return ProjectConfig(path=p, build=build, upload=upload, serve=serve)


def load_project_config(cwd: str | Path) -> ProjectConfig:
    path = Path(cwd) / PROJECT_CONFIG_NAME
    if not path.exists():
        return ProjectConfig()
    return parse_project_config(path)
