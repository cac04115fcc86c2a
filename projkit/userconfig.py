"""
userconfig.py

Responsibility: load, query and persist the user's configuration file.

The file is YAML (`~/.projkit/config.yml`, or `$PROJKIT_HOME/config.yml`) holding
a nested mapping. Keys are addressed with dots: `upload.receiver`,
`templates.owner`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from projkit.errors import ConfigError

CONFIG_NAME = "config.yml"


def projkit_home() -> Path:
    """Root for user-level state: config, image cache, offline templates."""
    return Path(os.environ.get("PROJKIT_HOME") or Path.home() / ".projkit")


def parse_value(raw: str) -> Any:
    """
    Interpret a CLI value as a YAML scalar (`true`, `3`, `null`); anything that
    is not a scalar is kept as the raw string.
    """
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if isinstance(value, (dict, list)):
        return raw
    return value


def parse_assignment(text: str) -> tuple[str, Any]:
    if "=" not in text:
        raise ConfigError(f"Expected key=value, got: {text!r}")
    key, raw = text.split("=", 1)
    key = key.strip()
    if not key:
        raise ConfigError(f"Missing key in assignment: {text!r}")
    return key, parse_value(raw.strip())


def _split_key(key: str) -> list[str]:
    parts = [p for p in key.split(".") if p]
    if not parts:
        raise ConfigError(f"Invalid config key: {key!r}")
    return parts


class UserConfig:
    def __init__(self, path: Path, data: dict[str, Any] | None = None) -> None:
        self.path = path
        self.data: dict[str, Any] = data or {}

    @classmethod
    def load(cls, path: str | Path | None = None) -> "UserConfig":
        p = Path(path) if path is not None else projkit_home() / CONFIG_NAME
        if not p.exists():
            return cls(p)
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in user config {p}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"User config must be a mapping at the top level: {p}")
        return cls(p, data)

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self.data
        for part in _split_key(key):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = _split_key(key)
        node = self.data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[leaf] = value

    def delete(self, key: str) -> bool:
        *parents, leaf = _split_key(key)
        node: Any = self.data
        for part in parents:
            node = node.get(part) if isinstance(node, dict) else None
        if not isinstance(node, dict) or leaf not in node:
            return False
        del node[leaf]
        return True

    def flatten(self) -> dict[str, Any]:
        out: dict[str, Any] = {}

        def walk(prefix: str, node: Any) -> None:
            if isinstance(node, dict) and node:
                for k in sorted(node, key=str):
                    walk(f"{prefix}.{k}" if prefix else str(k), node[k])
            elif prefix:
                out[prefix] = node

        walk("", self.data)
        return out

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(self.data, sort_keys=True, allow_unicode=True), encoding="utf-8")
        if os.name == "posix":
            # credentials may live here
            os.chmod(self.path, 0o600)

    def reset(self) -> None:
        self.data = {}
        self.path.unlink(missing_ok=True)
