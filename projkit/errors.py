"""
errors.py

Responsibility: the exception hierarchy shared by every command.

`ProjkitError` and its subclasses are fatal for the current invocation; the CLI
prints the message and exits non-zero. Expected, user-driven outcomes (such as
declining an overwrite) are reported with `projkit.context.Outcome` instead.
"""

from __future__ import annotations


class ProjkitError(RuntimeError):
    pass


class ConfigError(ProjkitError, ValueError):
    pass


class CommandError(ProjkitError):
    pass


class TemplateError(ProjkitError):
    pass


class RenderError(ProjkitError):
    pass


class BuildError(ProjkitError):
    pass


class UploadError(ProjkitError):
    pass
