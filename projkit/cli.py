"""
cli.py

Responsibility: CLI entrypoint for projkit.

Commands:
- create / list: scaffold projects from remote templates (`scaffold.py`, `templates.py`)
- build / imagemin: asset pipelines (`pipeline.py`)
- www1: upload files to a receiver (`upload.py`)
- serve: local static server (`server.py`)
- user: manage the user config (`userconfig.py`)

Every handler takes `(args, ctx)` and returns an exit code or an `Outcome`.
`main()` turns `ProjkitError` and failed outcomes into exit code 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from projkit import __version__
from projkit.cache import ImageCache
from projkit.context import Context, Outcome
from projkit.errors import BuildError, ProjkitError
from projkit.logging_config import configure_logging
from projkit.pipeline import BuildConfig, run_build, run_imagemin
from projkit.scaffold import create_project
from projkit.server import ServeOptions, serve
from projkit.templates import TemplateSource, TemplateStore
from projkit.upload import upload_files
from projkit.userconfig import parse_assignment

logger = logging.getLogger(__name__)


def _resolve(ctx: Context, value: str | Path) -> Path:
    p = Path(value)
    return p if p.is_absolute() else ctx.cwd / p


def _template_store(ctx: Context) -> TemplateStore:
    return TemplateStore(ctx.templates_dir, TemplateSource.from_user_config(ctx.user_config))


def create_cmd(args: argparse.Namespace, ctx: Context) -> Outcome:
    return create_project(
        ctx,
        args.project_name,
        args.template_name,
        offline=bool(args.offline),
        force=bool(args.force),
    )


def list_cmd(args: argparse.Namespace, ctx: Context) -> int:
    store = _template_store(ctx)
    if args.update:
        names = store.update_all()
    else:
        names = store.list(offline=bool(args.offline))
    for name in names:
        print(name)
    return 0


def www1_cmd(args: argparse.Namespace, ctx: Context) -> int:
    report = upload_files(
        ctx,
        list(args.files),
        ignore_config=bool(args.ignore_config),
        ignore_cwd=bool(args.ignore_cwd),
        ignore_dir=bool(args.ignore_dir),
    )
    logger.info("Uploaded %d file(s)", len(report.uploaded))
    return 0


def serve_cmd(args: argparse.Namespace, ctx: Context) -> Outcome | int:
    settings = ctx.project_config.serve
    base_dir = _resolve(ctx, args.base_dir or ".")
    if not base_dir.is_dir():
        return Outcome.failure(f"Base directory is not accessible: {base_dir}")
    serve(
        ServeOptions(
            base_dir=base_dir,
            host=args.host or settings.host,
            port=args.port if args.port is not None else settings.port,
            open_browser=bool(args.open),
            https=bool(args.https),
            certfile=ctx.user_config.get("serve.certfile"),
            keyfile=ctx.user_config.get("serve.keyfile"),
        )
    )
    return 0


def build_config(args: argparse.Namespace, ctx: Context) -> BuildConfig:
    settings = ctx.project_config.build
    filename_hash = settings.filename_hash if args.filename_hash is None else bool(args.filename_hash)
    return BuildConfig(
        source_dir=_resolve(ctx, args.src or settings.src),
        dest_dir=_resolve(ctx, args.dest or settings.dest),
        revision_dir=_resolve(ctx, args.rev_dir or settings.rev_dir),
        cache_dir=ctx.cache_dir,
        filename_hash=filename_hash,
        clear_cache=bool(args.clear_cache),
    )


def build_cmd(args: argparse.Namespace, ctx: Context) -> int:
    config = build_config(args, ctx)
    if not config.source_dir.is_dir():
        raise BuildError(f"Source directory is not accessible: {config.source_dir}")
    report = run_build(config)
    logger.info("Build finished in %d stage(s): %s -> %s", len(report.history), config.source_dir, config.dest_dir)
    return 0


def imagemin_cmd(args: argparse.Namespace, ctx: Context) -> int:
    dest = _resolve(ctx, args.dest or ctx.project_config.build.dest)
    result = run_imagemin(ctx.cwd, dest, ImageCache(ctx.cache_dir), clear_cache=bool(args.clear_cache))
    logger.info("Optimized %d image(s) into %s", len(result.written), dest)
    return 0


def user_cmd(args: argparse.Namespace, ctx: Context) -> Outcome | int:
    cfg = ctx.user_config
    if args.set:
        key, value = parse_assignment(args.set)
        cfg.set(key, value)
        cfg.save()
    elif args.get:
        value = cfg.get(args.get)
        if value is None:
            return Outcome.failure(f"{args.get} is not set")
        print(value)
    elif args.delete:
        if not cfg.delete(args.delete):
            return Outcome.failure(f"{args.delete} is not set")
        cfg.save()
    elif args.list:
        for key, value in cfg.flatten().items():
            print(f"{key}={value}")
    elif args.login:
        cfg.set("github.username", ctx.prompt("GitHub username"))
        cfg.set("github.token", ctx.prompt("GitHub token", secret=True))
        cfg.save()
        logger.info("Saved GitHub credentials to %s", cfg.path)
    elif args.login_svn:
        cfg.set("svn.username", ctx.prompt("SVN username"))
        cfg.set("svn.password", ctx.prompt("SVN password", secret=True))
        cfg.save()
        logger.info("Saved SVN credentials to %s", cfg.path)
    elif args.reset:
        if not ctx.confirm(f"Delete {cfg.path}?"):
            return Outcome.failure("reset cancelled")
        cfg.reset()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="projkit", description="projkit - project scaffolding and asset builds")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("create", help="Create a project from a template")
    c.add_argument("project_name", nargs="?", default=None, help="Directory name for the new project")
    c.add_argument("template_name", nargs="?", default=None, help="Template name (default: templates.default)")
    c.add_argument("--offline", action="store_true", help="Use the local template copy without fetching")
    c.add_argument("--force", action="store_true", help="Overwrite a non-empty directory without asking")
    c.set_defaults(func=create_cmd)

    ls = sub.add_parser("list", help="List available templates")
    ls.add_argument("--offline", action="store_true", help="List local template copies only")
    ls.add_argument("--update", action="store_true", help="Refresh every local template copy")
    ls.set_defaults(func=list_cmd)

    w = sub.add_parser("www1", help="Upload files to the configured receiver")
    w.add_argument("files", nargs="*", help="Files or directories (default: build dest, else cwd)")
    w.add_argument("--ignore-config", action="store_true", help="Ignore projkit.yml")
    w.add_argument("--ignore-cwd", action="store_true", help="Do not prefix remote paths with the cwd name")
    w.add_argument("--ignore-dir", action="store_true", help="Upload using bare file names")
    w.set_defaults(func=www1_cmd)

    s = sub.add_parser("serve", help="Serve a directory over HTTP")
    s.add_argument("base_dir", nargs="?", default=None, help="Directory to serve (default: cwd)")
    s.add_argument("--open", action="store_true", help="Open a browser")
    s.add_argument("--port", type=int, default=None, help="Port (default: 8080)")
    s.add_argument("--host", default=None, help="Host (default: 127.0.0.1)")
    s.add_argument("--https", action="store_true", help="Serve over HTTPS (needs serve.certfile)")
    s.set_defaults(func=serve_cmd)

    b = sub.add_parser("build", help="Minify and revision CSS, JS and images")
    b.add_argument("--src", default=None, help="Source directory (default: src)")
    b.add_argument("--dest", default=None, help="Output directory (default: dist)")
    b.add_argument("--rev-dir", default=None, help="Revision manifest directory (default: .rev)")
    b.add_argument("--clear-cache", action="store_true", help="Clear the image cache before building")
    b.add_argument(
        "--no-filename-hash",
        dest="filename_hash",
        action="store_const",
        const=False,
        default=None,
        help="Keep source file names (no content hash)",
    )
    b.set_defaults(func=build_cmd)

    i = sub.add_parser("imagemin", help="Optimize every image in the working tree")
    i.add_argument("--dest", default=None, help="Output directory (default: dist)")
    i.add_argument("--clear-cache", action="store_true", help="Clear the image cache first")
    i.set_defaults(func=imagemin_cmd)

    u = sub.add_parser("user", help="Manage user configuration")
    g = u.add_mutually_exclusive_group(required=True)
    g.add_argument("--set", metavar="KEY=VALUE", default=None, help="Set a value")
    g.add_argument("--get", metavar="KEY", default=None, help="Print a value")
    g.add_argument("--delete", metavar="KEY", default=None, help="Delete a value")
    g.add_argument("--list", action="store_true", help="Print every value")
    g.add_argument("--login", action="store_true", help="Store GitHub credentials")
    g.add_argument("--login-svn", action="store_true", help="Store SVN credentials")
    g.add_argument("--reset", action="store_true", help="Delete the user config file")
    u.set_defaults(func=user_cmd)

    return p


def main(argv: list[str] | None = None, ctx: Context | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(bool(args.verbose))

    try:
        ctx = ctx or Context.load()
        result = args.func(args, ctx)
    except ProjkitError as e:
        print(f"error: {e}", file=sys.stderr)
        logger.debug("Command %s failed", args.command, exc_info=True)
        return 1

    if isinstance(result, Outcome):
        if not result.ok:
            print(f"error: {result.reason}", file=sys.stderr)
            return 1
        if result.reason:
            print(result.reason)
        return 0
    return int(result)


if __name__ == "__main__":
    raise SystemExit(main())
