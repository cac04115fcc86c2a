"""
projkit package

This package implements projkit as a CLI-first utility for scaffolding
projects from templates and building versioned static assets.

Key responsibilities are split across modules:
- `templates.py` / `github_client.py`: list and fetch remote templates
- `renderer.py` / `scaffold.py`: render a fetched template into a new project
- `compressors.py` / `images.py` / `cache.py`: minify CSS/JS and optimize images
- `manifest.py` / `rewriter.py`: content-hashed names and reference rewriting
- `pipeline.py`: the `build` and `imagemin` orchestration
- `upload.py` / `server.py` / `userconfig.py`: remaining commands
- `cli.py`: CLI entrypoint and command wiring
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
