"""
server.py

Responsibility: the `serve` command, a static file server for local development.

File watching and live reload are left to external tooling; this only serves
`base_dir` over HTTP (or HTTPS with a configured certificate).
"""

from __future__ import annotations

import functools
import logging
import ssl
import webbrowser
from dataclasses import dataclass
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from projkit.errors import ConfigError, ProjkitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServeOptions:
    base_dir: Path
    host: str = "127.0.0.1"
    port: int = 8080
    open_browser: bool = False
    https: bool = False
    certfile: str | None = None
    keyfile: str | None = None

    @property
    def url(self) -> str:
        scheme = "https" if self.https else "http"
        return f"{scheme}://{self.host}:{self.port}/"


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:  # noqa: A002 - stdlib signature
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(options: ServeOptions) -> ThreadingHTTPServer:
    if not options.base_dir.is_dir():
        raise ProjkitError(f"Base directory is not accessible: {options.base_dir}")
    handler = functools.partial(_QuietHandler, directory=str(options.base_dir))
    try:
        httpd = ThreadingHTTPServer((options.host, options.port), handler)
    except OSError as e:
        raise ProjkitError(f"Cannot listen on {options.host}:{options.port}: {e}") from e
    if options.https:
        if not options.certfile:
            httpd.server_close()
            raise ConfigError("--https needs `serve.certfile` (and optionally `serve.keyfile`) in user config")
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        try:
            context.load_cert_chain(options.certfile, options.keyfile)
        except OSError as e:  # ssl.SSLError included
            httpd.server_close()
            raise ConfigError(f"Cannot load TLS certificate {options.certfile}: {e}") from e
        httpd.socket = context.wrap_socket(httpd.socket, server_side=True)
    return httpd


def serve(options: ServeOptions) -> None:
    httpd = make_server(options)
    logger.info("Serving %s at %s (Ctrl+C to stop)", options.base_dir, options.url)
    if options.open_browser:
        webbrowser.open(options.url)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopped")
    finally:
        httpd.server_close()
