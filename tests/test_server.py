import socket
import threading
import urllib.request
from pathlib import Path

import pytest

from projkit.cli import main
from projkit.errors import ConfigError, ProjkitError
from projkit.server import ServeOptions, make_server


def test_serves_files_from_base_dir(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_text("<p>hi</p>", encoding="utf-8")
    httpd = make_server(ServeOptions(base_dir=tmp_path, port=0))
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = httpd.server_address[:2]
        with urllib.request.urlopen(f"http://{host}:{port}/index.html", timeout=5) as resp:
            assert resp.read() == b"<p>hi</p>"
    finally:
        httpd.shutdown()
        httpd.server_close()


def test_missing_base_dir(tmp_path: Path) -> None:
    with pytest.raises(ProjkitError, match="not accessible"):
        make_server(ServeOptions(base_dir=tmp_path / "nope", port=0))


def test_https_requires_certificate(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="certfile"):
        make_server(ServeOptions(base_dir=tmp_path, port=0, https=True))


def test_port_in_use_is_reported(tmp_path: Path) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        with pytest.raises(ProjkitError, match=f"Cannot listen on 127.0.0.1:{port}"):
            make_server(ServeOptions(base_dir=tmp_path, port=port))


def test_unreadable_certificate_is_reported(tmp_path: Path) -> None:
    bogus = tmp_path / "cert.pem"
    bogus.write_text("not a certificate", encoding="utf-8")
    for certfile in (tmp_path / "missing.pem", bogus):
        with pytest.raises(ConfigError, match="Cannot load TLS certificate"):
            make_server(ServeOptions(base_dir=tmp_path, port=0, https=True, certfile=str(certfile)))


def test_serve_command_reports_busy_port(tmp_path: Path, ctx, capsys) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        code = main(["serve", str(tmp_path), "--port", str(port)], ctx=ctx)

    assert code == 1
    assert "Cannot listen on" in capsys.readouterr().err
