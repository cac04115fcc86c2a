import io
import logging
from pathlib import Path

import pytest
from PIL import Image

from projkit.context import Context
from projkit.userconfig import UserConfig


@pytest.fixture(autouse=True)
def projkit_home(monkeypatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("PROJKIT_HOME", str(home))
    yield home
    # cli.main() installs a console handler bound to the captured stderr
    pkg_logger = logging.getLogger("projkit")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def ctx(workdir: Path, projkit_home: Path) -> Context:
    return Context(
        cwd=workdir.resolve(),
        home=projkit_home,
        user_config=UserConfig(projkit_home / "config.yml"),
        confirm=lambda question: False,
        prompt=lambda question, secret=False: "",
    )


def png_bytes(size=(64, 64), color=(200, 30, 30, 255)) -> bytes:
    img = Image.new("RGBA", size, color)
    # noisy gradient so quantization has work to do
    for x in range(size[0]):
        for y in range(size[1]):
            img.putpixel((x, y), ((x * 4) % 256, (y * 4) % 256, (x * y) % 256, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(size=(64, 64)) -> bytes:
    img = Image.new("RGB", size, (10, 120, 200))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=100)
    return buf.getvalue()


def write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path
