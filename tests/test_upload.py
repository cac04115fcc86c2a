from dataclasses import replace

import pytest

from conftest import write
from projkit import upload
from projkit.errors import ConfigError, UploadError
from projkit.project_config import ProjectConfig, UploadSettings
from projkit.upload import upload_files


class FakeResponse:
    def __init__(self, status_code=200, text="0"):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def posts(monkeypatch):
    calls = []

    def fake_post(url, data=None, files=None, timeout=None):
        name, fh = files["file"]
        calls.append((url, data["to"], name, fh.read()))
        return FakeResponse()

    monkeypatch.setattr(upload.requests, "post", fake_post)
    return calls


def test_requires_receiver(ctx, posts) -> None:
    with pytest.raises(ConfigError):
        upload_files(ctx, [])


def test_uploads_dest_dir_by_default(ctx, posts) -> None:
    ctx.user_config.set("upload.receiver", "http://r.test/receiver")
    ctx.user_config.set("upload.root", "/srv/www")
    write(ctx.cwd / "dist" / "css" / "a.css", "a")
    write(ctx.cwd / "other.txt", "skip")

    report = upload_files(ctx, [])

    assert report.uploaded == [f"/srv/www/{ctx.cwd.name}/dist/css/a.css"]
    assert posts == [("http://r.test/receiver", f"/srv/www/{ctx.cwd.name}/dist/css/a.css", "a.css", b"a")]


def test_ignore_flags_shape_remote_paths(ctx, posts) -> None:
    ctx.user_config.set("upload.receiver", "http://r.test/receiver")
    write(ctx.cwd / "pages" / "index.html", "<p>")

    report = upload_files(ctx, ["pages/index.html"], ignore_cwd=True)
    assert report.uploaded == ["/pages/index.html"]

    report = upload_files(ctx, ["pages"], ignore_dir=True)
    assert report.uploaded == [f"/{ctx.cwd.name}/index.html"]


def test_project_config_wins_unless_ignored(ctx, posts) -> None:
    ctx.user_config.set("upload.receiver", "http://user.test/r")
    ctx = replace(ctx, project_config=ProjectConfig(upload=UploadSettings(receiver="http://proj.test/r", root="/p")))
    write(ctx.cwd / "a.txt", "a")

    upload_files(ctx, ["a.txt"])
    upload_files(ctx, ["a.txt"], ignore_config=True)

    assert [c[0] for c in posts] == ["http://proj.test/r", "http://user.test/r"]
    assert [c[1] for c in posts] == [f"/p/{ctx.cwd.name}/a.txt", f"/{ctx.cwd.name}/a.txt"]


def test_receiver_error_aborts(ctx, monkeypatch) -> None:
    ctx.user_config.set("upload.receiver", "http://r.test/receiver")
    write(ctx.cwd / "a.txt", "a")
    monkeypatch.setattr(upload.requests, "post", lambda *a, **k: FakeResponse(500, "boom"))
    with pytest.raises(UploadError, match="HTTP 500"):
        upload_files(ctx, ["a.txt"])


def test_missing_file_is_an_error(ctx, posts) -> None:
    ctx.user_config.set("upload.receiver", "http://r.test/receiver")
    with pytest.raises(UploadError, match="No such file"):
        upload_files(ctx, ["nope.txt"])
