from pathlib import Path

import pytest

from projkit.errors import BuildError
from projkit.rewriter import rewrite_references, rewrite_text

MANIFEST = {
    "css/a.css": "css/a-1111111111.css",
    "js/a.js": "js/a-2222222222.js",
    "images/logo.png": "images/logo-3333333333.png",
}


def test_rewrites_member_paths() -> None:
    html = '<link href="css/a.css"><script src="/js/a.js"></script><img src="../images/logo.png?v=1">'
    out, n = rewrite_text(html, MANIFEST, referrer="pages/index.html")
    assert n == 3
    assert 'href="css/a-1111111111.css"' in out
    assert 'src="/js/a-2222222222.js"' in out
    assert 'src="../images/logo-3333333333.png?v=1"' in out


def test_leaves_non_member_paths_alone() -> None:
    text = "css/aa.css xcss/a.css css/a.css.map js/a.jsx images/logo.png2 css/b.css"
    out, n = rewrite_text(text, MANIFEST)
    assert n == 0
    assert out == text


def test_prefixed_reference_to_other_tree_is_untouched() -> None:
    html = '<link href="vendor/css/a.css"><link href="css/a.css"><script src="//cdn.test/js/a.js"></script>'
    out, n = rewrite_text(html, MANIFEST, referrer="index.html")
    assert n == 1
    assert 'href="vendor/css/a.css"' in out
    assert 'href="css/a-1111111111.css"' in out
    assert 'src="//cdn.test/js/a.js"' in out


def test_relative_reference_resolves_against_referrer() -> None:
    text = "url(../images/logo.png) url(../../images/logo.png) url(./sub/../../images/logo.png)"
    out, n = rewrite_text(text, MANIFEST, referrer="css/a.css")
    assert n == 2
    assert out == "url(../images/logo-3333333333.png) url(../../images/logo.png) url(./sub/../../images/logo-3333333333.png)"


def test_longest_key_wins() -> None:
    manifest = {"a.css": "a-1.css", "css/a.css": "css/a-2.css"}
    out, _ = rewrite_text("url(css/a.css) url(a.css)", manifest)
    assert out == "url(css/a-2.css) url(a-1.css)"


def test_empty_manifest_is_identity() -> None:
    assert rewrite_text("css/a.css", {}) == ("css/a.css", 0)


def _dest_with_outputs(dest: Path) -> None:
    for rel in MANIFEST.values():
        p = dest / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(b"x")


def test_rewrite_references_writes_passthrough_and_outputs(tmp_path: Path) -> None:
    src = tmp_path / "src"
    dest = tmp_path / "dist"
    _dest_with_outputs(dest)
    (dest / "css" / "a-1111111111.css").write_text("body{background:url(../images/logo.png)}")
    (src / "pages").mkdir(parents=True)
    (src / "pages" / "index.html").write_text('<link href="../css/a.css">')
    (src / "font.bin").write_bytes(b"\xff\xfe\x00css/a.css")

    result = rewrite_references(
        manifest=MANIFEST,
        passthrough=[(src / "pages" / "index.html", "pages/index.html"), (src / "font.bin", "font.bin")],
        outputs=["css/a-1111111111.css"],
        dest_dir=dest,
    )

    assert (dest / "pages" / "index.html").read_text() == '<link href="../css/a-1111111111.css">'
    assert (dest / "css" / "a-1111111111.css").read_text() == "body{background:url(../images/logo-3333333333.png)}"
    assert (dest / "font.bin").read_bytes() == b"\xff\xfe\x00css/a.css"
    assert result.copied_files == 1
    assert result.replacements == 2


def test_rewrite_refuses_manifest_with_missing_outputs(tmp_path: Path) -> None:
    with pytest.raises(BuildError, match="missing"):
        rewrite_references(manifest=MANIFEST, passthrough=[], outputs=[], dest_dir=tmp_path)


def test_vendor_copy_of_member_path_keeps_its_link(tmp_path: Path) -> None:
    src = tmp_path / "src"
    dest = tmp_path / "dist"
    _dest_with_outputs(dest)
    (src / "vendor" / "css").mkdir(parents=True)
    (src / "vendor" / "css" / "a.css").write_text("v{}")
    (src / "index.html").write_text('<link href="vendor/css/a.css"><link href="./css/a.css">')

    rewrite_references(
        manifest=MANIFEST,
        passthrough=[(src / "index.html", "index.html"), (src / "vendor" / "css" / "a.css", "vendor/css/a.css")],
        outputs=[],
        dest_dir=dest,
    )

    assert (dest / "index.html").read_text() == '<link href="vendor/css/a.css"><link href="./css/a-1111111111.css">'
    assert (dest / "vendor" / "css" / "a.css").read_text() == "v{}"
