from pathlib import Path

import pytest

from conftest import write
from projkit.errors import RenderError
from projkit.renderer import ProjectTemplate, load_template_variables, render_template_dir


def test_renders_templated_files_and_copies_the_rest(tmp_path: Path) -> None:
    tpl = tmp_path / "tpl"
    write(tpl / "README.md", "# {{ project_name }}\n")
    write(tpl / "static" / "plain.txt", "no markers\n")
    write(tpl / "logo.bin", b"\x89PNG\xff\x00")
    write(tpl / ".git" / "HEAD", "ref: refs/heads/main\n")
    write(tpl / "template.yml", "variables:\n  license: MIT\n")

    result = render_template_dir(template_dir=tpl, destination_dir=tmp_path / "out", context={"project_name": "demo"})

    out = tmp_path / "out"
    assert (out / "README.md").read_text() == "# demo\n"
    assert (out / "static" / "plain.txt").read_text() == "no markers\n"
    assert (out / "logo.bin").read_bytes() == b"\x89PNG\xff\x00"
    assert not (out / ".git").exists()
    assert not (out / "template.yml").exists()
    assert (result.rendered_files, result.copied_files) == (1, 2)


def test_undefined_variable_is_an_error(tmp_path: Path) -> None:
    write(tmp_path / "tpl" / "a.txt", "{{ nope }}")
    with pytest.raises(RenderError, match="a.txt"):
        render_template_dir(template_dir=tmp_path / "tpl", destination_dir=tmp_path / "out", context={})


def test_missing_template_dir(tmp_path: Path) -> None:
    with pytest.raises(RenderError):
        render_template_dir(template_dir=tmp_path / "none", destination_dir=tmp_path / "out", context={})


def test_template_variables(tmp_path: Path) -> None:
    write(tmp_path / "template.yml", "variables:\n  b: 2\n  a: 1\n")
    assert list(load_template_variables(tmp_path).items()) == [("a", 1), ("b", 2)]
    assert load_template_variables(tmp_path / "missing") == {}


def test_template_variables_reach_files_without_being_passed(tmp_path: Path) -> None:
    tpl = tmp_path / "tpl"
    write(tpl / "template.yml", "variables:\n  license: MIT\n  year: 2020\n")
    write(tpl / "LICENSE", "{{ license }} {{ year }} {{ variables.license }}\n")
    write(tpl / "docs" / "template.yml", "{{ project_name }}\n")

    render_template_dir(
        template_dir=tpl,
        destination_dir=tmp_path / "out",
        context={"project_name": "demo", "year": 2026},
    )

    out = tmp_path / "out"
    assert (out / "LICENSE").read_text() == "MIT 2026 MIT\n"
    assert (out / "docs" / "template.yml").read_text() == "demo\n"
    assert not (out / "template.yml").exists()


def test_project_template_lists_project_files_only(tmp_path: Path) -> None:
    tpl = tmp_path / "tpl"
    write(tpl / "b.txt", "b")
    write(tpl / "a" / "c.txt", "c")
    write(tpl / "template.yml", "variables: {}\n")
    write(tpl / ".svn" / "entries", "x")

    template = ProjectTemplate.open(tpl)

    assert [rel for _path, rel in template.files()] == ["a/c.txt", "b.txt"]
    assert template.variables == {}


def test_invalid_variables_mapping(tmp_path: Path) -> None:
    write(tmp_path / "template.yml", "variables: [1, 2]\n")
    with pytest.raises(RenderError, match="must be a mapping"):
        render_template_dir(template_dir=tmp_path, destination_dir=tmp_path / "out", context={})
