from __future__ import annotations

import pytest

from emberpack.renderer import RenderError, copy_tree, render_file


def test_copy_tree_keeps_templates_raw_and_skips_bytecode(tmp_path) -> None:
    src = tmp_path / "src"
    (src / "config").mkdir(parents=True)
    (src / "config" / "nginx.conf.j2").write_text("listen {{ port }};\n", encoding="utf-8")
    (src / "__pycache__").mkdir()
    (src / "__pycache__" / "x.cpython-312.pyc").write_bytes(b"\x00")
    (src / "module.pyc").write_bytes(b"\x00")

    result = copy_tree(source_dir=src, destination_dir=tmp_path / "dst")

    assert result.copied_files == 1
    assert (tmp_path / "dst" / "config" / "nginx.conf.j2").read_text(encoding="utf-8") == "listen {{ port }};\n"
    assert not (tmp_path / "dst" / "__pycache__").exists()


def test_copy_tree_missing_source(tmp_path) -> None:
    with pytest.raises(RenderError, match="Source directory not found"):
        copy_tree(source_dir=tmp_path / "nope", destination_dir=tmp_path / "dst")


def test_render_file(tmp_path) -> None:
    tpl = tmp_path / "t.j2"
    tpl.write_text("listen {{ port }};\n{% if tls %}\nssl on;\n{% endif %}\n", encoding="utf-8")

    out = render_file(template_path=tpl, destination_path=tmp_path / "out" / "t", context={"port": 80, "tls": False})

    assert out.read_text(encoding="utf-8") == "listen 80;\n"


def test_render_file_strict_undefined(tmp_path) -> None:
    tpl = tmp_path / "t.j2"
    tpl.write_text("listen {{ port }};", encoding="utf-8")

    with pytest.raises(RenderError, match="t.j2"):
        render_file(template_path=tpl, destination_path=tmp_path / "t", context={})
