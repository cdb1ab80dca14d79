"""
renderer.py

Responsibility: Copy template trees into the slug and render single Jinja2
templates.

Rules:
- Walk files in sorted order so the slug layout is deterministic.
- `copy_tree` never renders; templates are shipped raw and rendered at boot.
- `render_file` renders with StrictUndefined so a missing value fails loudly.
- Compiled bytecode caches are never copied.

This module intentionally does NOT know about nginx, npm, or CLI parsing.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

_SKIP_DIRS = {"__pycache__"}
_SKIP_SUFFIXES = {".pyc", ".pyo"}


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class CopyResult:
    copied_files: int


def _iter_tree_files(root_dir: Path) -> list[Path]:
    """
    Return all files under root_dir, in deterministic lexicographic order
    (relative path ordering).
    """
    files: list[Path] = []
    for root, dirs, filenames in os.walk(root_dir):
        dirs[:] = [d for d in dirs if d not in _SKIP_DIRS]
        root_path = Path(root)
        for name in filenames:
            if Path(name).suffix in _SKIP_SUFFIXES:
                continue
            files.append(root_path / name)
    files.sort(key=lambda p: str(p.relative_to(root_dir)).replace(os.sep, "/"))
    return files


def copy_tree(*, source_dir: str | Path, destination_dir: str | Path) -> CopyResult:
    """
    Copy source_dir into destination_dir, creating directories as needed and
    preserving file permissions.
    """
    src_dir = Path(source_dir).resolve()
    dst_dir = Path(destination_dir).resolve()

    if not src_dir.exists() or not src_dir.is_dir():
        raise RenderError(f"Source directory not found: {src_dir}")

    copied = 0
    for src_path in _iter_tree_files(src_dir):
        dst_path = dst_dir / src_path.relative_to(src_dir)
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dst_path)
        copied += 1
    return CopyResult(copied_files=copied)


def render_file(*, template_path: str | Path, destination_path: str | Path, context: dict[str, Any]) -> Path:
    tpl = Path(template_path)
    dst = Path(destination_path)
    if not tpl.exists():
        raise RenderError(f"Template not found: {tpl}")

    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    try:
        out = env.from_string(tpl.read_text(encoding="utf-8")).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering template file: {tpl.name}") from e

    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text(out, encoding="utf-8", newline="\n")
    return dst
