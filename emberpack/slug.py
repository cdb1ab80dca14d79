"""
slug.py

Responsibility: Place everything the app needs at runtime into the build dir.

- The slug skeleton (bin/boot, config/nginx.conf.j2, config/mime.types)
- The Python packages `python -m emberpack.boot` imports, under vendor/python, since the
  runtime image only ships an interpreter.
"""

from __future__ import annotations

import importlib
from pathlib import Path

from emberpack.config import BuildLayout
from emberpack.log import detail
from emberpack.renderer import copy_tree

SKELETON_DIR = Path(__file__).resolve().parent / "templates" / "slug"

# emberpack.boot and its imports: jinja2 for templating, rich for logging.
BOOT_PACKAGES = ("emberpack", "jinja2", "markupsafe", "rich", "pygments", "markdown_it", "mdurl")


def install_skeleton(layout: BuildLayout) -> int:
    result = copy_tree(source_dir=SKELETON_DIR, destination_dir=layout.build_dir)
    boot = layout.build_dir / "bin" / "boot"
    boot.chmod(boot.stat().st_mode | 0o111)
    return result.copied_files


def vendor_python_packages(layout: BuildLayout, packages: tuple[str, ...] = BOOT_PACKAGES) -> list[Path]:
    vendored: list[Path] = []
    for name in packages:
        module = importlib.import_module(name)
        source = Path(module.__file__).resolve().parent
        target = layout.python_dir / name
        copy_tree(source_dir=source, destination_dir=target)
        vendored.append(target)
    detail("Vendored %s", ", ".join(packages))
    return vendored
