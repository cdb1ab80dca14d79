from __future__ import annotations

import re
import tomllib
from pathlib import Path

from emberpack import slug

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"

# import name -> distribution name on the index
DISTRIBUTIONS = {
    "jinja2": "jinja2",
    "markupsafe": "markupsafe",
    "rich": "rich",
    "pygments": "pygments",
    "markdown_it": "markdown-it-py",
    "mdurl": "mdurl",
}


def _project() -> dict:
    return tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]


def test_vendored_boot_packages_are_declared() -> None:
    declared = {re.split(r"[<>=!~ \[;]", req, maxsplit=1)[0].lower() for req in _project()["dependencies"]}

    for name in slug.BOOT_PACKAGES:
        if name == "emberpack":
            continue
        assert DISTRIBUTIONS[name] in declared, name


def test_python_floor_supports_tar_filters() -> None:
    assert _project()["requires-python"] == ">=3.12"
