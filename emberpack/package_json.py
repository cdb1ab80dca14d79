"""
package_json.py

Responsibility: Load the application's package.json into a typed model.

Only the pieces the buildpack acts on are interpreted:
- `engines.node` / `engines.npm`: semver ranges to resolve
- `dependencies` / `devDependencies`: to recognise an Ember CLI app

The rest of the document is kept verbatim in `raw`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class PackageJsonError(ValueError):
    pass


@dataclass(frozen=True)
class PackageJson:
    """Parsed package.json contents relevant to the build."""

    name: str = ""
    node_range: str | None = None
    npm_range: str | None = None
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    def depends_on(self, package: str) -> bool:
        return package in self.dependencies or package in self.dev_dependencies


def _optional_range(engines: dict[str, Any], key: str) -> str | None:
    value = engines.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _mapping(data: dict[str, Any], key: str) -> dict[str, str]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise PackageJsonError(f"`{key}` must be an object when provided.")
    return {str(k): str(v) for k, v in value.items()}


def parse_package_json(text: str) -> PackageJson:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PackageJsonError(f"package.json is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PackageJsonError("package.json must contain an object at the top level.")

    engines = data.get("engines") or {}
    if not isinstance(engines, dict):
        raise PackageJsonError("`engines` must be an object when provided.")

    return PackageJson(
        name=str(data.get("name") or ""),
        node_range=_optional_range(engines, "node"),
        npm_range=_optional_range(engines, "npm"),
        dependencies=_mapping(data, "dependencies"),
        dev_dependencies=_mapping(data, "devDependencies"),
        raw=data,
    )


def load_package_json(build_dir: str | Path) -> PackageJson:
    path = Path(build_dir) / "package.json"
    if not path.exists():
        raise PackageJsonError(f"package.json not found in {Path(build_dir)}")
    return parse_package_json(path.read_text(encoding="utf-8"))


def is_ember_app(build_dir: str | Path) -> bool:
    """
    An app is buildable when it has a package.json and either depends on
    ember-cli or carries an `.ember-cli` settings file.
    """
    root = Path(build_dir)
    if not (root / "package.json").exists():
        return False
    if (root / ".ember-cli").exists():
        return True
    try:
        pkg = load_package_json(root)
    except PackageJsonError:
        return False
    return pkg.depends_on("ember-cli")
