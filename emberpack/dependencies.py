"""
dependencies.py

Responsibility: Restore npm and bower packages from the build cache, or install
them fresh, and keep the cache consistent with the Node version.

Cache layout (under the cache dir):
- node_modules/          npm packages, symlinked into the build dir
- bower_components/      bower packages, symlinked into the build dir
- .heroku/node-version   Node version the cached node_modules were built with

The marker is only written after every install step succeeded.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Mapping

from emberpack import shell
from emberpack.config import BuildConfig, BuildLayout
from emberpack.log import detail, get_logger, topic

log = get_logger("dependencies")

VENDORED = "vendored"
RESTORED = "restored"
FRESH = "fresh"


def read_marker(layout: BuildLayout) -> str | None:
    path = layout.node_version_marker
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8").strip() or None


def write_marker(layout: BuildLayout, version: str) -> None:
    path = layout.node_version_marker
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(version + "\n", encoding="utf-8")


def purge_caches(layout: BuildLayout, config: BuildConfig) -> None:
    if config.purge_node_modules:
        detail("Purging cached node_modules")
        shutil.rmtree(layout.cache_dir / "node_modules", ignore_errors=True)
    if config.purge_bower_components:
        detail("Purging cached bower_components")
        shutil.rmtree(layout.cache_dir / "bower_components", ignore_errors=True)
    if config.rebuild_all:
        layout.node_version_marker.unlink(missing_ok=True)


def link_cache(cached: Path, target: Path) -> str:
    """
    Point `target` at `cached`. Returns:
    - VENDORED when the app checked the directory in (left untouched)
    - RESTORED when a previous build left a cache behind
    - FRESH when the cache directory had to be created
    """
    if target.is_symlink():
        target.unlink()
    elif target.exists():
        return VENDORED

    state = RESTORED if cached.is_dir() else FRESH
    cached.mkdir(parents=True, exist_ok=True)
    target.symlink_to(cached, target_is_directory=True)
    return state


def install_node_packages(
    layout: BuildLayout,
    node_version: str,
    env: Mapping[str, str],
) -> str:
    topic("Restoring node_modules")
    state = link_cache(layout.cache_dir / "node_modules", layout.build_dir / "node_modules")

    if state == RESTORED:
        detail("Restored node_modules from cache")
        previous = read_marker(layout)
        if previous != node_version:
            detail("Node version changed (%s -> %s); rebuilding native modules", previous or "unknown", node_version)
            shell.run(["npm", "rebuild"], cwd=layout.build_dir, env=env)
    elif state == VENDORED:
        detail("Using node_modules checked into the app")
    else:
        detail("No cached node_modules; installing from scratch")

    topic("Installing node dependencies")
    shell.run(["npm", "install", "--quiet", "--no-optional"], cwd=layout.build_dir, env=env)
    return state


def _bower_command(layout: BuildLayout, env: Mapping[str, str]) -> str:
    local = layout.build_dir / "node_modules" / ".bin" / "bower"
    if local.exists():
        return str(local)
    detail("bower not found in node_modules; installing it globally")
    shell.run(["npm", "install", "--quiet", "-g", "bower"], cwd=layout.build_dir, env=env, echo=False)
    return "bower"


def install_bower_packages(layout: BuildLayout, env: Mapping[str, str]) -> str | None:
    """Returns the cache state, or None when the app does not use bower."""
    if not (layout.build_dir / "bower.json").exists():
        log.debug("No bower.json; skipping bower")
        return None

    topic("Restoring bower_components")
    state = link_cache(layout.cache_dir / "bower_components", layout.build_dir / "bower_components")
    if state == RESTORED:
        detail("Restored bower_components from cache")
    elif state == VENDORED:
        detail("Using bower_components checked into the app")

    topic("Installing bower dependencies")
    bower = _bower_command(layout, env)
    shell.run(
        [bower, "install", "--allow-root", "--config.interactive=false"],
        cwd=layout.build_dir,
        env=env,
    )
    return state


def install_dependencies(
    layout: BuildLayout,
    config: BuildConfig,
    node_version: str,
    env: Mapping[str, str],
) -> None:
    layout.cache_dir.mkdir(parents=True, exist_ok=True)
    purge_caches(layout, config)

    with shell.git_ssh_key(env, config.git_ssh_key) as build_env:
        node_state = install_node_packages(layout, node_version, build_env)
        install_bower_packages(layout, build_env)

    # Checked-in node_modules never touch the cache, so its marker stays as is.
    if node_state in (RESTORED, FRESH):
        write_marker(layout, node_version)
