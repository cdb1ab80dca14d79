"""
cli.py

Responsibility: CLI entrypoint for the buildpack.

Heroku drives a buildpack through three scripts, plus the web process:
- `detect BUILD_DIR`: is this an Ember CLI app?
- `compile BUILD_DIR CACHE_DIR [ENV_DIR]`: build the slug
- `release BUILD_DIR`: default process types (YAML on stdout)
- `boot BASE_DIR`: render nginx config and exec nginx

High-level compile flow:
1) Read ENV_DIR + package.json
2) Resolve and install Node (and npm if pinned), install nginx
3) Restore-or-install npm/bower dependencies
4) ember build -> dist/
5) Place the boot script, nginx templates and vendored Python into the slug

This module should orchestrate behavior but keep concerns isolated:
- Configuration: `config.py`
- Remote resolution / downloads: `semver_client.py`, `downloads.py`, `runtime.py`
- Caching: `dependencies.py`
- Runtime: `boot.py`
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import yaml

from emberpack import boot, dependencies, runtime, shell, slug
from emberpack.config import BuildConfig, BuildLayout, ConfigError, build_environment, is_truthy
from emberpack.downloads import DownloadError
from emberpack.ember import BuildError, ember_build
from emberpack.htpasswd import HtpasswdError
from emberpack.log import detail, get_logger, setup_logging, topic
from emberpack.package_json import PackageJsonError, is_ember_app, load_package_json
from emberpack.renderer import RenderError
from emberpack.semver_client import SemverClient, SemverError

log = get_logger("cli")

PROCESS_TYPES = {"web": "bin/boot"}


class CLIError(RuntimeError):
    pass


HANDLED_ERRORS = (
    CLIError,
    ConfigError,
    PackageJsonError,
    SemverError,
    DownloadError,
    shell.CommandError,
    shell.GitSshKeyError,
    BuildError,
    RenderError,
    HtpasswdError,
    boot.BootError,
)


def _existing_dir(raw: str, what: str) -> Path:
    path = Path(raw).resolve()
    if not path.is_dir():
        raise CLIError(f"{what} does not exist: {path}")
    return path


def detect_cmd(args: argparse.Namespace) -> int:
    if is_ember_app(args.build_dir):
        print("Ember CLI")
        return 0
    print("no")
    return 1


def release_cmd(args: argparse.Namespace) -> int:
    sys.stdout.write(yaml.safe_dump({"addons": [], "default_process_types": PROCESS_TYPES}, sort_keys=False))
    return 0


def compile_cmd(args: argparse.Namespace) -> int:
    build_dir = _existing_dir(args.build_dir, "Build dir")
    cache_dir = Path(args.cache_dir).resolve()
    env_dir = Path(args.env_dir).resolve() if args.env_dir else None

    env = build_environment(os.environ.copy(), env_dir)
    config = BuildConfig.from_env(env)
    if config.debug:
        setup_logging(debug=True)

    layout = BuildLayout(build_dir=build_dir, cache_dir=cache_dir, env_dir=env_dir)
    pkg = load_package_json(build_dir)
    client = SemverClient(config.semver_api_url)

    topic("Resolving node version %s", pkg.node_range or "(latest stable)")
    node_version = client.resolve("node", pkg.node_range)
    detail("Resolved node version %s", node_version)

    topic("Installing node")
    runtime.install_node(node_version, layout, mirror_url=config.node_mirror_url)
    build_env = shell.build_path_env(env, layout)

    try:
        runtime.install_npm(pkg.npm_range, layout, build_env, client=client)

        topic("Installing nginx")
        runtime.install_nginx(layout, url=config.nginx_url)

        dependencies.install_dependencies(layout, config, node_version, build_env)
        ember_build(layout, config.ember_env, build_env)
    except shell.CommandError:
        shell.dump_npm_debug_log(layout)
        raise

    topic("Placing runtime files")
    slug.install_skeleton(layout)
    slug.vendor_python_packages(layout)

    topic("Build succeeded")
    return 0


def boot_cmd(args: argparse.Namespace) -> int:
    base_dir = _existing_dir(args.base_dir, "Base dir")
    boot.boot(base_dir, os.environ.copy())
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="emberpack", description="Heroku buildpack for Ember CLI applications")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("detect", help="Exit 0 when BUILD_DIR holds an Ember CLI app")
    d.add_argument("build_dir", help="Application source directory")
    d.set_defaults(func=detect_cmd)

    c = sub.add_parser("compile", help="Install runtimes and dependencies, then build the app")
    c.add_argument("build_dir", help="Application source directory (becomes the slug)")
    c.add_argument("cache_dir", help="Directory persisted between builds")
    c.add_argument("env_dir", nargs="?", default=None, help="Directory with one file per config var")
    c.set_defaults(func=compile_cmd)

    r = sub.add_parser("release", help="Print default process types as YAML")
    r.add_argument("build_dir", help="Application source directory")
    r.set_defaults(func=release_cmd)

    b = sub.add_parser("boot", help="Render nginx config and exec nginx")
    b.add_argument("base_dir", help="Slug root (usually $HOME)")
    b.set_defaults(func=boot_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=is_truthy(os.environ.get("BUILD_DEBUG")))
    try:
        return int(args.func(args))
    except HANDLED_ERRORS as e:
        log.error(" !     %s", e)
        if isinstance(e, shell.CommandError):
            return e.returncode or 1
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
