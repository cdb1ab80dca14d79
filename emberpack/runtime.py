"""
runtime.py

Responsibility: Install the pinned runtimes into the build dir.

- Node: resolved through the semver API, downloaded from the Node mirror
  into vendor/node.
- npm: optionally replaced by the version `engines.npm` asks for.
- nginx: a prebuilt tarball unpacked into vendor/nginx.
"""

from __future__ import annotations

import shutil
from typing import Mapping

from emberpack import shell
from emberpack.config import BuildLayout
from emberpack.downloads import DownloadError, fetch_and_extract
from emberpack.log import detail
from emberpack.semver_client import SemverClient


def node_download_url(mirror_url: str, version: str) -> str:
    return f"{mirror_url.rstrip('/')}/v{version}/node-v{version}-linux-x64.tar.gz"


def install_node(version: str, layout: BuildLayout, *, mirror_url: str) -> None:
    url = node_download_url(mirror_url, version)
    if layout.node_dir.exists():
        shutil.rmtree(layout.node_dir)
    detail("Downloading and installing node %s...", version)
    fetch_and_extract(url, layout.node_dir, strip_components=1)
    if not (layout.node_dir / "bin" / "node").exists():
        raise DownloadError(f"Node tarball did not contain bin/node: {url}")


def install_npm(
    npm_range: str | None,
    layout: BuildLayout,
    env: Mapping[str, str],
    *,
    client: SemverClient,
) -> str | None:
    """
    Install the npm version `npm_range` resolves to. Returns the version in
    use, or None when the bundled npm is kept.
    """
    if not npm_range:
        detail("Using default npm version")
        return None

    version = client.resolve("npm", npm_range)
    current = shell.output(["npm", "--version"], cwd=layout.build_dir, env=env)
    if current == version:
        detail("npm %s already installed with node", version)
        return version

    detail("Downloading and installing npm %s (replacing version %s)...", version, current)
    shell.run(
        ["npm", "install", "--unsafe-perm", "--quiet", "-g", f"npm@{version}"],
        cwd=layout.build_dir,
        env=env,
        echo=False,
    )
    return version


def install_nginx(layout: BuildLayout, *, url: str) -> None:
    if layout.nginx_dir.exists():
        shutil.rmtree(layout.nginx_dir)
    detail("Downloading and installing nginx...")
    fetch_and_extract(url, layout.nginx_dir)
    binary = layout.nginx_dir / "sbin" / "nginx"
    if not binary.exists():
        raise DownloadError(f"nginx tarball did not contain sbin/nginx: {url}")
    binary.chmod(binary.stat().st_mode | 0o111)
