"""
config.py

Responsibility: Turn the process environment (plus Heroku's ENV_DIR) into typed,
immutable configuration for the build and boot steps.

Nothing here performs I/O beyond reading the env dir; callers pass the env
mapping explicitly so tests never depend on the real environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_SEMVER_API_URL = "https://semver.io"
DEFAULT_NODE_MIRROR_URL = "https://s3pository.heroku.com/node"
DEFAULT_NGINX_URL = "https://s3pository.heroku.com/nginx/nginx-1.9.7-cedar-14.tgz"
DEFAULT_EMBER_ENV = "production"
DEFAULT_API_PREFIX_PATH = "/api/"
DEFAULT_NGINX_WORKERS = 4

# Never imported from ENV_DIR: they would break the build toolchain itself.
ENV_DIR_BLACKLIST = frozenset({"PATH", "GIT_DIR", "CPATH", "CPPATH", "LD_PRELOAD", "LIBRARY_PATH"})

_FALSY = {"", "0", "false", "no", "off"}


class ConfigError(ValueError):
    pass


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in _FALSY


def load_env_dir(env_dir: str | Path | None) -> dict[str, str]:
    """
    Read Heroku's ENV_DIR: one file per variable, file name is the key and
    file content the value. Blacklisted names are skipped.
    """
    if env_dir is None:
        return {}
    path = Path(env_dir)
    if not path.is_dir():
        return {}

    out: dict[str, str] = {}
    for entry in sorted(path.iterdir(), key=lambda p: p.name):
        if not entry.is_file() or entry.name in ENV_DIR_BLACKLIST:
            continue
        out[entry.name] = entry.read_text(encoding="utf-8").rstrip("\n")
    return out


@dataclass(frozen=True)
class BuildLayout:
    """Paths the compile step and the boot step agree on."""

    build_dir: Path
    cache_dir: Path
    env_dir: Path | None = None

    @property
    def vendor_dir(self) -> Path:
        return self.build_dir / "vendor"

    @property
    def node_dir(self) -> Path:
        return self.vendor_dir / "node"

    @property
    def nginx_dir(self) -> Path:
        return self.vendor_dir / "nginx"

    @property
    def python_dir(self) -> Path:
        return self.vendor_dir / "python"

    @property
    def node_version_marker(self) -> Path:
        return self.cache_dir / ".heroku" / "node-version"

    @property
    def dist_dir(self) -> Path:
        return self.build_dir / "dist"

    @property
    def npm_debug_log(self) -> Path:
        return self.build_dir / "npm-debug.log"


@dataclass(frozen=True)
class BuildConfig:
    """Build-time switches read from the environment."""

    debug: bool = False
    ember_env: str = DEFAULT_EMBER_ENV
    rebuild_all: bool = False
    rebuild_node_packages: bool = False
    rebuild_bower_packages: bool = False
    git_ssh_key: str | None = None
    semver_api_url: str = DEFAULT_SEMVER_API_URL
    node_mirror_url: str = DEFAULT_NODE_MIRROR_URL
    nginx_url: str = DEFAULT_NGINX_URL

    @property
    def purge_node_modules(self) -> bool:
        return self.rebuild_all or self.rebuild_node_packages

    @property
    def purge_bower_components(self) -> bool:
        return self.rebuild_all or self.rebuild_bower_packages

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "BuildConfig":
        return cls(
            debug=is_truthy(env.get("BUILD_DEBUG")),
            ember_env=(env.get("EMBER_ENV") or "").strip() or DEFAULT_EMBER_ENV,
            rebuild_all=is_truthy(env.get("REBUILD_ALL")),
            rebuild_node_packages=is_truthy(env.get("REBUILD_NODE_PACKAGES")),
            rebuild_bower_packages=is_truthy(env.get("REBUILD_BOWER_PACKAGES")),
            git_ssh_key=(env.get("GIT_SSH_KEY") or "").strip() or None,
            semver_api_url=env.get("SEMVER_API_URL") or DEFAULT_SEMVER_API_URL,
            node_mirror_url=env.get("NODE_MIRROR_URL") or DEFAULT_NODE_MIRROR_URL,
            nginx_url=env.get("NGINX_URL") or DEFAULT_NGINX_URL,
        )


@dataclass(frozen=True)
class BootConfig:
    """Runtime settings used to render nginx.conf and the htpasswd file."""

    port: int
    force_https: bool = False
    api_url: str | None = None
    api_prefix_path: str = DEFAULT_API_PREFIX_PATH
    nginx_workers: int = DEFAULT_NGINX_WORKERS
    basic_auth_user: str | None = None
    basic_auth_password: str | None = None

    @property
    def basic_auth(self) -> bool:
        return bool(self.basic_auth_user and self.basic_auth_password)

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "BootConfig":
        port_raw = (env.get("PORT") or "").strip()
        if not port_raw:
            raise ConfigError("PORT must be set to boot nginx.")
        port = _parse_int("PORT", port_raw)

        workers_raw = (env.get("NGINX_WORKERS") or "").strip()
        workers = _parse_int("NGINX_WORKERS", workers_raw) if workers_raw else DEFAULT_NGINX_WORKERS

        prefix = (env.get("API_PREFIX_PATH") or "").strip() or DEFAULT_API_PREFIX_PATH
        if not prefix.startswith("/"):
            prefix = "/" + prefix

        return cls(
            port=port,
            force_https=is_truthy(env.get("FORCE_HTTPS")),
            api_url=(env.get("API_URL") or "").strip() or None,
            api_prefix_path=prefix,
            nginx_workers=workers,
            basic_auth_user=env.get("BASIC_AUTH_USER") or None,
            basic_auth_password=env.get("BASIC_AUTH_PASSWORD") or None,
        )


def _parse_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def build_environment(base: Mapping[str, str], env_dir: str | Path | None) -> dict[str, str]:
    """Merge ENV_DIR values over the current environment for the build."""
    env = dict(base)
    env.update(load_env_dir(env_dir))
    return env
