"""
boot.py

Responsibility: Start the web process of a built slug.

High-level flow:
1) Write (or remove) config/htpasswd from the basic auth settings
2) Render config/nginx.conf.j2 -> config/nginx.conf
3) Create logs/nginx/{access,error}.log and tail them to stdout
4) Replace this process with nginx
"""

from __future__ import annotations

import argparse
import os
import subprocess
from pathlib import Path
from typing import Mapping, NoReturn

from emberpack.config import BootConfig, ConfigError
from emberpack.htpasswd import HtpasswdError, write_htpasswd
from emberpack.log import get_logger, setup_logging
from emberpack.renderer import RenderError, render_file

log = get_logger("boot")

LOG_FILES = ("access.log", "error.log")


class BootError(RuntimeError):
    pass


def nginx_context(base_dir: Path, config: BootConfig, *, basic_auth: bool) -> dict[str, object]:
    return {
        "base_dir": str(base_dir),
        "root": str(base_dir / "dist"),
        "port": config.port,
        "workers": config.nginx_workers,
        "force_https": config.force_https,
        "api_url": config.api_url or "",
        "api_prefix_path": config.api_prefix_path,
        "basic_auth": basic_auth,
        "htpasswd_path": str(base_dir / "config" / "htpasswd"),
    }


def render_nginx_config(base_dir: Path, config: BootConfig) -> Path:
    config_dir = base_dir / "config"
    basic_auth = write_htpasswd(config_dir / "htpasswd", config.basic_auth_user, config.basic_auth_password)
    if basic_auth:
        log.info("Basic auth enabled for user %s", config.basic_auth_user)
    return render_file(
        template_path=config_dir / "nginx.conf.j2",
        destination_path=config_dir / "nginx.conf",
        context=nginx_context(base_dir, config, basic_auth=basic_auth),
    )


def prepare_logs(base_dir: Path) -> list[Path]:
    log_dir = base_dir / "logs" / "nginx"
    log_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in LOG_FILES:
        path = log_dir / name
        path.touch(exist_ok=True)
        paths.append(path)
    return paths


def start_log_tail(paths: list[Path]) -> subprocess.Popen:
    """Follow the nginx logs on our stdout; the tail outlives the exec below."""
    return subprocess.Popen(["tail", "-f", "-n", "0", *[str(p) for p in paths]])


def nginx_command(base_dir: Path) -> list[str]:
    return [str(base_dir / "vendor" / "nginx" / "sbin" / "nginx"), "-p", str(base_dir), "-c", "config/nginx.conf"]


def check_nginx(base_dir: Path) -> list[str]:
    cmd = nginx_command(base_dir)
    if not Path(cmd[0]).exists():
        raise BootError(f"nginx binary not found: {cmd[0]}")
    return cmd


def exec_nginx(base_dir: Path, port: int) -> NoReturn:
    cmd = check_nginx(base_dir)
    log.info("Starting nginx on port %s", port)
    os.execv(cmd[0], cmd)


def boot(base_dir: str | Path, env: Mapping[str, str]) -> NoReturn:
    base = Path(base_dir).resolve()
    config = BootConfig.from_env(env)
    check_nginx(base)
    render_nginx_config(base, config)
    start_log_tail(prepare_logs(base))
    exec_nginx(base, config.port)


def main(argv: list[str] | None = None) -> int:
    """Slug entry point; imports only what vendor/python ships."""
    p = argparse.ArgumentParser(prog="emberpack.boot", description="Render nginx config and exec nginx")
    p.add_argument("base_dir", nargs="?", default=os.environ.get("HOME", "."), help="Slug root")
    args = p.parse_args(argv)

    setup_logging()
    try:
        boot(args.base_dir, os.environ.copy())
    except (ConfigError, HtpasswdError, RenderError, BootError) as e:
        log.error(" !     %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
