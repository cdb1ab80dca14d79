from __future__ import annotations

import pytest

from emberpack import boot, slug
from emberpack.config import BootConfig, BuildLayout


class Exec(Exception):
    pass


@pytest.fixture
def slug_dir(tmp_path):
    base = tmp_path / "app"
    base.mkdir()
    slug.install_skeleton(BuildLayout(build_dir=base, cache_dir=tmp_path / "cache"))
    return base


def _render(slug_dir, **env) -> str:
    config = BootConfig.from_env({"PORT": "5000", **env})
    return boot.render_nginx_config(slug_dir, config).read_text(encoding="utf-8")


def test_minimal_config(slug_dir) -> None:
    conf = _render(slug_dir)

    assert "listen 5000;" in conf
    assert "worker_processes 4;" in conf
    assert f"root {slug_dir / 'dist'};" in conf
    assert "try_files $uri $uri/ /index.html;" in conf
    assert "auth_basic" not in conf
    assert "x_forwarded_proto" not in conf
    assert "proxy_pass" not in conf
    assert not (slug_dir / "config" / "htpasswd").exists()


def test_force_https(slug_dir) -> None:
    conf = _render(slug_dir, FORCE_HTTPS="true")
    assert 'if ($http_x_forwarded_proto != "https")' in conf
    assert "return 301 https://$host$request_uri;" in conf


def test_api_proxy(slug_dir) -> None:
    conf = _render(slug_dir, API_URL="https://api.example.com/", API_PREFIX_PATH="/v1/")
    assert "location /v1/ {" in conf
    assert "proxy_pass https://api.example.com/;" in conf


def test_basic_auth(slug_dir) -> None:
    conf = _render(slug_dir, BASIC_AUTH_USER="admin", BASIC_AUTH_PASSWORD="secret")

    htpasswd = slug_dir / "config" / "htpasswd"
    assert htpasswd.read_text(encoding="utf-8").startswith("admin:{SSHA}")
    assert f"auth_basic_user_file {htpasswd};" in conf


def test_prepare_logs(slug_dir) -> None:
    paths = boot.prepare_logs(slug_dir)
    assert [p.name for p in paths] == ["access.log", "error.log"]
    assert all(p.exists() for p in paths)


def test_nginx_command(slug_dir) -> None:
    assert boot.nginx_command(slug_dir) == [
        str(slug_dir / "vendor" / "nginx" / "sbin" / "nginx"),
        "-p",
        str(slug_dir),
        "-c",
        "config/nginx.conf",
    ]


def test_boot_execs_nginx(slug_dir, monkeypatch) -> None:
    nginx = slug_dir / "vendor" / "nginx" / "sbin" / "nginx"
    nginx.parent.mkdir(parents=True)
    nginx.write_text("#!/bin/sh\n", encoding="utf-8")
    tailed: list = []

    def _fake_execv(path, argv):
        raise Exec(path, argv)

    monkeypatch.setattr(boot, "start_log_tail", lambda paths: tailed.append(paths))
    monkeypatch.setattr(boot.os, "execv", _fake_execv)

    with pytest.raises(Exec) as excinfo:
        boot.boot(slug_dir, {"PORT": "8080"})

    path, argv = excinfo.value.args
    assert path == str(nginx)
    assert argv[1:] == ["-p", str(slug_dir), "-c", "config/nginx.conf"]
    assert [p.name for p in tailed[0]] == ["access.log", "error.log"]
    assert "listen 8080;" in (slug_dir / "config" / "nginx.conf").read_text(encoding="utf-8")


def test_boot_without_nginx_binary(slug_dir, monkeypatch) -> None:
    tailed: list = []
    monkeypatch.setattr(boot, "start_log_tail", lambda paths: tailed.append(paths))

    with pytest.raises(boot.BootError, match="nginx binary not found"):
        boot.boot(slug_dir, {"PORT": "8080"})

    assert tailed == []
    assert not (slug_dir / "config" / "nginx.conf").exists()


def test_main_reports_missing_port(slug_dir, monkeypatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    assert boot.main([str(slug_dir)]) == 1
