"""Shared fixtures: a minimal Ember app on disk and a recorder for shell commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from emberpack import shell
from emberpack.config import BuildLayout


def write_package_json(build_dir: Path, **data: object) -> Path:
    path = build_dir / "package.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def layout(tmp_path: Path) -> BuildLayout:
    build_dir = tmp_path / "build"
    cache_dir = tmp_path / "cache"
    build_dir.mkdir()
    cache_dir.mkdir()
    return BuildLayout(build_dir=build_dir, cache_dir=cache_dir)


@pytest.fixture
def ember_app(layout: BuildLayout) -> BuildLayout:
    write_package_json(
        layout.build_dir,
        name="my-app",
        engines={"node": "0.12.x"},
        devDependencies={"ember-cli": "1.13.8", "bower": "^1.4.1"},
    )
    return layout


class CommandRecorder:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail_on: str | None = None

    def __call__(self, cmd, *, cwd, env=None, echo=True) -> None:
        self.calls.append(list(cmd))
        if self.fail_on and self.fail_on in cmd:
            raise shell.CommandError(list(cmd), 2)

    def commands(self) -> list[str]:
        return [" ".join([Path(cmd[0]).name, *cmd[1:]]) for cmd in self.calls]


@pytest.fixture
def recorder(monkeypatch) -> CommandRecorder:
    rec = CommandRecorder()
    monkeypatch.setattr(shell, "run", rec)
    return rec
