from __future__ import annotations

import pytest

from emberpack.ember import BuildError, ember_build


def _install_ember(layout) -> None:
    bin_dir = layout.build_dir / "node_modules" / ".bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "ember").write_text("#!/bin/sh\n", encoding="utf-8")


def test_missing_ember_cli(ember_app, recorder) -> None:
    with pytest.raises(BuildError, match="ember-cli is not installed"):
        ember_build(ember_app, "production", {})
    assert recorder.calls == []


def test_build_runs_with_environment(ember_app, recorder) -> None:
    _install_ember(ember_app)
    ember_app.dist_dir.mkdir()
    (ember_app.dist_dir / "index.html").write_text("<html></html>", encoding="utf-8")

    ember_build(ember_app, "staging", {})

    assert recorder.commands() == ["ember build --environment=staging"]


def test_build_without_output(ember_app, recorder) -> None:
    _install_ember(ember_app)

    with pytest.raises(BuildError, match="index.html"):
        ember_build(ember_app, "production", {})
