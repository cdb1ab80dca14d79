"""
ember.py

Responsibility: Compile the Ember application into dist/.
"""

from __future__ import annotations

from typing import Mapping

from emberpack import shell
from emberpack.config import BuildLayout
from emberpack.log import topic


class BuildError(RuntimeError):
    pass


def ember_build(layout: BuildLayout, environment: str, env: Mapping[str, str]) -> None:
    ember = layout.build_dir / "node_modules" / ".bin" / "ember"
    if not ember.exists():
        raise BuildError("ember-cli is not installed; add it to devDependencies in package.json")

    topic("Building Ember CLI application (%s)", environment)
    shell.run([str(ember), "build", f"--environment={environment}"], cwd=layout.build_dir, env=env)

    if not (layout.dist_dir / "index.html").exists():
        raise BuildError(f"ember build did not produce {layout.dist_dir / 'index.html'}")
