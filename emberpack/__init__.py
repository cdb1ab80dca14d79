"""
emberpack package

This package implements a Heroku buildpack for Ember CLI applications.

Key responsibilities are split across modules:
- `package_json.py`: read package.json engines and detect Ember apps
- `semver_client.py`: isolated semver-resolution API interactions
- `downloads.py`: fetch and unpack the Node and nginx tarballs
- `runtime.py`: install Node, npm and nginx into the build dir
- `dependencies.py`: restore-or-install npm/bower packages from the cache
- `slug.py` / `renderer.py`: place runtime artifacts into the slug
- `boot.py`: render nginx config and exec nginx at runtime
- `cli.py`: CLI entrypoint and orchestration (detect / compile / release / boot)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
