"""
semver_client.py

Responsibility: Isolate all interaction with the semver-resolution HTTP API.

This module must be the only place that:
- Constructs resolution endpoints
- Sends HTTP requests to the resolver
- Interprets its responses

The API answers in plain text, e.g. `GET /node/resolve?range=0.12.x` -> `0.12.7`.
"""

from __future__ import annotations

import re

import requests

from emberpack.config import DEFAULT_SEMVER_API_URL

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$")


class SemverError(RuntimeError):
    pass


class SemverClient:
    def __init__(self, api_base: str = DEFAULT_SEMVER_API_URL, timeout: float = 30) -> None:
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "text/plain",
            "User-Agent": "emberpack",
        }

    def _request(self, path: str, *, params: dict[str, str] | None = None) -> str:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request("GET", url, headers=self._headers(), params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise SemverError(f"Semver API request failed GET {path}: {e}") from e
        if r.status_code >= 400:
            raise SemverError(f"Semver API error {r.status_code} GET {path}: {r.text.strip()}")
        return r.text.strip()

    def resolve(self, product: str, version_range: str | None = None) -> str:
        """
        Resolve a semver range for `product` ("node" or "npm") to a concrete
        version. No range means the latest stable release.
        """
        if version_range:
            version = self._request(f"/{product}/resolve", params={"range": version_range})
        else:
            version = self._request(f"/{product}/stable")

        if not _VERSION_RE.match(version):
            shown = version_range or "stable"
            raise SemverError(f"Could not resolve {product} version for {shown!r}: got {version!r}")
        return version
