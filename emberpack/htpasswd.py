"""
htpasswd.py

Responsibility: Write the basic-auth user file nginx reads.

Entries use the salted SHA-1 scheme (`{SSHA}`) that nginx's auth_basic module
understands without an external crypt(3).
"""

from __future__ import annotations

import base64
import hashlib
import os
from pathlib import Path

_SALT_BYTES = 8


class HtpasswdError(ValueError):
    pass


def ssha_hash(password: str, salt: bytes | None = None) -> str:
    if salt is None:
        salt = os.urandom(_SALT_BYTES)
    digest = hashlib.sha1(password.encode("utf-8") + salt).digest()
    return "{SSHA}" + base64.b64encode(digest + salt).decode("ascii")


def htpasswd_line(user: str, password: str, salt: bytes | None = None) -> str:
    if not user or ":" in user:
        raise HtpasswdError(f"Invalid basic auth user: {user!r}")
    return f"{user}:{ssha_hash(password, salt)}"


def write_htpasswd(path: str | Path, user: str | None, password: str | None) -> bool:
    """
    Write `path` when both credentials are set, otherwise remove any stale
    file. Returns True when basic auth is enabled.
    """
    target = Path(path)
    if not (user and password):
        target.unlink(missing_ok=True)
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(htpasswd_line(user, password) + "\n", encoding="utf-8")
    target.chmod(0o600)
    return True
