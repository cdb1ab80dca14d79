"""
shell.py

Responsibility: Run the external tools the build relies on (npm, bower, ember)
and prepare the environment they run in.

Any non-zero exit aborts the build with a CommandError carrying the exit code,
so the CLI can exit with the tool's own status.
"""

from __future__ import annotations

import base64
import binascii
import os
import shutil
import subprocess
import tempfile
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

from emberpack.config import BuildLayout
from emberpack.log import DETAIL_PREFIX, get_logger

log = get_logger("shell")

_OUTPUT_TAIL_LINES = 40


class CommandError(RuntimeError):
    def __init__(self, cmd: list[str], returncode: int, output: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        message = f"Command failed ({returncode}): {' '.join(cmd)}"
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message)


class GitSshKeyError(ValueError):
    pass


def run(cmd: list[str], *, cwd: Path, env: Mapping[str, str] | None = None, echo: bool = True) -> None:
    """
    Run a subprocess, forwarding its combined output line by line to the log
    (INFO when `echo`, DEBUG otherwise). Raises CommandError on failure.
    """
    log.debug("$ %s (in %s)", " ".join(cmd), cwd)
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise CommandError(cmd, 127, str(e)) from e

    tail: deque[str] = deque(maxlen=_OUTPUT_TAIL_LINES)
    assert proc.stdout is not None
    with proc.stdout:
        for line in proc.stdout:
            line = line.rstrip("\n")
            tail.append(line)
            if echo:
                log.info("%s%s", DETAIL_PREFIX, line)
            else:
                log.debug("%s%s", DETAIL_PREFIX, line)
    returncode = proc.wait()
    if returncode != 0:
        raise CommandError(cmd, returncode, "" if echo else "\n".join(tail))


def output(cmd: list[str], *, cwd: Path, env: Mapping[str, str] | None = None) -> str:
    """Run a subprocess and return its stripped stdout."""
    log.debug("$ %s (in %s)", " ".join(cmd), cwd)
    try:
        r = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        raise CommandError(cmd, e.returncode, e.stdout or "") from e
    except OSError as e:
        raise CommandError(cmd, 127, str(e)) from e
    return r.stdout.strip()


def build_path_env(base: Mapping[str, str], layout: BuildLayout) -> dict[str, str]:
    """
    Environment for build tools: vendored node and the app's local binaries
    come first on PATH.
    """
    env = dict(base)
    paths = [
        str(layout.node_dir / "bin"),
        str(layout.build_dir / "node_modules" / ".bin"),
    ]
    existing = env.get("PATH")
    if existing:
        paths.append(existing)
    env["PATH"] = os.pathsep.join(paths)
    return env


def _decode_key(raw: str) -> str:
    if "PRIVATE KEY" in raw:
        return raw if raw.endswith("\n") else raw + "\n"
    try:
        decoded = base64.b64decode(raw, validate=False).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise GitSshKeyError("GIT_SSH_KEY is neither a PEM key nor base64 encoded PEM.") from e
    if "PRIVATE KEY" not in decoded:
        raise GitSshKeyError("GIT_SSH_KEY is neither a PEM key nor base64 encoded PEM.")
    return decoded if decoded.endswith("\n") else decoded + "\n"


@contextmanager
def git_ssh_key(env: Mapping[str, str], key: str | None) -> Iterator[dict[str, str]]:
    """
    Yield an environment in which git (and therefore npm/bower) authenticates
    with `key`. The key and the ssh wrapper are removed afterwards.
    """
    if not key:
        yield dict(env)
        return

    tmp = Path(tempfile.mkdtemp(prefix="emberpack-ssh-"))
    try:
        key_path = tmp / "id_rsa"
        key_path.write_text(_decode_key(key), encoding="utf-8")
        key_path.chmod(0o600)

        wrapper = tmp / "git-ssh"
        wrapper.write_text(
            "#!/bin/sh\n"
            f'exec ssh -i "{key_path}" -o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null "$@"\n',
            encoding="utf-8",
        )
        wrapper.chmod(0o700)

        out = dict(env)
        out["GIT_SSH"] = str(wrapper)
        out["GIT_SSH_COMMAND"] = str(wrapper)
        log.debug("Using GIT_SSH_KEY for git dependencies")
        yield out
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


def dump_npm_debug_log(layout: BuildLayout) -> bool:
    """Log npm's debug log (if the failed build left one). Returns True if found."""
    path = layout.npm_debug_log
    if not path.exists():
        return False
    log.error("%snpm-debug.log:", DETAIL_PREFIX)
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        log.error("%s%s", DETAIL_PREFIX, line)
    return True
