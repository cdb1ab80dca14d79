"""
downloads.py

Responsibility: Fetch remote tarballs and unpack them into the build dir.

Rules:
- Downloads are streamed to disk; HTTP failures surface as DownloadError.
- Extraction can strip leading path components (like `tar --strip-components`).
- Members that would land outside the destination are refused.
"""

from __future__ import annotations

import tarfile
import tempfile
from pathlib import Path, PurePosixPath

import requests

from emberpack.log import get_logger

log = get_logger("downloads")

_CHUNK_SIZE = 64 * 1024


class DownloadError(RuntimeError):
    pass


def download(url: str, dest: str | Path, *, timeout: float = 60) -> Path:
    """Stream `url` into the file `dest`, returning its path."""
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    log.debug("GET %s -> %s", url, dest_path)
    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            if r.status_code >= 400:
                raise DownloadError(f"Download failed {r.status_code}: {url}")
            with dest_path.open("wb") as fh:
                for chunk in r.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
    except requests.RequestException as e:
        raise DownloadError(f"Download failed: {url}: {e}") from e
    return dest_path


def _strip(name: str, count: int) -> str | None:
    parts = [p for p in PurePosixPath(name).parts if p not in ("", ".")]
    if len(parts) <= count:
        return None
    return "/".join(parts[count:])


def _is_within(root: Path, candidate: Path) -> bool:
    try:
        candidate.resolve().relative_to(root)
    except ValueError:
        return False
    return True


def extract_tarball(archive: str | Path, dest: str | Path, *, strip_components: int = 0) -> int:
    """
    Extract a gzip tarball into `dest`. Returns the number of members written.
    """
    dest_dir = Path(dest)
    dest_dir.mkdir(parents=True, exist_ok=True)
    root = dest_dir.resolve()

    try:
        tar = tarfile.open(archive, mode="r:*")
    except (tarfile.TarError, OSError) as e:
        raise DownloadError(f"Not a readable tarball: {archive}") from e

    written = 0
    with tar:
        for member in tar.getmembers():
            name = _strip(member.name, strip_components)
            if name is None:
                continue
            if PurePosixPath(name).is_absolute() or not _is_within(root, root / name):
                raise DownloadError(f"Refusing to extract outside {dest_dir}: {member.name}")
            member.name = name
            if member.islnk():
                linkname = _strip(member.linkname, strip_components)
                if linkname is None:
                    continue
                member.linkname = linkname
            tar.extract(member, root, filter="tar")
            written += 1
    return written


def fetch_and_extract(url: str, dest: str | Path, *, strip_components: int = 0) -> int:
    with tempfile.TemporaryDirectory(prefix="emberpack-") as tmp:
        archive = download(url, Path(tmp) / "archive.tgz")
        return extract_tarball(archive, dest, strip_components=strip_components)
