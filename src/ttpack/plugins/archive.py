"""Zip extraction for downloaded plugin archives.

Source archives from GitHub and similar hosts wrap everything in one
top-level directory (``repo-v1.0.0/...``). ``install_archive`` detects that
directory and extracts its contents directly into the destination. Every
entry is checked against the destination before anything is written, so
``../`` or absolute names in a hostile archive cannot escape it.
"""

import logging
import os
import shutil
import zipfile
import zlib
from pathlib import Path
from typing import Iterable, Optional

from ttpack.errors import ArchiveError, PathTraversalError

logger = logging.getLogger(__name__)


def find_wrapping_dir(names: Iterable[str]) -> Optional[str]:
    """Return the top-level directory shared by every entry, if any.

    All entries must contain a ``/`` and agree on the first segment. A
    single root-level entry or one disagreeing segment means there is
    nothing to strip.
    """
    wrapper = None
    for name in names:
        head, sep, _ = name.partition("/")
        if not sep or not head:
            return None
        if wrapper is None:
            wrapper = head
        elif head != wrapper:
            return None
    return wrapper


def safe_join(dest_dir: Path, rel_path: str) -> Path:
    """Join ``rel_path`` onto ``dest_dir`` and verify it stays inside.

    Raises:
        PathTraversalError: If the normalized path is not strictly below
            ``dest_dir``.
    """
    base = os.path.normpath(os.path.abspath(dest_dir))
    target = os.path.normpath(os.path.join(base, rel_path))
    if not target.startswith(base + os.sep):
        raise PathTraversalError(rel_path, base)
    return Path(target)


def install_archive(archive_path: Path, dest_dir: Path, strip_wrapper: bool = True) -> None:
    """Extract a zip archive into ``dest_dir``.

    Args:
        archive_path: Zip file to extract.
        dest_dir: Directory to extract into; created if missing.
        strip_wrapper: Elide a top-level directory shared by all entries.

    Raises:
        ArchiveError: If the archive is not a readable zip.
        PathTraversalError: If an entry would land outside ``dest_dir``.
            Entries extracted before the offending one stay on disk.
        OSError: If a directory or file cannot be written.
    """
    dest_dir = Path(dest_dir)
    try:
        zf = zipfile.ZipFile(archive_path)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Not a valid zip archive: {archive_path}: {e}") from e

    with zf:
        entries = zf.infolist()
        wrapper = find_wrapping_dir(e.filename for e in entries) if strip_wrapper else None
        if wrapper:
            logger.debug(f"Stripping wrapping directory '{wrapper}/'")

        dest_dir.mkdir(parents=True, exist_ok=True)
        umask = _current_umask()
        count = 0
        for info in entries:
            rel_path = info.filename
            if wrapper:
                rel_path = rel_path[len(wrapper) + 1:]
            if not rel_path.strip("/"):
                # The wrapping directory itself
                continue

            target = safe_join(dest_dir, rel_path)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            _extract_file(zf, info, target, umask)
            count += 1

    logger.debug(f"Extracted {count} files from {archive_path.name} into {dest_dir}")


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _extract_file(zf: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path, umask: int) -> None:
    """Write one file entry to ``target`` with its permission bits, less ``umask``."""
    with open(target, "wb") as out:
        try:
            with zf.open(info) as src:
                shutil.copyfileobj(src, out)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise ArchiveError(f"Cannot read '{info.filename}' from archive: {e}") from e

    mode = (info.external_attr >> 16) & 0o777
    if mode:
        os.chmod(target, mode & ~umask)
