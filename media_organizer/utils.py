"""Utility functions for media organization."""

import errno
import os
import shutil
import psutil
from pathlib import Path
from typing import Generator, Iterable
import logging

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 1024 * 1024


def format_bytes(bytes_value: int) -> str:
    """
    Format bytes as human-readable string.

    Args:
        bytes_value: Size in bytes

    Returns:
        Formatted string like "1.2GB"
    """
    if bytes_value == 0:
        return "0B"

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0
    size = float(bytes_value)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    return f"{size:.1f}{units[unit_index]}"


def get_available_space(path: Path) -> int:
    """
    Get available disk space for a path in bytes.

    Walks up to the nearest existing parent so that a destination which
    has not been created yet still reports the space of its volume.
    """
    probe = Path(path)
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent
    return psutil.disk_usage(str(probe)).free


def ensure_directory(path: Path) -> None:
    """Create ``path`` and any missing parents."""
    Path(path).mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, destination: Path) -> None:
    """
    Copy ``source`` to a new file at ``destination`` and sync it to disk.

    The destination is created exclusively, so an existing file is never
    overwritten. Timestamps are carried over after the content is synced.

    Raises:
        FileExistsError: If ``destination`` already exists
        OSError: On any other read or write failure
    """
    with open(source, 'rb') as src, open(destination, 'xb') as dst:
        try:
            shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)
            dst.flush()
            os.fsync(dst.fileno())
        except BaseException:
            # drop the partial file we created before re-raising
            dst.close()
            os.unlink(destination)
            raise
    shutil.copystat(source, destination)


def move_file(source: Path, destination: Path) -> None:
    """
    Rename ``source`` to ``destination``.

    Falls back to copy-then-unlink when the two paths are on different
    devices.

    Raises:
        FileExistsError: If ``destination`` already exists
        OSError: On any other failure
    """
    if os.path.lexists(destination):
        raise FileExistsError(errno.EEXIST, "destination already exists", str(destination))

    try:
        os.rename(source, destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        logger.debug(f"Cross-device move, copying {source} -> {destination}")
        copy_file(source, destination)
        os.unlink(source)


def file_type(file_path) -> str:
    """Lower-cased extension without the leading dot."""
    return Path(file_path).suffix.lower().lstrip('.')


def _raise_walk_error(error: OSError) -> None:
    raise error


def walk_media_files(directory: Path, types: Iterable[str]) -> Generator[Path, None, None]:
    """
    Recursively yield files whose extension is in ``types``.

    Unlike a lenient rglob, any error raised while listing a directory
    (missing root, permission denied) propagates to the caller.

    Args:
        directory: Directory to search
        types: Allowed extensions, lower case, without dots

    Yields:
        Path objects for matching files
    """
    allowed = {t.lower().lstrip('.') for t in types}

    for dirpath, dirnames, filenames in os.walk(str(directory), onerror=_raise_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            if file_type(name) in allowed:
                yield Path(dirpath) / name
