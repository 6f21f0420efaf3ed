"""Content fingerprints computed from the head and tail of a file."""

import hashlib
import os
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

ONE_MB = 1024 * 1024
MIN_CHUNK_SIZE = ONE_MB
MAX_CHUNK_SIZE = 10 * ONE_MB
LARGE_FILE_THRESHOLD = 100 * ONE_MB


def calculate_chunk_size(file_size: int) -> int:
    """
    Size of the head and tail regions hashed for a file.

    1 MiB below 100 MiB, otherwise 1% of the file capped at 10 MiB.
    """
    if file_size < LARGE_FILE_THRESHOLD:
        return MIN_CHUNK_SIZE

    return min(file_size // 100, MAX_CHUNK_SIZE)


def _read_up_to(f, size: int) -> bytes:
    """Read ``size`` bytes, stopping early only at end of file."""
    parts = []
    remaining = size
    while remaining > 0:
        chunk = f.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b''.join(parts)


def fingerprint(file_path: Path) -> str:
    """
    Calculate the partial SHA256 fingerprint of a file.

    The first and last ``calculate_chunk_size(size)`` bytes feed a single
    digest. Files no larger than one chunk are read once. Two files that
    share head and tail but differ in the middle get the same fingerprint.

    Args:
        file_path: Path to file

    Returns:
        SHA256 hex digest

    Raises:
        OSError: If the file cannot be opened, read or seeked
    """
    hasher = hashlib.sha256()

    with open(file_path, 'rb') as f:
        file_size = os.fstat(f.fileno()).st_size
        chunk_size = calculate_chunk_size(file_size)

        hasher.update(_read_up_to(f, chunk_size))

        if file_size > chunk_size:
            f.seek(-chunk_size, os.SEEK_END)
            hasher.update(_read_up_to(f, chunk_size))

    return hasher.hexdigest()


def calculate_sha256(file_path: Path, chunk_size: int = 8192) -> str:
    """
    Calculate SHA256 hash of the whole file.

    Args:
        file_path: Path to file
        chunk_size: Size of chunks to read at a time

    Returns:
        SHA256 hash as hexadecimal string
    """
    hasher = hashlib.sha256()
    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()
