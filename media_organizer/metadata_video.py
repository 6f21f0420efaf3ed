"""Capture-time extraction for QuickTime (MOV) containers.

A QuickTime file is a sequence of atoms. Each atom starts with a 4-byte
big-endian size (header included) and a 4-byte ASCII type. The movie
resource atom ``moov`` normally starts with the movie header ``mvhd``,
whose fixed record begins with a version byte, three flag bytes and the
32-bit creation time in seconds since 1904-01-01.
"""

import os
import struct
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional
import logging

from .exceptions import (
    CompressedMovieError,
    CreationTimeNotSetError,
    InvalidAtomSizeError,
    MetadataError,
    MovieHeaderNotFoundError,
    ReferenceMovieError,
)
from .metadata import DestinationFragment, fragment_from_datetime

logger = logging.getLogger(__name__)

APPLE_EPOCH_ADJUSTMENT = 2082844800

MOVIE_RESOURCE_ATOM = b'moov'
MOVIE_HEADER_ATOM = b'mvhd'
REFERENCE_MOVIE_ATOM = b'rmra'
COMPRESSED_MOVIE_ATOM = b'cmov'

ATOM_HEADER = struct.Struct('>I4s')
MVHD_PREFIX = struct.Struct('>B3sI')


def _read_atom_header(f: BinaryIO):
    data = f.read(ATOM_HEADER.size)
    if len(data) < ATOM_HEADER.size:
        return None
    return ATOM_HEADER.unpack(data)


def find_movie_resource(f: BinaryIO) -> None:
    """
    Position ``f`` just after the header of the top-level ``moov`` atom.

    Raises:
        InvalidAtomSizeError: An atom declares a size smaller than its header
        MovieHeaderNotFoundError: End of file reached without a ``moov`` atom
    """
    while True:
        header = _read_atom_header(f)
        if header is None:
            raise MovieHeaderNotFoundError()

        size, atom_type = header
        if atom_type == MOVIE_RESOURCE_ATOM:
            return

        if size < ATOM_HEADER.size:
            raise InvalidAtomSizeError()
        f.seek(size - ATOM_HEADER.size, os.SEEK_CUR)


def read_creation_time(f: BinaryIO) -> datetime:
    """Read the movie creation time as a naive local datetime."""
    find_movie_resource(f)

    header = _read_atom_header(f)
    if header is None:
        raise MovieHeaderNotFoundError()

    atom_type = header[1]
    if atom_type == MOVIE_HEADER_ATOM:
        data = f.read(MVHD_PREFIX.size)
        if len(data) < MVHD_PREFIX.size:
            raise MetadataError("movie header truncated")
        _version, _flags, apple_seconds = MVHD_PREFIX.unpack(data)
        if apple_seconds == 0:
            raise CreationTimeNotSetError()
        return datetime.fromtimestamp(apple_seconds - APPLE_EPOCH_ADJUSTMENT)
    elif atom_type == COMPRESSED_MOVIE_ATOM:
        raise CompressedMovieError()
    elif atom_type == REFERENCE_MOVIE_ATOM:
        raise ReferenceMovieError()
    else:
        raise MovieHeaderNotFoundError()


def mov_destination_fragment(path: Path, no_sooc: Optional[bool] = None) -> DestinationFragment:
    """Destination folders for a QuickTime movie. Videos have no subfolder."""
    try:
        with open(path, 'rb') as f:
            created = read_creation_time(f)
    except MetadataError as e:
        raise e.with_path(path)

    return fragment_from_datetime(created)
