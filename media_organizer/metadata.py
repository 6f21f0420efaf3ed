"""Capture-time extraction for still images (JPEG and Fujifilm RAF)."""

import io
import struct
from collections import namedtuple
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional
import logging

import exifread

from .exceptions import ExifNotFoundError, MetadataError

logger = logging.getLogger(__name__)

SOOC_FOLDER = "sooc"

EXIF_DATE_TAGS = ('EXIF DateTimeOriginal', 'EXIF DateTimeDigitized', 'Image DateTime')
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# magic, format version, camera id, camera name,
# directory: version, 20 reserved bytes, (offset, length) x3 for JPEG, CFA header, CFA
RAF_HEADER = struct.Struct('>16s4s8s32s4s20xiiiiii')

DestinationFragment = namedtuple('DestinationFragment', ['year', 'date', 'subfolder'])

RafHeader = namedtuple('RafHeader', [
    'magic', 'format_version', 'camera_id', 'camera',
    'dir_version', 'jpeg_offset', 'jpeg_length',
    'cfa_header_offset', 'cfa_header_length', 'cfa_offset', 'cfa_length',
])


def fragment_from_datetime(created: datetime, subfolder: str = "") -> DestinationFragment:
    """Build the year/date folder names for a capture time."""
    return DestinationFragment(
        year=f"{created.year:04d}",
        date=created.strftime("%Y-%m-%d"),
        subfolder=subfolder,
    )


def read_exif_datetime(stream: BinaryIO) -> datetime:
    """
    Read the capture time from an EXIF byte stream.

    Raises:
        ExifNotFoundError: The stream has no EXIF block or no date tag
        MetadataError: The EXIF block is corrupt or the date is unreadable
    """
    try:
        tags = exifread.process_file(stream, details=False)
    except Exception as e:
        raise MetadataError(f"failed to decode exif data: {e}") from e

    if not tags:
        raise ExifNotFoundError()

    for tag_name in EXIF_DATE_TAGS:
        tag = tags.get(tag_name)
        if tag is None:
            continue
        value = str(tag).strip().strip('\x00')
        try:
            return datetime.strptime(value[:19], EXIF_DATE_FORMAT)
        except ValueError as e:
            raise MetadataError(f"failed to get creation time: {value!r}") from e

    raise ExifNotFoundError()


def jpeg_destination_fragment(path: Path, no_sooc: bool = False) -> DestinationFragment:
    """
    Destination folders for a camera JPEG.

    JPEGs go into a ``sooc`` folder next to their raw counterparts unless
    ``no_sooc`` is set.
    """
    try:
        with open(path, 'rb') as f:
            created = read_exif_datetime(f)
    except MetadataError as e:
        raise e.with_path(path)

    return fragment_from_datetime(created, "" if no_sooc else SOOC_FOLDER)


def read_raf_header(f: BinaryIO) -> RafHeader:
    """Read the fixed RAF header from the start of ``f``."""
    data = f.read(RAF_HEADER.size)
    if len(data) < RAF_HEADER.size:
        raise MetadataError(
            f"failed to read RAF header: expected {RAF_HEADER.size} bytes, got {len(data)}"
        )
    return RafHeader(*RAF_HEADER.unpack(data))


def raf_destination_fragment(path: Path, no_sooc: Optional[bool] = None) -> DestinationFragment:
    """
    Destination folders for a Fujifilm RAF file.

    The capture time comes from the EXIF block of the embedded preview JPEG.
    Raw files sit directly in the date folder.
    """
    try:
        with open(path, 'rb') as f:
            header = read_raf_header(f)
            camera = header.camera.rstrip(b'\0').decode('ascii', 'replace')
            logger.debug(
                f"RAF {path}: camera {camera}, "
                f"jpeg at {header.jpeg_offset} ({header.jpeg_length} bytes)"
            )

            if header.jpeg_offset < 0 or header.jpeg_length <= 0:
                raise MetadataError("failed to read JPEG data: invalid preview directory entry")

            f.seek(header.jpeg_offset)
            jpeg = f.read(header.jpeg_length)
            if len(jpeg) < header.jpeg_length:
                raise MetadataError("failed to read JPEG data: unexpected end of file")

        created = read_exif_datetime(io.BytesIO(jpeg))
    except MetadataError as e:
        raise e.with_path(path)

    return fragment_from_datetime(created)
