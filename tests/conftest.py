"""Shared fixtures for media organizer tests."""

import struct
from datetime import datetime
from pathlib import Path

import pytest
import yaml

APPLE_EPOCH_ADJUSTMENT = 2082844800
RAF_HEADER_FORMAT = '>16s4s8s32s4s20xiiiiii'


def exif_jpeg_bytes(when, payload=b''):
    """Minimal JPEG whose APP1 segment holds an IFD0 DateTime tag."""
    stamp = when.strftime('%Y:%m:%d %H:%M:%S').encode('ascii') + b'\x00'
    tiff = b'MM\x00\x2a' + struct.pack('>I', 8)
    tiff += struct.pack('>H', 1)
    tiff += struct.pack('>HHII', 0x0132, 2, len(stamp), 26)
    tiff += struct.pack('>I', 0)
    tiff += stamp
    app1 = b'Exif\x00\x00' + tiff
    comment = b'\xff\xfe' + struct.pack('>H', len(payload) + 2) + payload
    return b'\xff\xd8\xff\xe1' + struct.pack('>H', len(app1) + 2) + app1 + comment + b'\xff\xd9'


def raf_bytes(when, payload=b''):
    """RAF header followed by an embedded EXIF preview JPEG."""
    jpeg = exif_jpeg_bytes(when, payload)
    header_size = struct.calcsize(RAF_HEADER_FORMAT)
    header = struct.pack(
        RAF_HEADER_FORMAT,
        b'FUJIFILMCCD-RAW ', b'0201', b'FF129502', b'X-T3'.ljust(32, b'\x00'), b'0100',
        header_size, len(jpeg), 0, 0, 0, 0,
    )
    return header + jpeg


def atom(atom_type, body=b''):
    return struct.pack('>I4s', 8 + len(body), atom_type) + body


def mov_bytes(when=None, apple_seconds=None, child=b'mvhd', payload=b''):
    """QuickTime file: ftyp, wide, moov(<child>), mdat(payload)."""
    if apple_seconds is None:
        apple_seconds = int(when.timestamp()) + APPLE_EPOCH_ADJUSTMENT
    mvhd_body = struct.pack('>B3sI', 0, b'\x00\x00\x00', apple_seconds) + b'\x00' * 92
    return (
        atom(b'ftyp', b'qt  \x00\x00\x02\x00qt  ')
        + atom(b'wide')
        + atom(b'moov', atom(child, mvhd_body))
        + atom(b'mdat', payload)
    )


@pytest.fixture
def create_jpeg():
    """Factory fixture: write a JPEG with an EXIF capture time."""

    def _create(path, when=datetime(2024, 11, 13, 12, 0, 0), payload=b'jpeg-payload'):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(exif_jpeg_bytes(when, payload))
        return path

    return _create


@pytest.fixture
def create_raf():
    """Factory fixture: write a RAF file with an embedded preview."""

    def _create(path, when=datetime(2024, 11, 13, 12, 0, 0), payload=b'raf-payload'):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raf_bytes(when, payload))
        return path

    return _create


@pytest.fixture
def create_mov():
    """Factory fixture: write a QuickTime movie."""

    def _create(path, when=datetime(2023, 6, 1, 12, 0, 0), payload=b'mov-payload', **kwargs):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(mov_bytes(when, payload=payload, **kwargs))
        return path

    return _create


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / 'source'
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path):
    path = tmp_path / 'dest'
    path.mkdir()
    return path


@pytest.fixture
def write_config(tmp_path):
    """Factory fixture: write a YAML config file and return its path."""

    def _write(overrides=None, filename='organizer.yml'):
        config_data = {
            'media_organizer': {
                'types': ['jpg', 'raf', 'mov'],
                'process': {
                    'parallel_jobs': 4,
                    'queue_size': 8,
                    'progress_step': 20,
                },
                'layout': {'no_sooc': False},
                'safety': {
                    'min_free_space_mb': 0,
                    'verify_copies': True,
                },
                'logging': {'level': 'INFO'},
            },
        }
        for key_path, value in (overrides or {}).items():
            node = config_data
            keys = key_path.split('.')
            for key in keys[:-1]:
                node = node.setdefault(key, {})
            node[keys[-1]] = value

        config_path = tmp_path / filename
        with open(config_path, 'w') as f:
            yaml.dump(config_data, f)
        return config_path

    return _write


@pytest.fixture
def sample_config(write_config):
    """Config backed by a temp file with small pools and queues."""
    from media_organizer.config import Config
    return Config(str(write_config()))
