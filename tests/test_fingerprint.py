#!/usr/bin/env python3
"""Tests for partial content fingerprints using should/when pattern."""

import hashlib

from media_organizer.fingerprint import (
    MAX_CHUNK_SIZE,
    ONE_MB,
    calculate_chunk_size,
    calculate_sha256,
    fingerprint,
)


def _write(path, data):
    path.write_bytes(data)
    return path


def test_should_use_one_megabyte_chunks_when_file_below_threshold():
    """Should hash 1 MiB regions for anything smaller than 100 MiB."""

    assert calculate_chunk_size(0) == ONE_MB
    assert calculate_chunk_size(5 * ONE_MB) == ONE_MB
    assert calculate_chunk_size(100 * ONE_MB - 1) == ONE_MB


def test_should_scale_chunk_with_size_when_file_is_large():
    """Should use 1% of the file above 100 MiB, capped at 10 MiB."""

    assert calculate_chunk_size(100 * ONE_MB) == ONE_MB
    assert calculate_chunk_size(500 * ONE_MB) == 5 * ONE_MB
    assert calculate_chunk_size(10 * 1024 * ONE_MB) == MAX_CHUNK_SIZE


def test_should_hash_whole_content_when_file_fits_in_one_chunk(tmp_path):
    """Should equal a plain SHA256 of the content for small files."""

    # When the file is smaller than a chunk
    data = b'small file content'
    path = _write(tmp_path / 'small.jpg', data)

    # Should hash it exactly once
    assert fingerprint(path) == hashlib.sha256(data).hexdigest()
    assert fingerprint(path) == calculate_sha256(path)


def test_should_read_file_once_when_size_equals_chunk(tmp_path):
    """Should not hash the tail when the file is exactly one chunk."""

    data = bytes(range(256)) * (ONE_MB // 256)
    path = _write(tmp_path / 'exact.raf', data)

    assert fingerprint(path) == hashlib.sha256(data).hexdigest()


def test_should_hash_head_and_tail_when_file_is_one_byte_over_chunk(tmp_path):
    """Should hash the head then the overlapping tail."""

    data = bytes(range(256)) * (ONE_MB // 256) + b'\x01'
    path = _write(tmp_path / 'over.raf', data)

    expected = hashlib.sha256(data[:ONE_MB] + data[-ONE_MB:]).hexdigest()
    assert fingerprint(path) == expected


def test_should_ignore_middle_bytes_when_head_and_tail_match(tmp_path):
    """Should give equal fingerprints to files differing only in the middle."""

    # When two 3 MiB files share head and tail
    head = b'H' * ONE_MB
    tail = b'T' * ONE_MB
    first = _write(tmp_path / 'a.mov', head + b'\x00' * ONE_MB + tail)
    second = _write(tmp_path / 'b.mov', head + b'\xff' * ONE_MB + tail)

    # Should collide
    assert fingerprint(first) == fingerprint(second)
    assert calculate_sha256(first) != calculate_sha256(second)


def test_should_change_fingerprint_when_first_or_last_byte_changes(tmp_path):
    """Should notice edits inside the hashed regions."""

    base = bytearray(b'\x10' * (3 * ONE_MB))
    original = fingerprint(_write(tmp_path / 'base.mov', bytes(base)))

    first = bytearray(base)
    first[0] = 0x11
    last = bytearray(base)
    last[-1] = 0x11

    assert fingerprint(_write(tmp_path / 'first.mov', bytes(first))) != original
    assert fingerprint(_write(tmp_path / 'last.mov', bytes(last))) != original


def test_should_keep_fingerprint_when_file_is_renamed(tmp_path):
    """Should depend on content only."""

    path = _write(tmp_path / 'DSCF0001.JPG', b'content' * 1000)
    before = fingerprint(path)

    renamed = path.rename(tmp_path / 'holiday.jpg')

    assert fingerprint(renamed) == before
