from __future__ import annotations

import base64
import os
import random
import struct

import pytest

from downpoll.core.downloader import download_file, tmp_filename, write_atomic, write_text


def failing_chunks():
    yield b"partial"
    raise OSError("connection dropped mid-body")


def test_tmp_filename_encodes_time_and_random_bits():
    name = tmp_filename(random.Random(7))

    assert name.startswith(".tmp.")
    raw = base64.urlsafe_b64decode(name[len(".tmp."):])
    assert len(raw) == 12
    _nanos, rand = struct.unpack("<QI", raw)
    assert rand == random.Random(7).getrandbits(32)


def test_tmp_filenames_differ_between_calls():
    rng = random.Random(3)

    assert tmp_filename(rng) != tmp_filename(rng)


def test_write_atomic_commits_full_content(tmp_path):
    dst = tmp_path / "image.png"

    write_atomic(str(dst), [b"ab", b"", b"cd"], random.Random(0))

    assert dst.read_bytes() == b"abcd"
    assert os.listdir(tmp_path) == ["image.png"]


def test_failed_copy_leaves_no_file_and_no_temp(tmp_path):
    dst = tmp_path / "clip.mp4"

    with pytest.raises(OSError):
        write_atomic(str(dst), failing_chunks(), random.Random(0))

    assert not dst.exists()
    assert os.listdir(tmp_path) == []


def test_failed_copy_preserves_existing_destination(tmp_path):
    dst = tmp_path / "clip.mp4"
    dst.write_bytes(b"previous")

    with pytest.raises(OSError):
        write_atomic(str(dst), failing_chunks(), random.Random(0))

    assert dst.read_bytes() == b"previous"
    assert os.listdir(tmp_path) == ["clip.mp4"]


def test_download_file_joins_directory_and_name(tmp_path):
    path = download_file(str(tmp_path), "a.jpeg", [b"jpeg"], random.Random(0))

    assert path == str(tmp_path / "a.jpeg")
    assert (tmp_path / "a.jpeg").read_bytes() == b"jpeg"


def test_write_text_never_overwrites(tmp_path):
    rng = random.Random(0)

    assert write_text(str(tmp_path), "info", "first", rng) is True
    assert write_text(str(tmp_path), "info", "second", rng) is False

    assert (tmp_path / "info").read_text(encoding="utf-8") == "first"
