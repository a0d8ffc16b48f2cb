"""
File writing module
Writes downloads and text files through a temp file and an atomic rename
"""
import base64
import os
import random
import struct
import time
from typing import Iterable


def tmp_filename(rng: random.Random) -> str:
    """Build a temp file name from the current time and 32 random bits

    Returns:
        ".tmp." followed by 12 bytes (8 bytes of nanoseconds, 4 random bytes)
        in unpadded base64url
    """
    raw = struct.pack("<QI", time.time_ns() & 0xFFFFFFFFFFFFFFFF, rng.getrandbits(32))
    return ".tmp." + base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def write_atomic(dst: str, chunks: Iterable[bytes], rng: random.Random) -> None:
    """Write chunks to dst so that dst is never seen partially written

    The data goes into a temp sibling of dst which is renamed onto dst
    only after it is fully written and closed. On failure the temp file
    is removed and dst keeps its previous state.

    Args:
        dst: final file path
        chunks: body to write
        rng: random source for the temp file name
    """
    tmp = os.path.join(os.path.dirname(dst), tmp_filename(rng))

    try:
        with open(tmp, "xb") as f:
            for chunk in chunks:
                if chunk:
                    f.write(chunk)
        os.replace(tmp, dst)
    except BaseException:
        try:
            os.remove(tmp)
        except FileNotFoundError:
            pass
        raise


def download_file(directory: str, name: str, chunks: Iterable[bytes], rng: random.Random) -> str:
    """Write a downloaded body to directory/name

    Returns:
        Path of the written file
    """
    dst = os.path.join(directory, name)
    write_atomic(dst, chunks, rng)
    return dst


def write_text(directory: str, name: str, text: str, rng: random.Random) -> bool:
    """Write a text file unless one already exists

    Returns:
        True if the file was written, False if it already existed
    """
    dst = os.path.join(directory, name)
    if os.path.exists(dst):
        return False

    write_atomic(dst, [text.encode("utf-8")], rng)
    return True
