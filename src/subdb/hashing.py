"""SubDB content fingerprinting.

SubDB identifies a video by the MD5 of its first and last 64KB. The file
itself never has to be read in full, which keeps lookups cheap for large
media files.

References:
    http://thesubdb.com/api/
"""

import hashlib
import io
import os
from typing import BinaryIO

from subdb.exceptions import (
    MissingSourceError,
    SourceTooSmallError,
    UnsupportedStreamError,
)

CHUNK_SIZE = 65536  # 64KB in bytes
HASH_SIZE = CHUNK_SIZE * 2


def is_binary_stream(stream: object, needs_seek: bool = True) -> bool:
    """
    Check that a stream is an open binary stream supporting read (and seek).

    Text streams are rejected up front since they hand back `str` chunks.
    A closed file answers `readable()` with a ValueError, which counts as
    unusable here.
    """

    if isinstance(stream, io.TextIOBase):
        return False

    capabilities = ("readable", "seekable") if needs_seek else ("readable",)

    try:
        for name in capabilities:
            check = getattr(stream, name, None)
            if not (callable(check) and check()):
                return False
    except ValueError:
        return False

    return True


def ensure_hashable_stream(stream: BinaryIO | None, argument: str = "stream") -> int:
    """
    Validate a stream for fingerprinting and return its length.

    The readable/seekable check runs before the length check, so an unusable
    stream is reported as such whatever its size.

    Raises:
        MissingSourceError: If the stream is None.
        UnsupportedStreamError: If the stream is closed, not binary, not
            readable or not seekable.
        SourceTooSmallError: If the stream holds fewer than HASH_SIZE bytes.
    """

    if stream is None:
        raise MissingSourceError(argument)

    if not is_binary_stream(stream):
        raise UnsupportedStreamError(argument)

    length = _stream_length(stream)

    if length < HASH_SIZE:
        raise SourceTooSmallError(argument=argument, length=length, minimum=HASH_SIZE)

    return length


def ensure_hashable_bytes(data: bytes | None, argument: str = "data") -> None:
    """Validate a byte buffer for fingerprinting."""

    if data is None:
        raise MissingSourceError(argument)

    if len(data) < HASH_SIZE:
        raise SourceTooSmallError(
            argument=argument, length=len(data), minimum=HASH_SIZE
        )


def fingerprint_stream(stream: BinaryIO, argument: str = "stream") -> str:
    """
    Calculate the SubDB hash of a readable, seekable binary stream.

    Parameters:
        stream (BinaryIO): Binary stream, must support seek. Not closed.
        argument (str): Name reported in validation errors.

    Returns:
        str: 32-character lowercase hexadecimal MD5 digest.

    Raises:
        SubDBValidationError: If the stream is missing, unusable or too small.
    """

    length = ensure_hashable_stream(stream, argument)

    buffer = bytearray(HASH_SIZE)

    stream.seek(0)
    first_chunk = stream.read(CHUNK_SIZE) or b""
    if not isinstance(first_chunk, (bytes, bytearray)):
        raise UnsupportedStreamError(argument)
    buffer[: len(first_chunk)] = first_chunk

    # A short first read moves the tail up rather than leaving a gap
    offset = len(first_chunk)
    stream.seek(length - CHUNK_SIZE)
    last_chunk = stream.read(CHUNK_SIZE) or b""
    buffer[offset : offset + len(last_chunk)] = last_chunk

    return hashlib.md5(buffer).hexdigest()


def fingerprint_bytes(data: bytes, argument: str = "data") -> str:
    """Calculate the SubDB hash of an in-memory byte buffer."""

    ensure_hashable_bytes(data, argument)

    with io.BytesIO(data) as stream:
        return fingerprint_stream(stream, argument)


def fingerprint_file(path: str | os.PathLike[str]) -> str:
    """Calculate the SubDB hash of a file on disk."""

    with open(path, "rb") as file_handle:
        return fingerprint_stream(file_handle, "path")


def _stream_length(stream: BinaryIO) -> int:
    position = stream.tell()
    length = stream.seek(0, io.SEEK_END)
    stream.seek(position)

    return length
