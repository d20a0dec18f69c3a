"""
Binary .dtm reading and writing.

Layout: 4-byte magic, 252-byte header record, then header.input_count frame
records of 8 bytes each. The frame count always comes from the header; bytes
after the last declared frame are ignored.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Union

from .constants import DTM_MAGIC, FRAME_SIZE, HEADER_BODY_SIZE
from .errors import BadMagicError, ShortReadError
from .frame import ControllerFrame
from .header import DtmHeader
from .movie import Movie

logger = logging.getLogger(__name__)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = b""
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise ShortReadError(what, size, len(data))
        data += chunk
    return data


def decode_binary(stream: BinaryIO) -> Movie:
    """
    Decode a binary movie from a readable byte stream.

    Args:
        stream: Object with a read(n) method returning bytes

    Returns:
        Movie with exactly header.input_count frames

    Raises:
        BadMagicError: If the stream does not start with the movie signature
        ShortReadError: If the stream ends inside the header or a frame
        DtmEncodingError: If a header string is not valid UTF-8
    """
    magic = _read_exact(stream, len(DTM_MAGIC), "magic")
    if magic != DTM_MAGIC:
        raise BadMagicError(magic)

    header = DtmHeader.from_bytes(_read_exact(stream, HEADER_BODY_SIZE, "header"))

    frames = []
    for i in range(header.input_count):
        raw = _read_exact(stream, FRAME_SIZE, f"frame {i}")
        frames.append(ControllerFrame.from_bytes(raw))

    logger.debug("Decoded %d frames from binary movie", len(frames))
    return Movie(header=header, frames=frames)


def encode_binary(movie: Movie, sink: BinaryIO) -> None:
    """
    Encode a movie to a writable byte sink.

    Every frame in movie.frames is written; the header is written as is, so
    its input_count should match the frame count for the result to decode.

    Raises:
        StringTooLongError: If a header string does not fit its width
        ValueError: If a numeric field or analog value does not fit its width

    Nothing is written to the sink if packing fails.
    """
    # Pack everything before the first write
    header_bytes = movie.header.to_bytes()
    frame_bytes = b"".join(frame.to_bytes() for frame in movie.frames)

    sink.write(DTM_MAGIC)
    sink.write(header_bytes)
    sink.write(frame_bytes)

    logger.debug("Encoded %d frames to binary movie", len(movie.frames))


def load_dtm(filepath: Union[str, Path]) -> Movie:
    """Load a binary movie file."""
    with open(filepath, "rb") as f:
        return decode_binary(f)


def save_dtm(movie: Movie, filepath: Union[str, Path]) -> None:
    """Save a movie as a binary .dtm file."""
    with open(filepath, "wb") as f:
        encode_binary(movie, f)
