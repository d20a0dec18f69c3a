"""
Text movie reading and writing.

The text form is a pretty-printed JSON header object followed by one frame
line per input:

    {
      "game_id": "GALE01",
      ...
    }
    S a b x y z u d l r lt rt   0   0 128 128 128 128 CC

Frame parse errors carry the absolute 1-indexed line number of the bad line,
so the reader counts newlines consumed by the header before reading frames.
"""

import dataclasses
import io
import json
import logging
from pathlib import Path
from typing import BinaryIO, Union

from .constants import JSON_INDENT, TEXT_ENCODING
from .errors import DtmEncodingError, HeaderFormatError
from .frame import ControllerFrame
from .header import DtmHeader
from .movie import Movie

logger = logging.getLogger(__name__)


class LineCountingReader(io.RawIOBase):
    """Unbuffered reader that counts newline bytes passing through it"""

    def __init__(self, inner: BinaryIO):
        super().__init__()
        self._inner = inner
        self.newlines = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self._inner.read(len(buffer))
        size = len(data)
        buffer[:size] = data
        self.newlines += data.count(b"\n")
        return size


def read_json_object(reader: BinaryIO) -> bytes:
    """
    Read exactly one top-level JSON object from a byte stream.

    Bytes are consumed one at a time and reading stops at the closing brace,
    so nothing after the object is taken from the stream. Leading whitespace
    is kept so positions reported by the JSON parser match the stream.

    Raises:
        HeaderFormatError: If the stream does not start with an object or
            ends before the object is closed
    """
    data = bytearray()
    depth = 0
    in_string = False
    escaped = False

    while True:
        byte = reader.read(1)
        if not byte:
            raise HeaderFormatError("Unexpected end of file inside header object")
        data += byte

        if in_string:
            if escaped:
                escaped = False
            elif byte == b"\\":
                escaped = True
            elif byte == b'"':
                in_string = False
        elif byte == b'"':
            in_string = True
        elif byte in (b"{", b"["):
            depth += 1
        elif byte in (b"}", b"]") and depth > 0:
            depth -= 1
            if depth == 0:
                return bytes(data)
        elif depth == 0 and not byte.isspace():
            line = data.count(b"\n") + 1
            raise HeaderFormatError(f"Expected '{{' to start the header object at line {line}")


def _reject_duplicate_keys(pairs):
    seen = set()
    duplicates = []
    for key, _ in pairs:
        if key in seen and key not in duplicates:
            duplicates.append(key)
        seen.add(key)
    if duplicates:
        raise HeaderFormatError(f"Header has duplicate field(s): {', '.join(duplicates)}")
    return dict(pairs)


def _parse_header(raw: bytes) -> DtmHeader:
    try:
        text = raw.decode(TEXT_ENCODING)
    except UnicodeDecodeError as e:
        raise DtmEncodingError(f"Header object is not valid UTF-8: {e}") from e

    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise HeaderFormatError(
            f"Invalid header JSON: {e.msg} at line {e.lineno} column {e.colno}"
        ) from e

    return DtmHeader.from_json_dict(data)


def decode_text(stream: BinaryIO) -> Movie:
    """
    Decode a text movie from a readable byte stream.

    The returned header's input_count is set to the number of frame lines
    actually read; whatever count the text header declared is replaced.

    Raises:
        HeaderFormatError: If the header object is malformed
        DtmEncodingError: If the input is not valid UTF-8
        FrameParseError: If a frame line is malformed, with its line number
    """
    counter = LineCountingReader(stream)
    header = _parse_header(read_json_object(counter))

    # The object closes on line newlines + 1; the rest of that line is skipped
    header_lines = counter.newlines + 1
    logger.debug("Header object spans %d line(s)", header_lines)

    frames = []
    lines = io.BufferedReader(counter)
    lines.readline()
    for line_number, raw_line in enumerate(lines, start=header_lines + 1):
        try:
            line = raw_line.decode(TEXT_ENCODING)
        except UnicodeDecodeError as e:
            raise DtmEncodingError(f"Line {line_number} is not valid UTF-8: {e}") from e
        if not line.strip():
            continue
        frames.append(ControllerFrame.from_line(line, line_number))

    if header.input_count != len(frames):
        logger.debug(
            "Header declares %d inputs but %d frame lines were read",
            header.input_count,
            len(frames),
        )
    header = dataclasses.replace(header, input_count=len(frames))

    return Movie(header=header, frames=frames)


def encode_text(movie: Movie, sink: BinaryIO) -> None:
    """
    Encode a movie as text to a writable byte sink.

    The header is written as it is held in memory, input_count included.

    Raises:
        ValueError: If a frame analog value does not fit in an unsigned byte
    """
    header_json = json.dumps(movie.header.to_json_dict(), indent=JSON_INDENT, ensure_ascii=False)
    lines = [header_json] + [frame.to_line() for frame in movie.frames]
    sink.write("".join(line + "\n" for line in lines).encode(TEXT_ENCODING))

    logger.debug("Encoded %d frames to text movie", len(movie.frames))


def load_text(filepath: Union[str, Path]) -> Movie:
    """Load a text movie file."""
    with open(filepath, "rb") as f:
        return decode_text(f)


def save_text(movie: Movie, filepath: Union[str, Path]) -> None:
    """Save a movie as a text file."""
    with open(filepath, "wb") as f:
        encode_text(movie, f)
