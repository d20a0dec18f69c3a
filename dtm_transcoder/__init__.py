"""
Dolphin movie transcoder
Converts TAS movies between the binary .dtm container and an editable text form
"""

__version__ = "0.3.0"

from .bytestring import ByteString
from .convert import convert_file, load_movie
from .dtm_io import decode_binary, encode_binary, load_dtm, save_dtm
from .errors import (
    BadMagicError,
    DtmEncodingError,
    DtmError,
    FrameParseError,
    FrameParseReason,
    HeaderFormatError,
    HexDecodeError,
    ShortReadError,
    StringTooLongError,
)
from .frame import ControllerFrame
from .header import DtmHeader
from .movie import Movie
from .text_io import decode_text, encode_text, load_text, save_text

# Define public API
__all__ = [
    # Data model
    "Movie",
    "DtmHeader",
    "ControllerFrame",
    "ByteString",
    # Stream codecs
    "decode_binary",
    "encode_binary",
    "decode_text",
    "encode_text",
    # File helpers
    "load_dtm",
    "save_dtm",
    "load_text",
    "save_text",
    "load_movie",
    "convert_file",
    # Errors
    "DtmError",
    "BadMagicError",
    "ShortReadError",
    "DtmEncodingError",
    "HeaderFormatError",
    "HexDecodeError",
    "FrameParseError",
    "FrameParseReason",
    "StringTooLongError",
]
