"""
Exception types raised while decoding or encoding movies.

Every error derives from DtmError so callers can catch the whole family.
Stream failures (OSError) raised by the underlying file object are not
wrapped and reach the caller unchanged.
"""

from enum import Enum
from typing import Optional


class DtmError(Exception):
    """Base class for all transcoder errors"""


class BadMagicError(DtmError):
    """The binary stream does not start with the movie signature"""

    def __init__(self, found: bytes):
        self.found = found
        super().__init__(f"Bad magic value: expected 44544D1A, got {found.hex().upper() or 'nothing'}")


class ShortReadError(DtmError, IOError):
    """The binary stream ended in the middle of a record"""

    def __init__(self, what: str, expected: int, got: int):
        self.what = what
        self.expected = expected
        self.got = got
        super().__init__(f"Unexpected end of file reading {what}: needed {expected} bytes, got {got}")


class DtmEncodingError(DtmError):
    """Bytes that should be UTF-8 text are not"""


class HeaderFormatError(DtmError):
    """The text header object is malformed"""


class HexDecodeError(DtmError, ValueError):
    """A hex bytestring has the wrong length or a non-hex character"""


class StringTooLongError(DtmError, ValueError):
    """A header string does not fit its fixed on-disk width"""

    def __init__(self, field_name: str, width: int, length: int):
        self.field_name = field_name
        self.width = width
        self.length = length
        super().__init__(f"String too long for '{field_name}': {length} bytes > {width} max")


class FrameParseReason(Enum):
    """Why a text frame line was rejected"""

    MISSING_TOKEN = "missing token"
    INVALID_BUTTON = "invalid button"
    INVALID_BYTE = "invalid analog value"
    UNKNOWN_FLAG = "unknown flag"


class FrameParseError(DtmError):
    """A frame line in the text form could not be parsed"""

    def __init__(self, line: int, reason: FrameParseReason, token: Optional[str] = None):
        self.line = line
        self.reason = reason
        self.token = token
        message = f"Line {line}: {reason.value}"
        if token is not None:
            message += f" '{token}'"
        super().__init__(message)
