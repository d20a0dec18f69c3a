"""
Controller frame packing for the binary and text forms.

A frame is one polled GameCube controller state. In the binary form it is an
8-byte record: two bitmap bytes holding 16 flags, then six raw analog bytes.
In the text form it is one whitespace-separated line:

    S A B X Y Z U D L R LT RT  lp  rp  ax  ay  cx  cy [CD] [RST] [CC] [RSV]

Button tokens are upper case when pressed and lower case when released. The
four trailing flags are written only when set.

Both forms read their bit positions and tokens from FRAME_FLAGS.
"""

import ctypes
import re
from dataclasses import dataclass, field
from typing import Dict, NamedTuple

from cdataclass import NativeEndianCDataMixIn, meta

from .constants import FRAME_SIZE
from .errors import FrameParseError, FrameParseReason


class FlagBit(NamedTuple):
    """Where a boolean frame flag lives in both forms"""

    name: str
    byte: int
    bit: int
    token: str
    trailing: bool = False

    @property
    def mask(self) -> int:
        return 1 << self.bit


FRAME_FLAGS = (
    FlagBit("start", 0, 0, "S"),
    FlagBit("a", 0, 1, "A"),
    FlagBit("b", 0, 2, "B"),
    FlagBit("x", 0, 3, "X"),
    FlagBit("y", 0, 4, "Y"),
    FlagBit("z", 0, 5, "Z"),
    FlagBit("up", 0, 6, "U"),
    FlagBit("down", 0, 7, "D"),
    FlagBit("left", 1, 0, "L"),
    FlagBit("right", 1, 1, "R"),
    FlagBit("l", 1, 2, "LT"),
    FlagBit("r", 1, 3, "RT"),
    FlagBit("change_disc", 1, 4, "CD", trailing=True),
    FlagBit("reset", 1, 5, "RST", trailing=True),
    FlagBit("controller_connected", 1, 6, "CC", trailing=True),
    FlagBit("reserved", 1, 7, "RSV", trailing=True),
)

BUTTON_FLAGS = tuple(flag for flag in FRAME_FLAGS if not flag.trailing)
TRAILING_FLAGS = tuple(flag for flag in FRAME_FLAGS if flag.trailing)
TRAILING_FLAGS_BY_TOKEN: Dict[str, FlagBit] = {flag.token: flag for flag in TRAILING_FLAGS}

# Analog bytes in record order
ANALOG_FIELDS = ("l_pressure", "r_pressure", "analog_x", "analog_y", "c_x", "c_y")

_BYTE_TOKEN = re.compile(r"\+?[0-9]+")


@dataclass
class FrameRecord(NativeEndianCDataMixIn):
    """Raw 8-byte frame record as stored in a .dtm file"""

    flag_byte_0: int = field(metadata=meta(ctypes.c_uint8), default=0)
    flag_byte_1: int = field(metadata=meta(ctypes.c_uint8), default=0)
    l_pressure: int = field(metadata=meta(ctypes.c_uint8), default=0)
    r_pressure: int = field(metadata=meta(ctypes.c_uint8), default=0)
    analog_x: int = field(metadata=meta(ctypes.c_uint8), default=0)
    analog_y: int = field(metadata=meta(ctypes.c_uint8), default=0)
    c_x: int = field(metadata=meta(ctypes.c_uint8), default=0)
    c_y: int = field(metadata=meta(ctypes.c_uint8), default=0)


def _parse_byte(token: str, line_number: int) -> int:
    if not _BYTE_TOKEN.fullmatch(token):
        raise FrameParseError(line_number, FrameParseReason.INVALID_BYTE, token)
    value = int(token)
    if value > 0xFF:
        raise FrameParseError(line_number, FrameParseReason.INVALID_BYTE, token)
    return value


@dataclass
class ControllerFrame:
    """One sampled controller input"""

    start: bool = False
    a: bool = False
    b: bool = False
    x: bool = False
    y: bool = False
    z: bool = False
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False
    l: bool = False  # noqa: E741
    r: bool = False
    change_disc: bool = False
    reset: bool = False
    controller_connected: bool = False
    reserved: bool = False
    l_pressure: int = 0
    r_pressure: int = 0
    analog_x: int = 0
    analog_y: int = 0
    c_x: int = 0
    c_y: int = 0

    def _analog_values(self) -> Dict[str, int]:
        analog = {}
        for name in ANALOG_FIELDS:
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Analog value {name}={value} out of range 0-255")
            analog[name] = value
        return analog

    # ===== Binary form =====

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ControllerFrame":
        """
        Unpack an 8-byte frame record.

        Raises:
            ValueError: If raw is not exactly FRAME_SIZE bytes
        """
        if len(raw) != FRAME_SIZE:
            raise ValueError(f"Frame record must be {FRAME_SIZE} bytes, got {len(raw)}")

        record = FrameRecord.from_buffer(bytearray(raw))
        flag_bytes = (record.flag_byte_0, record.flag_byte_1)

        values = {flag.name: bool(flag_bytes[flag.byte] & flag.mask) for flag in FRAME_FLAGS}
        for name in ANALOG_FIELDS:
            values[name] = getattr(record, name)
        return cls(**values)

    def to_bytes(self) -> bytes:
        """
        Pack into an 8-byte frame record.

        Raises:
            ValueError: If an analog value does not fit in an unsigned byte
        """
        flag_bytes = [0, 0]
        for flag in FRAME_FLAGS:
            if getattr(self, flag.name):
                flag_bytes[flag.byte] |= flag.mask

        analog = self._analog_values()
        record = FrameRecord(flag_byte_0=flag_bytes[0], flag_byte_1=flag_bytes[1], **analog)
        return bytes(record.to_ctype())

    # ===== Text form =====

    @classmethod
    def from_line(cls, line: str, line_number: int = 0) -> "ControllerFrame":
        """
        Parse one text frame line.

        Args:
            line: The frame line, with or without its line terminator
            line_number: Reported in any FrameParseError

        Raises:
            FrameParseError: If a required token is missing, a button token is
                neither its upper nor lower case form, an analog token is not
                a number in 0-255, or a trailing token is not a known flag
        """
        tokens = iter(line.split())

        def next_token() -> str:
            token = next(tokens, None)
            if token is None:
                raise FrameParseError(line_number, FrameParseReason.MISSING_TOKEN)
            return token

        values = {}
        for flag in BUTTON_FLAGS:
            token = next_token()
            if token == flag.token:
                values[flag.name] = True
            elif token == flag.token.lower():
                values[flag.name] = False
            else:
                raise FrameParseError(line_number, FrameParseReason.INVALID_BUTTON, token)

        for name in ANALOG_FIELDS:
            values[name] = _parse_byte(next_token(), line_number)

        for token in tokens:
            flag = TRAILING_FLAGS_BY_TOKEN.get(token)
            if flag is None:
                raise FrameParseError(line_number, FrameParseReason.UNKNOWN_FLAG, token)
            values[flag.name] = True

        return cls(**values)

    def to_line(self) -> str:
        """
        Format as a text frame line, without the line terminator.

        Raises:
            ValueError: If an analog value does not fit in an unsigned byte
        """
        analog = self._analog_values()
        parts = [
            flag.token if getattr(self, flag.name) else flag.token.lower() for flag in BUTTON_FLAGS
        ]
        parts.extend(f"{analog[name]:3d}" for name in ANALOG_FIELDS)
        parts.extend(flag.token for flag in TRAILING_FLAGS if getattr(self, flag.name))
        return " ".join(parts)

    def __str__(self) -> str:
        return self.to_line()
