"""
Fixed-length opaque byte fields and their hex text form.

The header carries several blobs (audio emulator tag, md5, reserved padding,
git revision) that are never interpreted. In the text form each one is
written as an upper-case hex string, two digits per byte, no separators.
"""

from dataclasses import dataclass

from .errors import HexDecodeError

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def to_hex(data: bytes) -> str:
    """Encode bytes as upper-case hex, most significant nibble first."""
    return data.hex().upper()


def from_hex(text: str, length: int) -> bytes:
    """
    Decode a hex string into exactly `length` bytes.

    Digits may be upper or lower case.

    Raises:
        HexDecodeError: If the string is not 2 * length characters long or
            contains a character outside [0-9A-Fa-f]
    """
    if len(text) != length * 2:
        raise HexDecodeError(
            f"Invalid length for a {length}-byte hex string: "
            f"expected {length * 2} characters, got {len(text)}"
        )

    for i, char in enumerate(text):
        if char not in HEX_DIGITS:
            raise HexDecodeError(f"Invalid character {char!r} at position {i} in hex string")

    return bytes.fromhex(text)


@dataclass(frozen=True)
class ByteString:
    """Opaque fixed-length byte array"""

    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def zeros(cls, length: int) -> "ByteString":
        return cls(bytes(length))

    @classmethod
    def from_hex(cls, text: str, length: int) -> "ByteString":
        return cls(from_hex(text, length))

    def to_hex(self) -> str:
        return to_hex(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.to_hex()
