"""
Movie header: binary record and JSON object forms.

The binary header is a packed little-endian record of 252 bytes that follows
the 4-byte magic. Its layout is described once in HEADER_FIELDS; both the
struct format and the JSON key order are derived from that table.

Field kinds:
    str   fixed-width UTF-8, zero padded on disk, padding stripped in memory
    bool  one byte, nonzero is true
    u8 / u32 / u64  unsigned little-endian integers
    blob  opaque fixed-width bytes, hex encoded in the text form
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple

from .bytestring import ByteString
from .constants import HEADER_BODY_SIZE
from .errors import DtmEncodingError, HeaderFormatError, HexDecodeError, StringTooLongError

logger = logging.getLogger(__name__)


class HeaderField(NamedTuple):
    name: str
    kind: str
    width: int = 1


HEADER_FIELDS = (
    HeaderField("game_id", "str", 6),
    HeaderField("wii_game", "bool"),
    HeaderField("controllers", "u8"),
    HeaderField("savestate", "bool"),
    HeaderField("vi_count", "u64", 8),
    HeaderField("input_count", "u64", 8),
    HeaderField("lag_counter", "u64", 8),
    HeaderField("reserved1", "u64", 8),
    HeaderField("rerecord_count", "u32", 4),
    HeaderField("author", "str", 32),
    HeaderField("video_backend", "str", 16),
    HeaderField("audio_emulator", "blob", 16),
    HeaderField("md5", "blob", 16),
    HeaderField("start_time", "u64", 8),
    HeaderField("valid_config", "bool"),
    HeaderField("idle_skipping", "bool"),
    HeaderField("dual_core", "bool"),
    HeaderField("progressive_scan", "bool"),
    HeaderField("dsp_hle", "bool"),
    HeaderField("fast_disc", "bool"),
    HeaderField("cpu_core", "u8"),
    HeaderField("efb_access", "bool"),
    HeaderField("efb_copy", "bool"),
    HeaderField("efb_to_texture", "bool"),
    HeaderField("efb_copy_cache", "bool"),
    HeaderField("emulate_format_changes", "bool"),
    HeaderField("use_xfb", "bool"),
    HeaderField("use_real_xfb", "bool"),
    HeaderField("memory_cards", "u8"),
    HeaderField("memory_card_blank", "bool"),
    HeaderField("bongos_plugged", "u8"),
    HeaderField("sync_gpu", "bool"),
    HeaderField("netplay", "bool"),
    HeaderField("sysconf_pal60", "bool"),
    HeaderField("reserved2", "blob", 12),
    HeaderField("second_disc", "str", 40),
    HeaderField("git_revision", "blob", 20),
    HeaderField("dsp_irom_hash", "u32", 4),
    HeaderField("dsp_coef_hash", "u32", 4),
    HeaderField("tick_count", "u64", 8),
    HeaderField("reserved3", "blob", 11),
)

FIELDS_BY_NAME = {f.name: f for f in HEADER_FIELDS}

_STRUCT_CODES = {"bool": "B", "u8": "B", "u32": "I", "u64": "Q"}


def _struct_code(header_field: HeaderField) -> str:
    if header_field.kind in ("str", "blob"):
        return f"{header_field.width}s"
    return _STRUCT_CODES[header_field.kind]


HEADER_STRUCT = struct.Struct("<" + "".join(_struct_code(f) for f in HEADER_FIELDS))
if HEADER_STRUCT.size != HEADER_BODY_SIZE:
    raise RuntimeError(
        f"Header layout is {HEADER_STRUCT.size} bytes, expected {HEADER_BODY_SIZE}"
    )


def _int_range(kind: str) -> int:
    return 1 << {"u8": 8, "u32": 32, "u64": 64}[kind]


def _blob(length: int):
    return field(default_factory=lambda: ByteString.zeros(length))


@dataclass
class DtmHeader:
    """Movie metadata: game identity, emulator settings and session counters"""

    game_id: str = ""
    wii_game: bool = False
    controllers: int = 0
    savestate: bool = False
    vi_count: int = 0
    input_count: int = 0
    lag_counter: int = 0
    reserved1: int = 0
    rerecord_count: int = 0
    author: str = ""
    video_backend: str = ""
    audio_emulator: ByteString = _blob(16)
    md5: ByteString = _blob(16)
    start_time: int = 0
    valid_config: bool = False
    idle_skipping: bool = False
    dual_core: bool = False
    progressive_scan: bool = False
    dsp_hle: bool = False
    fast_disc: bool = False
    cpu_core: int = 0
    efb_access: bool = False
    efb_copy: bool = False
    efb_to_texture: bool = False
    efb_copy_cache: bool = False
    emulate_format_changes: bool = False
    use_xfb: bool = False
    use_real_xfb: bool = False
    memory_cards: int = 0
    memory_card_blank: bool = False
    bongos_plugged: int = 0
    sync_gpu: bool = False
    netplay: bool = False
    sysconf_pal60: bool = False
    reserved2: ByteString = _blob(12)
    second_disc: str = ""
    git_revision: ByteString = _blob(20)
    dsp_irom_hash: int = 0
    dsp_coef_hash: int = 0
    tick_count: int = 0
    reserved3: ByteString = _blob(11)

    # ===== Binary form =====

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DtmHeader":
        """
        Decode the header record that follows the magic.

        Args:
            raw: Exactly HEADER_BODY_SIZE bytes

        Returns:
            DtmHeader with string padding stripped

        Raises:
            DtmEncodingError: If a string field is not valid UTF-8
        """
        values = {}
        for header_field, value in zip(HEADER_FIELDS, HEADER_STRUCT.unpack(raw)):
            if header_field.kind == "str":
                try:
                    value = value.rstrip(b"\x00").decode("utf-8")
                except UnicodeDecodeError as e:
                    raise DtmEncodingError(
                        f"Header field '{header_field.name}' is not valid UTF-8: {e}"
                    ) from e
            elif header_field.kind == "bool":
                value = value != 0
            elif header_field.kind == "blob":
                value = ByteString(value)
            values[header_field.name] = value

        header = cls(**values)
        logger.debug("Decoded header for game '%s', %d inputs", header.game_id, header.input_count)
        return header

    def to_bytes(self) -> bytes:
        """
        Encode the header record, without the magic.

        Raises:
            StringTooLongError: If a string field does not fit its width
            ValueError: If an integer or blob field does not fit its width
        """
        values = []
        for header_field in HEADER_FIELDS:
            value = getattr(self, header_field.name)
            if header_field.kind == "str":
                value = value.encode("utf-8")
                if len(value) > header_field.width:
                    raise StringTooLongError(header_field.name, header_field.width, len(value))
            elif header_field.kind == "bool":
                value = 1 if value else 0
            elif header_field.kind == "blob":
                value = bytes(value)
                if len(value) != header_field.width:
                    raise ValueError(
                        f"Blob field '{header_field.name}' must be {header_field.width} bytes, "
                        f"got {len(value)}"
                    )
            elif not 0 <= value < _int_range(header_field.kind):
                raise ValueError(
                    f"Integer field '{header_field.name}' out of range for {header_field.kind}: "
                    f"{value}"
                )
            values.append(value)

        # struct zero-pads short "Ns" values
        return HEADER_STRUCT.pack(*values)

    # ===== Text form =====

    def to_json_dict(self) -> Dict[str, Any]:
        """Header as a JSON-ready dict, keys in declaration order."""
        result = {}
        for header_field in HEADER_FIELDS:
            value = getattr(self, header_field.name)
            if header_field.kind == "blob":
                value = value.to_hex()
            result[header_field.name] = value
        return result

    @classmethod
    def from_json_dict(cls, data: Any) -> "DtmHeader":
        """
        Build a header from a parsed JSON object.

        Every field must be present with the JSON type of its kind. Blob
        fields are hex strings of twice their byte width.

        Raises:
            HeaderFormatError: If the object is not a dict, has missing or
                unknown keys, or a value of the wrong type or range
        """
        if not isinstance(data, dict):
            raise HeaderFormatError(f"Header must be a JSON object, got {type(data).__name__}")

        missing = [f.name for f in HEADER_FIELDS if f.name not in data]
        if missing:
            raise HeaderFormatError(f"Header is missing field(s): {', '.join(missing)}")

        unknown = [key for key in data if key not in FIELDS_BY_NAME]
        if unknown:
            raise HeaderFormatError(f"Header has unknown field(s): {', '.join(unknown)}")

        values = {}
        for header_field in HEADER_FIELDS:
            values[header_field.name] = _json_value(header_field, data[header_field.name])
        return cls(**values)


def _json_value(header_field: HeaderField, value: Any) -> Any:
    name = header_field.name
    kind = header_field.kind

    if kind == "bool":
        if not isinstance(value, bool):
            raise HeaderFormatError(f"Header field '{name}' must be a boolean, got {value!r}")
        return value

    if kind == "str":
        if not isinstance(value, str):
            raise HeaderFormatError(f"Header field '{name}' must be a string, got {value!r}")
        return value

    if kind == "blob":
        if not isinstance(value, str):
            raise HeaderFormatError(f"Header field '{name}' must be a hex string, got {value!r}")
        try:
            return ByteString.from_hex(value, header_field.width)
        except HexDecodeError as e:
            raise HeaderFormatError(f"Header field '{name}': {e}") from e

    # Integer kinds; bool is an int subclass in Python but not in JSON
    if not isinstance(value, int) or isinstance(value, bool):
        raise HeaderFormatError(f"Header field '{name}' must be an integer, got {value!r}")
    if not 0 <= value < _int_range(kind):
        raise HeaderFormatError(f"Header field '{name}' out of range for {kind}: {value}")
    return value
