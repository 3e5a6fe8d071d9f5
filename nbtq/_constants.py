"""NBT constants — tag kind bytes, value ranges, limits, envelope magic.

Everything normative about the wire format lives here so the codec, the
tree and the tests agree on one set of numbers.
"""

from __future__ import annotations

import enum
from typing import Dict, Tuple


class TagKind(enum.IntEnum):
    """One-byte kind tag.  The numbering is fixed by the format."""

    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


# ── Signed integer ranges ─────────────────────────────────────
# Python ints are arbitrary-precision, so every integral payload is
# range-checked when a Tag is built, not when it is written.
INT8_MIN: int = -(2**7)
INT8_MAX: int = 2**7 - 1
INT16_MIN: int = -(2**15)
INT16_MAX: int = 2**15 - 1
INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

INTEGRAL_RANGES: Dict[TagKind, Tuple[int, int]] = {
    TagKind.BYTE: (INT8_MIN, INT8_MAX),
    TagKind.SHORT: (INT16_MIN, INT16_MAX),
    TagKind.INT: (INT32_MIN, INT32_MAX),
    TagKind.LONG: (INT64_MIN, INT64_MAX),
}

# Element kind of each array kind.
ARRAY_ELEMENTS: Dict[TagKind, TagKind] = {
    TagKind.BYTE_ARRAY: TagKind.BYTE,
    TagKind.INT_ARRAY: TagKind.INT,
    TagKind.LONG_ARRAY: TagKind.LONG,
}

# Smallest possible payload per kind.  A declared count is refused up front
# when count * size cannot fit in what is left of the buffer, so a forged
# 2**31 - 1 count never turns into a long loop or a huge allocation.
MIN_PAYLOAD_SIZE: Dict[TagKind, int] = {
    TagKind.END: 0,
    TagKind.BYTE: 1,
    TagKind.SHORT: 2,
    TagKind.INT: 4,
    TagKind.LONG: 8,
    TagKind.FLOAT: 4,
    TagKind.DOUBLE: 8,
    TagKind.BYTE_ARRAY: 4,
    TagKind.STRING: 2,
    TagKind.LIST: 5,
    TagKind.COMPOUND: 1,
    TagKind.INT_ARRAY: 4,
    TagKind.LONG_ARRAY: 4,
}

# ── Limits ────────────────────────────────────────────────────
# LIST and COMPOUND nesting deeper than this is refused.  The decoder
# recurses one frame per level, so the default stays well inside the
# interpreter's own recursion limit.
DEFAULT_MAX_DEPTH: int = 512

# Strings and names carry a u16 byte count.
MAX_STRING_BYTES: int = 0xFFFF

# Arrays and lists carry an i32 count.
MAX_SEQUENCE_LENGTH: int = INT32_MAX

# ── Envelopes ─────────────────────────────────────────────────
GZIP_MAGIC = b"\x1f\x8b"
ZLIB_METHOD_DEFLATE: int = 8
ZLIB_MAX_WINDOW_BITS: int = 7  # CINFO above 7 is invalid per RFC 1950

# ── Hotbar documents ──────────────────────────────────────────
# hotbar.nbt keeps one LIST per saved toolbar under the keys "0".."8".
HOTBAR_SLOTS: int = 9
AIR_ID: str = "minecraft:air"
BARREL_ID: str = "minecraft:barrel"
CHEST_ID: str = "minecraft:chest"
SHULKER_BOX_ID: str = "minecraft:shulker_box"
NBT_LORE: str = '"(+NBT)"'
