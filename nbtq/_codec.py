"""NBT codec — binary encode/decode between bytes and ``Tag`` trees.

Wire layout (all integers big-endian):

    named tag   kind:u8  name_len:u16  name:mutf8  payload
    BYTE        i8          SHORT   i16        INT     i32
    LONG        i64         FLOAT   f32        DOUBLE  f64
    STRING      len:u16  mutf8 bytes
    *_ARRAY     count:i32  count fixed-width elements
    LIST        elem_kind:u8  count:i32  count payloads (no kind, no name)
    COMPOUND    named tags ...  END (0x00)

A document is exactly one named COMPOUND with nothing after it.

Decode and encode recurse once per LIST/COMPOUND level and refuse to go
deeper than ``max_depth``.  Depth mirrors the container count: the root
COMPOUND is level 1, a LIST inside it level 2, and so on.  Scalars never add
a level.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Optional

from ._constants import (
    ARRAY_ELEMENTS,
    DEFAULT_MAX_DEPTH,
    MAX_SEQUENCE_LENGTH,
    MAX_STRING_BYTES,
    MIN_PAYLOAD_SIZE,
    TagKind,
)
from ._cursor import ByteCursor, encode_modified_utf8
from ._errors import (
    ERR_LIMIT_SIZE,
    ERR_SCHEMA,
    BadRoot,
    NbtError,
    NegativeLength,
    RecursionLimitExceeded,
    TrailingBytes,
    TruncatedInput,
    UnknownTagKind,
)
from ._tree import Tag

logger = logging.getLogger(__name__)

_ARRAY_CODES = {
    TagKind.BYTE_ARRAY: "b",
    TagKind.INT_ARRAY: "i",
    TagKind.LONG_ARRAY: "q",
}


# ── Decode ────────────────────────────────────────────────────

def _read_kind(cur: ByteCursor) -> TagKind:
    raw = cur.read_u8()
    if raw > TagKind.LONG_ARRAY:
        raise UnknownTagKind(raw)
    return TagKind(raw)


def _read_string(cur: ByteCursor) -> str:
    return cur.read_modified_utf8(cur.read_u16())


def _read_count(cur: ByteCursor, kind: TagKind) -> int:
    """Read an i32 count and check it could possibly fit."""
    count = cur.read_i32()
    if count < 0:
        raise NegativeLength(count)
    need = count * MIN_PAYLOAD_SIZE[kind]
    if need > cur.remaining:
        raise TruncatedInput("{} {} element(s) need at least {} byte(s), {} left".format(
            count, kind.name, need, cur.remaining))
    return count


def _read_payload(cur: ByteCursor, kind: TagKind, name: Optional[str],
                  depth: int, max_depth: int) -> Tag:
    """Decode one payload of ``kind``.  ``depth`` is the enclosing level."""
    if kind is TagKind.BYTE:
        return Tag(kind, cur.read_i8(), name)
    if kind is TagKind.SHORT:
        return Tag(kind, cur.read_i16(), name)
    if kind is TagKind.INT:
        return Tag(kind, cur.read_i32(), name)
    if kind is TagKind.LONG:
        return Tag(kind, cur.read_i64(), name)
    if kind is TagKind.FLOAT:
        return Tag(kind, cur.read_f32(), name)
    if kind is TagKind.DOUBLE:
        return Tag(kind, cur.read_f64(), name)
    if kind is TagKind.STRING:
        return Tag(kind, _read_string(cur), name)

    if kind in ARRAY_ELEMENTS:
        count = _read_count(cur, ARRAY_ELEMENTS[kind])
        fmt = struct.Struct(">{}{}".format(count, _ARRAY_CODES[kind]))
        return Tag(kind, fmt.unpack(cur.read_bytes(fmt.size)), name)

    # Containers from here on.
    if depth + 1 > max_depth:
        raise RecursionLimitExceeded("nesting deeper than {} levels".format(max_depth))

    if kind is TagKind.LIST:
        elem = _read_kind(cur)
        count = _read_count(cur, elem)
        if count and elem is TagKind.END:
            raise NbtError(ERR_SCHEMA, "LIST of END declares {} element(s)".format(count))
        items = []
        for _ in range(count):
            items.append(_read_payload(cur, elem, None, depth + 1, max_depth))
        return Tag(kind, tuple(items), name, elem)

    if kind is TagKind.COMPOUND:
        children = []
        while True:
            child_kind = _read_kind(cur)
            if child_kind is TagKind.END:
                break
            child_name = _read_string(cur)
            children.append(_read_payload(cur, child_kind, child_name, depth + 1, max_depth))
        return Tag(kind, tuple(children), name)

    raise NbtError(ERR_SCHEMA, "END has no payload")


def decode_tag(cur: ByteCursor, max_depth: int = DEFAULT_MAX_DEPTH) -> Tag:
    """Decode one named tag from ``cur``, advancing past it."""
    kind = _read_kind(cur)
    if kind is TagKind.END:
        raise BadRoot("END where a named tag was expected")
    name = _read_string(cur)
    return _read_payload(cur, kind, name, 0, max_depth)


def decode(data: bytes, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Tag:
    """Decode an uncompressed document.  The root must be a COMPOUND."""
    cur = ByteCursor(data)
    try:
        root = decode_tag(cur, max_depth)
    except RecursionError:
        raise RecursionLimitExceeded("interpreter stack exhausted") from None
    if root.kind is not TagKind.COMPOUND:
        raise BadRoot("root is {}, expected COMPOUND".format(root.kind.name))
    if cur.remaining:
        raise TrailingBytes(cur.remaining)
    logger.debug("decoded %d byte document, root %r", len(data), root.name)
    return root


# ── Encode ────────────────────────────────────────────────────

def _write_string(cur: ByteCursor, text: str) -> None:
    raw = encode_modified_utf8(text)
    if len(raw) > MAX_STRING_BYTES:
        raise NbtError(ERR_LIMIT_SIZE, "string of {} bytes exceeds {}".format(
            len(raw), MAX_STRING_BYTES))
    cur.write_u16(len(raw))
    cur.write_bytes(raw)


def _write_count(cur: ByteCursor, count: int) -> None:
    if count > MAX_SEQUENCE_LENGTH:
        raise NbtError(ERR_LIMIT_SIZE, "{} elements exceed i32 count".format(count))
    cur.write_i32(count)


def _write_payload(cur: ByteCursor, tag: Tag, depth: int, max_depth: int) -> None:
    kind = tag.kind
    if kind is TagKind.BYTE:
        cur.write_i8(tag.value)
    elif kind is TagKind.SHORT:
        cur.write_i16(tag.value)
    elif kind is TagKind.INT:
        cur.write_i32(tag.value)
    elif kind is TagKind.LONG:
        cur.write_i64(tag.value)
    elif kind is TagKind.FLOAT:
        cur.write_f32(tag.value)
    elif kind is TagKind.DOUBLE:
        cur.write_f64(tag.value)
    elif kind is TagKind.STRING:
        _write_string(cur, tag.value)
    elif kind in ARRAY_ELEMENTS:
        values = tag.value
        _write_count(cur, len(values))
        cur.write_bytes(struct.pack(">{}{}".format(len(values), _ARRAY_CODES[kind]), *values))
    else:
        if depth + 1 > max_depth:
            raise RecursionLimitExceeded("nesting deeper than {} levels".format(max_depth))
        if kind is TagKind.LIST:
            cur.write_u8(tag.element_kind)
            _write_count(cur, len(tag.value))
            for child in tag.value:
                _write_payload(cur, child, depth + 1, max_depth)
        else:
            for child in tag.value:
                cur.write_u8(child.kind)
                _write_string(cur, child.name)
                _write_payload(cur, child, depth + 1, max_depth)
            cur.write_u8(TagKind.END)


def encode_tag(tag: Tag, cur: ByteCursor, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Write ``tag`` as a named tag.  An unnamed tag is written with name ""."""
    cur.write_u8(tag.kind)
    _write_string(cur, tag.name or "")
    _write_payload(cur, tag, 0, max_depth)


def encode(root: Tag, *, max_depth: int = DEFAULT_MAX_DEPTH) -> bytes:
    """Encode a document.  The root must be a COMPOUND."""
    if not isinstance(root, Tag) or root.kind is not TagKind.COMPOUND:
        raise BadRoot("document root must be a COMPOUND tag")
    cur = ByteCursor()
    try:
        encode_tag(root, cur, max_depth)
    except RecursionError:
        raise RecursionLimitExceeded("interpreter stack exhausted") from None
    out = cur.getvalue()
    logger.debug("encoded document root %r to %d bytes", root.name, len(out))
    return out


# ── Result wrapper ────────────────────────────────────────────

@dataclass(frozen=True)
class DecodeResult:
    """Outcome of ``try_decode``: exactly one of ``tag`` / ``error`` is set."""

    tag: Optional[Tag] = None
    error: Optional[NbtError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> Optional[str]:
        return None if self.error is None else self.error.code


def try_decode(data: bytes, *, max_depth: int = DEFAULT_MAX_DEPTH) -> DecodeResult:
    """Like ``decode`` but returns the failure instead of raising it."""
    try:
        return DecodeResult(tag=decode(data, max_depth=max_depth))
    except NbtError as e:
        return DecodeResult(error=e)
