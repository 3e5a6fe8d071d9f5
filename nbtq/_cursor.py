"""Byte cursor — sequential big-endian reads and writes over one buffer.

Reads are bounds-checked and fail with ``TruncatedInput`` without moving
the position.  Writes never fail; the buffer grows as needed.

Text uses Java's "modified UTF-8", which differs from UTF-8 in two ways:

    U+0000            →  C0 80 (never a raw NUL byte)
    U+10000..U+10FFFF →  UTF-16 surrogate pair, each surrogate written as
                         its own 3-byte sequence (6 bytes total)

Everything else is plain UTF-8 of at most 3 bytes.
"""

from __future__ import annotations

import struct
from typing import List

from ._errors import MalformedString, TruncatedInput

_I8 = struct.Struct(">b")
_U16 = struct.Struct(">H")
_I16 = struct.Struct(">h")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")


# ── Modified UTF-8 ────────────────────────────────────────────

def encode_modified_utf8(text: str) -> bytes:
    """Encode ``text`` as modified UTF-8."""
    if text.isascii() and "\x00" not in text:
        return text.encode("ascii")

    out = bytearray()
    for ch in text:
        cp = ord(ch)
        if cp >= 0x10000:
            cp -= 0x10000
            _put_utf8_unit(out, 0xD800 + (cp >> 10))
            _put_utf8_unit(out, 0xDC00 + (cp & 0x3FF))
        else:
            _put_utf8_unit(out, cp)
    return bytes(out)


def _put_utf8_unit(out: bytearray, unit: int) -> None:
    # unit is a UTF-16 code unit (0..0xFFFF), lone surrogates included.
    if 0 < unit < 0x80:
        out.append(unit)
    elif unit < 0x800:
        out.append(0xC0 | (unit >> 6))
        out.append(0x80 | (unit & 0x3F))
    else:
        out.append(0xE0 | (unit >> 12))
        out.append(0x80 | ((unit >> 6) & 0x3F))
        out.append(0x80 | (unit & 0x3F))


def decode_modified_utf8(raw: bytes) -> str:
    """Decode modified UTF-8 bytes.

    Raw NUL bytes and overlong 2-byte forms are accepted on read, as Java's
    ``DataInputStream.readUTF`` does.  Surrogate pairs are joined; lone
    surrogates survive as lone code points so the text re-encodes exactly.
    """
    if raw.isascii():
        return raw.decode("ascii")

    units: List[int] = []
    i = 0
    n = len(raw)
    while i < n:
        b = raw[i]
        if b < 0x80:
            units.append(b)
            i += 1
        elif b & 0xE0 == 0xC0:
            if i + 1 >= n or raw[i + 1] & 0xC0 != 0x80:
                raise MalformedString("bad 2-byte sequence at offset {}".format(i))
            units.append(((b & 0x1F) << 6) | (raw[i + 1] & 0x3F))
            i += 2
        elif b & 0xF0 == 0xE0:
            if (i + 2 >= n or raw[i + 1] & 0xC0 != 0x80
                    or raw[i + 2] & 0xC0 != 0x80):
                raise MalformedString("bad 3-byte sequence at offset {}".format(i))
            units.append(((b & 0x0F) << 12) | ((raw[i + 1] & 0x3F) << 6)
                         | (raw[i + 2] & 0x3F))
            i += 3
        else:
            raise MalformedString("invalid lead byte 0x{:02x} at offset {}".format(b, i))

    # UTF-16 with surrogatepass pairs valid surrogates and keeps lone ones.
    packed = struct.pack(">{}H".format(len(units)), *units)
    return packed.decode("utf-16-be", errors="surrogatepass")


# ── Cursor ────────────────────────────────────────────────────

class ByteCursor:
    """Read/write position over a growable byte buffer."""

    __slots__ = ("_buf", "_pos")

    def __init__(self, data: bytes = b"") -> None:
        self._buf = bytearray(data)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    # ── reads ──

    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("negative read size")
        end = self._pos + n
        if end > len(self._buf):
            raise TruncatedInput(
                "need {} byte(s) at offset {}, {} left".format(n, self._pos, self.remaining))
        out = bytes(self._buf[self._pos:end])
        self._pos = end
        return out

    def _read_struct(self, fmt: struct.Struct):
        return fmt.unpack(self.read_bytes(fmt.size))[0]

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_i8(self) -> int:
        return self._read_struct(_I8)

    def read_u16(self) -> int:
        return self._read_struct(_U16)

    def read_i16(self) -> int:
        return self._read_struct(_I16)

    def read_i32(self) -> int:
        return self._read_struct(_I32)

    def read_i64(self) -> int:
        return self._read_struct(_I64)

    def read_f32(self) -> float:
        return self._read_struct(_F32)

    def read_f64(self) -> float:
        return self._read_struct(_F64)

    def read_modified_utf8(self, n: int) -> str:
        return decode_modified_utf8(self.read_bytes(n))

    # ── writes ──

    def write_bytes(self, data: bytes) -> None:
        end = self._pos + len(data)
        self._buf[self._pos:end] = data
        self._pos = end

    def write_u8(self, v: int) -> None:
        self.write_bytes(bytes((v & 0xFF,)))

    def write_i8(self, v: int) -> None:
        self.write_bytes(_I8.pack(v))

    def write_u16(self, v: int) -> None:
        self.write_bytes(_U16.pack(v))

    def write_i16(self, v: int) -> None:
        self.write_bytes(_I16.pack(v))

    def write_i32(self, v: int) -> None:
        self.write_bytes(_I32.pack(v))

    def write_i64(self, v: int) -> None:
        self.write_bytes(_I64.pack(v))

    def write_f32(self, v: float) -> None:
        self.write_bytes(_F32.pack(v))

    def write_f64(self, v: float) -> None:
        self.write_bytes(_F64.pack(v))

    def write_modified_utf8(self, text: str) -> bytes:
        """Write ``text`` without a length prefix; return the bytes written."""
        raw = encode_modified_utf8(text)
        self.write_bytes(raw)
        return raw
