"""Compression envelopes around an encoded document.

On disk a document is usually gzip-wrapped (level.dat, player files),
sometimes zlib-wrapped (region chunks), and sometimes raw (hotbar.nbt).
The codec only ever sees raw bytes; this module decides which wrapper is
present from the first two bytes and strips it.

Detection never collides with a raw document: a raw document starts with
0x0A (COMPOUND), whose low nibble is not the deflate method number.
"""

from __future__ import annotations

import enum
import gzip
import logging
import zlib
from typing import Tuple

from ._constants import GZIP_MAGIC, ZLIB_MAX_WINDOW_BITS, ZLIB_METHOD_DEFLATE
from ._errors import CorruptEnvelope

logger = logging.getLogger(__name__)


class Envelope(enum.Enum):
    RAW = "raw"
    GZIP = "gzip"
    ZLIB = "zlib"


def _is_zlib_header(b0: int, b1: int) -> bool:
    # RFC 1950: CMF low nibble = method, high nibble = log2(window) - 8,
    # and CMF*256 + FLG must be a multiple of 31.
    return (b0 & 0x0F == ZLIB_METHOD_DEFLATE
            and b0 >> 4 <= ZLIB_MAX_WINDOW_BITS
            and (b0 * 256 + b1) % 31 == 0)


def detect(data: bytes) -> Envelope:
    """Classify ``data`` by its first two bytes."""
    if len(data) < 2:
        return Envelope.RAW
    if data[:2] == GZIP_MAGIC:
        return Envelope.GZIP
    if _is_zlib_header(data[0], data[1]):
        return Envelope.ZLIB
    return Envelope.RAW


def decompress(data: bytes, envelope: Envelope) -> bytes:
    """Strip ``envelope`` from ``data``, validating its checksum."""
    if envelope is Envelope.RAW:
        return bytes(data)
    try:
        if envelope is Envelope.GZIP:
            # Checks CRC-32 and ISIZE in the trailer.
            return gzip.decompress(data)
        # Checks the Adler-32 trailer.
        d = zlib.decompressobj()
        out = d.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptEnvelope("{} stream invalid: {}".format(envelope.value, e)) from e
    if not d.eof:
        raise CorruptEnvelope("zlib stream ended before its trailer")
    if d.unused_data:
        raise CorruptEnvelope("{} byte(s) after the zlib trailer".format(len(d.unused_data)))
    return out


def compress(data: bytes, envelope: Envelope) -> bytes:
    """Wrap ``data`` in ``envelope``."""
    if envelope is Envelope.GZIP:
        # mtime=0 keeps output reproducible byte-for-byte.
        return gzip.compress(data, mtime=0)
    if envelope is Envelope.ZLIB:
        return zlib.compress(data)
    return bytes(data)


def unwrap(data: bytes) -> Tuple[Envelope, bytes]:
    """Detect and strip the envelope.  Returns ``(envelope, raw_bytes)``."""
    envelope = detect(data)
    payload = decompress(data, envelope)
    logger.debug("%s envelope: %d -> %d bytes", envelope.value, len(data), len(payload))
    return envelope, payload
