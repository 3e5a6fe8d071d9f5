"""NBT error codes and exception classes.

Every codec or envelope failure is an ``NbtError`` whose ``.code`` is one of
the ERR_* strings below.  Each failure kind also has its own subclass so
callers can ``except TruncatedInput`` instead of comparing codes.

The query layer never raises these: a missing or mistyped field is an
absent value there, not an error.
"""

from __future__ import annotations

# ── Error codes ───────────────────────────────────────────────
# Grep-friendly; the conformance vectors compare against these strings.

ERR_TRUNCATED: str = "ERR_TRUNCATED"                # buffer ran out mid-value
ERR_UNKNOWN_KIND: str = "ERR_UNKNOWN_KIND"          # kind byte outside 0..12
ERR_NEGATIVE_LENGTH: str = "ERR_NEGATIVE_LENGTH"    # array/list count < 0
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"            # nesting exceeds max_depth
ERR_CORRUPT_ENVELOPE: str = "ERR_CORRUPT_ENVELOPE"  # gzip/zlib stream invalid
ERR_MALFORMED_STRING: str = "ERR_MALFORMED_STRING"  # bad modified UTF-8
ERR_BAD_ROOT: str = "ERR_BAD_ROOT"                  # root is not a COMPOUND
ERR_TRAILING_BYTES: str = "ERR_TRAILING_BYTES"      # bytes after the root
ERR_SCHEMA: str = "ERR_SCHEMA"                      # invalid tree shape
ERR_LIMIT_SIZE: str = "ERR_LIMIT_SIZE"              # value too long to encode


class NbtError(Exception):
    """Base exception for NBT processing errors.

    The ``.code`` attribute is one of the ERR_* strings above.
    """

    code: str = ERR_SCHEMA

    def __init__(self, code: str = "", msg: str = "") -> None:
        if code:
            self.code = code
        super().__init__(msg or self.code)


class TruncatedInput(NbtError):
    code = ERR_TRUNCATED

    def __init__(self, msg: str = "") -> None:
        super().__init__(ERR_TRUNCATED, msg)


class UnknownTagKind(NbtError):
    code = ERR_UNKNOWN_KIND

    def __init__(self, kind: int) -> None:
        super().__init__(ERR_UNKNOWN_KIND, "unknown tag kind 0x{:02x}".format(kind))
        self.kind = kind


class NegativeLength(NbtError):
    code = ERR_NEGATIVE_LENGTH

    def __init__(self, length: int) -> None:
        super().__init__(ERR_NEGATIVE_LENGTH, "negative length {}".format(length))
        self.length = length


class RecursionLimitExceeded(NbtError):
    code = ERR_LIMIT_DEPTH

    def __init__(self, msg: str = "") -> None:
        super().__init__(ERR_LIMIT_DEPTH, msg)


class CorruptEnvelope(NbtError):
    code = ERR_CORRUPT_ENVELOPE

    def __init__(self, msg: str = "") -> None:
        super().__init__(ERR_CORRUPT_ENVELOPE, msg)


class MalformedString(NbtError):
    code = ERR_MALFORMED_STRING

    def __init__(self, msg: str = "") -> None:
        super().__init__(ERR_MALFORMED_STRING, msg)


class BadRoot(NbtError):
    code = ERR_BAD_ROOT

    def __init__(self, msg: str = "") -> None:
        super().__init__(ERR_BAD_ROOT, msg)


class TrailingBytes(NbtError):
    code = ERR_TRAILING_BYTES

    def __init__(self, count: int) -> None:
        super().__init__(ERR_TRAILING_BYTES,
                         "{} trailing byte(s) after root tag".format(count))
        self.count = count
