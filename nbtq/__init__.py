"""nbtq — NBT (Named Binary Tag) reader/writer and item queries.

Decode raw, gzip- or zlib-wrapped documents into immutable ``Tag`` trees,
re-encode them byte-for-byte, and ask inventory questions without caring
whether a field is present.

Quick start:
    >>> import nbtq
    >>> root = nbtq.load(open("hotbar.nbt", "rb").read())
    >>> [nbtq.item_id(i) for i in nbtq.inventory_slot(root, 0)]
    ['minecraft:barrel']
    >>> nbtq.display_name(nbtq.inventory_slot(root, 0)[0])
    '{"text":"Bastion Kit"}'

Every traversal and query function is total: a missing or mistyped field
comes back as None (or an empty tuple), never as an exception.  Codec and
envelope failures raise ``NbtError`` subclasses with a ``.code``.
"""

from __future__ import annotations

import logging

from ._catalog import ItemCatalog, describe_item, format_item_name, matches_query
from ._codec import DecodeResult, decode, decode_tag, encode, encode_tag, try_decode
from ._constants import DEFAULT_MAX_DEPTH, TagKind
from ._cursor import ByteCursor
from ._envelope import Envelope, compress, decompress, detect, unwrap
from ._errors import (
    ERR_BAD_ROOT,
    ERR_CORRUPT_ENVELOPE,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_MALFORMED_STRING,
    ERR_NEGATIVE_LENGTH,
    ERR_SCHEMA,
    ERR_TRAILING_BYTES,
    ERR_TRUNCATED,
    ERR_UNKNOWN_KIND,
    BadRoot,
    CorruptEnvelope,
    MalformedString,
    NbtError,
    NegativeLength,
    RecursionLimitExceeded,
    TrailingBytes,
    TruncatedInput,
    UnknownTagKind,
)
from ._query import (
    Container,
    HotbarItem,
    Preset,
    SlotSummary,
    build_hotbar,
    container_items,
    display_name,
    extract_presets,
    has_attached_container,
    inventory_slot,
    item_count,
    item_id,
    item_slot,
    plain_text,
    slot_summary,
)
from ._tree import (
    Tag,
    as_byte,
    as_byte_array,
    as_compound,
    as_double,
    as_float,
    as_int,
    as_int_array,
    as_integer,
    as_list,
    as_long,
    as_long_array,
    as_short,
    as_string,
    get,
    get_all,
    keys,
    path,
    simplify,
)

__version__ = "0.4.0"

__all__ = [
    # Documents
    "load",
    "dump",
    "decode",
    "encode",
    "try_decode",
    "DecodeResult",
    "decode_tag",
    "encode_tag",
    "ByteCursor",
    # Envelopes
    "Envelope",
    "detect",
    "decompress",
    "compress",
    "unwrap",
    # Tree
    "Tag",
    "TagKind",
    "get",
    "get_all",
    "keys",
    "path",
    "simplify",
    "as_list",
    "as_compound",
    "as_byte",
    "as_short",
    "as_int",
    "as_long",
    "as_float",
    "as_double",
    "as_string",
    "as_byte_array",
    "as_int_array",
    "as_long_array",
    "as_integer",
    # Queries
    "inventory_slot",
    "has_attached_container",
    "display_name",
    "item_id",
    "item_count",
    "item_slot",
    "container_items",
    "plain_text",
    "slot_summary",
    "extract_presets",
    "build_hotbar",
    "SlotSummary",
    "HotbarItem",
    "Container",
    "Preset",
    # Catalog
    "ItemCatalog",
    "describe_item",
    "format_item_name",
    "matches_query",
    # Exceptions
    "NbtError",
    "TruncatedInput",
    "UnknownTagKind",
    "NegativeLength",
    "RecursionLimitExceeded",
    "CorruptEnvelope",
    "MalformedString",
    "BadRoot",
    "TrailingBytes",
    # Error codes
    "ERR_TRUNCATED",
    "ERR_UNKNOWN_KIND",
    "ERR_NEGATIVE_LENGTH",
    "ERR_LIMIT_DEPTH",
    "ERR_CORRUPT_ENVELOPE",
    "ERR_MALFORMED_STRING",
    "ERR_BAD_ROOT",
    "ERR_TRAILING_BYTES",
    "ERR_SCHEMA",
    "ERR_LIMIT_SIZE",
    "DEFAULT_MAX_DEPTH",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())


# ── File-level API ────────────────────────────────────────────
# ``decode``/``encode`` only see raw bytes.  These two add the envelope.

def load(data: bytes, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Tag:
    """Decode a document that may be raw, gzip- or zlib-wrapped."""
    _envelope, raw = unwrap(data)
    return decode(raw, max_depth=max_depth)


def dump(root: Tag, envelope: Envelope = Envelope.RAW, *,
         max_depth: int = DEFAULT_MAX_DEPTH) -> bytes:
    """Encode ``root`` and wrap it in ``envelope``."""
    return compress(encode(root, max_depth=max_depth), envelope)
