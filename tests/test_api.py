"""Unit tests for the nbtq public API.

Organized by layer, leaf first: cursor, tree, codec, envelope, queries,
hotbar projections.  Golden byte vectors live in test_conformance.py;
these tests exercise the API contracts and edge cases around them.
"""

from __future__ import annotations

import gzip
import math
import os
import struct
import sys
import unittest
import zlib

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import nbtq
from nbtq import (
    ERR_BAD_ROOT,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_NEGATIVE_LENGTH,
    ERR_SCHEMA,
    ERR_TRAILING_BYTES,
    ERR_TRUNCATED,
    ERR_UNKNOWN_KIND,
    BadRoot,
    ByteCursor,
    Container,
    CorruptEnvelope,
    Envelope,
    HotbarItem,
    MalformedString,
    NbtError,
    NegativeLength,
    Preset,
    RecursionLimitExceeded,
    Tag,
    TagKind,
    TrailingBytes,
    TruncatedInput,
    UnknownTagKind,
)


def _item(item_id: str, **extra: Tag) -> Tag:
    children = [("id", Tag.string(item_id)), ("Count", Tag.byte(1))]
    children.extend(extra.items())
    return Tag.compound(children)


def _named_item(item_id: str, name: str) -> Tag:
    return _item(item_id, tag=Tag.compound({
        "display": Tag.compound({"Name": Tag.string(name)}),
    }))


def _slot_root(*items: Tag, slot: int = 0) -> Tag:
    return Tag.compound({str(slot): Tag.list(TagKind.COMPOUND, items)})


def _nested_compounds(levels: int) -> Tag:
    """Root plus ``levels - 1`` nested compounds: ``levels`` container levels."""
    tag = Tag.compound({"leaf": Tag.string("x")})
    for _ in range(levels - 1):
        tag = Tag.compound({"n": tag})
    return tag


# ── Byte cursor ───────────────────────────────────────────────

class TestByteCursor(unittest.TestCase):
    def test_big_endian_reads(self):
        cur = ByteCursor(b"\x01\x02\xff\xfe\x00\x00\x00\x2a")
        self.assertEqual(cur.read_i16(), 0x0102)
        self.assertEqual(cur.read_i16(), -2)
        self.assertEqual(cur.read_i32(), 42)
        self.assertEqual(cur.remaining, 0)

    def test_write_mirrors_read(self):
        cur = ByteCursor()
        cur.write_u8(0xAB)
        cur.write_i16(-1)
        cur.write_i32(7)
        cur.write_i64(-(2**63))
        cur.write_f32(1.5)
        cur.write_f64(-0.25)
        self.assertEqual(cur.position, 1 + 2 + 4 + 8 + 4 + 8)
        back = ByteCursor(cur.getvalue())
        self.assertEqual(back.read_u8(), 0xAB)
        self.assertEqual(back.read_i16(), -1)
        self.assertEqual(back.read_i32(), 7)
        self.assertEqual(back.read_i64(), -(2**63))
        self.assertEqual(back.read_f32(), 1.5)
        self.assertEqual(back.read_f64(), -0.25)

    def test_truncated_read_keeps_position(self):
        cur = ByteCursor(b"\x00\x01\x02")
        cur.read_u8()
        with self.assertRaises(TruncatedInput) as ctx:
            cur.read_i32()
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)
        self.assertEqual(cur.position, 1)
        self.assertEqual(cur.read_u16(), 0x0102)

    def test_read_bytes_exact_end(self):
        cur = ByteCursor(b"abc")
        self.assertEqual(cur.read_bytes(3), b"abc")
        with self.assertRaises(TruncatedInput):
            cur.read_bytes(1)

    def test_modified_utf8_nul(self):
        cur = ByteCursor()
        self.assertEqual(cur.write_modified_utf8("a\x00b"), b"a\xc0\x80b")
        self.assertEqual(ByteCursor(cur.getvalue()).read_modified_utf8(4), "a\x00b")

    def test_modified_utf8_supplementary(self):
        """U+1F600 becomes a surrogate pair, 3 bytes per surrogate."""
        cur = ByteCursor()
        raw = cur.write_modified_utf8("\U0001F600")
        self.assertEqual(raw, b"\xed\xa0\xbd\xed\xb8\x80")
        self.assertEqual(ByteCursor(raw).read_modified_utf8(6), "\U0001F600")

    def test_modified_utf8_bmp(self):
        cur = ByteCursor()
        raw = cur.write_modified_utf8("é€")
        self.assertEqual(raw, "é€".encode("utf-8"))
        self.assertEqual(ByteCursor(raw).read_modified_utf8(len(raw)), "é€")

    def test_modified_utf8_malformed(self):
        for raw in [b"\xff", b"\xc3", b"\xe2\x82", b"\xe2\x28\xa1"]:
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedString):
                    ByteCursor(raw).read_modified_utf8(len(raw))


# ── Tag construction ──────────────────────────────────────────

class TestTagConstruction(unittest.TestCase):
    def test_integral_ranges(self):
        Tag.byte(-128)
        Tag.byte(127)
        Tag.long(2**63 - 1)
        for make, bad in [(Tag.byte, 128), (Tag.short, -(2**15) - 1),
                          (Tag.int, 2**31), (Tag.long, -(2**63) - 1)]:
            with self.subTest(bad=bad):
                with self.assertRaises(NbtError) as ctx:
                    make(bad)
                self.assertEqual(ctx.exception.code, ERR_SCHEMA)

    def test_bool_is_not_an_int_payload(self):
        with self.assertRaises(NbtError):
            Tag.byte(True)

    def test_float_rounds_to_binary32(self):
        t = Tag.float(0.1)
        self.assertEqual(t.value, struct.unpack(">f", struct.pack(">f", 0.1))[0])
        self.assertNotEqual(t.value, 0.1)

    def test_float_overflow(self):
        with self.assertRaises(NbtError):
            Tag.float(1e300)

    def test_byte_array_from_bytes_is_signed(self):
        self.assertEqual(Tag.byte_array(b"\x01\xff").value, (1, -1))

    def test_list_infers_element_kind(self):
        lst = Tag.list(TagKind.INT, [Tag.int(1), Tag.int(2)])
        self.assertEqual(lst.element_kind, TagKind.INT)
        self.assertEqual(Tag(TagKind.LIST, ()).element_kind, TagKind.END)

    def test_list_rejects_mixed_kinds(self):
        with self.assertRaises(NbtError) as ctx:
            Tag.list(TagKind.INT, [Tag.int(1), Tag.short(2)])
        self.assertEqual(ctx.exception.code, ERR_SCHEMA)

    def test_list_rejects_named_children_when_built_directly(self):
        with self.assertRaises(NbtError):
            Tag(TagKind.LIST, (Tag.int(1, name="x"),), None, TagKind.INT)

    def test_list_helper_drops_names(self):
        lst = Tag.list(TagKind.INT, [Tag.int(1, name="x")])
        self.assertIsNone(lst.value[0].name)

    def test_non_empty_list_of_end(self):
        with self.assertRaises(NbtError):
            Tag(TagKind.LIST, (Tag.int(1),), None, TagKind.END)

    def test_compound_requires_names(self):
        with self.assertRaises(NbtError):
            Tag(TagKind.COMPOUND, (Tag.int(1),))

    def test_compound_preserves_duplicates_and_order(self):
        c = Tag.compound([("b", Tag.int(1)), ("a", Tag.int(2)), ("b", Tag.int(3))])
        self.assertEqual(nbtq.keys(c), ("b", "a", "b"))

    def test_end_is_not_a_value(self):
        with self.assertRaises(NbtError):
            Tag(TagKind.END, None)

    def test_element_kind_only_on_lists(self):
        with self.assertRaises(NbtError):
            Tag(TagKind.INT, 1, None, TagKind.INT)

    def test_tags_are_immutable(self):
        t = Tag.int(1)
        with self.assertRaises(AttributeError):
            t.value = 2  # type: ignore[misc]


# ── Traversal ─────────────────────────────────────────────────

class TestTraversal(unittest.TestCase):
    def setUp(self):
        self.root = Tag.compound({
            "name": Tag.string("Steve"),
            "health": Tag.float(20.0),
            "pos": Tag.list(TagKind.DOUBLE, [Tag.double(1.0), Tag.double(64.0)]),
            "inv": Tag.list(TagKind.COMPOUND, [_item("minecraft:stone")]),
        })

    def test_get_present_and_absent(self):
        self.assertEqual(nbtq.as_string(nbtq.get(self.root, "name")), "Steve")
        self.assertIsNone(nbtq.get(self.root, "missing"))

    def test_get_on_non_compound(self):
        self.assertIsNone(nbtq.get(Tag.int(1), "x"))
        self.assertIsNone(nbtq.get(None, "x"))

    def test_get_first_match_on_duplicates(self):
        c = Tag.compound([("k", Tag.int(1)), ("k", Tag.int(2))])
        self.assertEqual(nbtq.as_int(nbtq.get(c, "k")), 1)
        self.assertEqual([t.value for t in nbtq.get_all(c, "k")], [1, 2])

    def test_narrowing_accessors(self):
        self.assertIsNone(nbtq.as_int(nbtq.get(self.root, "name")))
        self.assertEqual(nbtq.as_float(nbtq.get(self.root, "health")), 20.0)
        self.assertIsNone(nbtq.as_double(nbtq.get(self.root, "health")))
        self.assertIsNone(nbtq.as_list(nbtq.get(self.root, "name")))
        self.assertEqual(len(nbtq.as_list(nbtq.get(self.root, "pos"))), 2)

    def test_as_integer_accepts_any_width(self):
        for t in [Tag.byte(3), Tag.short(3), Tag.int(3), Tag.long(3)]:
            with self.subTest(kind=t.kind):
                self.assertEqual(nbtq.as_integer(t), 3)
        self.assertIsNone(nbtq.as_integer(Tag.double(3.0)))

    def test_path_mixes_keys_and_indices(self):
        stone = nbtq.path(self.root, ["inv", 0, "id"])
        self.assertEqual(nbtq.as_string(stone), "minecraft:stone")
        self.assertEqual(nbtq.as_double(nbtq.path(self.root, ["pos", 1])), 64.0)

    def test_path_short_circuits(self):
        self.assertIsNone(nbtq.path(self.root, ["inv", 5, "id"]))
        self.assertIsNone(nbtq.path(self.root, ["inv", -1]))
        self.assertIsNone(nbtq.path(self.root, ["name", "x"]))
        self.assertIsNone(nbtq.path(self.root, ["pos", "x"]))
        self.assertIsNone(nbtq.path(self.root, [True]))
        self.assertIsNone(nbtq.path(None, ["a"]))

    def test_path_empty_is_identity(self):
        self.assertIs(nbtq.path(self.root, []), self.root)

    def test_simplify(self):
        plain = nbtq.simplify(self.root)
        self.assertEqual(plain["name"], "Steve")
        self.assertEqual(plain["pos"], [1.0, 64.0])
        self.assertEqual(plain["inv"][0]["id"], "minecraft:stone")

    def test_simplify_first_match(self):
        c = Tag.compound([("k", Tag.int(1)), ("k", Tag.int(2))])
        self.assertEqual(nbtq.simplify(c), {"k": 1})


# ── Codec ─────────────────────────────────────────────────────

class TestCodec(unittest.TestCase):
    def test_empty_root_bytes(self):
        self.assertEqual(nbtq.encode(Tag.compound()), b"\x0a\x00\x00\x00")

    def test_round_trip_every_kind(self):
        root = Tag.compound({
            "b": Tag.byte(-5),
            "s": Tag.short(300),
            "i": Tag.int(-70000),
            "l": Tag.long(2**40),
            "f": Tag.float(3.25),
            "d": Tag.double(-1e-10),
            "ba": Tag.byte_array([-128, 0, 127]),
            "str": Tag.string("héllo \U0001F600 \x00"),
            "lst": Tag.list(TagKind.SHORT, [Tag.short(1), Tag.short(2)]),
            "cmp": Tag.compound({"x": Tag.int(1)}),
            "ia": Tag.int_array([1, -1, 2**31 - 1]),
            "la": Tag.long_array([-(2**63)]),
            "fnan": Tag.float(math.nan),
            "dnan": Tag.double(math.nan),
        }, name="root")
        self.assertEqual(nbtq.decode(nbtq.encode(root)), root)

    def test_float_equality_follows_bits(self):
        self.assertEqual(Tag.double(math.nan), Tag.double(math.nan))
        self.assertEqual(hash(Tag.float(math.nan)), hash(Tag.float(math.nan)))
        self.assertNotEqual(Tag.double(0.0), Tag.double(-0.0))
        self.assertNotEqual(Tag.float(1.0), Tag.double(1.0))

    def test_equal_trees_hash_equal(self):
        a = Tag.compound({"l": Tag.list(TagKind.INT, [Tag.int(1), Tag.int(2)])})
        b = nbtq.decode(nbtq.encode(a))
        self.assertIsNot(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertEqual(len({a, b}), 1)
        self.assertNotEqual(a, Tag.compound({"l": Tag.list(TagKind.INT, [Tag.int(2), Tag.int(1)])}))

    def test_round_trip_keeps_duplicate_keys(self):
        root = Tag.compound([("k", Tag.int(1)), ("j", Tag.int(0)), ("k", Tag.string("x"))])
        back = nbtq.decode(nbtq.encode(root))
        self.assertEqual(back, root)
        self.assertEqual(nbtq.keys(back), ("k", "j", "k"))

    def test_list_elements_keep_kind(self):
        root = Tag.compound({"l": Tag.list(TagKind.LONG, [Tag.long(1), Tag.long(2)])})
        items = nbtq.as_list(nbtq.get(nbtq.decode(nbtq.encode(root)), "l"))
        self.assertTrue(all(i.kind is TagKind.LONG and i.name is None for i in items))

    def test_empty_compound_list_byte_identical(self):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x010" + b"\x0a" + b"\x00\x00\x00\x00" + b"\x00"
        root = nbtq.decode(raw)
        self.assertEqual(nbtq.inventory_slot(root, 0), ())
        self.assertEqual(nbtq.get(root, "0").element_kind, TagKind.COMPOUND)
        self.assertEqual(nbtq.encode(root), raw)

    def test_truncation_by_one_byte(self):
        root = Tag.compound({"a": Tag.list(TagKind.COMPOUND, [_item("minecraft:stone")])})
        raw = nbtq.encode(root)
        with self.assertRaises(TruncatedInput):
            nbtq.decode(raw[:-1])

    def test_every_prefix_fails(self):
        raw = nbtq.encode(_slot_root(_named_item("minecraft:chest", "Loot")))
        for n in range(len(raw)):
            with self.subTest(n=n):
                with self.assertRaises(NbtError):
                    nbtq.decode(raw[:n])

    def test_negative_array_length(self):
        raw = b"\x0a\x00\x00" + b"\x0b\x00\x01a" + struct.pack(">i", -1) + b"\x00"
        with self.assertRaises(NegativeLength) as ctx:
            nbtq.decode(raw)
        self.assertEqual(ctx.exception.code, ERR_NEGATIVE_LENGTH)

    def test_negative_list_length(self):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x01a\x01" + struct.pack(">i", -7) + b"\x00"
        with self.assertRaises(NegativeLength):
            nbtq.decode(raw)

    def test_unknown_kind(self):
        with self.assertRaises(UnknownTagKind) as ctx:
            nbtq.decode(b"\x0a\x00\x00\x0d\x00\x01x\x00")
        self.assertEqual(ctx.exception.code, ERR_UNKNOWN_KIND)
        self.assertEqual(ctx.exception.kind, 13)

    def test_unknown_list_element_kind(self):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x01a\x20" + struct.pack(">i", 0) + b"\x00"
        with self.assertRaises(UnknownTagKind):
            nbtq.decode(raw)

    def test_forged_huge_count_fails_fast(self):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x01a\x04" + struct.pack(">i", 2**31 - 1) + b"\x00"
        with self.assertRaises(TruncatedInput):
            nbtq.decode(raw)
        raw = b"\x0a\x00\x00" + b"\x0c\x00\x01a" + struct.pack(">i", 2**31 - 1) + b"\x00"
        with self.assertRaises(TruncatedInput):
            nbtq.decode(raw)

    def test_root_must_be_compound(self):
        with self.assertRaises(BadRoot) as ctx:
            nbtq.decode(b"\x08\x00\x00\x00\x02hi")
        self.assertEqual(ctx.exception.code, ERR_BAD_ROOT)
        with self.assertRaises(BadRoot):
            nbtq.decode(b"\x00")
        with self.assertRaises(BadRoot):
            nbtq.encode(Tag.int(1))

    def test_trailing_bytes(self):
        with self.assertRaises(TrailingBytes) as ctx:
            nbtq.decode(b"\x0a\x00\x00\x00\x00\x00")
        self.assertEqual(ctx.exception.code, ERR_TRAILING_BYTES)
        self.assertEqual(ctx.exception.count, 2)

    def test_string_too_long_to_encode(self):
        root = Tag.compound({"s": Tag.string("x" * 65536)})
        with self.assertRaises(NbtError) as ctx:
            nbtq.encode(root)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_SIZE)
        nbtq.encode(Tag.compound({"s": Tag.string("x" * 65535)}))

    def test_decode_tag_from_cursor(self):
        cur = ByteCursor(b"\x03\x00\x01n\x00\x00\x00\x05rest")
        tag = nbtq.decode_tag(cur)
        self.assertEqual(tag, Tag.int(5, name="n"))
        self.assertEqual(cur.read_bytes(4), b"rest")

    def test_encode_tag_to_cursor(self):
        cur = ByteCursor()
        nbtq.encode_tag(Tag.short(2, name="s"), cur)
        self.assertEqual(cur.getvalue(), b"\x02\x00\x01s\x00\x02")

    def test_try_decode(self):
        ok = nbtq.try_decode(b"\x0a\x00\x00\x00")
        self.assertTrue(ok.ok)
        self.assertEqual(ok.tag, Tag.compound())
        self.assertIsNone(ok.code)
        bad = nbtq.try_decode(b"\x0a\x00")
        self.assertFalse(bad.ok)
        self.assertIsNone(bad.tag)
        self.assertEqual(bad.code, ERR_TRUNCATED)


# ── Depth limits ──────────────────────────────────────────────

class TestDepthLimits(unittest.TestCase):
    def test_default_512_levels_ok(self):
        raw = nbtq.encode(_nested_compounds(512))
        root = nbtq.decode(raw)
        self.assertEqual(nbtq.encode(root), raw)

    def test_deepest_tree_round_trips_equal(self):
        deep = _nested_compounds(512)
        back = nbtq.decode(nbtq.encode(deep))
        self.assertTrue(back == deep)
        self.assertFalse(back != deep)
        self.assertEqual(hash(back), hash(deep))
        self.assertFalse(back == _nested_compounds(511))

    def test_513_levels_fail(self):
        deep = _nested_compounds(513)
        with self.assertRaises(RecursionLimitExceeded) as ctx:
            nbtq.encode(deep)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
        raw = nbtq.encode(deep, max_depth=600)
        with self.assertRaises(RecursionLimitExceeded):
            nbtq.decode(raw)

    def test_limit_is_per_call(self):
        raw = nbtq.encode(_nested_compounds(4))
        nbtq.decode(raw, max_depth=4)
        with self.assertRaises(RecursionLimitExceeded):
            nbtq.decode(raw, max_depth=3)
        nbtq.decode(raw)

    def test_lists_count_as_levels(self):
        root = Tag.compound({"l": Tag.list(TagKind.LIST, [Tag.list(TagKind.END, [])])})
        raw = nbtq.encode(root)
        nbtq.decode(raw, max_depth=3)
        with self.assertRaises(RecursionLimitExceeded):
            nbtq.decode(raw, max_depth=2)


# ── Envelopes ─────────────────────────────────────────────────

class TestEnvelope(unittest.TestCase):
    def setUp(self):
        self.raw = nbtq.encode(_slot_root(_item("minecraft:stone")))

    def test_detect(self):
        self.assertIs(nbtq.detect(self.raw), Envelope.RAW)
        self.assertIs(nbtq.detect(gzip.compress(self.raw)), Envelope.GZIP)
        self.assertIs(nbtq.detect(zlib.compress(self.raw)), Envelope.ZLIB)
        self.assertIs(nbtq.detect(zlib.compress(self.raw, 1)), Envelope.ZLIB)
        self.assertIs(nbtq.detect(b""), Envelope.RAW)
        self.assertIs(nbtq.detect(b"\x78"), Envelope.RAW)

    def test_zlib_header_needs_checksum(self):
        # 0x78 0x9d fails the mod-31 check.
        self.assertIs(nbtq.detect(b"\x78\x9d"), Envelope.RAW)

    def test_gzip_document(self):
        wrapped = gzip.compress(self.raw)
        self.assertIs(nbtq.detect(wrapped), Envelope.GZIP)
        self.assertEqual(nbtq.decompress(wrapped, Envelope.GZIP), self.raw)
        self.assertEqual(nbtq.load(wrapped), nbtq.decode(self.raw))
        with self.assertRaises(UnknownTagKind):
            nbtq.decode(wrapped)

    def test_dump_and_load(self):
        root = nbtq.decode(self.raw)
        for env in Envelope:
            with self.subTest(env=env):
                out = nbtq.dump(root, env)
                self.assertEqual(nbtq.unwrap(out), (env, self.raw))
                self.assertEqual(nbtq.load(out), root)

    def test_gzip_output_is_reproducible(self):
        self.assertEqual(nbtq.compress(self.raw, Envelope.GZIP),
                         nbtq.compress(self.raw, Envelope.GZIP))

    def test_corrupt_gzip_crc(self):
        wrapped = bytearray(gzip.compress(self.raw))
        wrapped[-8] ^= 0xFF
        with self.assertRaises(CorruptEnvelope):
            nbtq.decompress(bytes(wrapped), Envelope.GZIP)

    def test_truncated_gzip(self):
        wrapped = gzip.compress(self.raw)
        with self.assertRaises(CorruptEnvelope):
            nbtq.decompress(wrapped[:-12], Envelope.GZIP)

    def test_corrupt_zlib_checksum(self):
        wrapped = bytearray(zlib.compress(self.raw))
        wrapped[-1] ^= 0x01
        with self.assertRaises(CorruptEnvelope):
            nbtq.load(bytes(wrapped))

    def test_declared_envelope_mismatch(self):
        with self.assertRaises(CorruptEnvelope):
            nbtq.decompress(self.raw, Envelope.GZIP)
        with self.assertRaises(CorruptEnvelope):
            nbtq.decompress(self.raw, Envelope.ZLIB)

    def test_zlib_trailing_garbage(self):
        wrapped = zlib.compress(self.raw) + b"junk"
        self.assertIs(nbtq.detect(wrapped), Envelope.ZLIB)
        with self.assertRaises(CorruptEnvelope):
            nbtq.load(wrapped)

    def test_truncated_zlib(self):
        with self.assertRaises(CorruptEnvelope):
            nbtq.decompress(zlib.compress(self.raw)[:-4], Envelope.ZLIB)


# ── Query layer ───────────────────────────────────────────────

class TestQueries(unittest.TestCase):
    def test_plain_item(self):
        """A stone item with no tag: one item, no container, no name."""
        root = nbtq.decode(nbtq.encode(_slot_root(_item("minecraft:stone"))))
        items = nbtq.inventory_slot(root, 0)
        self.assertEqual(len(items), 1)
        self.assertEqual(nbtq.item_id(items[0]), "minecraft:stone")
        self.assertFalse(nbtq.has_attached_container(items[0]))
        self.assertIsNone(nbtq.display_name(items[0]))

    def test_custom_display_name(self):
        root = nbtq.decode(nbtq.encode(_slot_root(_named_item("minecraft:stone", "Custom Block"))))
        item = nbtq.inventory_slot(root, 0)[0]
        self.assertEqual(nbtq.display_name(item), "Custom Block")

    def test_missing_and_mistyped_slots(self):
        root = Tag.compound({"0": Tag.string("not a list"), "1": Tag.list(TagKind.END, [])})
        self.assertEqual(nbtq.inventory_slot(root, 0), ())
        self.assertEqual(nbtq.inventory_slot(root, 1), ())
        self.assertEqual(nbtq.inventory_slot(root, 7), ())
        self.assertEqual(nbtq.inventory_slot(None, 0), ())

    def test_attached_container_any_kind(self):
        item = _item("minecraft:chest", tag=Tag.compound({"BlockEntityTag": Tag.int(0)}))
        self.assertTrue(nbtq.has_attached_container(item))

    def test_display_name_wrong_kind(self):
        item = _item("minecraft:stone", tag=Tag.compound({
            "display": Tag.compound({"Name": Tag.int(5)}),
        }))
        self.assertIsNone(nbtq.display_name(item))

    def test_item_id_wrong_kind(self):
        self.assertIsNone(nbtq.item_id(Tag.compound({"id": Tag.short(1)})))
        self.assertIsNone(nbtq.item_id(None))

    def test_count_and_slot(self):
        item = Tag.compound({"id": Tag.string("minecraft:arrow"),
                             "Count": Tag.byte(64), "Slot": Tag.byte(3)})
        self.assertEqual(nbtq.item_count(item), 64)
        self.assertEqual(nbtq.item_slot(item), 3)
        self.assertEqual(nbtq.item_count(Tag.compound()), 1)
        self.assertIsNone(nbtq.item_slot(Tag.compound()))
        self.assertEqual(nbtq.item_count(Tag.compound({"Count": Tag.byte(0)})), 1)

    def test_plain_text(self):
        self.assertEqual(nbtq.plain_text('{"text":"Bastion"}'), "Bastion")
        self.assertEqual(nbtq.plain_text("Bastion"), "Bastion")
        self.assertEqual(nbtq.plain_text('"quoted"'), '"quoted"')
        self.assertEqual(nbtq.plain_text('{"text":""}'), '{"text":""}')
        self.assertEqual(nbtq.plain_text("123"), "123")


# ── Hotbar projections ────────────────────────────────────────

def _container(item_id: str, *contents: Tag, name: str = None) -> Tag:
    tag = {"BlockEntityTag": Tag.compound({
        "Items": Tag.list(TagKind.COMPOUND, contents),
        "id": Tag.string("minecraft:chest"),
    })}
    if name is not None:
        tag["display"] = Tag.compound({"Name": Tag.string(name)})
    return _item(item_id, tag=Tag.compound(tag))


class TestHotbar(unittest.TestCase):
    def setUp(self):
        sword = Tag.compound({"Slot": Tag.byte(0), "id": Tag.string("minecraft:iron_sword"),
                              "Count": Tag.byte(1)})
        pearls = Tag.compound({"Slot": Tag.byte(4), "id": Tag.string("minecraft:ender_pearl"),
                               "Count": Tag.byte(16)})
        barrel = _item("minecraft:barrel", tag=Tag.compound({
            "BlockEntityTag": Tag.compound({
                "Items": Tag.list(TagKind.COMPOUND, [
                    _container("minecraft:red_shulker_box", sword, pearls, name="Weapons"),
                    _item("minecraft:dirt"),
                ]),
            }),
            "display": Tag.compound({"Name": Tag.string('{"text":"Bastion Kit"}')}),
        }))
        unnamed = _item("minecraft:barrel", tag=Tag.compound({
            "BlockEntityTag": Tag.compound({
                "Items": Tag.list(TagKind.COMPOUND, [_container("minecraft:chest", sword)]),
            }),
        }))
        empty_barrel = _item("minecraft:barrel", tag=Tag.compound({
            "BlockEntityTag": Tag.compound({}),
        }))
        self.root = Tag.compound({
            "0": Tag.list(TagKind.COMPOUND, [barrel, unnamed]),
            "1": Tag.list(TagKind.COMPOUND, [_item("minecraft:air")]),
            "2": Tag.list(TagKind.COMPOUND, [empty_barrel]),
            "3": Tag.list(TagKind.COMPOUND, [_item("minecraft:stone")]),
        })

    def test_slot_summary(self):
        summary = nbtq.slot_summary(self.root)
        self.assertEqual([s.slot for s in summary], [0, 1, 2, 3])
        self.assertEqual(summary[0].item_id, "minecraft:barrel")
        self.assertTrue(summary[0].has_block_entity)
        self.assertEqual(summary[0].display_name, '{"text":"Bastion Kit"}')
        self.assertFalse(summary[3].has_block_entity)
        self.assertIsNone(summary[3].display_name)

    def test_extract_presets(self):
        presets = nbtq.extract_presets(self.root)
        self.assertEqual([(p.name, p.slot) for p in presets],
                         [("Bastion Kit", 0), ("Preset 1", 0)])
        weapons = presets[0].containers
        self.assertEqual(len(weapons), 1)
        self.assertEqual(weapons[0].id, "minecraft:red_shulker_box")
        self.assertEqual(weapons[0].name, "Weapons")
        self.assertEqual([(i.id, i.count, i.slot) for i in weapons[0].items],
                         [("minecraft:iron_sword", 1, 0), ("minecraft:ender_pearl", 16, 4)])

    def test_build_hotbar_layout(self):
        preset = Preset(name="Kit", slot=2, containers=[
            Container(id="minecraft:white_shulker_box", items=[
                HotbarItem(id="minecraft:bread", count=32, slot=1),
            ]),
            Container(id="minecraft:chest"),
        ])
        root = nbtq.build_hotbar([preset])
        self.assertEqual(nbtq.keys(root), tuple(str(i) for i in range(9)))

        air = nbtq.inventory_slot(root, 0)
        self.assertEqual(len(air), 9)
        self.assertTrue(all(nbtq.item_id(i) == "minecraft:air" for i in air))
        self.assertEqual(nbtq.as_byte(nbtq.path(air[0], ["tag", "Charged"])), 0)

        (barrel,) = nbtq.inventory_slot(root, 2)
        self.assertEqual(nbtq.item_id(barrel), "minecraft:barrel")
        self.assertEqual(nbtq.display_name(barrel), "Kit")
        self.assertEqual(nbtq.as_int(nbtq.path(barrel, ["tag", "RepairCost"])), 0)
        self.assertEqual(nbtq.as_string(nbtq.path(
            barrel, ["tag", "BlockEntityTag", "CustomName"])), "Kit")
        shulker, chest = nbtq.container_items(barrel)
        self.assertEqual(nbtq.as_string(nbtq.path(
            shulker, ["tag", "BlockEntityTag", "id"])), "minecraft:shulker_box")
        self.assertEqual(nbtq.as_string(nbtq.path(
            chest, ["tag", "BlockEntityTag", "id"])), "minecraft:chest")
        self.assertEqual(nbtq.item_slot(chest), 1)
        lore = nbtq.as_list(nbtq.path(shulker, ["tag", "display", "Lore"]))
        self.assertEqual([t.value for t in lore], ['"(+NBT)"'])

    def test_build_then_extract(self):
        presets = nbtq.extract_presets(self.root)
        rebuilt = nbtq.decode(nbtq.encode(nbtq.build_hotbar(presets)))
        again = nbtq.extract_presets(rebuilt)
        self.assertEqual([(p.name, p.slot) for p in again], [("Bastion Kit", 0), ("Preset 1", 0)])
        self.assertEqual([i.id for i in again[0].containers[0].items],
                         ["minecraft:iron_sword", "minecraft:ender_pearl"])
        # Container names are not written back; the game shows Lore instead.
        self.assertIsNone(again[0].containers[0].name)

    def test_empty_container_survives_round_trip(self):
        built = nbtq.build_hotbar([Preset(name="Kit", slot=0, containers=[
            Container(id="minecraft:chest", items=[]),
        ])])
        presets = nbtq.extract_presets(nbtq.decode(nbtq.encode(built)))
        self.assertEqual(len(presets), 1)
        self.assertEqual(presets[0].name, "Kit")
        self.assertEqual([(c.id, c.items) for c in presets[0].containers],
                         [("minecraft:chest", [])])

    def test_build_rejects_bad_slot(self):
        with self.assertRaises(ValueError):
            nbtq.build_hotbar([Preset(name="x", slot=9)])


# ── Item catalog seam ─────────────────────────────────────────

class _Catalog:
    def __init__(self, names):
        self.names = names

    def lookup_display_name(self, item_id):
        return self.names.get(item_id)

    def category(self, item_id):
        return "misc"

    def search(self, query):
        return [i for i in self.names if nbtq.matches_query(i, query)]


class TestCatalog(unittest.TestCase):
    def test_format_item_name(self):
        self.assertEqual(nbtq.format_item_name("minecraft:diamond_sword"), "Diamond Sword")
        self.assertEqual(nbtq.format_item_name("tnt"), "Tnt")

    def test_matches_query(self):
        self.assertTrue(nbtq.matches_query("minecraft:diamond_sword", "SWORD"))
        self.assertTrue(nbtq.matches_query("minecraft:diamond_sword", "minecraft:dia"))
        self.assertTrue(nbtq.matches_query("minecraft:diamond_sword", ""))
        self.assertFalse(nbtq.matches_query("minecraft:diamond_sword", "axe"))

    def test_describe_item(self):
        catalog = _Catalog({"minecraft:stone": "Smooth Stone"})
        self.assertEqual(nbtq.describe_item(_item("minecraft:stone"), catalog), "Smooth Stone")
        self.assertEqual(nbtq.describe_item(_item("minecraft:oak_log"), catalog), "Oak Log")
        self.assertEqual(nbtq.describe_item(_item("minecraft:oak_log")), "Oak Log")
        named = _named_item("minecraft:stone", '{"text":"Rock"}')
        self.assertEqual(nbtq.describe_item(named, catalog), "Rock")
        self.assertIsNone(nbtq.describe_item(Tag.compound()))

    def test_catalog_search(self):
        catalog = _Catalog({"minecraft:stone": "Stone", "minecraft:stone_bricks": "Bricks",
                            "minecraft:dirt": "Dirt"})
        self.assertEqual(catalog.search("stone"), ["minecraft:stone", "minecraft:stone_bricks"])


# ── Random-tree invariants ────────────────────────────────────

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "tools"))


class TestInvariants(unittest.TestCase):
    def test_random_documents(self):
        import invariants_runner
        self.assertEqual(invariants_runner.run(trials=100, seed=7), 0)

    def test_mutated_documents_fail_cleanly(self):
        import fuzz_runner
        self.assertEqual(fuzz_runner.run(rounds=300, seed=11), 300)


if __name__ == "__main__":
    unittest.main()
