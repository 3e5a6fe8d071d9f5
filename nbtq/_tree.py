"""NBT tag tree — the immutable ``Tag`` value and total traversal helpers.

A ``Tag`` is one node of a document: a kind, an optional name, and a
kind-specific payload.  Containers own their children as tuples, so a tree
is a plain value: hashable where its payload is, comparable with ``==``,
and impossible to make cyclic.

    COMPOUND  value = tuple of named Tags, insertion order, duplicates kept
    LIST      value = tuple of unnamed Tags, all of ``element_kind``
    arrays    value = tuple of signed ints
    STRING    value = str
    scalars   value = int or float

Shape rules are enforced at construction and raise ``NbtError(ERR_SCHEMA)``;
once built, a Tag is always encodable (string length limits aside).

The traversal functions never raise.  Each one accepts ``None`` as well as
a Tag, so lookups chain without intermediate checks:

    >>> as_string(get(item, "id"))
    'minecraft:stone'
"""

from __future__ import annotations

import dataclasses
import struct
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ._constants import ARRAY_ELEMENTS, INTEGRAL_RANGES, TagKind
from ._errors import ERR_SCHEMA, NbtError

_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

Segment = Union[str, int]
CompoundChildren = Union[Mapping[str, "Tag"], Iterable[Union["Tag", Tuple[str, "Tag"]]]]


def _coerce_kind(kind: Any) -> TagKind:
    try:
        return TagKind(kind)
    except ValueError:
        raise NbtError(ERR_SCHEMA, "not a tag kind: {!r}".format(kind))


def _check_integral(kind: TagKind, v: Any) -> int:
    # bool is an int subclass; refuse it so True never silently becomes 1b.
    if isinstance(v, bool) or not isinstance(v, int):
        raise NbtError(ERR_SCHEMA, "{} payload must be int, got {}".format(
            kind.name, type(v).__name__))
    lo, hi = INTEGRAL_RANGES[kind]
    if v < lo or v > hi:
        raise NbtError(ERR_SCHEMA, "{} payload {} out of range".format(kind.name, v))
    return v


def _payload_key(tag: "Tag") -> Any:
    if tag.kind is TagKind.FLOAT:
        return _F32.pack(tag.value)
    if tag.kind is TagKind.DOUBLE:
        return _F64.pack(tag.value)
    return tag.value


@dataclass(frozen=True, eq=False)
class Tag:
    kind: TagKind
    value: Any
    name: Optional[str] = None
    element_kind: Optional[TagKind] = None

    # Iterative walk: a tree may nest as deep as max_depth allows.  FLOAT and
    # DOUBLE compare by bit pattern, so NaN == NaN and 0.0 != -0.0, as on the
    # wire.

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        stack = [(self, other)]
        while stack:
            a, b = stack.pop()
            if a is b:
                continue
            if (a.kind is not b.kind or a.name != b.name
                    or a.element_kind is not b.element_kind):
                return False
            if a.kind is TagKind.LIST or a.kind is TagKind.COMPOUND:
                if len(a.value) != len(b.value):
                    return False
                stack.extend(zip(a.value, b.value))
            elif _payload_key(a) != _payload_key(b):
                return False
        return True

    def __hash__(self) -> int:
        parts = []
        stack = [self]
        while stack:
            tag = stack.pop()
            parts.append((tag.kind, tag.name, tag.element_kind))
            if tag.kind is TagKind.LIST or tag.kind is TagKind.COMPOUND:
                parts.append(len(tag.value))
                stack.extend(reversed(tag.value))
            else:
                parts.append(_payload_key(tag))
        return hash(tuple(parts))

    def __post_init__(self) -> None:
        kind = _coerce_kind(self.kind)
        object.__setattr__(self, "kind", kind)
        if self.name is not None and not isinstance(self.name, str):
            raise NbtError(ERR_SCHEMA, "tag name must be str or None")
        if kind is not TagKind.LIST and self.element_kind is not None:
            raise NbtError(ERR_SCHEMA, "element_kind is only valid on LIST")
        object.__setattr__(self, "value", self._normalize(kind, self.value))

    def _normalize(self, kind: TagKind, v: Any) -> Any:
        if kind in INTEGRAL_RANGES:
            return _check_integral(kind, v)

        if kind is TagKind.FLOAT or kind is TagKind.DOUBLE:
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise NbtError(ERR_SCHEMA, "{} payload must be a number".format(kind.name))
            if kind is TagKind.DOUBLE:
                return float(v)
            # Round to binary32 now so a decoded copy compares equal.
            try:
                return _F32.unpack(_F32.pack(v))[0]
            except OverflowError:
                raise NbtError(ERR_SCHEMA, "FLOAT payload {} out of range".format(v))

        if kind is TagKind.STRING:
            if not isinstance(v, str):
                raise NbtError(ERR_SCHEMA, "STRING payload must be str")
            return v

        if kind in ARRAY_ELEMENTS:
            if kind is TagKind.BYTE_ARRAY and isinstance(v, (bytes, bytearray)):
                return struct.unpack(">{}b".format(len(v)), v)
            elem = ARRAY_ELEMENTS[kind]
            return tuple(_check_integral(elem, x) for x in v)

        if kind is TagKind.LIST:
            return self._normalize_list(v)

        if kind is TagKind.COMPOUND:
            children = tuple(v)
            for child in children:
                if not isinstance(child, Tag):
                    raise NbtError(ERR_SCHEMA, "COMPOUND children must be Tags")
                if child.name is None:
                    raise NbtError(ERR_SCHEMA, "COMPOUND child without a name")
            return children

        raise NbtError(ERR_SCHEMA, "END is a terminator, not a value")

    def _normalize_list(self, v: Any) -> Tuple["Tag", ...]:
        children = tuple(v)
        elem = self.element_kind
        if elem is None:
            elem = children[0].kind if children and isinstance(children[0], Tag) else TagKind.END
        elem = _coerce_kind(elem)
        object.__setattr__(self, "element_kind", elem)

        if children and elem is TagKind.END:
            raise NbtError(ERR_SCHEMA, "non-empty LIST cannot hold END")
        for child in children:
            if not isinstance(child, Tag):
                raise NbtError(ERR_SCHEMA, "LIST children must be Tags")
            if child.kind is not elem:
                raise NbtError(ERR_SCHEMA, "LIST of {} holds a {}".format(
                    elem.name, child.kind.name))
            if child.name is not None:
                raise NbtError(ERR_SCHEMA, "LIST children are unnamed")
        return children

    # ── Construction helpers ──────────────────────────────────

    def named(self, name: Optional[str]) -> "Tag":
        """Return a copy of this tag carrying ``name``."""
        if name == self.name:
            return self
        return dataclasses.replace(self, name=name)

    @classmethod
    def byte(cls, value: int, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.BYTE, value, name)

    @classmethod
    def short(cls, value: int, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.SHORT, value, name)

    @classmethod
    def int(cls, value: int, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.INT, value, name)

    @classmethod
    def long(cls, value: int, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.LONG, value, name)

    @classmethod
    def float(cls, value: float, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.FLOAT, value, name)

    @classmethod
    def double(cls, value: float, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.DOUBLE, value, name)

    @classmethod
    def string(cls, value: str, name: Optional[str] = None) -> "Tag":
        return cls(TagKind.STRING, value, name)

    @classmethod
    def byte_array(cls, values: Iterable[int], name: Optional[str] = None) -> "Tag":
        return cls(TagKind.BYTE_ARRAY, values, name)

    @classmethod
    def int_array(cls, values: Iterable[int], name: Optional[str] = None) -> "Tag":
        return cls(TagKind.INT_ARRAY, values, name)

    @classmethod
    def long_array(cls, values: Iterable[int], name: Optional[str] = None) -> "Tag":
        return cls(TagKind.LONG_ARRAY, values, name)

    @classmethod
    def list(cls, element_kind: TagKind, items: Iterable["Tag"],
             name: Optional[str] = None) -> "Tag":
        """Build a LIST; any names carried by ``items`` are dropped."""
        children = tuple(t.named(None) if isinstance(t, Tag) else t for t in items)
        return cls(TagKind.LIST, children, name, element_kind)

    @classmethod
    def compound(cls, children: CompoundChildren = (), name: Optional[str] = "") -> "Tag":
        """Build a COMPOUND from a mapping, ``(name, tag)`` pairs, or named tags.

        Pairs may repeat a name; duplicates are kept in order.  The default
        name ``""`` is what a document root carries; list elements lose it.
        """
        entries = children.items() if isinstance(children, Mapping) else children
        out: List[Tag] = []
        for entry in entries:
            if isinstance(entry, Tag):
                out.append(entry)
            else:
                key, tag = entry
                out.append(tag.named(key))
        return cls(TagKind.COMPOUND, tuple(out), name)


# ── Traversal (total, never raises) ──────────────────────────

def _narrow(tag: Optional[Tag], kind: TagKind) -> Any:
    if isinstance(tag, Tag) and tag.kind is kind:
        return tag.value
    return None


def get(compound: Optional[Tag], key: str) -> Optional[Tag]:
    """First child of ``compound`` named ``key``, or None."""
    children = _narrow(compound, TagKind.COMPOUND)
    if children is None:
        return None
    for child in children:
        if child.name == key:
            return child
    return None


def get_all(compound: Optional[Tag], key: str) -> Tuple[Tag, ...]:
    """Every child named ``key``, in stored order."""
    children = _narrow(compound, TagKind.COMPOUND)
    if children is None:
        return ()
    return tuple(c for c in children if c.name == key)


def keys(compound: Optional[Tag]) -> Tuple[str, ...]:
    children = _narrow(compound, TagKind.COMPOUND)
    if children is None:
        return ()
    return tuple(c.name for c in children)


def as_list(tag: Optional[Tag]) -> Optional[Tuple[Tag, ...]]:
    return _narrow(tag, TagKind.LIST)


def as_compound(tag: Optional[Tag]) -> Optional[Tuple[Tag, ...]]:
    return _narrow(tag, TagKind.COMPOUND)


def as_byte(tag: Optional[Tag]) -> Optional[int]:
    return _narrow(tag, TagKind.BYTE)


def as_short(tag: Optional[Tag]) -> Optional[int]:
    return _narrow(tag, TagKind.SHORT)


def as_int(tag: Optional[Tag]) -> Optional[int]:
    return _narrow(tag, TagKind.INT)


def as_long(tag: Optional[Tag]) -> Optional[int]:
    return _narrow(tag, TagKind.LONG)


def as_float(tag: Optional[Tag]) -> Optional[float]:
    return _narrow(tag, TagKind.FLOAT)


def as_double(tag: Optional[Tag]) -> Optional[float]:
    return _narrow(tag, TagKind.DOUBLE)


def as_string(tag: Optional[Tag]) -> Optional[str]:
    return _narrow(tag, TagKind.STRING)


def as_byte_array(tag: Optional[Tag]) -> Optional[Tuple[int, ...]]:
    return _narrow(tag, TagKind.BYTE_ARRAY)


def as_int_array(tag: Optional[Tag]) -> Optional[Tuple[int, ...]]:
    return _narrow(tag, TagKind.INT_ARRAY)


def as_long_array(tag: Optional[Tag]) -> Optional[Tuple[int, ...]]:
    return _narrow(tag, TagKind.LONG_ARRAY)


def as_integer(tag: Optional[Tag]) -> Optional[int]:
    """Payload of any integral scalar (BYTE, SHORT, INT or LONG)."""
    if isinstance(tag, Tag) and tag.kind in INTEGRAL_RANGES:
        return tag.value
    return None


def path(tag: Optional[Tag], segments: Sequence[Segment]) -> Optional[Tag]:
    """Follow ``segments`` from ``tag``.

    A ``str`` segment looks up a COMPOUND child by name; an ``int`` segment
    indexes a LIST.  The first step that is missing, out of range, or applied
    to the wrong kind yields None.
    """
    cur = tag
    for seg in segments:
        if cur is None:
            return None
        if isinstance(seg, str):
            cur = get(cur, seg)
        elif isinstance(seg, int) and not isinstance(seg, bool):
            items = as_list(cur)
            if items is None or not 0 <= seg < len(items):
                return None
            cur = items[seg]
        else:
            return None
    return cur


def simplify(tag: Tag) -> Any:
    """Plain Python view of ``tag``: dicts, lists, str, int, float.

    Duplicate compound keys keep their first occurrence, matching ``get``.
    """
    kind = tag.kind
    if kind is TagKind.COMPOUND:
        out: Dict[str, Any] = {}
        for child in tag.value:
            if child.name not in out:
                out[child.name] = simplify(child)
        return out
    if kind is TagKind.LIST:
        return [simplify(child) for child in tag.value]
    if kind in ARRAY_ELEMENTS:
        return list(tag.value)
    return tag.value
