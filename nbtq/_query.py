"""Query layer — item and inventory projections over decoded trees.

Everything here is a read-only projection built from the traversal
helpers in ``_tree``.  None of it raises on shape mismatch: a slot that
is missing, an item without ``tag``, a ``Name`` stored as the wrong kind
all come back as empty / None / False.

Item layout (1.16-era inventories and hotbar.nbt):

    {id: "minecraft:barrel", Count: 1b, Slot: 0b,
     tag: {display: {Name: '{"text":"Kit"}', Lore: [...]},
           BlockEntityTag: {id: ..., Items: [item, ...]}}}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ._constants import (
    AIR_ID,
    BARREL_ID,
    CHEST_ID,
    HOTBAR_SLOTS,
    NBT_LORE,
    SHULKER_BOX_ID,
    TagKind,
)
from ._tree import Tag, as_integer, as_list, as_string, get, path

logger = logging.getLogger(__name__)

_BLOCK_ENTITY = ("tag", "BlockEntityTag")
_DISPLAY_NAME = ("tag", "display", "Name")
_CONTAINER_ITEMS = ("tag", "BlockEntityTag", "Items")


# ── Core projections ──────────────────────────────────────────

def inventory_slot(root: Optional[Tag], index: int) -> Tuple[Tag, ...]:
    """Items stored under ``root["<index>"]``; empty if absent or not a LIST."""
    return as_list(get(root, str(index))) or ()


def has_attached_container(item: Optional[Tag]) -> bool:
    """True when ``item.tag.BlockEntityTag`` exists, whatever its kind."""
    return path(item, _BLOCK_ENTITY) is not None


def display_name(item: Optional[Tag]) -> Optional[str]:
    """Raw ``item.tag.display.Name`` string (often a JSON text component)."""
    return as_string(path(item, _DISPLAY_NAME))


def item_id(item: Optional[Tag]) -> Optional[str]:
    return as_string(get(item, "id"))


def item_count(item: Optional[Tag]) -> int:
    """Stack size; an absent or zero ``Count`` reads as 1."""
    return as_integer(get(item, "Count")) or 1


def item_slot(item: Optional[Tag]) -> Optional[int]:
    return as_integer(get(item, "Slot"))


def container_items(item: Optional[Tag]) -> Tuple[Tag, ...]:
    """Items inside a container item's ``BlockEntityTag.Items``."""
    return as_list(path(item, _CONTAINER_ITEMS)) or ()


def plain_text(raw: str) -> str:
    """Unwrap a JSON text component such as ``{"text":"Kit"}``.

    Anything that is not a JSON object with a non-empty ``text`` field is
    returned unchanged.
    """
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(parsed, dict) and isinstance(parsed.get("text"), str) and parsed["text"]:
        return parsed["text"]
    return raw


# ── Hotbar records ────────────────────────────────────────────

@dataclass(frozen=True)
class SlotSummary:
    slot: int
    item_id: Optional[str]
    has_block_entity: bool
    display_name: Optional[str]


@dataclass
class HotbarItem:
    id: str
    count: int = 1
    slot: Optional[int] = None
    tag: Optional[Tag] = None


@dataclass
class Container:
    id: str
    name: Optional[str] = None
    items: List[HotbarItem] = field(default_factory=list)


@dataclass
class Preset:
    name: str
    slot: int
    containers: List[Container] = field(default_factory=list)


def slot_summary(root: Optional[Tag]) -> List[SlotSummary]:
    """One line per non-empty hotbar slot, describing its first item."""
    out: List[SlotSummary] = []
    for slot in range(HOTBAR_SLOTS):
        items = inventory_slot(root, slot)
        if not items:
            continue
        first = items[0]
        out.append(SlotSummary(
            slot=slot,
            item_id=item_id(first),
            has_block_entity=has_attached_container(first),
            display_name=display_name(first),
        ))
    return out


def _hotbar_item(item: Tag) -> HotbarItem:
    return HotbarItem(
        id=item_id(item) or "",
        count=item_count(item),
        slot=item_slot(item),
        tag=get(item, "tag"),
    )


def _containers(barrel: Tag) -> List[Container]:
    out: List[Container] = []
    for entry in container_items(barrel):
        cid = item_id(entry)
        if not cid:
            continue
        inner = as_list(path(entry, _CONTAINER_ITEMS))
        if inner is None:
            # Plain item inside the barrel, not a container.  An empty Items
            # list is still a container.
            continue
        out.append(Container(
            id=cid,
            name=display_name(entry),
            items=[_hotbar_item(i) for i in inner],
        ))
    return out


def extract_presets(root: Optional[Tag]) -> List[Preset]:
    """Collect kit presets: barrels in hotbar slots holding filled containers.

    A slot may hold several barrels; each becomes its own preset.  Air,
    items without a ``BlockEntityTag`` and barrels without any container
    are skipped.
    """
    presets: List[Preset] = []
    for slot in range(HOTBAR_SLOTS):
        for barrel in inventory_slot(root, slot):
            bid = item_id(barrel)
            if bid == AIR_ID or not has_attached_container(barrel):
                continue
            containers = _containers(barrel)
            if not containers:
                logger.debug("slot %d: %s holds no containers, skipped", slot, bid)
                continue
            raw_name = display_name(barrel)
            name = plain_text(raw_name) if raw_name else "Preset {}".format(slot + 1)
            presets.append(Preset(name=name, slot=slot, containers=containers))
    return presets


# ── Hotbar builder ────────────────────────────────────────────

def _lore() -> Tag:
    return Tag.list(TagKind.STRING, [Tag.string(NBT_LORE)])


def _air() -> Tag:
    return Tag.compound({
        "id": Tag.string(AIR_ID),
        "Count": Tag.byte(1),
        "tag": Tag.compound({"Charged": Tag.byte(0)}),
    })


def _item_tag(item: HotbarItem) -> Tag:
    children = [
        ("Slot", Tag.byte(item.slot if item.slot is not None else 0)),
        ("id", Tag.string(item.id)),
        ("Count", Tag.byte(item.count)),
    ]
    if item.tag is not None:
        children.append(("tag", item.tag))
    return Tag.compound(children)


def _container_tag(container: Container, index: int) -> Tag:
    block_id = SHULKER_BOX_ID if "shulker" in container.id else CHEST_ID
    return Tag.compound({
        "Slot": Tag.byte(index),
        "id": Tag.string(container.id),
        "Count": Tag.byte(1),
        "tag": Tag.compound({
            "BlockEntityTag": Tag.compound({
                "Items": Tag.list(TagKind.COMPOUND, [_item_tag(i) for i in container.items]),
                "id": Tag.string(block_id),
            }),
            "display": Tag.compound({"Lore": _lore()}),
        }),
    })


def _barrel_tag(preset: Preset) -> Tag:
    containers = [_container_tag(c, idx) for idx, c in enumerate(preset.containers)]
    return Tag.compound({
        "id": Tag.string(BARREL_ID),
        "Count": Tag.byte(1),
        "tag": Tag.compound({
            "RepairCost": Tag.int(0),
            "BlockEntityTag": Tag.compound({
                "Items": Tag.list(TagKind.COMPOUND, containers),
                "id": Tag.string(BARREL_ID),
                "CustomName": Tag.string(preset.name),
            }),
            "display": Tag.compound({
                "Lore": _lore(),
                "Name": Tag.string(preset.name),
            }),
        }),
    })


def build_hotbar(presets: Sequence[Preset]) -> Tag:
    """Build a hotbar.nbt root from presets, grouped by their slot.

    Slots without presets are filled with nine air items so the game
    treats them as empty toolbars.
    """
    by_slot: List[List[Preset]] = [[] for _ in range(HOTBAR_SLOTS)]
    for preset in presets:
        if not 0 <= preset.slot < HOTBAR_SLOTS:
            raise ValueError("preset slot {} outside 0..{}".format(
                preset.slot, HOTBAR_SLOTS - 1))
        by_slot[preset.slot].append(preset)

    children = []
    for slot, group in enumerate(by_slot):
        if group:
            items = [_barrel_tag(p) for p in group]
        else:
            items = [_air() for _ in range(HOTBAR_SLOTS)]
        children.append((str(slot), Tag.list(TagKind.COMPOUND, items)))
    return Tag.compound(children)
