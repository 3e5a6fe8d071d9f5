"""Item catalog seam.

The catalog (display names, categories, search) is supplied by the caller;
this package only defines the shape it must have and the name fallbacks
used when it is absent.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from ._query import display_name, item_id, plain_text
from ._tree import Tag

_NAMESPACE = "minecraft:"


class ItemCatalog(Protocol):
    def lookup_display_name(self, item_id: str) -> Optional[str]: ...

    def category(self, item_id: str) -> Any: ...

    def search(self, query: str) -> List[str]: ...


def format_item_name(item_id: str) -> str:
    """``minecraft:diamond_sword`` → ``Diamond Sword``."""
    bare = item_id.replace(_NAMESPACE, "")
    return " ".join(w[:1].upper() + w[1:] for w in bare.split("_"))


def matches_query(item_id: str, query: str) -> bool:
    """Case-insensitive substring match on the namespaced and the bare id."""
    if not query:
        return True
    q = query.lower()
    if q in item_id.lower():
        return True
    bare = item_id[len(_NAMESPACE):] if item_id.startswith(_NAMESPACE) else item_id
    return q in bare.lower()


def describe_item(item: Optional[Tag], catalog: Optional[ItemCatalog] = None) -> Optional[str]:
    """Best human-readable name for ``item``.

    Order: custom display name, catalog name, formatted id.  None when the
    item has no id at all.
    """
    raw = display_name(item)
    if raw:
        return plain_text(raw)
    iid = item_id(item)
    if not iid:
        return None
    if catalog is not None:
        name = catalog.lookup_display_name(iid)
        if name:
            return name
    return format_item_name(iid)
