"""Layer-filtered wardrobe reads consumed by the outfit assembler."""

from __future__ import annotations

import logging
import sqlite3
from typing import List, Protocol

from pydantic import BaseModel, Field

from models.layers import LayerKind, matches
from models.wardrobe_item import WardrobeItem
from tools.observability import instrument_tool
from tools.wardrobe_store import WardrobeStore

logger = logging.getLogger(__name__)


class InventoryQuery(Protocol):
    """Returns up to ``limit`` of the owner's items that belong to ``kind``.

    Implementations return an empty list instead of raising when the backing
    store fails.
    """

    def fetch_items(self, owner_id: str, kind: LayerKind, limit: int) -> List[WardrobeItem]: ...


class FetchItemsInput(BaseModel):
    owner_id: str = Field(min_length=1)
    kind: LayerKind
    limit: int = Field(ge=1)


class StoreInventory:
    """Inventory backed by a :class:`WardrobeStore`."""

    def __init__(self, store: WardrobeStore) -> None:
        self.store = store

    @instrument_tool("inventory.fetch_items", input_model=FetchItemsInput, on_validation_error=lambda exc: [])
    def _fetch(self, *, owner_id: str, kind: LayerKind, limit: int) -> List[WardrobeItem]:
        try:
            items = self.store.list_items_for_user(owner_id)
        except sqlite3.Error as exc:
            logger.warning("Wardrobe read failed for layer %s: %s", kind.value, exc)
            return []
        bucket = [item for item in items if matches(item, kind)]
        logger.debug("Layer %s: %s of %s items matched", kind.value, len(bucket), len(items))
        return bucket[:limit]

    def fetch_items(self, owner_id: str, kind: LayerKind, limit: int) -> List[WardrobeItem]:
        return self._fetch(owner_id=owner_id, kind=kind, limit=limit)


__all__ = ["FetchItemsInput", "InventoryQuery", "StoreInventory"]
