"""Clothing layers and the strict category matcher that buckets items into them."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple

from models.wardrobe_item import WardrobeItem


class LayerKind(str, Enum):
    """One slot of an outfit. Values double as bucket keys."""

    DRESS = "dress"
    TOP = "top"
    BOTTOM = "bottom"
    SHOES = "shoes"
    OUTERWEAR = "outerwear"
    BAG = "bag"
    ACCESSORY = "accessory"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def stack_order(self) -> int:
        return DISPLAY_ORDER.index(self)

    @property
    def is_optional(self) -> bool:
        return self in OPTIONAL_LAYERS


DISPLAY_ORDER: Tuple[LayerKind, ...] = (
    LayerKind.DRESS,
    LayerKind.TOP,
    LayerKind.OUTERWEAR,
    LayerKind.BOTTOM,
    LayerKind.SHOES,
    LayerKind.BAG,
    LayerKind.ACCESSORY,
)

OPTIONAL_LAYERS: Tuple[LayerKind, ...] = (LayerKind.OUTERWEAR, LayerKind.BAG, LayerKind.ACCESSORY)

# Dropped first when an outfit exceeds its item ceiling.
DROP_PRIORITY: Tuple[LayerKind, ...] = (LayerKind.ACCESSORY, LayerKind.BAG, LayerKind.OUTERWEAR)

LAYER_TOKENS: Dict[LayerKind, Tuple[str, ...]] = {
    LayerKind.DRESS: ("dress", "gown", "jumpsuit", "overall"),
    LayerKind.TOP: ("top", "shirt", "blouse", "t-shirt", "tee", "sweater", "hoodie", "cardigan", "tank"),
    LayerKind.BOTTOM: (
        "bottom",
        "pants",
        "jeans",
        "skirt",
        "shorts",
        "trouser",
        "trousers",
        "leggings",
        "trackpants",
    ),
    LayerKind.SHOES: (
        "shoe",
        "shoes",
        "sneaker",
        "trainer",
        "boot",
        "boots",
        "sandal",
        "sandals",
        "loafer",
        "loafers",
        "footwear",
        "heel",
        "mule",
        "flat",
    ),
    LayerKind.OUTERWEAR: ("jacket", "coat", "blazer", "outerwear", "parka", "trench", "puffer"),
    LayerKind.BAG: ("bag", "handbag", "backpack", "tote", "crossbody", "purse", "wallet", "clutch"),
    LayerKind.ACCESSORY: ("accessory", "belt", "scarf", "hat", "cap", "jewellery", "jewelry", "glove"),
}

_PRIMARY: Tuple[LayerKind, ...] = (LayerKind.DRESS, LayerKind.TOP, LayerKind.BOTTOM, LayerKind.SHOES)


def _text(item: WardrobeItem) -> str:
    return f"{item.category} {item.subcategory}".lower()


def _hits(text: str, kind: LayerKind) -> bool:
    return any(token in text for token in LAYER_TOKENS[kind])


def matches(item: WardrobeItem, kind: LayerKind) -> bool:
    """Return True when ``item`` plausibly belongs to ``kind``.

    The four primary layers are mutually exclusive: an item whose text hits
    more than one of them is rejected from all of them. Outerwear refuses
    anything that also reads as a dress or shoe; bags and accessories only
    need a positive hit.
    """

    text = _text(item)
    if not _hits(text, kind):
        return False
    if kind in _PRIMARY:
        return not any(_hits(text, other) for other in _PRIMARY if other is not kind)
    if kind is LayerKind.OUTERWEAR:
        return not (_hits(text, LayerKind.DRESS) or _hits(text, LayerKind.SHOES))
    return True


def classify(item: WardrobeItem) -> List[LayerKind]:
    """Every layer ``item`` matches, in display order."""

    return [kind for kind in DISPLAY_ORDER if matches(item, kind)]


__all__ = [
    "DISPLAY_ORDER",
    "DROP_PRIORITY",
    "LAYER_TOKENS",
    "LayerKind",
    "OPTIONAL_LAYERS",
    "classify",
    "matches",
]
