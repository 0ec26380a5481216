"""Canonical garment subtypes and their synonyms.

A prompt that says "sneakers" and an item tagged "Trainers" should meet in the
middle, so both sides are reduced to a canonical subtype before comparison.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from models.color_lexicon import fold
from models.layers import LayerKind

_SUBTYPES: Dict[LayerKind, Dict[str, Tuple[str, ...]]] = {
    LayerKind.SHOES: {
        "trainers": (
            "trainer",
            "trainers",
            "sneaker",
            "sneakers",
            "tennisshoe",
            "tennisshoes",
            "runningshoe",
            "runningshoes",
            "plimsoll",
            "plimsolls",
            "kicks",
            "athleticshoe",
            "gymshoe",
        ),
        "heels": ("heel", "heels", "pump", "pumps", "stiletto", "stilettos", "slingback", "slingbacks"),
        "boots": ("boot", "boots", "chelsea", "combat", "ankleboot", "ankleboots", "kneeboot", "kneeboots", "knee", "kneehigh"),
        "loafers": ("loafer", "loafers", "pennyloafer", "pennyloafers", "drivingloafer", "drivingloafers"),
        "sandals": ("sandal", "sandals", "slide", "slides", "flipflop", "flipflops", "mule", "mules"),
        "flats": ("flat", "flats", "balletflat", "balletflats"),
    },
    LayerKind.BOTTOM: {
        "skirt": ("skirt", "miniskirt", "midiskirt", "maxiskirt", "slipskirt", "pleatedskirt"),
        "jeans": ("jean", "jeans", "denim", "momjeans", "skinnyjeans", "straightjeans", "widejeans"),
        "trousers": ("trouser", "trousers", "pants", "slacks", "tailoredpants", "suitpants", "chinos"),
        "shorts": ("short", "shorts", "denimshorts", "bikershorts", "bermudashorts"),
        "leggings": ("legging", "leggings", "yogapants"),
    },
    LayerKind.TOP: {
        "hoodie": ("hoodie", "hooded", "ziphoodie"),
        "sweater": ("sweater", "jumper", "crewneck", "knit", "cardigan"),
        "blouse": ("blouse", "shirt", "buttondown", "buttonup"),
        "tee": ("tee", "tshirt", "graphictee"),
        "tank": ("tank", "camisole", "cami", "singlet"),
    },
    LayerKind.OUTERWEAR: {
        "blazer": ("blazer",),
        "jacket": ("jacket", "bikerjacket", "denimjacket", "bomber"),
        "coat": ("coat", "overcoat", "woolcoat"),
        "trench": ("trench", "trenchcoat"),
        "parka": ("parka", "puffer", "downjacket"),
    },
    LayerKind.BAG: {
        "tote": ("tote", "totebag", "shopper"),
        "crossbody": ("crossbody", "crossbodybag", "messenger"),
        "clutch": ("clutch", "eveningbag"),
        "shoulder": ("shoulderbag", "shoulder"),
    },
    LayerKind.ACCESSORY: {
        "belt": ("belt", "waistbelt"),
        "scarf": ("scarf", "shawl", "wrap"),
        "hat": ("hat", "beanie", "cap", "bucket"),
        "sunglasses": ("sunglass", "sunglasses", "sunnies", "shade", "shades"),
        "jewelry": ("jewelry", "jewellery", "necklace", "bracelet", "earring", "earrings", "ring", "rings"),
    },
}

_TOKEN_INDEX: Dict[str, Tuple[LayerKind, str]] = {
    synonym: (kind, subtype)
    for kind, subtypes in _SUBTYPES.items()
    for subtype, synonyms in subtypes.items()
    for synonym in synonyms
}

# Words that double as ordinary English or as part of another garment's name
# ("wrap dress", "short sleeve", "knee length"). They still match item tags but
# never become a hard requirement when they show up in a prompt.
AMBIGUOUS_SYNONYMS: FrozenSet[str] = frozenset(
    {
        "wrap",
        "short",
        "knit",
        "cap",
        "ring",
        "rings",
        "shade",
        "shades",
        "bucket",
        "knee",
        "combat",
        "slide",
        "slides",
        "shoulder",
    }
)


def canonical(token: str) -> Optional[Tuple[LayerKind, str]]:
    """Resolve a prompt token or tag to ``(layer, canonical subtype)``."""

    return _TOKEN_INDEX.get(fold(token))


def is_ambiguous(token: str) -> bool:
    return fold(token) in AMBIGUOUS_SYNONYMS


def synonyms(kind: LayerKind, subtype: str) -> FrozenSet[str]:
    return frozenset(_SUBTYPES.get(kind, {}).get(subtype, (subtype,)))


def subtypes_for(kind: LayerKind) -> Tuple[str, ...]:
    return tuple(_SUBTYPES.get(kind, {}))


def matches_subtypes(haystack: str, subcategory: str, required: Iterable[str], kind: LayerKind) -> bool:
    """True when the item text mentions any synonym of any ``required`` subtype.

    The subcategory is checked first as a whole word; otherwise any synonym
    appearing inside the folded haystack counts.
    """

    wanted = set(required)
    if not wanted:
        return True
    resolved = canonical(subcategory)
    if resolved and resolved[0] is kind and resolved[1] in wanted:
        return True
    folded = fold(haystack)
    for subtype in wanted:
        for synonym in synonyms(kind, subtype):
            # Very short synonyms produce false positives inside longer words.
            if len(synonym) < 4:
                continue
            if synonym in folded:
                return True
    return False


def human_label(subtypes: Iterable[str]) -> str:
    """Readable label for a note shown to the user, e.g. ``jeans / skirt``."""

    ordered = sorted(set(subtypes))
    if not ordered:
        return ""
    if len(ordered) <= 2:
        return " / ".join(ordered)
    return ", ".join(ordered[:3]) + ("…" if len(ordered) > 3 else "")


__all__ = [
    "AMBIGUOUS_SYNONYMS",
    "canonical",
    "human_label",
    "is_ambiguous",
    "matches_subtypes",
    "subtypes_for",
    "synonyms",
]
