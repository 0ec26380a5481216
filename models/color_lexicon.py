"""Colour normalisation lexicon.

Free-form colour labels ("Light Navy", "charcoal", "woodbrown", "pinkish")
collapse onto a small set of base colours. A base colour can be expanded to
its family of synonyms so scoring can match an item tagged "olive" against a
prompt that asked for "green".
"""

from __future__ import annotations

import re
import unicodedata
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

# Suffix matching walks this tuple in order, so longer names that contain a
# shorter base must not appear after it.
BASE_COLOURS: Tuple[str, ...] = (
    "black",
    "white",
    "red",
    "blue",
    "green",
    "yellow",
    "pink",
    "beige",
    "brown",
    "grey",
    "purple",
    "orange",
)

NEUTRALS: FrozenSet[str] = frozenset(
    {"black", "white", "grey", "beige", "brown", "camel", "taupe", "tan", "ivory"}
)

MODIFIERS: Tuple[str, ...] = (
    "light",
    "dark",
    "bright",
    "deep",
    "neon",
    "soft",
    "muted",
    "pale",
    "baby",
    "pastel",
    "warm",
    "cool",
    "rich",
)


def _alias_table() -> Dict[str, str]:
    groups = {
        "grey": ["gray", "charcoal", "graphite", "slate", "ash"],
        "black": ["jet", "ebony", "noir", "ink", "obsidian"],
        "blue": ["navy", "cobalt", "azul", "skyblue", "teal"],
        "green": ["forestgreen", "olive", "sage", "mint"],
        "beige": [
            "cream",
            "nude",
            "taupe",
            "tan",
            "camel",
            "sand",
            "khaki",
            "stone",
            "oat",
            "oatmeal",
        ],
        "brown": [
            "chocolate",
            "mocha",
            "coffee",
            "cognac",
            "chestnut",
            "woodbrown",
            "dirtbrown",
            "zinnwalditebrown",
        ],
        "purple": ["lilac", "lavender"],
        "orange": ["coral", "peach"],
        "pink": ["blush", "rose"],
        "white": ["offwhite", "ivory"],
    }
    return {alias: base for base, aliases in groups.items() for alias in aliases}


ALIASES: Dict[str, str] = _alias_table()

FAMILIES: Dict[str, FrozenSet[str]] = {
    "black": frozenset({"black", "jet", "ebony", "noir", "ink"}),
    "grey": frozenset({"grey", "gray", "charcoal", "graphite", "slate", "ash"}),
    "brown": frozenset({"brown", "mocha", "chocolate", "coffee", "cognac", "chestnut"}),
    "beige": frozenset(
        {"beige", "camel", "taupe", "tan", "sand", "khaki", "stone", "oat", "oatmeal", "cream", "nude"}
    ),
    "green": frozenset({"green", "olive", "sage", "mint", "forestgreen"}),
    "blue": frozenset({"blue", "navy", "cobalt", "skyblue", "teal", "azul"}),
    "pink": frozenset({"pink", "blush", "rose"}),
    "purple": frozenset({"purple", "lilac", "lavender"}),
    "orange": frozenset({"orange", "coral", "peach"}),
    "white": frozenset({"white", "ivory", "offwhite"}),
}

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def fold(value: str) -> str:
    """Strip diacritics, lowercase and drop everything but letters and digits."""

    decomposed = unicodedata.normalize("NFKD", value or "")
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", ascii_only.lower())


def contains_insensitive(haystack: str, needle: str) -> bool:
    """Substring test that ignores case, accents, spacing and punctuation."""

    folded_needle = fold(needle)
    if not folded_needle:
        return False
    return folded_needle in fold(haystack)


def normalize(raw: str) -> Optional[str]:
    """Map a free-form colour label to a base colour, or ``None``."""

    key = fold(raw)
    if not key:
        return None

    for modifier in MODIFIERS:
        if key.startswith(modifier) and len(key) > len(modifier):
            key = key[len(modifier):]
            break

    if key.endswith("ish") and len(key) > 3:
        key = key[:-3]

    if key in ALIASES:
        return ALIASES[key]
    if key in BASE_COLOURS:
        return key

    for base in BASE_COLOURS:
        if key.endswith(base):
            return base
    return None


def expand_family(base: str) -> FrozenSet[str]:
    """Return every synonym of ``base`` including itself."""

    return FAMILIES.get(base, frozenset({base}))


def normalize_all(values: Iterable[str]) -> List[str]:
    """Normalise a list of labels, dropping unknowns and keeping first-seen order."""

    seen: List[str] = []
    for value in values:
        base = normalize(str(value))
        if base and base not in seen:
            seen.append(base)
    return seen


def is_neutral(colour: str) -> bool:
    return colour in NEUTRALS or normalize(colour) in NEUTRALS


__all__ = [
    "ALIASES",
    "BASE_COLOURS",
    "FAMILIES",
    "MODIFIERS",
    "NEUTRALS",
    "contains_insensitive",
    "expand_family",
    "fold",
    "is_neutral",
    "normalize",
    "normalize_all",
]
