"""Keyword parser that turns a short outfit prompt into a :class:`PromptQuery`.

Parsing is total: unknown words are ignored and nothing here raises or draws
random numbers, so the same text always yields an equal query.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Set, Tuple

from models.color_lexicon import contains_insensitive, expand_family, normalize
from models.layers import LayerKind
from models.prompt_query import Palette, PaletteMode, PromptQuery
from models.subtype_lexicon import canonical, is_ambiguous

KIND_WORDS: Dict[str, LayerKind] = {
    **dict.fromkeys(("dress", "gown", "slip"), LayerKind.DRESS),
    **dict.fromkeys(
        (
            "top",
            "shirt",
            "tee",
            "tshirt",
            "blouse",
            "hoodie",
            "sweater",
            "jumper",
            "cardigan",
            "tank",
            "camisole",
        ),
        LayerKind.TOP,
    ),
    **dict.fromkeys(
        ("bottom", "pants", "trouser", "trousers", "jeans", "denim", "skirt", "shorts", "leggings"),
        LayerKind.BOTTOM,
    ),
    **dict.fromkeys(
        (
            "shoes",
            "shoe",
            "heels",
            "heel",
            "pumps",
            "sneakers",
            "sneaker",
            "trainers",
            "trainer",
            "boots",
            "boot",
            "loafers",
            "loafer",
            "sandals",
            "sandal",
            "mules",
            "mule",
        ),
        LayerKind.SHOES,
    ),
    **dict.fromkeys(("outerwear", "jacket", "coat", "blazer", "trench", "parka"), LayerKind.OUTERWEAR),
    **dict.fromkeys(("bag", "purse", "handbag", "tote", "clutch", "crossbody"), LayerKind.BAG),
    **dict.fromkeys(
        (
            "accessory",
            "accessories",
            "belt",
            "scarf",
            "hat",
            "sunglasses",
            "jewelry",
            "earrings",
            "necklace",
            "bracelet",
        ),
        LayerKind.ACCESSORY,
    ),
}

DRESS_WORDS = ("dress", "gown", "slip")
STOP_WORDS = frozenset({"and", "with", "in", "for", "to", "a", "an", "the", "please"})
# Checked in order; a later hit replaces an earlier one.
OCCASIONS = ("wedding", "interview", "office", "date", "party", "beach", "gym")
COLD_HINTS = ("cold", "winter", "chilly")
WARM_HINTS = ("hot", "summer", "warm")
PASTEL_HINTS = ("pastel", "soft", "light", "baby", "muted")
EARTH_HINTS = ("earth", "earthy", "terra", "khaki", "olive", "camel", "brown", "beige", "tan")
STYLE_WORDS = (
    "minimal",
    "sporty",
    "edgy",
    "boho",
    "preppy",
    "streetwear",
    "vintage",
    "romantic",
    "chic",
    "classy",
    "elegant",
    "bold",
    "trendy",
)
METALLICS = ("gold", "silver")
COLOUR_WINDOW = 3

SUBTYPE_VOCABULARIES: Tuple[Tuple[LayerKind, Tuple[str, ...]], ...] = (
    (
        LayerKind.BOTTOM,
        ("jeans", "denim", "trouser", "trousers", "pants", "slacks", "skirt", "shorts", "leggings"),
    ),
    (
        LayerKind.TOP,
        (
            "hoodie",
            "sweater",
            "jumper",
            "cardigan",
            "crewneck",
            "blouse",
            "shirt",
            "tee",
            "t-shirt",
            "tank",
            "camisole",
            "top",
        ),
    ),
    (
        LayerKind.SHOES,
        (
            "heel",
            "heels",
            "pump",
            "pumps",
            "stiletto",
            "sneaker",
            "sneakers",
            "trainer",
            "trainers",
            "boot",
            "boots",
            "chelsea",
            "combat",
            "knee",
            "loafer",
            "loafers",
            "sandal",
            "sandals",
            "mule",
            "mules",
            "flat",
            "flats",
        ),
    ),
    (LayerKind.OUTERWEAR, ("jacket", "blazer", "coat", "trench", "parka")),
)

_WORD_OR_BREAK = re.compile(r"[a-z0-9-]+|[,;/&+]")
CLAUSE_BREAKS = frozenset(",;/&+")


def _words(text: str) -> List[str]:
    """Lowercase words in order, with separators like commas kept as their own entries.

    ``all-white`` is expanded to ``all white`` so it reads like the spaced form.
    """

    words: List[str] = []
    for word in _WORD_OR_BREAK.findall(text.lower()):
        if word.startswith("all-") and len(word) > 4:
            words.extend(["all", word[4:]])
        else:
            words.append(word)
    return words


def tokenize(text: str) -> List[str]:
    """Lowercase, drop punctuation except hyphens, split and drop stop words."""

    return [word for word in _words(text) if word not in STOP_WORDS and word not in CLAUSE_BREAKS]


def _dress_code(lower: str) -> Optional[str]:
    # "smart casual" first so the shorter words cannot pre-empt it.
    for code in ("smart casual", "smart", "casual"):
        if contains_insensitive(lower, code):
            return code
    return None


def _occasion(lower: str) -> Optional[str]:
    found = None
    for occasion in OCCASIONS:
        if contains_insensitive(lower, occasion):
            found = occasion
    return found


def _palette(lower: str, tokens: List[str]) -> Palette:
    if "all" in tokens:
        index = tokens.index("all")
        if index + 1 < len(tokens):
            colour = normalize(tokens[index + 1])
            if colour:
                return Palette.monochrome(colour, strict=True)
    if contains_insensitive(lower, "monochrome"):
        return Palette.monochrome(None, strict=True)
    if contains_insensitive(lower, "neutral"):
        return Palette(PaletteMode.NEUTRAL)
    if any(contains_insensitive(lower, hint) for hint in PASTEL_HINTS):
        return Palette(PaletteMode.PASTEL)
    if any(contains_insensitive(lower, hint) for hint in EARTH_HINTS):
        return Palette(PaletteMode.EARTH)
    if contains_insensitive(lower, "colorful") or contains_insensitive(lower, "colourful") or contains_insensitive(
        lower, "bright"
    ):
        return Palette(PaletteMode.COLORFUL)
    return Palette()


def _garment_kind(token: str) -> Optional[LayerKind]:
    if token in KIND_WORDS:
        return KIND_WORDS[token]
    resolved = canonical(token)
    return resolved[0] if resolved else None


def _tokens_and_modifiers(text: str) -> Tuple[List[str], Set[int]]:
    """Tokens of ``text`` plus the indexes of tokens that only describe the next garment.

    "denim jacket" and "wrap dress" name one garment each: the first word sits
    directly before a garment of another layer. Stop words and commas in
    between ("shirt and jeans", "tee, jeans") keep both garments.
    """

    words = _words(text)
    tokens: List[str] = []
    modifiers: Set[int] = set()
    for index, word in enumerate(words):
        if word in STOP_WORDS or word in CLAUSE_BREAKS:
            continue
        following = words[index + 1] if index + 1 < len(words) else ""
        kind = _garment_kind(word)
        head = None if not following or is_ambiguous(following) else _garment_kind(following)
        if kind is not None and head is not None and head is not kind:
            modifiers.add(len(tokens))
        tokens.append(word)
    return tokens, modifiers


def parse_prompt(text: str) -> PromptQuery:
    """Parse ``text`` into soft constraints for scoring and assembly."""

    lower = (text or "").lower()
    tokens, modifiers = _tokens_and_modifiers(lower)
    garment_tokens = {
        token for index, token in enumerate(tokens) if index not in modifiers and not is_ambiguous(token)
    }

    palette = _palette(lower, tokens)
    global_colours: Set[str] = set()
    if palette.is_monochrome and palette.colour:
        global_colours.add(palette.colour)

    required_subtypes: Dict[LayerKind, Set[str]] = {}
    required_kinds: Set[LayerKind] = set()
    wants_dress_base: Optional[bool] = None
    for index, token in enumerate(tokens):
        if index in modifiers or is_ambiguous(token):
            continue
        resolved = canonical(token)
        if resolved:
            kind, subtype = resolved
            required_subtypes.setdefault(kind, set()).add(subtype)
            required_kinds.add(kind)
            if kind is LayerKind.BOTTOM:
                wants_dress_base = False
        if token in KIND_WORDS:
            required_kinds.add(KIND_WORDS[token])

    if garment_tokens.intersection(DRESS_WORDS):
        wants_dress_base = True

    required_colours: Dict[LayerKind, Set[str]] = {}
    for index, token in enumerate(tokens):
        base = normalize(token)
        if not base:
            continue
        for offset, ahead in enumerate(tokens[index + 1 : index + 1 + COLOUR_WINDOW], start=index + 1):
            kind = None if offset in modifiers else KIND_WORDS.get(ahead)
            if kind is not None:
                required_colours.setdefault(kind, set()).update(expand_family(base))
                required_kinds.add(kind)
                break
        global_colours.add(base)

    subtypes: Dict[LayerKind, Set[str]] = {}
    for kind, vocabulary in SUBTYPE_VOCABULARIES:
        if garment_tokens.intersection(vocabulary):
            subtypes.setdefault(kind, set()).update(vocabulary)

    return PromptQuery(
        required_colours_by_kind={kind: frozenset(values) for kind, values in required_colours.items()},
        subtypes_by_kind={kind: frozenset(values) for kind, values in subtypes.items()},
        required_subtypes_by_kind={kind: frozenset(values) for kind, values in required_subtypes.items()},
        required_kinds=frozenset(required_kinds),
        global_colours=frozenset(global_colours),
        style_tags=frozenset(word for word in STYLE_WORDS if contains_insensitive(lower, word)),
        dress_code=_dress_code(lower),
        occasion=_occasion(lower),
        palette=palette,
        wants_dress_base=wants_dress_base,
        prefer_outerwear=any(contains_insensitive(lower, hint) for hint in COLD_HINTS),
        avoid_outerwear=any(contains_insensitive(lower, hint) for hint in WARM_HINTS),
        metallics=frozenset(metal for metal in METALLICS if contains_insensitive(lower, metal)),
    )


__all__ = ["KIND_WORDS", "STOP_WORDS", "parse_prompt", "tokenize"]
