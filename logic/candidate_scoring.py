"""Additive scoring of wardrobe items against a parsed prompt."""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional, Protocol, Sequence, TypeVar

from models.color_lexicon import NEUTRALS, contains_insensitive, expand_family
from models.layers import LayerKind
from models.prompt_query import PaletteMode, PromptQuery
from models.wardrobe_item import WardrobeItem, normalized_colours, searchable_text

T = TypeVar("T")

POINTS: Dict[str, int] = {
    "dress_code": 25,
    "occasion": 15,
    "required_colour": 45,
    "global_colour": 25,
    "monochrome": 30,
    "neutral": 20,
    "pastel": 15,
    "earth": 15,
    "subtype": 40,
    "style": 18,
    "metallic": 25,
    "prefer_outerwear": 30,
    "avoid_outerwear": -40,
}

DEFAULT_BAND = 10
EARTH_COLOURS = frozenset({"brown", "beige", "green"})


class RandomSource(Protocol):
    """The slice of :class:`random.Random` the engine draws from."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def _global_family(query: PromptQuery) -> FrozenSet[str]:
    expanded: set = set()
    for colour in query.global_colours:
        expanded.update(expand_family(colour))
    return frozenset(expanded)


def score_breakdown(
    item: WardrobeItem,
    kind: LayerKind,
    query: PromptQuery,
    coherence_colour: Optional[str] = None,
) -> Dict[str, int]:
    """Return the rules that fired for ``item`` and their points."""

    hay = searchable_text(item)
    colours = set(normalized_colours(item))
    fired: Dict[str, int] = {}

    if query.dress_code and contains_insensitive(item.dress_code, query.dress_code):
        fired["dress_code"] = POINTS["dress_code"]
    if query.occasion and contains_insensitive(hay, query.occasion):
        fired["occasion"] = POINTS["occasion"]

    required = query.colours_for(kind)
    if required:
        if colours & required:
            fired["required_colour"] = POINTS["required_colour"]
    elif query.global_colours and colours & _global_family(query):
        fired["global_colour"] = POINTS["global_colour"]

    palette = query.palette
    if palette.mode is PaletteMode.MONOCHROME:
        target = coherence_colour or palette.colour
        if target and target in colours:
            fired["monochrome"] = POINTS["monochrome"]
    elif palette.mode is PaletteMode.NEUTRAL:
        if colours & NEUTRALS:
            fired["neutral"] = POINTS["neutral"]
    elif palette.mode is PaletteMode.PASTEL:
        if contains_insensitive(item.style, "pastel"):
            fired["pastel"] = POINTS["pastel"]
    elif palette.mode is PaletteMode.EARTH:
        if colours & EARTH_COLOURS:
            fired["earth"] = POINTS["earth"]

    subtypes = query.subtypes_for(kind)
    if subtypes and any(contains_insensitive(hay, word) for word in subtypes):
        fired["subtype"] = POINTS["subtype"]
    if query.style_tags and any(contains_insensitive(hay, tag) for tag in query.style_tags):
        fired["style"] = POINTS["style"]
    if kind is LayerKind.ACCESSORY and any(contains_insensitive(hay, metal) for metal in query.metallics):
        fired["metallic"] = POINTS["metallic"]

    if kind is LayerKind.OUTERWEAR:
        if query.prefer_outerwear:
            fired["prefer_outerwear"] = POINTS["prefer_outerwear"]
        if query.avoid_outerwear:
            fired["avoid_outerwear"] = POINTS["avoid_outerwear"]
    return fired


def score_item(
    item: WardrobeItem,
    kind: LayerKind,
    query: PromptQuery,
    coherence_colour: Optional[str] = None,
) -> int:
    return sum(score_breakdown(item, kind, query, coherence_colour).values())


def pick(
    items: Sequence[WardrobeItem],
    kind: LayerKind,
    query: PromptQuery,
    rng: RandomSource,
    coherence_colour: Optional[str] = None,
    band: int = DEFAULT_BAND,
) -> Optional[WardrobeItem]:
    """Choose uniformly among the items scoring within ``band`` of the best.

    Returns ``None`` only for an empty bucket.
    """

    if not items:
        return None
    scored = [(item, score_item(item, kind, query, coherence_colour)) for item in items]
    best = max(score for _, score in scored)
    top_band = [item for item, score in scored if score >= best - band]
    return rng.choice(top_band or list(items))


__all__ = ["POINTS", "RandomSource", "pick", "score_breakdown", "score_item"]
