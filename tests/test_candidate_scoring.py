"""Candidate scoring and top-band selection tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Sequence

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.candidate_scoring import pick, score_breakdown, score_item
from models.color_lexicon import expand_family
from models.layers import LayerKind
from models.prompt_query import Palette, PaletteMode, PromptQuery
from models.wardrobe_item import WardrobeItem


class RecordingRandom:
    """Returns the first element and remembers what it was offered."""

    def __init__(self) -> None:
        self.offered: List[Sequence] = []

    def random(self) -> float:
        return 0.0

    def choice(self, seq):
        self.offered.append(list(seq))
        return seq[0]


def _item(item_id: str = "i1", **extra) -> WardrobeItem:
    return WardrobeItem(item_id=item_id, user_id="u1", category=extra.pop("category", "Tops"), **extra)


def test_dress_code_and_occasion() -> None:
    query = PromptQuery(dress_code="smart", occasion="office")
    item = _item(dress_code="Smart Casual", custom_tags=["office"])
    assert score_breakdown(item, LayerKind.TOP, query) == {"dress_code": 25, "occasion": 15}


def test_required_colour_suppresses_global_colour() -> None:
    query = PromptQuery(
        required_colours_by_kind={LayerKind.TOP: expand_family("black")},
        global_colours=frozenset({"black"}),
    )
    item = _item(colours=["Jet"])
    assert score_item(item, LayerKind.TOP, query) == 45
    assert score_item(_item(colours=["Red"]), LayerKind.TOP, query) == 0
    # No requirement on shoes, so the global colour applies there.
    assert score_item(item, LayerKind.SHOES, query) == 25


def test_global_colour_matches_family() -> None:
    query = PromptQuery(global_colours=frozenset({"blue"}))
    assert score_item(_item(colours=["Navy"]), LayerKind.BOTTOM, query) == 25


def test_monochrome_coherence() -> None:
    query = PromptQuery(palette=Palette.monochrome("black"))
    assert score_item(_item(colours=["black"]), LayerKind.TOP, query) == 30
    assert score_item(_item(colours=["white"]), LayerKind.TOP, query) == 0

    inferred = PromptQuery(palette=Palette.monochrome(None))
    assert score_item(_item(colours=["navy"]), LayerKind.TOP, inferred, coherence_colour="blue") == 30
    assert score_item(_item(colours=["navy"]), LayerKind.TOP, inferred) == 0


def test_palette_vibes() -> None:
    assert score_item(_item(colours=["Beige"]), LayerKind.TOP, PromptQuery(palette=Palette(PaletteMode.NEUTRAL))) == 20
    assert score_item(_item(style="Pastel"), LayerKind.TOP, PromptQuery(palette=Palette(PaletteMode.PASTEL))) == 15
    assert score_item(_item(colours=["Olive"]), LayerKind.TOP, PromptQuery(palette=Palette(PaletteMode.EARTH))) == 15
    assert score_item(_item(colours=["Red"]), LayerKind.TOP, PromptQuery(palette=Palette(PaletteMode.EARTH))) == 0


def test_subtype_and_style() -> None:
    query = PromptQuery(
        subtypes_by_kind={LayerKind.SHOES: frozenset({"heel", "heels"})},
        style_tags=frozenset({"minimal"}),
    )
    heels = _item(category="Shoes", subcategory="Heels", style="Minimal")
    assert score_breakdown(heels, LayerKind.SHOES, query) == {"subtype": 40, "style": 18}
    assert score_item(heels, LayerKind.TOP, query) == 18


def test_metallic_only_counts_for_accessories() -> None:
    query = PromptQuery(metallics=frozenset({"gold"}))
    necklace = _item(category="Accessories", subcategory="Necklace", custom_tags=["gold"])
    assert score_item(necklace, LayerKind.ACCESSORY, query) == 25
    assert score_item(necklace, LayerKind.BAG, query) == 0


def test_outerwear_preference_nets_out() -> None:
    coat = _item(category="Outerwear", subcategory="Coat")
    assert score_item(coat, LayerKind.OUTERWEAR, PromptQuery(prefer_outerwear=True)) == 30
    assert score_item(coat, LayerKind.OUTERWEAR, PromptQuery(avoid_outerwear=True)) == -40
    both = PromptQuery(prefer_outerwear=True, avoid_outerwear=True)
    assert score_item(coat, LayerKind.OUTERWEAR, both) == -10
    assert score_item(coat, LayerKind.TOP, both) == 0


def test_pick_chooses_within_top_band() -> None:
    query = PromptQuery(
        required_colours_by_kind={LayerKind.TOP: frozenset({"black"})},
        dress_code="smart",
    )
    best = _item("best", colours=["black"], dress_code="smart")  # 70
    near = _item("near", colours=["black"], style="x")  # 45
    close = _item("close", colours=["black"], dress_code="smart casual")  # 70
    far = _item("far", colours=["red"])  # 0
    rng = RecordingRandom()

    chosen = pick([far, near, best, close], LayerKind.TOP, query, rng)

    assert chosen is best
    assert rng.offered == [[best, close]]

    wide = RecordingRandom()
    pick([far, near, best], LayerKind.TOP, query, wide, band=30)
    assert wide.offered == [[near, best]]


def test_pick_on_empty_bucket_returns_none() -> None:
    assert pick([], LayerKind.SHOES, PromptQuery(), RecordingRandom()) is None
