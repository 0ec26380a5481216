"""Outfit assembly state machine tests."""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.outfit_assembler import AssemblyOptions, AssemblyState, OutfitAssembler, soft_match_note
from models.layers import DISPLAY_ORDER, LayerKind
from models.outfit import WeatherContext
from models.prompt_query import Palette, PromptQuery
from models.wardrobe_item import WardrobeItem
from stylist_app.config import StylistConfig


class FakeInventory:
    def __init__(self, buckets: Dict[LayerKind, List[WardrobeItem]], failing: Iterable[LayerKind] = ()) -> None:
        self.buckets = buckets
        self.failing = set(failing)
        self.calls: List[LayerKind] = []

    def fetch_items(self, owner_id: str, kind: LayerKind, limit: int) -> List[WardrobeItem]:
        self.calls.append(kind)
        if kind in self.failing:
            raise RuntimeError(f"{kind.value} backend down")
        return list(self.buckets.get(kind, []))[:limit]


class ScriptedRandom:
    """Replays ``values`` for random() then falls back to ``default``; choice() takes the first."""

    def __init__(self, values: Iterable[float] = (), default: float = 0.0) -> None:
        self.values = list(values)
        self.default = default

    def random(self) -> float:
        return self.values.pop(0) if self.values else self.default

    def choice(self, seq):
        return seq[0]


def _item(item_id: str, category: str, subcategory: str = "", **extra) -> WardrobeItem:
    return WardrobeItem(item_id=item_id, user_id="u1", category=category, subcategory=subcategory, **extra)


def _buckets(**by_kind: List[WardrobeItem]) -> Dict[LayerKind, List[WardrobeItem]]:
    buckets = {kind: [] for kind in DISPLAY_ORDER}
    for name, items in by_kind.items():
        buckets[LayerKind(name)] = items
    return buckets


SHOES = _item("shoes-1", "Shoes", "Trainers", colours=["white"])
TOP = _item("top-1", "Tops", "Blouse", colours=["white"])
BOTTOM = _item("bottom-1", "Bottoms", "Jeans", colours=["navy"])
DRESS = _item("dress-1", "Dresses", "Midi dress", colours=["red"])
COAT = _item("coat-1", "Outerwear", "Trench coat", colours=["beige"])
BAG = _item("bag-1", "Bags", "Tote", colours=["black"])
BELT = _item("belt-1", "Accessories", "Belt", colours=["brown"])


def _assembler(rng, config: Optional[StylistConfig] = None, **buckets) -> OutfitAssembler:
    return OutfitAssembler(FakeInventory(_buckets(**buckets)), config=config, rng=rng)


def test_missing_shoes_fails_before_base_selection() -> None:
    assembler = _assembler(ScriptedRandom(), top=[TOP], bottom=[BOTTOM], dress=[DRESS])

    result = assembler.assemble("u1", PromptQuery())

    assert result.candidate is None
    assert result.state is AssemblyState.FAILED
    assert result.failure_reason == "no_shoes"
    assert result.diagnostics["trace"][-2:] == ["selecting_shoes", "failed"]
    assert assembler.generate_candidate("u1", PromptQuery()) is None


def test_missing_base_fails() -> None:
    assembler = _assembler(ScriptedRandom(), shoes=[SHOES], top=[TOP])

    result = assembler.assemble("u1", PromptQuery())

    assert result.failure_reason == "no_base"


def test_dress_only_wardrobe_builds_dress_outfit() -> None:
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES], dress=[DRESS])

    for wants in (True, False, None):
        candidate = assembler.generate_candidate("u1", PromptQuery(wants_dress_base=wants))
        assert candidate is not None
        assert set(candidate.items) == {LayerKind.DRESS, LayerKind.SHOES}
        assert candidate.item_ids == ["dress-1", "shoes-1"]
        assert candidate.has_dress_base


def test_coin_flip_decides_base_when_prompt_is_silent() -> None:
    dress_first = _assembler(ScriptedRandom([0.1], default=0.99), shoes=[SHOES], dress=[DRESS], top=[TOP], bottom=[BOTTOM])
    separates_first = _assembler(
        ScriptedRandom([0.9], default=0.99), shoes=[SHOES], dress=[DRESS], top=[TOP], bottom=[BOTTOM]
    )

    assert dress_first.assemble("u1", PromptQuery()).diagnostics["base"] == "dress"
    result = separates_first.assemble("u1", PromptQuery())
    assert result.diagnostics["base"] == "separates"
    assert set(result.candidate.items) == {LayerKind.TOP, LayerKind.BOTTOM, LayerKind.SHOES}


@pytest.mark.parametrize(
    "weather",
    [
        WeatherContext(raining=True),
        WeatherContext(raining=True, temperature_c=10.0),
        WeatherContext(raining=False, temperature_c=4.0),
    ],
    ids=["rain", "cold-rain", "cold-dry"],
)
def test_wet_or_cold_weather_includes_outerwear_about_eighty_percent_of_the_time(weather: WeatherContext) -> None:
    full = _buckets(shoes=[SHOES], top=[TOP], bottom=[BOTTOM], outerwear=[COAT])
    assembler = OutfitAssembler(FakeInventory(full), rng=random.Random(42))
    options = AssemblyOptions(weather=weather)

    hits = sum(
        LayerKind.OUTERWEAR in assembler.assemble("u1", PromptQuery(), options, buckets=full).candidate.items
        for _ in range(2000)
    )
    assert abs(hits / 2000 - 0.8) <= 0.04


def test_mild_weather_includes_outerwear_at_the_optional_rate() -> None:
    full = _buckets(shoes=[SHOES], top=[TOP], bottom=[BOTTOM], outerwear=[COAT])
    assembler = OutfitAssembler(FakeInventory(full), rng=random.Random(42))
    mild = AssemblyOptions(weather=WeatherContext(raining=False, temperature_c=25.0))

    hits = sum(
        LayerKind.OUTERWEAR in assembler.assemble("u1", PromptQuery(), mild, buckets=full).candidate.items
        for _ in range(2000)
    )
    assert abs(hits / 2000 - 0.35) <= 0.04


def test_inclusion_probability_rules() -> None:
    assembler = OutfitAssembler(FakeInventory({}))
    none = AssemblyOptions()
    cold = AssemblyOptions(weather=WeatherContext(temperature_c=4.0))

    assert assembler.inclusion_probability(LayerKind.OUTERWEAR, PromptQuery(), none) == 0.35
    assert assembler.inclusion_probability(LayerKind.OUTERWEAR, PromptQuery(), cold) == 0.8
    assert assembler.inclusion_probability(LayerKind.OUTERWEAR, PromptQuery(avoid_outerwear=True), cold) == 0.0
    both = PromptQuery(prefer_outerwear=True, avoid_outerwear=True)
    assert assembler.inclusion_probability(LayerKind.OUTERWEAR, both, none) == 1.0
    bag_wanted = PromptQuery(required_kinds=frozenset({LayerKind.BAG}))
    assert assembler.inclusion_probability(LayerKind.BAG, bag_wanted, none) == 1.0
    assert assembler.inclusion_probability(LayerKind.ACCESSORY, bag_wanted, none) == 0.35


def test_structural_invariants_hold_across_seeds() -> None:
    full = _buckets(
        shoes=[SHOES, _item("shoes-2", "Shoes", "Boots")],
        top=[TOP, _item("top-2", "Tops", "Tee")],
        bottom=[BOTTOM, _item("bottom-2", "Bottoms", "Skirt")],
        dress=[DRESS],
        outerwear=[COAT],
        bag=[BAG],
        accessory=[BELT],
    )
    assembler = OutfitAssembler(FakeInventory(full), rng=random.Random(7))
    query = PromptQuery(required_kinds=frozenset({LayerKind.BAG, LayerKind.ACCESSORY}), prefer_outerwear=True)

    for _ in range(200):
        candidate = assembler.assemble("u1", query, buckets=full).candidate
        layers = set(candidate.items)
        assert LayerKind.SHOES in layers
        has_separates = LayerKind.TOP in layers and LayerKind.BOTTOM in layers
        assert (LayerKind.DRESS in layers) != has_separates
        assert len(candidate.items) <= 5


def test_item_cap_drops_accessory_then_bag() -> None:
    config = StylistConfig(max_outfit_items=4)
    assembler = _assembler(
        ScriptedRandom(),
        config=config,
        shoes=[SHOES],
        top=[TOP],
        bottom=[BOTTOM],
        outerwear=[COAT],
        bag=[BAG],
        accessory=[BELT],
    )
    query = PromptQuery(
        wants_dress_base=False,
        prefer_outerwear=True,
        required_kinds=frozenset({LayerKind.BAG, LayerKind.ACCESSORY}),
    )

    result = assembler.assemble("u1", query)

    assert result.diagnostics["optionals_attempted"] == ["outerwear", "bag", "accessory"]
    assert result.diagnostics["dropped_for_cap"] == ["accessory", "bag"]
    assert result.candidate.item_ids == ["top-1", "coat-1", "bottom-1", "shoes-1"]


def test_failed_layer_fetch_degrades_to_empty_bucket() -> None:
    inventory = FakeInventory(
        _buckets(shoes=[SHOES], top=[TOP], bottom=[BOTTOM], bag=[BAG]),
        failing=[LayerKind.BAG],
    )
    assembler = OutfitAssembler(inventory, rng=ScriptedRandom())

    buckets = assembler.fetch_buckets("u1")

    assert sorted(inventory.calls, key=lambda kind: kind.value) == sorted(DISPLAY_ORDER, key=lambda kind: kind.value)
    assert buckets[LayerKind.BAG] == []
    assert buckets[LayerKind.SHOES] == [SHOES]

    result = assembler.assemble("u1", PromptQuery(required_kinds=frozenset({LayerKind.BAG})))
    assert result.state is AssemblyState.COMPLETE
    assert LayerKind.BAG not in result.candidate.items


def test_relaxed_colour_note() -> None:
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES], top=[TOP], bottom=[BOTTOM])
    query = PromptQuery(wants_dress_base=False, required_colours_by_kind={LayerKind.TOP: frozenset({"red"})})

    result = assembler.assemble("u1", query)

    assert result.candidate.items[LayerKind.TOP] is TOP
    assert result.candidate.soft_match_note == "Closest match (relaxed color)."
    assert result.diagnostics["relaxed_layers"] == ["top"]


def test_missing_subtype_note() -> None:
    skirt = _item("bottom-2", "Bottoms", "Skirt")
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES], top=[TOP], bottom=[skirt])
    query = PromptQuery(wants_dress_base=False, required_subtypes_by_kind={LayerKind.BOTTOM: frozenset({"jeans"})})

    candidate = assembler.generate_candidate("u1", query)

    assert candidate.items[LayerKind.BOTTOM] is skirt
    assert candidate.soft_match_note == "Closest match (no jeans found)."


def test_combined_relaxation_note() -> None:
    skirt = _item("bottom-2", "Bottoms", "Skirt")
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES], top=[TOP], bottom=[skirt])
    query = PromptQuery(
        wants_dress_base=False,
        required_colours_by_kind={LayerKind.TOP: frozenset({"red"})},
        required_subtypes_by_kind={LayerKind.BOTTOM: frozenset({"jeans"})},
    )

    candidate = assembler.generate_candidate("u1", query)

    assert candidate.soft_match_note == "Closest match (relaxed color & no jeans found)."


def test_strict_match_has_no_note() -> None:
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES], top=[TOP], bottom=[BOTTOM])
    query = PromptQuery(
        wants_dress_base=False,
        required_colours_by_kind={LayerKind.BOTTOM: frozenset({"blue", "navy"})},
        required_subtypes_by_kind={LayerKind.BOTTOM: frozenset({"jeans"})},
    )

    assert assembler.generate_candidate("u1", query).soft_match_note is None
    assert soft_match_note(False, set()) is None


def test_strict_monochrome_keeps_every_piece_in_the_colour() -> None:
    assembler = _assembler(
        ScriptedRandom(default=0.99),
        shoes=[SHOES, _item("shoes-2", "Shoes", "Boots", colours=["Black"])],
        top=[TOP, _item("top-2", "Tops", "Tee", colours=["jet"])],
        bottom=[_item("bottom-2", "Bottoms", "Skirt", colours=["white"]), _item("bottom-3", "Bottoms", "Trousers", colours=["black"])],
    )
    query = PromptQuery(wants_dress_base=False, palette=Palette.monochrome("black"))

    candidate = assembler.generate_candidate("u1", query)

    assert candidate.item_ids == ["top-2", "bottom-3", "shoes-2"]
    assert candidate.soft_match_note is None


def test_monochrome_without_colour_follows_the_first_base_garment() -> None:
    assembler = _assembler(
        ScriptedRandom(),
        shoes=[SHOES],
        top=[_item("top-2", "Tops", "Shirt", colours=["navy"])],
        bottom=[_item("bottom-2", "Bottoms", "Skirt", colours=["red"]), _item("bottom-3", "Bottoms", "Trousers", colours=["cobalt"])],
        outerwear=[_item("coat-2", "Outerwear", "Coat", colours=["red"]), _item("coat-3", "Outerwear", "Parka", colours=["blue"])],
    )
    query = PromptQuery(wants_dress_base=False, prefer_outerwear=True, palette=Palette.monochrome(None))

    result = assembler.assemble("u1", query)

    assert result.diagnostics["coherence_colour"] == "blue"
    assert result.candidate.items[LayerKind.BOTTOM].item_id == "bottom-3"
    assert result.candidate.items[LayerKind.OUTERWEAR].item_id == "coat-3"


def test_rain_prefers_boots_when_asked() -> None:
    boots = _item("shoes-2", "Shoes", "Chelsea boots")
    rainy = AssemblyOptions(weather=WeatherContext(raining=True), prefer_boots_in_rain=True)
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[SHOES, boots], dress=[DRESS])

    assert assembler.generate_candidate("u1", PromptQuery(), rainy).items[LayerKind.SHOES] is boots
    assert assembler.generate_candidate("u1", PromptQuery()).items[LayerKind.SHOES] is SHOES


def test_first_dress_code_locks_the_rest_of_the_outfit() -> None:
    heels = _item("shoes-2", "Shoes", "Heels", dress_code="Smart")
    tee = _item("top-2", "Tops", "Tee", dress_code="Casual")
    blouse = _item("top-3", "Tops", "Blouse", dress_code="smart")
    jeans = _item("bottom-2", "Bottoms", "Jeans", dress_code="Casual")
    trousers = _item("bottom-3", "Bottoms", "Trousers")
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[heels], top=[tee, blouse], bottom=[jeans, trousers])

    candidate = assembler.generate_candidate(
        "u1", PromptQuery(wants_dress_base=False), AssemblyOptions(lock_dress_code=True)
    )

    assert candidate.dress_code == "Smart"
    assert candidate.items[LayerKind.TOP] is blouse
    # No smart bottoms, so the blank-coded pair wins over casual.
    assert candidate.items[LayerKind.BOTTOM] is trousers


def test_dress_code_filter_restricts_every_bucket() -> None:
    trainers = _item("shoes-2", "Shoes", "Trainers", dress_code="Casual")
    heels = _item("shoes-3", "Shoes", "Heels", dress_code="Smart Casual")
    dress = _item("dress-2", "Dresses", "Slip dress", dress_code="Smart")
    assembler = _assembler(ScriptedRandom(default=0.99), shoes=[trainers, heels], dress=[dress])

    result = assembler.assemble("u1", PromptQuery(), AssemblyOptions(dress_code_filter="smart"))

    assert result.candidate.items[LayerKind.SHOES] is heels
    assert result.candidate.dress_code == "smart"
    assert result.diagnostics["bucket_sizes"]["shoes"] == 1

    casual_only = _assembler(ScriptedRandom(), shoes=[trainers], dress=[dress])
    assert casual_only.assemble("u1", PromptQuery(), AssemblyOptions(dress_code_filter="smart")).failure_reason == "no_shoes"
