"""Outfit assembly: fetch buckets, pick shoes, a base, then optional layers.

Every decision that involves chance goes through the injected random source,
so a seeded :class:`random.Random` reproduces an assembly exactly.
"""
from __future__ import annotations

import contextvars
import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from logic.candidate_scoring import RandomSource, pick
from models.color_lexicon import contains_insensitive, fold
from models.layers import DISPLAY_ORDER, DROP_PRIORITY, OPTIONAL_LAYERS, LayerKind
from models.outfit import OutfitCandidate, WeatherContext
from models.prompt_query import PromptQuery
from models.subtype_lexicon import human_label, matches_subtypes, synonyms
from models.wardrobe_item import WardrobeItem, normalized_colours, searchable_text
from stylist_app.config import StylistConfig
from tools.inventory import InventoryQuery

logger = logging.getLogger(__name__)

Buckets = Dict[LayerKind, List[WardrobeItem]]


class AssemblyState(str, Enum):
    IDLE = "idle"
    FETCHING_BUCKETS = "fetching_buckets"
    SELECTING_SHOES = "selecting_shoes"
    SELECTING_BASE = "selecting_base"
    ADDING_OPTIONALS = "adding_optionals"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class AssemblyOptions:
    """Per-flow switches layered on top of the parsed prompt."""

    weather: Optional[WeatherContext] = None
    lock_dress_code: bool = False
    dress_code_filter: Optional[str] = None
    prefer_boots_in_rain: bool = False


@dataclass(frozen=True)
class AssemblyResult:
    candidate: Optional[OutfitCandidate]
    state: AssemblyState
    diagnostics: Dict[str, object]

    @property
    def failure_reason(self) -> Optional[str]:
        reason = self.diagnostics.get("reason")
        return str(reason) if reason else None


@dataclass
class _Run:
    """Mutable bookkeeping for a single assembly."""

    query: PromptQuery
    options: AssemblyOptions
    buckets: Buckets
    coherence: Optional[str] = None
    locked_dress_code: Optional[str] = None
    picked: Dict[LayerKind, WardrobeItem] = field(default_factory=dict)
    colour_relaxed: bool = False
    relaxed_subtypes: Set[str] = field(default_factory=set)
    trace: List[str] = field(default_factory=list)
    relaxed_layers: List[str] = field(default_factory=list)

    def enter(self, state: AssemblyState) -> None:
        self.trace.append(state.value)


def _prefer_boots(pool: List[WardrobeItem]) -> List[WardrobeItem]:
    boot_words = [word for word in synonyms(LayerKind.SHOES, "boots") if len(word) > 3]
    boots = [item for item in pool if any(word in fold(searchable_text(item)) for word in boot_words)]
    return boots or pool


def soft_match_note(colour_relaxed: bool, relaxed_subtypes: Set[str]) -> Optional[str]:
    """User-facing note explaining which hard constraints were loosened."""

    label = human_label(relaxed_subtypes)
    if colour_relaxed and label:
        return f"Closest match (relaxed color & no {label} found)."
    if colour_relaxed:
        return "Closest match (relaxed color)."
    if label:
        return f"Closest match (no {label} found)."
    return None


class OutfitAssembler:
    """Builds one :class:`OutfitCandidate` per call from a user's inventory."""

    def __init__(
        self,
        inventory: InventoryQuery,
        config: StylistConfig | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.inventory = inventory
        self.config = config or StylistConfig()
        self.rng = rng or random.Random()

    # Fetching

    def fetch_buckets(self, owner_id: str) -> Buckets:
        """Fetch every layer concurrently; a failing layer becomes an empty bucket."""

        buckets: Buckets = {kind: [] for kind in DISPLAY_ORDER}
        limit = self.config.bucket_limit
        with ThreadPoolExecutor(max_workers=max(1, self.config.fetch_workers)) as executor:
            futures = {
                executor.submit(
                    contextvars.copy_context().run, self.inventory.fetch_items, owner_id, kind, limit
                ): kind
                for kind in DISPLAY_ORDER
            }
            for future in as_completed(futures):
                kind = futures[future]
                try:
                    buckets[kind] = list(future.result())
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Fetching %s bucket failed, continuing without it: %s", kind.value, exc)
        logger.info(
            "Fetched buckets %s",
            {kind.value: len(items) for kind, items in buckets.items()},
        )
        return buckets

    # Pools

    def _hard_colours(self, run: _Run, kind: LayerKind) -> Optional[frozenset]:
        required = run.query.colours_for(kind)
        if required:
            return required
        palette = run.query.palette
        if palette.is_monochrome and palette.strict:
            hue = palette.colour or run.coherence
            if hue:
                return frozenset({hue})
        return None

    def _prefilter(
        self, run: _Run, kind: LayerKind, items: Sequence[WardrobeItem]
    ) -> Tuple[List[WardrobeItem], bool, Set[str]]:
        """Split ``items`` into the strict pool, or relax to the whole bucket.

        Returns the pool plus whether colour and which subtypes were relaxed.
        """

        hard_colours = self._hard_colours(run, kind)
        hard_subtypes = run.query.required_subtypes_for(kind)
        strict = []
        for item in items:
            colour_ok = hard_colours is None or bool(set(normalized_colours(item)) & hard_colours)
            subtype_ok = matches_subtypes(searchable_text(item), item.subcategory, hard_subtypes, kind)
            if colour_ok and subtype_ok:
                strict.append(item)
        if strict or not items:
            return strict, False, set()
        return list(items), hard_colours is not None, set(hard_subtypes)

    def _narrow_by_dress_code(self, run: _Run, items: List[WardrobeItem]) -> List[WardrobeItem]:
        if not run.locked_dress_code:
            return items
        matching = [item for item in items if fold(item.dress_code) == fold(run.locked_dress_code)]
        if matching:
            return matching
        blank = [item for item in items if not item.dress_code.strip()]
        return blank or items

    def _pick(
        self,
        run: _Run,
        kind: LayerKind,
        narrow: Optional[Callable[[List[WardrobeItem]], List[WardrobeItem]]] = None,
    ) -> Optional[WardrobeItem]:
        pool, colour_relaxed, relaxed_subtypes = self._prefilter(run, kind, run.buckets.get(kind, []))
        if narrow is not None:
            pool = narrow(pool)
        pool = self._narrow_by_dress_code(run, pool)
        chosen = pick(pool, kind, run.query, self.rng, run.coherence, band=self.config.score_band)
        if chosen is None:
            return None
        if colour_relaxed or relaxed_subtypes:
            run.colour_relaxed = run.colour_relaxed or colour_relaxed
            run.relaxed_subtypes.update(relaxed_subtypes)
            run.relaxed_layers.append(kind.value)
        if run.options.lock_dress_code and not run.locked_dress_code and chosen.dress_code.strip():
            run.locked_dress_code = chosen.dress_code.strip()
        return chosen

    def _infer_coherence(self, run: _Run, item: WardrobeItem) -> None:
        if run.coherence is None and run.query.palette.is_monochrome:
            colours = normalized_colours(item)
            if colours:
                run.coherence = colours[0]

    # Stages

    def _select_shoes(self, run: _Run) -> Optional[WardrobeItem]:
        weather = run.options.weather
        if run.options.prefer_boots_in_rain and weather and weather.raining:
            return self._pick(run, LayerKind.SHOES, _prefer_boots)
        return self._pick(run, LayerKind.SHOES)

    def _base_order(self, query: PromptQuery) -> Tuple[str, str]:
        if query.wants_dress_base is True:
            return ("dress", "separates")
        if query.wants_dress_base is False:
            return ("separates", "dress")
        return ("dress", "separates") if self.rng.random() < 0.5 else ("separates", "dress")

    def _try_dress(self, run: _Run) -> bool:
        dress = self._pick(run, LayerKind.DRESS)
        if dress is None:
            return False
        run.picked[LayerKind.DRESS] = dress
        self._infer_coherence(run, dress)
        return True

    def _try_separates(self, run: _Run) -> bool:
        if not run.buckets.get(LayerKind.TOP) or not run.buckets.get(LayerKind.BOTTOM):
            return False
        # Non-empty buckets always yield a pick, relaxed if need be.
        top = self._pick(run, LayerKind.TOP)
        self._infer_coherence(run, top)
        bottom = self._pick(run, LayerKind.BOTTOM)
        run.picked[LayerKind.TOP] = top
        run.picked[LayerKind.BOTTOM] = bottom
        return True

    def inclusion_probability(self, kind: LayerKind, query: PromptQuery, options: AssemblyOptions) -> float:
        """Chance that an optional layer is attempted for this outfit."""

        if kind is LayerKind.OUTERWEAR:
            if query.prefer_outerwear or kind in query.required_kinds:
                return 1.0
            if query.avoid_outerwear:
                return 0.0
            if options.weather and options.weather.wants_outerwear(self.config.cold_threshold_c):
                return self.config.weather_outerwear_probability
            return self.config.optional_layer_probability
        if kind in query.required_kinds:
            return 1.0
        return self.config.optional_layer_probability

    def _add_optionals(self, run: _Run) -> List[str]:
        attempted = []
        for kind in OPTIONAL_LAYERS:
            probability = self.inclusion_probability(kind, run.query, run.options)
            if self.rng.random() >= probability:
                continue
            attempted.append(kind.value)
            item = self._pick(run, kind)
            if item is not None:
                run.picked[kind] = item
        return attempted

    def _enforce_cap(self, run: _Run) -> List[str]:
        dropped = []
        for kind in DROP_PRIORITY:
            if len(run.picked) <= self.config.max_outfit_items:
                break
            if kind in run.picked:
                del run.picked[kind]
                dropped.append(kind.value)
        return dropped

    # Entry points

    def _apply_dress_code_filter(self, buckets: Buckets, dress_code: Optional[str]) -> Buckets:
        if not dress_code:
            return buckets
        return {
            kind: [item for item in items if contains_insensitive(item.dress_code, dress_code)]
            for kind, items in buckets.items()
        }

    def assemble(
        self,
        owner_id: str,
        query: PromptQuery,
        options: AssemblyOptions | None = None,
        buckets: Buckets | None = None,
    ) -> AssemblyResult:
        """Run the full state machine once.

        ``buckets`` may be supplied to reuse an earlier fetch; otherwise the
        inventory is queried for every layer.
        """

        options = options or AssemblyOptions()
        run = _Run(query=query, options=options, buckets={})
        run.enter(AssemblyState.IDLE)
        run.enter(AssemblyState.FETCHING_BUCKETS)
        fetched = buckets if buckets is not None else self.fetch_buckets(owner_id)
        run.buckets = self._apply_dress_code_filter(fetched, options.dress_code_filter)
        if query.palette.is_monochrome:
            run.coherence = query.palette.colour

        diagnostics: Dict[str, object] = {
            "bucket_sizes": {kind.value: len(items) for kind, items in run.buckets.items()},
            "trace": run.trace,
        }

        run.enter(AssemblyState.SELECTING_SHOES)
        shoes = self._select_shoes(run)
        if shoes is None:
            return self._fail(run, diagnostics, "no_shoes")
        run.picked[LayerKind.SHOES] = shoes

        run.enter(AssemblyState.SELECTING_BASE)
        base = None
        for branch in self._base_order(query):
            succeeded = self._try_dress(run) if branch == "dress" else self._try_separates(run)
            if succeeded:
                base = branch
                break
        if base is None:
            return self._fail(run, diagnostics, "no_base")
        diagnostics["base"] = base

        run.enter(AssemblyState.ADDING_OPTIONALS)
        diagnostics["optionals_attempted"] = self._add_optionals(run)
        diagnostics["dropped_for_cap"] = self._enforce_cap(run)

        run.enter(AssemblyState.COMPLETE)
        diagnostics["relaxed_layers"] = run.relaxed_layers
        diagnostics["coherence_colour"] = run.coherence
        candidate = OutfitCandidate(
            items=dict(run.picked),
            soft_match_note=soft_match_note(run.colour_relaxed, run.relaxed_subtypes),
            dress_code=run.locked_dress_code or options.dress_code_filter or query.dress_code,
        )
        logger.info("Assembled outfit %s with %s items (base=%s)", candidate.candidate_id, len(candidate.items), base)
        return AssemblyResult(candidate=candidate, state=AssemblyState.COMPLETE, diagnostics=diagnostics)

    def _fail(self, run: _Run, diagnostics: Dict[str, object], reason: str) -> AssemblyResult:
        run.enter(AssemblyState.FAILED)
        diagnostics["reason"] = reason
        logger.info("Outfit assembly failed: %s", reason)
        return AssemblyResult(candidate=None, state=AssemblyState.FAILED, diagnostics=diagnostics)

    def generate_candidate(
        self,
        owner_id: str,
        query: PromptQuery,
        options: AssemblyOptions | None = None,
    ) -> Optional[OutfitCandidate]:
        """Convenience wrapper returning only the candidate, ``None`` on failure."""

        return self.assemble(owner_id, query, options).candidate


__all__ = [
    "AssemblyOptions",
    "AssemblyResult",
    "AssemblyState",
    "Buckets",
    "OutfitAssembler",
    "soft_match_note",
]
