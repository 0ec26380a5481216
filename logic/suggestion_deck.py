"""Decks of suggestion cards and the skip/replace loop."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.color_lexicon import normalize
from models.outfit import OutfitCandidate, WeatherContext
from models.prompt_query import Palette, PromptQuery

logger = logging.getLogger(__name__)

MAX_INFERRED_COLOURS = 2


@dataclass(frozen=True)
class DeckContext:
    """Everything needed to build another card for the same deck."""

    source: str
    query: PromptQuery
    weather: Optional[WeatherContext] = None
    dress_code: Optional[str] = None


@dataclass
class SuggestionDeck:
    owner_id: str
    context: DeckContext
    candidates: List[OutfitCandidate] = field(default_factory=list)
    deck_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # Guards the card list; held across a whole skip or save.
    lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    def find(self, candidate_id: str) -> Optional[OutfitCandidate]:
        with self.lock:
            return next((c for c in self.candidates if c.candidate_id == candidate_id), None)

    def remove(self, candidate_id: str) -> Optional[OutfitCandidate]:
        with self.lock:
            candidate = self.find(candidate_id)
            if candidate is not None:
                self.candidates.remove(candidate)
            return candidate

    def skip(
        self,
        candidate_id: str,
        build: Callable[[PromptQuery], Optional[OutfitCandidate]],
        infer: bool = True,
    ) -> Optional[OutfitCandidate]:
        """Drop a card and try exactly once to replace it.

        With ``infer`` the replacement is biased by :func:`infer_preferences` over
        the cards left in the deck; otherwise the deck's original query is reused.
        Returns the replacement, or ``None`` when the deck simply shrank.
        """

        with self.lock:
            removed = self.remove(candidate_id)
            if removed is None:
                raise KeyError(candidate_id)
            query = infer_preferences(self.candidates) if infer else self.context.query
            replacement = build(query)
            if replacement is None:
                logger.info("No replacement for skipped card, deck now has %s cards", len(self.candidates))
                return None
            self.candidates.append(replacement)
            return replacement


def infer_preferences(remaining: List[OutfitCandidate]) -> PromptQuery:
    """Reduced preference profile drawn from the cards the user kept.

    Uses the most frequent dress code among the remaining items, up to two
    colours in order of first appearance and a dress base when any remaining
    card is built on one.
    """

    items = [item for candidate in remaining for item in candidate.ordered_items]
    dress_codes = Counter(item.dress_code.strip().lower() for item in items if item.dress_code.strip())
    # Ties go to the first seen, which Counter.most_common preserves.
    dress_code = dress_codes.most_common(1)[0][0] if dress_codes else None

    colours: List[str] = []
    for item in items:
        for raw in item.colours:
            base = normalize(raw)
            if base and base not in colours and len(colours) < MAX_INFERRED_COLOURS:
                colours.append(base)

    wants_dress = True if any(candidate.has_dress_base for candidate in remaining) else None
    return PromptQuery(
        global_colours=frozenset(colours),
        dress_code=dress_code,
        palette=Palette(),
        wants_dress_base=wants_dress,
    )


__all__ = ["DeckContext", "SuggestionDeck", "infer_preferences"]
