"""Suggestion flows that own decks of outfit cards."""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from logic.candidate_scoring import RandomSource
from logic.outfit_assembler import AssemblyOptions, OutfitAssembler
from logic.prompt_parser import parse_prompt
from logic.suggestion_deck import DeckContext, SuggestionDeck
from logic.validation import (
    DressCodeSuggestionRequest,
    PromptSuggestionRequest,
    SaveOutfitRequest,
    SuggestionResponse,
    WeatherSuggestionRequest,
    validation_failure,
)
from models.outfit import OutfitCandidate, OutfitRecord, WeatherContext
from models.prompt_query import PromptQuery
from models.wardrobe_item import WardrobeItem
from stylist_app.config import StylistConfig
from stylist_app.logging_config import get_logger, log_event, operation_context
from tools.inventory import InventoryQuery
from tools.observability import instrument_tool
from tools.outfit_store import OutfitStore

logger = get_logger(__name__)

EMPTY_PROMPT_MESSAGE = "Please enter a short prompt."
NO_MATCH_MESSAGE = "I couldn't find items that match this prompt. Try loosening it a little."
NO_WEATHER_MATCH_MESSAGE = "I couldn't build an outfit for this weather from your wardrobe yet."
NO_DRESS_CODE_MATCH_MESSAGE = "I couldn't find enough {dress_code} pieces to build an outfit."
DRESS_CODE_DECK_SIZE = 4


def _error(message: str, reason: str, **extra: Any) -> Dict[str, Any]:
    return {"status": "error", "message": message, "reason": reason, **extra}


class SuggestionAgent:
    """Builds decks of outfit cards and handles skip and save on them.

    Decks live in memory for the lifetime of the agent.
    """

    def __init__(
        self,
        config: StylistConfig,
        inventory: InventoryQuery,
        outfit_store: OutfitStore,
        rng: RandomSource | None = None,
    ) -> None:
        self.config = config
        self.outfit_store = outfit_store
        self.assembler = OutfitAssembler(inventory, config=config, rng=rng)
        self._decks: Dict[str, SuggestionDeck] = {}
        self._lock = threading.Lock()

    # Decks

    def get_deck(self, deck_id: str) -> Optional[SuggestionDeck]:
        with self._lock:
            return self._decks.get(deck_id)

    def _register(self, deck: SuggestionDeck) -> None:
        with self._lock:
            self._decks[deck.deck_id] = deck

    def _options_for(self, context: DeckContext) -> AssemblyOptions:
        if context.source == "weather":
            return AssemblyOptions(weather=context.weather, lock_dress_code=True, prefer_boots_in_rain=True)
        if context.source == "dresscode":
            return AssemblyOptions(dress_code_filter=context.dress_code)
        return AssemblyOptions()

    def _build_card(self, owner_id: str, context: DeckContext, query: PromptQuery) -> Optional[OutfitCandidate]:
        """Try up to ``max_attempts`` independent assemblies for one card."""

        options = self._options_for(context)
        for attempt in range(1, max(1, self.config.max_attempts) + 1):
            result = self.assembler.assemble(owner_id, query, options)
            if result.candidate is not None:
                return result.candidate
            logger.debug("Assembly attempt %s failed: %s", attempt, result.failure_reason)
        return None

    def _build_deck(self, owner_id: str, context: DeckContext, count: int) -> SuggestionDeck:
        deck = SuggestionDeck(owner_id=owner_id, context=context)
        # Cards are built one after another, each with its own fetch.
        for _ in range(count):
            card = self._build_card(owner_id, context, context.query)
            if card is not None:
                deck.candidates.append(card)
        return deck

    def _respond(self, deck: SuggestionDeck, empty_message: str, **debug: Any) -> Dict[str, Any]:
        if not deck.candidates:
            return SuggestionResponse(
                status="error",
                deck_id=None,
                message=empty_message,
                debug_summary=debug or None,
            ).model_dump() | {"reason": "no_match"}
        self._register(deck)
        return SuggestionResponse(
            status="ok",
            deck_id=deck.deck_id,
            cards=[card.to_dict() for card in deck.candidates],
            debug_summary=debug or None,
        ).model_dump()

    # Flows

    def suggest_from_prompt(self, user_id: str, prompt: str, count: Optional[int] = None) -> Dict[str, Any]:
        try:
            request = PromptSuggestionRequest(user_id=user_id, prompt=prompt or "", count=count)
        except ValidationError as exc:
            return validation_failure("Invalid prompt request", exc)
        if not request.prompt.strip():
            return _error(EMPTY_PROMPT_MESSAGE, "empty_prompt")

        with operation_context("agent:suggestions.prompt", user_id=user_id) as correlation_id:
            log_event(
                logger,
                logging.INFO,
                "agent_call_started",
                agent="suggestions",
                method="suggest_from_prompt",
                correlation_id=correlation_id,
                user_id=user_id,
                prompt=request.prompt,
            )
            query = parse_prompt(request.prompt)
            context = DeckContext(source="prompt", query=query)
            deck = self._build_deck(user_id, context, request.count or self.config.deck_size)
            log_event(
                logger,
                logging.INFO,
                "agent_call_completed",
                agent="suggestions",
                method="suggest_from_prompt",
                correlation_id=correlation_id,
                card_count=len(deck.candidates),
            )
            return self._respond(deck, NO_MATCH_MESSAGE, query=query.to_dict())

    def suggest_for_weather(
        self,
        user_id: str,
        raining: bool = False,
        temperature_c: Optional[float] = None,
        count: Optional[int] = None,
        temperature_label: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            request = WeatherSuggestionRequest(
                user_id=user_id,
                raining=raining,
                temperature_c=temperature_c,
                temperature_label=temperature_label,
                count=count,
            )
        except ValidationError as exc:
            return validation_failure("Invalid weather request", exc)

        if request.temperature_c is None and request.temperature_label:
            weather = WeatherContext.from_label(request.raining, request.temperature_label)
        else:
            weather = WeatherContext(raining=request.raining, temperature_c=request.temperature_c)

        with operation_context("agent:suggestions.weather", user_id=user_id) as correlation_id:
            log_event(
                logger,
                logging.INFO,
                "agent_call_started",
                agent="suggestions",
                method="suggest_for_weather",
                correlation_id=correlation_id,
                user_id=user_id,
                raining=weather.raining,
                temperature_c=weather.temperature_c,
            )
            context = DeckContext(source="weather", query=PromptQuery(), weather=weather)
            deck = self._build_deck(user_id, context, request.count or self.config.deck_size)
            log_event(
                logger,
                logging.INFO,
                "agent_call_completed",
                agent="suggestions",
                method="suggest_for_weather",
                correlation_id=correlation_id,
                card_count=len(deck.candidates),
            )
            return self._respond(
                deck,
                NO_WEATHER_MATCH_MESSAGE,
                weather={"raining": weather.raining, "temperature_c": weather.temperature_c},
            )

    def suggest_for_dress_code(self, user_id: str, dress_code: str, count: int = DRESS_CODE_DECK_SIZE) -> Dict[str, Any]:
        try:
            request = DressCodeSuggestionRequest(user_id=user_id, dress_code=dress_code, count=count)
        except ValidationError as exc:
            return validation_failure("Invalid dress code request", exc)

        with operation_context("agent:suggestions.dress_code", user_id=user_id) as correlation_id:
            log_event(
                logger,
                logging.INFO,
                "agent_call_started",
                agent="suggestions",
                method="suggest_for_dress_code",
                correlation_id=correlation_id,
                user_id=user_id,
                dress_code=request.dress_code,
            )
            context = DeckContext(
                source="dresscode",
                query=PromptQuery(dress_code=request.dress_code),
                dress_code=request.dress_code,
            )
            deck = self._build_deck(user_id, context, request.count)
            log_event(
                logger,
                logging.INFO,
                "agent_call_completed",
                agent="suggestions",
                method="suggest_for_dress_code",
                correlation_id=correlation_id,
                card_count=len(deck.candidates),
            )
            return self._respond(
                deck,
                NO_DRESS_CODE_MATCH_MESSAGE.format(dress_code=request.dress_code),
                dress_code=request.dress_code,
            )

    def skip(self, deck_id: str, candidate_id: str) -> Dict[str, Any]:
        """Remove a card and attempt exactly one replacement."""

        deck = self.get_deck(deck_id)
        if deck is None:
            return _error("Unknown deck", "unknown_deck")

        infer = deck.context.source == "prompt" and self.config.infer_skip_preferences
        options = self._options_for(deck.context)

        # A skip gets one assembly; the attempt loop is only for fresh decks.
        def build(query: PromptQuery) -> Optional[OutfitCandidate]:
            return self.assembler.generate_candidate(deck.owner_id, query, options)

        with operation_context("agent:suggestions.skip") as correlation_id:
            try:
                replacement = deck.skip(candidate_id, build, infer=infer)
            except KeyError:
                return _error("Unknown card", "unknown_candidate")
            log_event(
                logger,
                logging.INFO,
                "deck_card_skipped",
                deck_id=deck_id,
                correlation_id=correlation_id,
                replaced=replacement is not None,
                remaining=len(deck.candidates),
            )
        return SuggestionResponse(
            status="ok",
            deck_id=deck.deck_id,
            cards=[card.to_dict() for card in deck.candidates],
            message=None if replacement else "No more suggestions for now.",
        ).model_dump() | {"replacement": replacement.to_dict() if replacement else None}

    # Saving

    @instrument_tool("outfit_store.save_outfit")
    def _persist(self, *, user_id: str, record: OutfitRecord) -> str:
        return self.outfit_store.save_outfit(user_id, record)

    def save_outfit(
        self,
        user_id: str,
        items: List[WardrobeItem],
        request: SaveOutfitRequest | Dict[str, Any],
        source: str = "manual",
        dress_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Flatten ``items`` into an outfit record and hand it to the store.

        Store failures come back as an error payload; nothing is retried.
        """

        try:
            metadata = request if isinstance(request, SaveOutfitRequest) else SaveOutfitRequest.model_validate(request)
        except ValidationError as exc:
            return validation_failure("Invalid outfit details", exc)
        try:
            record = OutfitRecord.from_items(
                items,
                metadata.name,
                description=metadata.description,
                occasion=metadata.occasion,
                is_favorite=metadata.is_favorite,
                source=source,
                dress_code=dress_code,
                target_date=metadata.target_date,
            )
        except ValueError as exc:
            return _error(str(exc), "invalid_outfit")

        try:
            outfit_id = self._persist(user_id=user_id, record=record)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.ERROR,
                "outfit_save_failed",
                user_id=user_id,
                item_count=len(record.item_ids),
                exc_info=True,
            )
            return _error(f"Could not save outfit: {exc}", "persistence_failed")

        log_event(logger, logging.INFO, "outfit_saved", outfit_id=outfit_id, item_count=len(record.item_ids))
        return {
            "status": "ok",
            "outfit_id": outfit_id,
            "item_ids": record.item_ids,
            "cover_image_url": record.cover_image_url,
        }

    def save_candidate(
        self, deck_id: str, candidate_id: str, request: SaveOutfitRequest | Dict[str, Any]
    ) -> Dict[str, Any]:
        """Persist a card from a deck and drop it from the deck on success."""

        deck = self.get_deck(deck_id)
        if deck is None:
            return _error("Unknown deck", "unknown_deck")
        # A concurrent skip or save of the same card waits until this one is done.
        with deck.lock:
            candidate = deck.find(candidate_id)
            if candidate is None:
                return _error("Unknown card", "unknown_candidate")

            response = self.save_outfit(
                deck.owner_id,
                candidate.ordered_items,
                request,
                source=deck.context.source,
                dress_code=candidate.dress_code,
            )
            if response.get("status") == "ok":
                deck.remove(candidate_id)
            return response


__all__ = ["EMPTY_PROMPT_MESSAGE", "NO_MATCH_MESSAGE", "SuggestionAgent"]
