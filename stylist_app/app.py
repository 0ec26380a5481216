"""Stylist app bootstrap."""

from __future__ import annotations

import logging

from agents.suggestion_agent import SuggestionAgent
from logic.candidate_scoring import RandomSource
from stylist_app.config import StylistConfig
from stylist_app.logging_config import configure_logging, get_logger, log_event
from tools.inventory import StoreInventory
from tools.outfit_store import OutfitStore, SQLiteOutfitStore
from tools.wardrobe_store import SQLiteWardrobeStore, WardrobeStore

LOGGER = get_logger(__name__)


class StylistApp:
    """Wires the wardrobe and outfit stores, the inventory and the suggestion agent."""

    def __init__(
        self,
        config: StylistConfig | None = None,
        wardrobe_store: WardrobeStore | None = None,
        outfit_store: OutfitStore | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.config = config or StylistConfig.from_env()
        configure_logging(self.config.log_level)

        self.wardrobe_store = wardrobe_store or SQLiteWardrobeStore(self.config.wardrobe_db_path)
        self.outfit_store = outfit_store or SQLiteOutfitStore(self.config.outfit_db_path)
        self.inventory = StoreInventory(self.wardrobe_store)
        self.suggestions = SuggestionAgent(
            config=self.config,
            inventory=self.inventory,
            outfit_store=self.outfit_store,
            rng=rng,
        )
        log_event(
            LOGGER,
            logging.INFO,
            "app_initialised",
            environment=self.config.environment or "local",
            bucket_limit=self.config.bucket_limit,
            max_outfit_items=self.config.max_outfit_items,
        )


__all__ = ["StylistApp"]
