"""Model package exports."""

from models.layers import DISPLAY_ORDER, LayerKind
from models.outfit import OutfitCandidate, OutfitRecord, WeatherContext
from models.prompt_query import Palette, PaletteMode, PromptQuery
from models.wardrobe_item import WardrobeItem, from_raw_metadata

__all__ = [
    "DISPLAY_ORDER",
    "LayerKind",
    "OutfitCandidate",
    "OutfitRecord",
    "Palette",
    "PaletteMode",
    "PromptQuery",
    "WardrobeItem",
    "WeatherContext",
    "from_raw_metadata",
]
