"""Outfit candidates, weather context and the persisted outfit record."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from models.layers import DISPLAY_ORDER, LayerKind
from models.wardrobe_item import WardrobeItem

OUTFIT_SOURCES = ("prompt", "weather", "dresscode", "manual")

_TEMPERATURE = re.compile(r"[-−]?\d+(?:\.\d+)?")


@dataclass(frozen=True)
class WeatherContext:
    raining: bool = False
    temperature_c: Optional[float] = None

    @classmethod
    def from_label(cls, raining: bool, label: Optional[str]) -> "WeatherContext":
        """Build a context from a display label such as ``"−2°C"`` or ``"14 C"``."""

        if not label:
            return cls(raining=raining)
        match = _TEMPERATURE.search(label)
        if not match:
            return cls(raining=raining)
        return cls(raining=raining, temperature_c=float(match.group(0).replace("−", "-")))

    def is_cold(self, threshold_c: float) -> bool:
        return self.temperature_c is not None and self.temperature_c <= threshold_c

    def wants_outerwear(self, threshold_c: float) -> bool:
        return self.raining or self.is_cold(threshold_c)


@dataclass(frozen=True)
class OutfitCandidate:
    """One item per layer plus a stable id for the deck."""

    items: Dict[LayerKind, WardrobeItem]
    candidate_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    soft_match_note: Optional[str] = None
    dress_code: Optional[str] = None

    @property
    def ordered_items(self) -> List[WardrobeItem]:
        return [self.items[kind] for kind in DISPLAY_ORDER if kind in self.items]

    @property
    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.ordered_items]

    @property
    def has_dress_base(self) -> bool:
        return LayerKind.DRESS in self.items

    def to_dict(self) -> Dict[str, object]:
        return {
            "candidate_id": self.candidate_id,
            "items": [
                {
                    "layer": kind.value,
                    "item_id": item.item_id,
                    "image_url": item.image_url,
                    "category": item.category,
                    "subcategory": item.subcategory,
                    "colours": list(item.colours),
                }
                for kind, item in ((k, self.items[k]) for k in DISPLAY_ORDER if k in self.items)
            ],
            "soft_match_note": self.soft_match_note,
            "dress_code": self.dress_code,
        }


@dataclass
class OutfitRecord:
    """Flattened outfit handed to the outfit store."""

    name: str
    item_ids: List[str]
    item_image_urls: List[str]
    cover_image_url: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    occasion: str = ""
    wear_count: int = 0
    is_favorite: bool = False
    source: str = "manual"
    dress_code: Optional[str] = None
    target_date: Optional[date] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    outfit_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.item_ids:
            raise ValueError("An outfit needs at least one item")
        if self.source not in OUTFIT_SOURCES:
            raise ValueError(f"Unsupported outfit source '{self.source}'. Allowed: {list(OUTFIT_SOURCES)}")
        if not self.cover_image_url and self.item_image_urls:
            self.cover_image_url = self.item_image_urls[0]

    @classmethod
    def from_items(
        cls,
        items: Sequence[WardrobeItem],
        name: str,
        *,
        description: str = "",
        occasion: str = "",
        is_favorite: bool = False,
        source: str = "manual",
        dress_code: Optional[str] = None,
        target_date: Optional[date] = None,
    ) -> "OutfitRecord":
        urls = [item.image_url for item in items]
        return cls(
            name=name,
            item_ids=[item.item_id for item in items],
            item_image_urls=urls,
            cover_image_url=urls[0] if urls else "",
            description=description,
            occasion=occasion,
            is_favorite=is_favorite,
            source=source,
            dress_code=dress_code,
            target_date=target_date,
        )


__all__ = ["OUTFIT_SOURCES", "OutfitCandidate", "OutfitRecord", "WeatherContext"]
