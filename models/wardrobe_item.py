"""Wardrobe item data model and helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.color_lexicon import normalize_all

SOURCE_TYPES = ("camera", "gallery", "web")

# Stored documents use camelCase keys; the model uses snake_case.
_CAMEL_KEYS: Dict[str, str] = {
    "id": "item_id",
    "itemId": "item_id",
    "userId": "user_id",
    "imageURL": "image_url",
    "imageUrl": "image_url",
    "imagePath": "image_path",
    "designPattern": "design_pattern",
    "closureType": "closure_type",
    "dressCode": "dress_code",
    "colors": "colours",
    "customTags": "custom_tags",
    "moodTags": "mood_tags",
    "isFavorite": "is_favorite",
    "sourceType": "source_type",
    "addedAt": "added_at",
    "lastWorn": "last_worn",
}

_WHITESPACE = re.compile(r"\s+")


def _ensure_list(value: Any) -> List[str]:
    """Coerce a scalar or iterable into a list of non-empty strings."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        values = list(value)
    else:
        values = [value]
    return [str(v).strip() for v in values if str(v).strip()]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WardrobeItem:
    """A tagged garment owned by one user.

    The engine treats items as read-only input; only the wardrobe store writes
    them.
    """

    item_id: str
    user_id: str
    image_url: str = ""
    image_path: Optional[str] = None
    category: str = ""
    subcategory: str = ""
    length: str = ""
    style: str = ""
    design_pattern: str = ""
    closure_type: str = ""
    fit: str = ""
    material: str = ""
    fastening: Optional[str] = None
    dress_code: str = ""
    season: str = ""
    size: str = ""
    colours: List[str] = field(default_factory=list)
    custom_tags: List[str] = field(default_factory=list)
    mood_tags: List[str] = field(default_factory=list)
    is_favorite: bool = False
    source_type: str = "gallery"
    gender: str = ""
    added_at: datetime = field(default_factory=_utcnow)
    last_worn: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not str(self.item_id or "").strip():
            raise ValueError("WardrobeItem requires an item_id")
        if not str(self.user_id or "").strip():
            raise ValueError("WardrobeItem requires a user_id")
        self.item_id = str(self.item_id)
        self.user_id = str(self.user_id)
        self.source_type = str(self.source_type).strip().lower()
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(f"Unsupported source_type '{self.source_type}'. Allowed: {list(SOURCE_TYPES)}")
        self.colours = _ensure_list(self.colours)
        self.custom_tags = _ensure_list(self.custom_tags)
        self.mood_tags = _ensure_list(self.mood_tags)


def from_raw_metadata(metadata: Dict[str, Any]) -> WardrobeItem:
    """Build a :class:`WardrobeItem` from a loose stored document.

    Missing descriptive fields default to blanks. Only the id and owner are
    required.
    """

    data: Dict[str, Any] = {}
    for key, value in metadata.items():
        data[_CAMEL_KEYS.get(key, key)] = value

    missing = [name for name in ("item_id", "user_id") if not data.get(name)]
    if missing:
        raise ValueError(f"Missing required fields for WardrobeItem: {missing}")

    source_type = str(data.get("source_type") or "gallery").strip().lower()
    if source_type not in SOURCE_TYPES:
        source_type = "gallery"

    def text(name: str) -> str:
        value = data.get(name)
        return "" if value is None else str(value)

    return WardrobeItem(
        item_id=str(data["item_id"]),
        user_id=str(data["user_id"]),
        image_url=text("image_url"),
        image_path=data.get("image_path") or None,
        category=text("category"),
        subcategory=text("subcategory"),
        length=text("length"),
        style=text("style"),
        design_pattern=text("design_pattern"),
        closure_type=text("closure_type"),
        fit=text("fit"),
        material=text("material"),
        fastening=data.get("fastening") or None,
        dress_code=text("dress_code"),
        season=text("season"),
        size=text("size"),
        colours=_ensure_list(data.get("colours")),
        custom_tags=_ensure_list(data.get("custom_tags")),
        mood_tags=_ensure_list(data.get("mood_tags")),
        is_favorite=bool(data.get("is_favorite", False)),
        source_type=source_type,
        gender=text("gender"),
        added_at=_parse_timestamp(data.get("added_at")) or _utcnow(),
        last_worn=_parse_timestamp(data.get("last_worn")),
    )


def searchable_text(item: WardrobeItem) -> str:
    """Lowercased, whitespace-collapsed text used for substring scoring."""

    parts = [
        item.category,
        item.subcategory,
        item.style,
        item.design_pattern,
        item.material,
        item.fit,
        item.dress_code,
        *item.custom_tags,
        *item.mood_tags,
    ]
    joined = " ".join(part for part in parts if part)
    return _WHITESPACE.sub(" ", joined.lower()).strip()


def normalized_colours(item: WardrobeItem) -> List[str]:
    return normalize_all(item.colours)


__all__ = [
    "SOURCE_TYPES",
    "WardrobeItem",
    "from_raw_metadata",
    "normalized_colours",
    "searchable_text",
]
