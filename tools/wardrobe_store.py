"""Wardrobe storage abstractions and SQLite implementation."""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from models.wardrobe_item import WardrobeItem


class WardrobeStore:
    """Persistence interface for wardrobe items."""

    def create_item(self, item: WardrobeItem) -> WardrobeItem:
        raise NotImplementedError

    def get_item(self, user_id: str, item_id: str) -> Optional[WardrobeItem]:
        raise NotImplementedError

    def list_items_for_user(self, user_id: str) -> List[WardrobeItem]:
        """All items owned by ``user_id``, newest first."""
        raise NotImplementedError

    def delete_item(self, user_id: str, item_id: str) -> bool:
        raise NotImplementedError


class SQLiteWardrobeStore(WardrobeStore):
    """Local SQLite-backed store for wardrobe items."""

    def __init__(self, database_path: str | Path = "data/wardrobe.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS wardrobe_items (
                    user_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    image_url TEXT,
                    image_path TEXT,
                    category TEXT,
                    subcategory TEXT,
                    length TEXT,
                    style TEXT,
                    design_pattern TEXT,
                    closure_type TEXT,
                    fit TEXT,
                    material TEXT,
                    fastening TEXT,
                    dress_code TEXT,
                    season TEXT,
                    size TEXT,
                    colours TEXT,
                    custom_tags TEXT,
                    mood_tags TEXT,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    source_type TEXT,
                    gender TEXT,
                    added_at TEXT NOT NULL,
                    last_worn TEXT,
                    PRIMARY KEY (user_id, item_id)
                );
                """
            )

    @staticmethod
    def _serialise_list(values: Optional[List[str]]) -> str:
        return json.dumps(values or [])

    @staticmethod
    def _deserialise_list(raw: str) -> List[str]:
        return json.loads(raw) if raw else []

    @staticmethod
    def _serialise_time(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    @staticmethod
    def _deserialise_time(raw: Optional[str]) -> Optional[datetime]:
        return datetime.fromisoformat(raw) if raw else None

    def create_item(self, item: WardrobeItem) -> WardrobeItem:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO wardrobe_items (
                    user_id, item_id, image_url, image_path, category, subcategory, length, style,
                    design_pattern, closure_type, fit, material, fastening, dress_code, season, size,
                    colours, custom_tags, mood_tags, is_favorite, source_type, gender, added_at, last_worn
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.user_id,
                    item.item_id,
                    item.image_url,
                    item.image_path,
                    item.category,
                    item.subcategory,
                    item.length,
                    item.style,
                    item.design_pattern,
                    item.closure_type,
                    item.fit,
                    item.material,
                    item.fastening,
                    item.dress_code,
                    item.season,
                    item.size,
                    self._serialise_list(item.colours),
                    self._serialise_list(item.custom_tags),
                    self._serialise_list(item.mood_tags),
                    int(item.is_favorite),
                    item.source_type,
                    item.gender,
                    self._serialise_time(item.added_at),
                    self._serialise_time(item.last_worn),
                ),
            )
        return item

    def _row_to_item(self, row: sqlite3.Row) -> WardrobeItem:
        return WardrobeItem(
            item_id=row["item_id"],
            user_id=row["user_id"],
            image_url=row["image_url"] or "",
            image_path=row["image_path"],
            category=row["category"] or "",
            subcategory=row["subcategory"] or "",
            length=row["length"] or "",
            style=row["style"] or "",
            design_pattern=row["design_pattern"] or "",
            closure_type=row["closure_type"] or "",
            fit=row["fit"] or "",
            material=row["material"] or "",
            fastening=row["fastening"],
            dress_code=row["dress_code"] or "",
            season=row["season"] or "",
            size=row["size"] or "",
            colours=self._deserialise_list(row["colours"]),
            custom_tags=self._deserialise_list(row["custom_tags"]),
            mood_tags=self._deserialise_list(row["mood_tags"]),
            is_favorite=bool(row["is_favorite"]),
            source_type=row["source_type"] or "gallery",
            gender=row["gender"] or "",
            added_at=self._deserialise_time(row["added_at"]),
            last_worn=self._deserialise_time(row["last_worn"]),
        )

    def get_item(self, user_id: str, item_id: str) -> Optional[WardrobeItem]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM wardrobe_items WHERE user_id = ? AND item_id = ?",
                (user_id, item_id),
            )
            row = cursor.fetchone()
            return self._row_to_item(row) if row else None

    def list_items_for_user(self, user_id: str) -> List[WardrobeItem]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM wardrobe_items WHERE user_id = ? ORDER BY added_at DESC, item_id",
                (user_id,),
            )
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def delete_item(self, user_id: str, item_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM wardrobe_items WHERE user_id = ? AND item_id = ?",
                (user_id, item_id),
            )
            return cursor.rowcount > 0


__all__ = ["WardrobeStore", "SQLiteWardrobeStore"]
