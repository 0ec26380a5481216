"""Persistence for outfits the user chose to keep."""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from models.outfit import OutfitRecord


class OutfitStore:
    """Persistence interface for saved outfits.

    Implementations raise on failure; callers decide how to report it.
    """

    def save_outfit(self, user_id: str, record: OutfitRecord) -> str:
        raise NotImplementedError

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[OutfitRecord]:
        raise NotImplementedError

    def list_outfits(self, user_id: str) -> List[OutfitRecord]:
        raise NotImplementedError


class SQLiteOutfitStore(OutfitStore):
    """Local SQLite-backed store for saved outfits."""

    def __init__(self, database_path: str | Path = "data/outfits.db") -> None:
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
                CREATE TABLE IF NOT EXISTS outfits (
                    user_id TEXT NOT NULL,
                    outfit_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    cover_image_url TEXT,
                    item_image_urls TEXT,
                    item_ids TEXT,
                    tags TEXT,
                    occasion TEXT,
                    wear_count INTEGER NOT NULL DEFAULT 0,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    source TEXT,
                    dress_code TEXT,
                    target_date TEXT,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, outfit_id)
                );
                """
            )

    def save_outfit(self, user_id: str, record: OutfitRecord) -> str:
        outfit_id = record.outfit_id or uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO outfits (
                    user_id, outfit_id, name, description, cover_image_url, item_image_urls, item_ids,
                    tags, occasion, wear_count, is_favorite, source, dress_code, target_date, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    outfit_id,
                    record.name,
                    record.description,
                    record.cover_image_url,
                    json.dumps(record.item_image_urls),
                    json.dumps(record.item_ids),
                    json.dumps(record.tags),
                    record.occasion,
                    record.wear_count,
                    int(record.is_favorite),
                    record.source,
                    record.dress_code,
                    record.target_date.isoformat() if record.target_date else None,
                    record.created_at.isoformat(),
                ),
            )
        record.outfit_id = outfit_id
        return outfit_id

    def _row_to_record(self, row: sqlite3.Row) -> OutfitRecord:
        return OutfitRecord(
            outfit_id=row["outfit_id"],
            name=row["name"],
            description=row["description"] or "",
            cover_image_url=row["cover_image_url"] or "",
            item_image_urls=json.loads(row["item_image_urls"] or "[]"),
            item_ids=json.loads(row["item_ids"] or "[]"),
            tags=json.loads(row["tags"] or "[]"),
            occasion=row["occasion"] or "",
            wear_count=row["wear_count"],
            is_favorite=bool(row["is_favorite"]),
            source=row["source"] or "manual",
            dress_code=row["dress_code"],
            target_date=date.fromisoformat(row["target_date"]) if row["target_date"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[OutfitRecord]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM outfits WHERE user_id = ? AND outfit_id = ?",
                (user_id, outfit_id),
            )
            row = cursor.fetchone()
            return self._row_to_record(row) if row else None

    def list_outfits(self, user_id: str) -> List[OutfitRecord]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM outfits WHERE user_id = ? ORDER BY created_at DESC, outfit_id",
                (user_id,),
            )
            return [self._row_to_record(row) for row in cursor.fetchall()]


__all__ = ["OutfitRecord", "OutfitStore", "SQLiteOutfitStore"]
