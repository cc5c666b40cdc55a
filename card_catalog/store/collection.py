"""SQLite-backed card collection with folders."""

import json
import sqlite3
import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.types import Card, Folder, MarketListing
from ..utils.config import ensure_data_dir
from ..utils.error_handler import CollectionError
from ..utils.log import get_logger

# Columns stored as JSON text
_JSON_FIELDS = ("links", "listings")
_CARD_FIELDS = tuple(f.name for f in fields(Card))
_UPDATABLE_FIELDS = frozenset(_CARD_FIELDS) - {"id"}


class CollectionStore:
    """Persistent card collection.

    Every write is committed before the method returns and every read goes
    to the database, so reads always see the latest write.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.logger = get_logger(__name__)
        self.db_path = ensure_data_dir(str(db_path) if db_path else None)
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self):
        """Initialize SQLite database with required tables."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS folders (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """
                )

                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS cards (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        name TEXT NOT NULL,
                        year TEXT,
                        set_name TEXT,
                        set_code TEXT,
                        series TEXT,
                        card_number TEXT,
                        subcategory TEXT,
                        company TEXT,
                        team TEXT,
                        rarity TEXT,
                        price REAL,
                        listings TEXT,
                        grade TEXT,
                        grade_company TEXT,
                        certificate_number TEXT,
                        links TEXT,
                        color TEXT,
                        card_type TEXT,
                        title TEXT,
                        publisher TEXT,
                        date TEXT,
                        image_uri TEXT NOT NULL DEFAULT '',
                        back_image_uri TEXT,
                        date_added TEXT NOT NULL,
                        folder_id TEXT
                    )
                """
                )
                conn.commit()
                self.logger.info("Collection database initialized", db_path=str(self.db_path))

        except sqlite3.Error as e:
            self.logger.error("Error initializing database", error=str(e))
            raise CollectionError("Could not initialize collection database",
                                  details={"db_path": str(self.db_path), "error": str(e)})

    def _to_row(self, card: Card) -> Dict[str, Any]:
        row = asdict(card)
        for key in _JSON_FIELDS:
            row[key] = json.dumps(row[key]) if row[key] is not None else None
        return row

    def _from_row(self, row: sqlite3.Row) -> Card:
        data = {key: row[key] for key in _CARD_FIELDS}
        links = json.loads(data["links"]) if data["links"] else None
        listings = json.loads(data["listings"]) if data["listings"] else None
        data["links"] = links
        data["listings"] = [MarketListing(**item) for item in listings] if listings else None
        return Card(**data)

    def _folder_exists(self, conn: sqlite3.Connection, folder_id: str) -> bool:
        return conn.execute("SELECT 1 FROM folders WHERE id = ?", (folder_id,)).fetchone() is not None

    def add_card(self, card: Card) -> Card:
        """Insert a card, assigning id and date_added when left empty."""
        if not card.name or not card.name.strip():
            raise CollectionError("Card name must not be empty")

        stored = replace(
            card,
            id=card.id or uuid.uuid4().hex,
            date_added=card.date_added or datetime.now().isoformat(),
        )
        row = self._to_row(stored)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)

        try:
            with self._connect() as conn:
                if stored.folder_id is not None and not self._folder_exists(conn, stored.folder_id):
                    raise CollectionError(f"No folder with id {stored.folder_id}")
                conn.execute(f"INSERT INTO cards ({columns}) VALUES ({placeholders})", tuple(row.values()))
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise CollectionError(f"Card {stored.id} already exists", details={"error": str(e)})

        self.logger.debug("Card added", card_id=stored.id, name=stored.name)
        return stored

    def get_card(self, card_id: str) -> Optional[Card]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
        return self._from_row(row) if row else None

    def list_cards(self) -> List[Card]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM cards ORDER BY seq").fetchall()
        return [self._from_row(row) for row in rows]

    def search_cards(
        self,
        query: Optional[str] = None,
        subcategory: Optional[str] = None,
        year: Optional[str] = None,
        folder_id: Optional[str] = None,
    ) -> List[Card]:
        """Cards matching every given filter, in collection order.

        Args:
            query: Case-insensitive substring of the name, set or card number
            subcategory: Exact subcategory, ignoring case
            year: Exact year
            folder_id: Only cards in this folder
        """
        needle = query.strip().lower() if query and query.strip() else None
        matches = []
        for card in self.list_cards():
            if needle is not None and not any(
                needle in (value or "").lower() for value in (card.name, card.set_name, card.card_number)
            ):
                continue
            if subcategory and (card.subcategory or "").lower() != subcategory.lower():
                continue
            if year and str(card.year or "") != str(year).strip():
                continue
            if folder_id and card.folder_id != folder_id:
                continue
            matches.append(card)
        return matches

    def select_cards(self, card_ids: List[str]) -> List[Card]:
        """The cards with the given ids, in collection order."""
        wanted = set(card_ids)
        selected = [card for card in self.list_cards() if card.id in wanted]
        missing = wanted - {card.id for card in selected}
        if missing:
            raise CollectionError(f"No card with id {sorted(missing)[0]}", details={"missing": sorted(missing)})
        return selected

    def update_card(self, card_id: str, **updates: Any) -> Card:
        """Apply a partial update and return the stored card."""
        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise CollectionError(f"Unknown card fields: {sorted(unknown)}")
        if "name" in updates and (not updates["name"] or not str(updates["name"]).strip()):
            raise CollectionError("Card name must not be empty")

        current = self.get_card(card_id)
        if current is None:
            raise CollectionError(f"No card with id {card_id}")
        if not updates:
            return current

        updated = replace(current, **updates)
        row = self._to_row(updated)
        assignments = ", ".join(f"{key} = ?" for key in updates)

        with self._connect() as conn:
            if updates.get("folder_id") is not None and not self._folder_exists(conn, updates["folder_id"]):
                raise CollectionError(f"No folder with id {updates['folder_id']}")
            conn.execute(
                f"UPDATE cards SET {assignments} WHERE id = ?",
                tuple(row[key] for key in updates) + (card_id,),
            )
            conn.commit()

        self.logger.debug("Card updated", card_id=card_id, fields=sorted(updates))
        return updated

    def delete_card(self, card_id: str) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            conn.commit()
        self.logger.debug("Card deleted", card_id=card_id, deleted=result.rowcount)
        return result.rowcount > 0

    def clear_all_cards(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM cards")
            conn.commit()
        self.logger.info("Collection cleared")

    def create_folder(self, name: str) -> Folder:
        if not name or not name.strip():
            raise CollectionError("Folder name must not be empty")
        folder = Folder(id=uuid.uuid4().hex, name=name.strip(), created_at=datetime.now().isoformat())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO folders (id, name, created_at) VALUES (?, ?, ?)",
                (folder.id, folder.name, folder.created_at),
            )
            conn.commit()
        self.logger.debug("Folder created", folder_id=folder.id, name=folder.name)
        return folder

    def list_folders(self) -> List[Folder]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM folders ORDER BY created_at, rowid").fetchall()
        return [Folder(id=row["id"], name=row["name"], created_at=row["created_at"]) for row in rows]

    def delete_folder(self, folder_id: str) -> bool:
        """Remove a folder; its cards stay in the collection without a folder."""
        with self._connect() as conn:
            released = conn.execute(
                "UPDATE cards SET folder_id = NULL WHERE folder_id = ?", (folder_id,)
            ).rowcount
            result = conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
            conn.commit()
        self.logger.debug("Folder deleted", folder_id=folder_id, released_cards=released)
        return result.rowcount > 0

    def move_card_to_folder(self, card_id: str, folder_id: Optional[str]) -> Card:
        return self.update_card(card_id, folder_id=folder_id)

    def close(self) -> None:
        """Close database connection."""
        # SQLite connections are opened per operation
        self.logger.debug("Collection store closing")
