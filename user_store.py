#!/usr/bin/env python3
"""
User Store Module

SQLite persistence for the translator bot: one row per WhatsApp sender in
`users` and an append-only audit trail in `translations`.

Key Features:
- Thread-safe row operations (one lock per store)
- Column-whitelisted partial updates
- Update-by-any-key helpers for the Stripe webhook fallbacks
- Append-only translation log
"""

import sqlite3
import threading
import uuid
from typing import Any, Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)

USER_COLUMNS = (
    "id", "phone_number", "language_step", "ui_lang", "source_lang",
    "target_lang", "voice_gender", "plan", "free_used",
    "stripe_cust_id", "stripe_sub_id",
)
MUTABLE_COLUMNS = frozenset(USER_COLUMNS) - {"id", "phone_number"}
LOOKUP_COLUMNS = frozenset({"id", "phone_number", "stripe_cust_id", "stripe_sub_id"})

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id             TEXT PRIMARY KEY,
    phone_number   TEXT NOT NULL UNIQUE,
    language_step  TEXT NOT NULL DEFAULT 'INIT',
    ui_lang        TEXT,
    source_lang    TEXT,
    target_lang    TEXT,
    voice_gender   TEXT,
    plan           TEXT NOT NULL DEFAULT 'FREE',
    free_used      INTEGER NOT NULL DEFAULT 0,
    stripe_cust_id TEXT,
    stripe_sub_id  TEXT,
    created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_users_stripe_cust ON users(stripe_cust_id);
CREATE INDEX IF NOT EXISTS idx_users_stripe_sub ON users(stripe_sub_id);

CREATE TABLE IF NOT EXISTS translations (
    id              TEXT PRIMARY KEY,
    phone_number    TEXT NOT NULL,
    original_text   TEXT NOT NULL,
    translated_text TEXT NOT NULL,
    language_from   TEXT,
    language_to     TEXT,
    credits         INTEGER NOT NULL DEFAULT 1,
    media_kind      TEXT NOT NULL DEFAULT 'text',
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_translations_phone ON translations(phone_number);
"""


class UserStore:
    """
    Database-backed store for users and the translation log.
    """

    def __init__(self, db_path: str = "tucan.db"):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        with self._lock:
            conn = self._get_connection()
            try:
                conn.executescript(SCHEMA)
                conn.commit()
                logger.info(f"User store ready at {self.db_path}")
            finally:
                conn.close()

    def get_user(self, phone_number: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a user row by phone number.

        Returns:
            Dict of user columns, or None when the sender is unknown
        """
        with self._lock:
            conn = self._get_connection()
            try:
                row = conn.execute(
                    "SELECT * FROM users WHERE phone_number = ?", (phone_number,)
                ).fetchone()
                return dict(row) if row else None
            finally:
                conn.close()

    def create_user(self, phone_number: str) -> Dict[str, Any]:
        """
        Insert a fresh FREE user in the INIT step.

        A concurrent insert for the same phone number is tolerated: the
        existing row is returned.
        """
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT OR IGNORE INTO users (id, phone_number, language_step, plan, free_used)
                    VALUES (?, ?, 'INIT', 'FREE', 0)
                    """,
                    (str(uuid.uuid4()), phone_number),
                )
                conn.commit()
                row = conn.execute(
                    "SELECT * FROM users WHERE phone_number = ?", (phone_number,)
                ).fetchone()
                logger.info(f"Created user row for {phone_number}")
                return dict(row)
            finally:
                conn.close()

    def update_where(self, column: str, value: Any, **fields: Any) -> int:
        """
        Update every user whose `column` equals `value`.

        Args:
            column: Lookup column (id, phone_number, stripe_cust_id, stripe_sub_id)
            value: Lookup value; None never matches
            fields: Columns to set

        Returns:
            int: Number of rows changed
        """
        if column not in LOOKUP_COLUMNS:
            raise ValueError(f"Cannot look users up by {column!r}")
        unknown = set(fields) - MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown user columns: {sorted(unknown)}")
        if not fields or value is None:
            return 0

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = list(fields.values()) + [value]
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute(
                    f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE {column} = ?",
                    params,
                )
                conn.commit()
                logger.debug(f"Updated {cursor.rowcount} user(s) where {column}={value}: {fields}")
                return cursor.rowcount
            finally:
                conn.close()

    def update_user(self, phone_number: str, **fields: Any) -> int:
        return self.update_where("phone_number", phone_number, **fields)

    def add_free_usage(self, phone_number: str, credits: int = 1) -> int:
        """Increment free_used atomically; returns rows changed."""
        if credits < 1:
            raise ValueError("credits must be positive")
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute(
                    """
                    UPDATE users SET free_used = free_used + ?, updated_at = CURRENT_TIMESTAMP
                    WHERE phone_number = ?
                    """,
                    (credits, phone_number),
                )
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()

    def log_translation(
        self,
        phone_number: str,
        original_text: str,
        translated_text: str,
        language_from: Optional[str],
        language_to: Optional[str],
        credits: int = 1,
        media_kind: str = "text",
    ) -> str:
        """
        Append one entry to the translation log.

        Returns:
            str: The new entry id
        """
        entry_id = str(uuid.uuid4())
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO translations
                        (id, phone_number, original_text, translated_text,
                         language_from, language_to, credits, media_kind)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (entry_id, phone_number, original_text, translated_text,
                     language_from, language_to, credits, media_kind),
                )
                conn.commit()
                return entry_id
            finally:
                conn.close()

    def get_user_count(self) -> int:
        with self._lock:
            conn = self._get_connection()
            try:
                return conn.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"]
            finally:
                conn.close()
