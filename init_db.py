#!/usr/bin/env python3
"""
Database Initialization Script

Creates the SQLite database used by the translator bot:
- users        (one row per WhatsApp sender)
- translations (append-only audit log)

Usage:
    python init_db.py
"""

import sqlite3
import sys

import settings
from logging_config import get_logger
from user_store import USER_COLUMNS, UserStore

logger = get_logger(__name__)


def verify_database(db_path: str) -> bool:
    """
    Verifies that both tables exist with the expected user columns.

    Returns:
        bool: True if verification passes, False otherwise
    """
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        for table in ("users", "translations"):
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
            if not cursor.fetchone():
                logger.error(f"{table} table not found")
                return False

        cursor.execute("PRAGMA table_info(users)")
        column_names = [col[1] for col in cursor.fetchall()]
        missing_columns = [col for col in USER_COLUMNS if col not in column_names]
        if missing_columns:
            logger.error(f"Missing required user columns: {missing_columns}")
            return False

        logger.info("Database verification completed successfully")
        return True
    except sqlite3.Error:
        logger.exception("Database verification error")
        return False
    finally:
        conn.close()


def main(db_path: str = settings.DB_FILE) -> bool:
    logger.info(f"Initializing database at {db_path}...")
    store = UserStore(db_path)
    try:
        store.initialize()
    except sqlite3.Error:
        logger.exception("Failed to create database")
        return False

    if not verify_database(db_path):
        return False

    logger.info(f"Database ready ({store.get_user_count()} users).")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
