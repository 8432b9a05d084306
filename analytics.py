#!/usr/bin/env python3
"""
Offline reports over the translation log.

The running bot only appends to `translations`; these helpers read it back
for usage and billing analysis.

Usage:
    python analytics.py
"""

import sqlite3

import pandas as pd

import settings
from logging_config import get_logger

logger = get_logger(__name__)


def load_translations(db_path: str = settings.DB_FILE) -> pd.DataFrame:
    conn = sqlite3.connect(db_path)
    try:
        return pd.read_sql_query(
            "SELECT * FROM translations ORDER BY created_at", conn, parse_dates=["created_at"]
        )
    finally:
        conn.close()


def language_pair_summary(log: pd.DataFrame) -> pd.DataFrame:
    """Messages and credits per (from, to) pair, busiest first."""
    if log.empty:
        return pd.DataFrame(columns=["language_from", "language_to", "messages", "credits"])
    summary = (
        log.groupby(["language_from", "language_to"], dropna=False)
        .agg(messages=("id", "count"), credits=("credits", "sum"))
        .reset_index()
        .sort_values(["messages", "credits"], ascending=False, ignore_index=True)
    )
    return summary


def usage_by_user(log: pd.DataFrame) -> pd.DataFrame:
    """Per-sender totals, split by media kind."""
    if log.empty:
        return pd.DataFrame()
    return (
        log.pivot_table(index="phone_number", columns="media_kind", values="credits",
                        aggfunc="sum", fill_value=0)
        .assign(total=lambda df: df.sum(axis=1))
        .sort_values("total", ascending=False)
    )


def main() -> None:
    log = load_translations()
    logger.info(f"{len(log)} translations logged")
    logger.info("\n" + language_pair_summary(log).to_string(index=False))
    by_user = usage_by_user(log)
    if not by_user.empty:
        logger.info("\n" + by_user.head(10).to_string())


if __name__ == "__main__":
    main()
