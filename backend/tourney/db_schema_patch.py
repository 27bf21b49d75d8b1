from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Columns we must ensure exist in the "fixture" table.
# (name, sqlite_type, postgres_type)
# Databases created before phases existed lack "phase"; such rows stay NULL
# and are treated as round robin.
REQUIRED_FIXTURE_COLUMNS: List[Tuple[str, str, str]] = [
    ("phase", "TEXT", "TEXT"),
    ("round_name", "TEXT", "TEXT"),
    ("notes", "TEXT", "TEXT"),
    ("winner_id", "INTEGER", "INTEGER"),
]

# Columns we must ensure exist in the "event" table.
REQUIRED_EVENT_COLUMNS: List[Tuple[str, str, str]] = [
    ("match_type", "TEXT", "TEXT"),
    ("participant_type", "TEXT DEFAULT 'individual'", "TEXT DEFAULT 'individual'"),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _table_exists(engine: Engine, table_name: str) -> bool:
    if _is_sqlite(engine):
        sql = "SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"
    else:
        sql = """
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'public' AND table_name = :table_name
        """
    with engine.connect() as conn:
        return conn.execute(text(sql), {"table_name": table_name}).fetchone() is not None


def _get_existing_columns(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        if _is_sqlite(engine):
            # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
            for row in conn.execute(text(f"PRAGMA table_info({table_name});")).fetchall():
                cols[str(row[1])] = str(row[2])
        else:
            sql = """
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_schema = 'public' AND table_name = :table_name;
            """
            for row in conn.execute(text(sql), {"table_name": table_name}).fetchall():
                cols[str(row[0])] = str(row[1])
    return cols


def _ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str]]) -> List[str]:
    """Add missing columns; returns the names that were added."""
    if not _table_exists(engine, table):
        # create_all will build it with every column
        return []

    existing = _get_existing_columns(engine, table)
    added: List[str] = []
    with engine.begin() as conn:
        for name, sqlite_type, pg_type in required:
            if name in existing:
                continue
            if _is_sqlite(engine):
                # SQLite supports ADD COLUMN without IF NOT EXISTS
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type};"))
            else:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type};"))
            added.append(name)
    return added


def ensure_fixture_columns(engine: Engine) -> List[str]:
    """
    Idempotently adds required columns to the 'fixture' and 'event' tables.
    Safe to run at every startup.
    """
    from tourney.models.event import Event
    from tourney.models.fixture import Fixture

    added: List[str] = []
    for model, required in ((Fixture, REQUIRED_FIXTURE_COLUMNS), (Event, REQUIRED_EVENT_COLUMNS)):
        table = model.__table__.name
        try:
            cols = _ensure_columns(engine, table, required)
        except SQLAlchemyError as e:
            # Log error but don't crash the server
            logger.warning(f"Failed to ensure {table} columns: {e}")
            continue
        if cols:
            logger.info("Added columns to %s: %s", table, ", ".join(cols))
        added.extend(f"{table}.{c}" for c in cols)
    return added
