"""String-keyed persistence for state that must survive restarts.

Only the high-risk rate-limit timestamp is stored here today.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from api.config import settings as api_settings

_CREATE_TABLE = text(
    """
    CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """
)


class KeyValueStore:
    """Tiny key-value table on any SQLAlchemy URL (SQLite by default)."""

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if url is None:
                raise ValueError("KeyValueStore needs a database URL or an engine")
            engine = create_engine(url, future=True)
        self._engine = engine
        self._ready = False

    @property
    def engine(self) -> Engine:
        return self._engine

    def _ensure_table(self) -> None:
        if self._ready:
            return
        with self._engine.begin() as conn:
            conn.execute(_CREATE_TABLE)
        self._ready = True

    def get(self, key: str) -> Optional[str]:
        self._ensure_table()
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT value FROM kv_store WHERE key = :key"),
                {"key": key},
            ).first()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        self._ensure_table()
        with self._engine.begin() as conn:
            conn.execute(
                text(
                    """
                    INSERT INTO kv_store (key, value) VALUES (:key, :value)
                    ON CONFLICT (key) DO UPDATE SET value = excluded.value
                    """
                ),
                {"key": key, "value": value},
            )


_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    """Create (or memoize) the process-wide store from app settings."""
    global _store
    if _store is None:
        _store = KeyValueStore(api_settings.store_url)
    return _store
