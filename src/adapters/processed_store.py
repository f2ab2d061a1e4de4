"""Processed-item record persistence adapters."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Final

from pydantic import ValidationError as PydanticValidationError

from src.config.logging_config import get_logger
from src.domain.exceptions import StoreError
from src.domain.models import ProcessedRecord
from src.domain.protocols import ProcessedStoreProtocol

logger = get_logger(__name__)

GetConnectionCallable = Callable[[], AbstractContextManager[sqlite3.Connection]]


def sqlite_connection_factory(db_path: str) -> GetConnectionCallable:
    """Build a ``get_conn`` callable opening short-lived SQLite connections.

    ``":memory:"`` databases live only as long as their connection, so every
    call yields the same connection and it is never closed.

    Args:
        db_path: Database file (parent directories are created)

    Returns:
        Callable returning a context manager that yields a connection
    """
    if db_path == ":memory:":
        shared_conn = sqlite3.connect(db_path)

        @contextmanager
        def get_shared_conn() -> Iterator[sqlite3.Connection]:
            yield shared_conn

        return get_shared_conn

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_conn() -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(db_path)
        try:
            yield conn
        finally:
            conn.close()

    return get_conn


class SQLiteProcessedStore:
    """Key -> JSON record store backed by a single SQLite table."""

    _TABLE_NAME: Final[str] = "processed_items"

    def __init__(self, get_conn: GetConnectionCallable) -> None:
        """Initialize the store and create its table if needed.

        Args:
            get_conn: Callable returning a context manager that yields a database connection.

        Raises:
            StoreError: If the table cannot be created
        """
        self._get_conn = get_conn
        self._ensure_table()

    @classmethod
    def from_path(cls, db_path: str) -> SQLiteProcessedStore:
        return cls(sqlite_connection_factory(db_path))

    def get(self, key: str) -> ProcessedRecord | None:
        """Load the record for a feed item.

        Returns:
            Record, or None when the item was never recorded or the stored
            payload is unreadable

        Raises:
            StoreError: On database errors
        """
        try:
            with self._get_conn() as conn:
                row = conn.execute(
                    f"SELECT payload FROM {self._TABLE_NAME} WHERE item_key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read processed record {key}: {e}") from e

        if not row:
            return None

        try:
            return ProcessedRecord.model_validate_json(row[0])
        except PydanticValidationError as e:
            logger.warning("processed_record_unreadable", key=key, error=str(e))
            return None

    def put(self, key: str, record: ProcessedRecord) -> None:
        """Store the record for a feed item, replacing any previous one.

        Raises:
            StoreError: On database errors
        """
        try:
            with self._get_conn() as conn:
                conn.execute(
                    f"INSERT INTO {self._TABLE_NAME} (item_key, payload) VALUES (?, ?) "
                    "ON CONFLICT(item_key) DO UPDATE SET payload=excluded.payload",
                    (key, record.model_dump_json()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write processed record {key}: {e}") from e

    def _ensure_table(self) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {self._TABLE_NAME} ("
                    "item_key TEXT PRIMARY KEY, payload TEXT NOT NULL)"
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize processed store: {e}") from e


class InMemoryProcessedStore:
    """Dictionary-backed store.

    With a ``backing`` store, reads fall through to it while writes stay in
    memory (used for dry runs).
    """

    def __init__(self, backing: ProcessedStoreProtocol | None = None) -> None:
        self._records: dict[str, ProcessedRecord] = {}
        self._backing = backing

    def get(self, key: str) -> ProcessedRecord | None:
        if key in self._records:
            return self._records[key]
        if self._backing is not None:
            return self._backing.get(key)
        return None

    def put(self, key: str, record: ProcessedRecord) -> None:
        self._records[key] = record

    @property
    def records(self) -> dict[str, ProcessedRecord]:
        return dict(self._records)
