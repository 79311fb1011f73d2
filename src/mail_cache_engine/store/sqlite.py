"""SQLite-backed document store.

Documents are stored as JSON text in a single table keyed by
(collection, key). The synchronous sqlite3 API is wrapped with
``asyncio.to_thread`` so callers stay async; each call opens its own
connection, and ``update`` holds a write lock (BEGIN IMMEDIATE) for the whole
read-modify-write.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from mail_cache_engine.store.base import Document, UpdateFn

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


class SqliteDocumentStore:
    """DocumentStore persisted in a local SQLite file."""

    def __init__(self, db_path: Path) -> None:
        """Create a store.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = db_path

    def initialize(self) -> None:
        """Create or upgrade the store schema."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                logger.info("document_store_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise RuntimeError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    async def read(self, collection: str, key: str) -> Document | None:
        return await asyncio.to_thread(self._read_sync, collection, key)

    async def write(self, collection: str, key: str, value: Document) -> None:
        await asyncio.to_thread(self._write_sync, collection, key, value)

    async def update(self, collection: str, key: str, fn: UpdateFn) -> Document:
        return await asyncio.to_thread(self._update_sync, collection, key, fn)

    async def query(self, collection: str, field: str, value: Any) -> list[Document]:
        return await asyncio.to_thread(self._query_sync, collection, field, value)

    async def delete(self, collection: str, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, collection, key)

    def _read_sync(self, collection: str, key: str) -> Document | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT body_json FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ).fetchone()
        return json.loads(row["body_json"]) if row else None

    def _write_sync(self, collection: str, key: str, value: Document) -> None:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._put(conn, collection, key, value)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise

    def _update_sync(self, collection: str, key: str, fn: UpdateFn) -> Document:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT body_json FROM documents WHERE collection = ? AND key = ?",
                    (collection, key),
                ).fetchone()
                current = json.loads(row["body_json"]) if row else None
                new_value = fn(current)
                self._put(conn, collection, key, new_value)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        return new_value

    def _query_sync(self, collection: str, field: str, value: Any) -> list[Document]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT body_json FROM documents
                WHERE collection = ? AND json_extract(body_json, ?) = ?
                ORDER BY key
                """,
                (collection, f'$."{field}"', value),
            ).fetchall()
        return [json.loads(row["body_json"]) for row in rows]

    def _delete_sync(self, collection: str, key: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            )

    def _put(self, conn: sqlite3.Connection, collection: str, key: str, value: Document) -> None:
        conn.execute(
            """
            INSERT INTO documents (collection, key, body_json, updated_at_iso)
            VALUES (:collection, :key, :body_json, :updated_at_iso)
            ON CONFLICT(collection, key) DO UPDATE SET
                body_json=excluded.body_json,
                updated_at_iso=excluded.updated_at_iso
            """,
            {
                "collection": collection,
                "key": key,
                "body_json": json.dumps(value),
                "updated_at_iso": datetime.now(timezone.utc).isoformat(),
            },
        )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        # Autocommit mode; transactions are opened explicitly where needed.
        conn = sqlite3.connect(self._db_path, timeout=30.0, isolation_level=None)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                key TEXT NOT NULL,
                body_json TEXT NOT NULL,
                updated_at_iso TEXT NOT NULL,
                PRIMARY KEY (collection, key)
            );
            """
        )
