"""SQLite-backed transport so the auction survives process restarts."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Sequence, Tuple

from .transport import PathParts, StoreWriteError, Transport, split_path, tree_get, tree_set


logger = logging.getLogger(__name__)


class SqliteTransport(Transport):
    """One row per top-level key holding its JSON value; subscribers are notified after commit."""

    def __init__(self, db_path: Path | str):
        super().__init__()
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS nodes (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, path: str) -> Any:
        parts = split_path(path)
        with self._lock, self._transaction() as conn:
            if not parts:
                rows = conn.execute("SELECT key, value_json FROM nodes").fetchall()
                return {row["key"]: json.loads(row["value_json"]) for row in rows}
            row = conn.execute(
                "SELECT value_json FROM nodes WHERE key = ?", (parts[0],)
            ).fetchone()
        if row is None:
            return None
        return tree_get({parts[0]: json.loads(row["value_json"])}, parts)

    def _write(self, changes: Sequence[Tuple[PathParts, Any]]) -> None:
        roots = sorted({parts[0] for parts, _ in changes})
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock, self._transaction() as conn:
                tree: Dict[str, Any] = {}
                for root in roots:
                    row = conn.execute(
                        "SELECT value_json FROM nodes WHERE key = ?", (root,)
                    ).fetchone()
                    if row is not None:
                        tree[root] = json.loads(row["value_json"])
                for parts, value in changes:
                    tree_set(tree, parts, value)
                for root in roots:
                    if root in tree:
                        conn.execute(
                            """
                            INSERT INTO nodes (key, value_json, updated_at) VALUES (?, ?, ?)
                            ON CONFLICT(key) DO UPDATE SET
                                value_json = excluded.value_json,
                                updated_at = excluded.updated_at
                            """,
                            (root, json.dumps(tree[root]), now),
                        )
                    else:
                        conn.execute("DELETE FROM nodes WHERE key = ?", (root,))
        except sqlite3.Error as exc:
            logger.error("SQLite write to %s failed: %s", self.db_path, exc)
            raise StoreWriteError(f"Store write failed: {exc}") from exc
