# jsonsigner/storage/sqlite.py
import os
import sqlite3
from pathlib import Path
from typing import List, Optional

from jsonsigner.errors import KeyNotFoundError
from . import KeyringBackend


class SQLiteBackend(KeyringBackend):
    """Keyring items kept as rows of a single SQLite table."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            env_path = os.environ.get("JSON_SIGNER_KEYRING_DB")
            db_path = env_path if env_path else Path.cwd() / "keyring.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS items (
                name    TEXT PRIMARY KEY,
                data    BLOB NOT NULL
            )
        """)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Keyring connection is closed")
        return self._conn

    @property
    def location(self) -> str:
        return str(self.db_path)

    def get(self, name: str) -> bytes:
        row = self.conn.execute("SELECT data FROM items WHERE name = ?", (name,)).fetchone()
        if row is None:
            raise KeyNotFoundError(name)
        return bytes(row[0])

    def set(self, name: str, data: bytes) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO items (name, data) VALUES (?, ?)",
            (name, sqlite3.Binary(data)),
        )

    def list_names(self) -> List[str]:
        cursor = self.conn.execute("SELECT name FROM items ORDER BY name ASC")
        return [row[0] for row in cursor.fetchall()]

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
