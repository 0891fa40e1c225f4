from __future__ import annotations
from typing import Dict, Any
import os, sqlite3, threading

from caseledger_core.errors import StoreReadFailed, StoreWriteFailed
from caseledger_core.logger import get_logger
from caseledger_core.store.provider import KeyValueStore

log = get_logger("CaseLedger.Store.SQLite")


class SQLiteStore(KeyValueStore):
    """Local single-table key-value store; a stand-in for the on-chain contract."""
    name = "sqlite"
    supports_cas = True

    def __init__(self, path="db/caseledger.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.db = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()
        c.execute("""CREATE TABLE IF NOT EXISTS kv(
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL
        )""")
        self.db.commit()

    def get(self, key: str) -> bytes:
        try:
            with self._lock:
                cur = self.db.execute("SELECT value FROM kv WHERE key=?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as e:
            log.error(f"[STORE GET] key={key} failed: {e}")
            raise StoreReadFailed(f"sqlite read failed for {key}: {e}", key=key) from e
        if not row:
            return b""
        return bytes(row[0])

    def set(self, key: str, value: bytes) -> None:
        try:
            with self._lock:
                self.db.execute(
                    "INSERT INTO kv(key,value) VALUES(?,?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                    (key, sqlite3.Binary(value)),
                )
                self.db.commit()
        except sqlite3.Error as e:
            log.error(f"[STORE SET] key={key} failed: {e}")
            raise StoreWriteFailed(f"sqlite write failed for {key}: {e}", key=key) from e

    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        try:
            with self._lock:
                if expected:
                    cur = self.db.execute(
                        "UPDATE kv SET value=? WHERE key=? AND value=?",
                        (sqlite3.Binary(value), key, sqlite3.Binary(expected)),
                    )
                else:
                    cur = self.db.execute(
                        "INSERT OR IGNORE INTO kv(key,value) VALUES(?,?)",
                        (key, sqlite3.Binary(value)),
                    )
                    if cur.rowcount != 1:
                        # An empty stored value reads as absent, so it matches b"" too
                        cur = self.db.execute(
                            "UPDATE kv SET value=? WHERE key=? AND length(value)=0",
                            (sqlite3.Binary(value), key),
                        )
                self.db.commit()
                return cur.rowcount == 1
        except sqlite3.Error as e:
            log.error(f"[STORE CAS] key={key} failed: {e}")
            raise StoreWriteFailed(f"sqlite compare-and-set failed for {key}: {e}", key=key) from e

    def healthz(self) -> Dict[str, Any]:
        try:
            with self._lock:
                self.db.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            return {"status": "error", "store": self.name, "error": str(e)}
        return {"status": "ok", "store": self.name, "path": self.path}

    def close(self):
        self.db.close()
