# caseledger_core/store/__init__.py
from __future__ import annotations

from .provider import KeyValueStore
from .providers.memory_provider import InMemoryStore
from .providers.sqlite_provider import SQLiteStore
from .providers.http_provider import HTTPStore
import os


def load_store(config: dict | None = None) -> KeyValueStore:
    """
    Factory resolver for selecting the key-value store backend.

        - memory (default)
        - sqlite
        - http  (gateway to the on-chain key-value contract)
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("CASELEDGER_STORE_PROVIDER", "memory")

    if provider == "memory":
        return InMemoryStore()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv("CASELEDGER_DB_PATH", "db/caseledger.db")
        return SQLiteStore(db_path)

    if provider == "http":
        url = config.get("http_url") or os.getenv("CASELEDGER_STORE_URL", "http://localhost:8545")
        timeout = float(config.get("http_timeout") or os.getenv("CASELEDGER_STORE_TIMEOUT", "10"))
        store = HTTPStore(url, timeout=timeout)
        grant = config.get("grant") or os.getenv("CASELEDGER_STORE_GRANT")
        if grant:
            store.set_grant(grant)
        return store

    raise ValueError(f"Unknown store provider: {provider}")


__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "SQLiteStore",
    "HTTPStore",
    "load_store",
]
