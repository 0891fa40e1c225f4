# caseledger_core/store/provider.py
from __future__ import annotations
from typing import Dict, Any
import threading
import weakref

# One writer lock per store object, shared by every registry bound to it
_writer_locks: "weakref.WeakKeyDictionary[KeyValueStore, threading.Lock]" = weakref.WeakKeyDictionary()
_writer_locks_guard = threading.Lock()


class KeyValueStore:
    """
    Byte-oriented get/set store the registry is built on.

    Contract:
    - get(key) returns b"" for an absent key (never raises for absence).
    - set(key, value) either applies to that single key or raises
      StoreWriteFailed. There is no multi-key atomicity.
    - Backends that can compare-and-set atomically set ``supports_cas`` and
      implement compare_and_set(); the registry then uses it instead of the
      in-process single-writer path guarded by writer_lock().
    """
    name: str = "base"
    supports_cas: bool = False

    # Interface
    def get(self, key: str) -> bytes: ...
    def set(self, key: str, value: bytes) -> None: ...

    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        """Write ``value`` only if the current value equals ``expected`` (b"" = absent)."""
        raise NotImplementedError(f"{self.name} store does not support compare-and-set")

    def writer_lock(self) -> threading.Lock:
        """Lock serializing read-modify-write cycles on this store within the process."""
        with _writer_locks_guard:
            lock = _writer_locks.get(self)
            if lock is None:
                lock = _writer_locks[self] = threading.Lock()
            return lock

    def healthz(self) -> Dict[str, Any]:
        return {"status": "ok", "store": self.name}

    def close(self) -> None:
        return
