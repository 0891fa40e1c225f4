import threading
from typing import Dict

from caseledger_core.store.provider import KeyValueStore


class InMemoryStore(KeyValueStore):
    name = "memory"
    supports_cas = True

    def __init__(self, initial: Dict[str, bytes] = None):
        self.data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes:
        with self._lock:
            return self.data.get(key, b"")

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self.data[key] = bytes(value)

    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        with self._lock:
            if self.data.get(key, b"") != expected:
                return False
            self.data[key] = bytes(value)
            return True

    def keys(self):
        with self._lock:
            return list(self.data.keys())
