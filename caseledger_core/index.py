"""
caseledger_core.index
---------------------
Owner of the index key: the ordered set of record keys the registry keeps
because the store cannot list its own keys.

Appending is a read-modify-write on one shared key, so it is the place
concurrent creators collide. Two strategies, picked per store:

- Store supports compare-and-set: read, append, CAS against the bytes read.
  A failed CAS means someone else wrote in between; start over.
- Plain get/set store: index writes from this process go through the
  store's writer lock, shared by every registry bound to that store.
  Inside the lock the read is re-validated right before the write, and
  re-read after it to confirm the key survived a write from
  another process. Either check failing starts the loop over.

Both paths are bounded by ``max_retries``; running out raises IndexConflict.
"""

from __future__ import annotations
import threading
from typing import List, Optional, Tuple

from .codec import IndexCodec
from .constants import DEFAULT_MAX_INDEX_RETRIES, INDEX_KEY
from .errors import IndexConflict
from .logger import get_logger
from .store.provider import KeyValueStore

log = get_logger("CaseLedger.Index")


class IndexManager:

    def __init__(
        self,
        store: KeyValueStore,
        index_key: str = INDEX_KEY,
        max_retries: int = DEFAULT_MAX_INDEX_RETRIES,
        lock: Optional[threading.Lock] = None,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.store = store
        self.index_key = index_key
        self.max_retries = max_retries
        self._write_lock = lock or store.writer_lock()

    def read(self) -> List[str]:
        return IndexCodec.decode(self.store.get(self.index_key))

    def append(self, key: str) -> List[str]:
        """Add ``key`` to the index exactly once; returns the index as written."""
        for attempt in range(1, self.max_retries + 1):
            if self.store.supports_cas:
                done, keys = self._append_cas(key)
            else:
                with self._write_lock:
                    done, keys = self._append_checked(key)
            if done:
                if attempt > 1:
                    log.info(f"[INDEX APPEND] key={key} landed after {attempt} attempts")
                return keys
            log.warning(f"[INDEX RETRY] key={key} attempt={attempt}/{self.max_retries} index changed concurrently")

        log.error(f"[INDEX CONFLICT] key={key} gave up after {self.max_retries} attempts")
        raise IndexConflict(
            f"index {self.index_key!r} kept changing; {key} not appended after {self.max_retries} attempts",
            attempts=self.max_retries,
        )

    def _append_cas(self, key: str) -> Tuple[bool, List[str]]:
        raw = self.store.get(self.index_key)
        keys = IndexCodec.decode(raw)
        if key in keys:
            return True, keys
        updated = IndexCodec.append(keys, key)
        return self.store.compare_and_set(self.index_key, raw, IndexCodec.encode(updated)), updated

    def _append_checked(self, key: str) -> Tuple[bool, List[str]]:
        raw = self.store.get(self.index_key)
        keys = IndexCodec.decode(raw)
        if key in keys:
            return True, keys
        updated = IndexCodec.append(keys, key)
        encoded = IndexCodec.encode(updated)

        if self.store.get(self.index_key) != raw:
            return False, keys
        self.store.set(self.index_key, encoded)

        # Another process may have overwritten us between the check and the set
        after = IndexCodec.decode(self.store.get(self.index_key))
        return key in after, after
