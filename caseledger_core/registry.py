"""
caseledger_core.registry
------------------------
RecordRegistry: list, create and transition case records kept in a get/set
key-value store.

Layout in the store:
    <index key>       -> IndexCodec bytes (every record key, once)
    record:<key>      -> RecordCodec bytes

Write ordering for create: the record is written before the index. A failure
between the two leaves an orphan record that listing never sees, never an
index entry that points at nothing.

Store failures are reported as StoreReadFailed / StoreWriteFailed and are not
retried here: for a black-box store a failed or timed-out write may or may
not have applied. The only retry loop is the bounded index append, which
re-reads before every attempt.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .analysis import Analyzer, SimulatedAnalyzer
from .codec import RecordCodec
from .constants import DEFAULT_MAX_INDEX_RETRIES, INDEX_KEY
from .crypto import EncryptionGateway
from .errors import (
    DecodeError,
    EncryptionFailed,
    InvalidTransition,
    NotAuthorized,
    NotFound,
    StoreReadFailed,
    StoreWriteFailed,
    ValidationError,
)
from .index import IndexManager
from .logger import get_logger
from .models import PendingRecord, Record, RecordStatus, require_pending
from .store.provider import KeyValueStore
from .utils import new_record_key, now_epoch, record_store_key

log = get_logger("CaseLedger.Registry")


@dataclass
class ListReport:
    """Records that decoded cleanly, newest first, plus how many index entries were skipped."""
    records: List[Record] = field(default_factory=list)
    skipped: int = 0
    skipped_keys: List[str] = field(default_factory=list)


class RecordRegistry:

    def __init__(
        self,
        store: KeyValueStore,
        gateway: EncryptionGateway,
        analyzer: Optional[Analyzer] = None,
        index_key: str = INDEX_KEY,
        max_index_retries: int = DEFAULT_MAX_INDEX_RETRIES,
        clock: Callable[[], int] = now_epoch,
        key_factory: Callable[[], str] = new_record_key,
    ):
        self.store = store
        self.gateway = gateway
        self.analyzer = analyzer or SimulatedAnalyzer()
        # Single-writer path on stores without compare-and-set; one lock per store
        self._write_lock = store.writer_lock()
        self.index = IndexManager(store, index_key=index_key, max_retries=max_index_retries, lock=self._write_lock)
        self.max_key_attempts = max_index_retries
        self.clock = clock
        self.key_factory = key_factory
        self.last_skipped = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_report(self) -> ListReport:
        """
        Read every indexed record. Entries whose record is missing, unreadable
        or malformed are skipped and counted; failing to read the index
        itself is raised.
        """
        keys = self.index.read()
        report = ListReport()

        for key in keys:
            try:
                raw = self.store.get(record_store_key(key))
                if not raw:
                    raise DecodeError(f"indexed record {key} is absent")
                report.records.append(RecordCodec.decode(raw, expected_key=key))
            except (StoreReadFailed, DecodeError) as e:
                log.warning(f"[REGISTRY LIST] skipping {key}: {e}")
                report.skipped += 1
                report.skipped_keys.append(key)

        # sorted() is stable, so equal timestamps keep index order
        report.records = sorted(report.records, key=lambda r: r.created_at, reverse=True)
        self.last_skipped = report.skipped
        if report.skipped:
            log.warning(f"[REGISTRY LIST] {len(report.records)} records, {report.skipped} skipped")
        return report

    def list_records(self) -> List[Record]:
        return self.list_report().records

    def get_record(self, key: str) -> Record:
        raw = self.store.get(record_store_key(key))
        if not raw:
            raise NotFound(f"record {key} not found")
        return RecordCodec.decode(raw, expected_key=key)

    def stats(self, records: Optional[List[Record]] = None) -> Dict[str, Any]:
        """Dashboard counters: totals by status and by category."""
        if records is None:
            records = self.list_records()
        by_status = Counter(r.status.value for r in records)
        return {
            "total": len(records),
            "pending": by_status.get(RecordStatus.PENDING.value, 0),
            "analyzed": by_status.get(RecordStatus.ANALYZED.value, 0),
            "rejected": by_status.get(RecordStatus.REJECTED.value, 0),
            "by_category": dict(Counter(r.category for r in records)),
        }

    def healthz(self) -> Dict[str, Any]:
        return {"status": "ok", "index_key": self.index.index_key, "store": self.store.healthz()}

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_record(self, category: str, plaintext_payload: Union[bytes, str], owner: str) -> PendingRecord:
        if not isinstance(category, str) or not category.strip():
            raise ValidationError("category must be a non-empty string")
        if isinstance(plaintext_payload, str):
            plaintext_payload = plaintext_payload.encode("utf-8")
        if not isinstance(plaintext_payload, (bytes, bytearray)) or not plaintext_payload:
            raise ValidationError("payload must be non-empty bytes")
        if not isinstance(owner, str) or not owner.strip():
            raise ValidationError("owner must be a non-empty identity")

        payload = self._encrypt(bytes(plaintext_payload))
        record = self._write_new_record(category.strip(), payload, owner.strip())

        # A failure from here on leaves an orphan record, which listing ignores
        self.index.append(record.key)
        log.info(f"[REGISTRY CREATE] key={record.key} owner={record.owner} category={record.category}")
        return record

    def _encrypt(self, plaintext: bytes) -> bytes:
        try:
            payload = self.gateway.encrypt(plaintext)
        except EncryptionFailed:
            raise
        except Exception as e:
            log.exception(f"[REGISTRY CREATE] encryption gateway {self.gateway.name} failed")
            raise EncryptionFailed(f"encryption gateway failed: {e}") from e
        if not payload:
            raise EncryptionFailed("encryption gateway returned an empty payload")
        return payload

    def _write_new_record(self, category: str, payload: bytes, owner: str) -> PendingRecord:
        created_at = self.clock()
        for attempt in range(1, self.max_key_attempts + 1):
            record = PendingRecord(
                key=self.key_factory(),
                payload=payload,
                created_at=created_at,
                owner=owner,
                category=category,
            )
            store_key = record_store_key(record.key)
            encoded = RecordCodec.encode(record)

            if self.store.supports_cas:
                if self.store.compare_and_set(store_key, b"", encoded):
                    return record
            else:
                with self._write_lock:
                    if not self.store.get(store_key):
                        self.store.set(store_key, encoded)
                        return record
            log.warning(f"[REGISTRY CREATE] key collision on {record.key} (attempt {attempt}); regenerating")

        raise StoreWriteFailed(f"could not allocate an unused record key after {self.max_key_attempts} attempts")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def transition(self, key: str, new_status: Union[RecordStatus, str], actor: str) -> Record:
        if not isinstance(actor, str) or not actor.strip():
            raise ValidationError("actor must be a non-empty identity")
        target = RecordStatus.parse(new_status)
        if target is RecordStatus.PENDING:
            raise InvalidTransition("pending is an initial state, not a transition target")

        store_key = record_store_key(key)
        raw = self.store.get(store_key)
        if not raw:
            raise NotFound(f"record {key} not found")
        current = RecordCodec.decode(raw, expected_key=key)

        if not current.is_owned_by(actor):
            log.warning(f"[REGISTRY TRANSITION] {actor} is not the owner of {key}")
            raise NotAuthorized(f"{actor} may not transition record {key}")
        pending = require_pending(current)

        if target is RecordStatus.ANALYZED:
            updated = pending.analyzed(self.analyzer.analyze(pending))
        else:
            updated = pending.rejected()

        self._replace_record(store_key, raw, RecordCodec.encode(updated))
        log.info(f"[REGISTRY TRANSITION] key={key} {pending.status.value} -> {updated.status.value}")
        return updated

    def analyze(self, key: str, actor: str) -> Record:
        return self.transition(key, RecordStatus.ANALYZED, actor)

    def reject(self, key: str, actor: str) -> Record:
        return self.transition(key, RecordStatus.REJECTED, actor)

    def _replace_record(self, store_key: str, expected: bytes, encoded: bytes) -> None:
        """Write ``encoded`` only if the record still holds the bytes it was read as."""
        if self.store.supports_cas:
            if self.store.compare_and_set(store_key, expected, encoded):
                return
        else:
            with self._write_lock:
                if self.store.get(store_key) == expected:
                    self.store.set(store_key, encoded)
                    return
        log.warning(f"[REGISTRY TRANSITION] {store_key} changed before write; aborting")
        raise InvalidTransition(f"{store_key} was transitioned concurrently")
