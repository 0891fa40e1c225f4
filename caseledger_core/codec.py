"""
caseledger_core.codec
---------------------
Byte encodings for the two kinds of entries the registry keeps in the store:

- IndexCodec: the ordered set of record keys stored under the index key,
  encoded as a canonical JSON array of strings.
- RecordCodec: one record stored under ``record:<key>``, encoded as canonical
  JSON with the opaque payload in base64.

Both decoders raise DecodeError for anything malformed; they never return a
half-parsed value.
"""

from __future__ import annotations
import json
from typing import Any, Dict, Iterable, List

from .constants import SCHEMA_VERSION
from .errors import DecodeError, ValidationError
from .models import (
    AnalyzedRecord,
    Outcome,
    PendingRecord,
    Record,
    RecordStatus,
    RejectedRecord,
)
from .utils import b64d, b64e, canonical_json


def _load_json(data: bytes, what: str) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"{what} is not valid UTF-8 JSON: {e}") from e


class IndexCodec:

    @staticmethod
    def encode(keys: Iterable[str]) -> bytes:
        return json.dumps(list(IndexCodec.normalize(keys)), separators=(",", ":")).encode("utf-8")

    @staticmethod
    def decode(data: bytes) -> List[str]:
        """Empty bytes decode to an empty index (first-use state)."""
        if not data:
            return []
        keys = _load_json(data, "index")
        if not isinstance(keys, list):
            raise DecodeError(f"index must be a JSON array, got {type(keys).__name__}")
        for k in keys:
            if not isinstance(k, str) or not k:
                raise DecodeError(f"index entry must be a non-empty string, got {k!r}")
        return IndexCodec.normalize(keys)

    @staticmethod
    def normalize(keys: Iterable[str]) -> List[str]:
        # Ordered set: first occurrence wins
        seen = set()
        out = []
        for k in keys:
            if k not in seen:
                seen.add(k)
                out.append(k)
        return out

    @staticmethod
    def append(keys: List[str], key: str) -> List[str]:
        """Idempotent append; returns a new list."""
        if key in keys:
            return list(keys)
        return list(keys) + [key]


class RecordCodec:

    @staticmethod
    def to_dict(record: Record) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "v": SCHEMA_VERSION,
            "key": record.key,
            "owner": record.owner,
            "category": record.category,
            "created_at": record.created_at,
            "status": record.status.value,
            "payload": b64e(record.payload),
        }
        if isinstance(record, AnalyzedRecord):
            d["outcome"] = record.outcome.to_dict()
        return d

    @staticmethod
    def encode(record: Record) -> bytes:
        return canonical_json(RecordCodec.to_dict(record))

    @staticmethod
    def decode(data: bytes, expected_key: str = None) -> Record:
        if not data:
            raise DecodeError("record bytes are empty")
        d = _load_json(data, "record")
        if not isinstance(d, dict):
            raise DecodeError(f"record must be a JSON object, got {type(d).__name__}")
        record = RecordCodec.from_dict(d)
        if expected_key is not None and record.key != expected_key:
            raise DecodeError(f"record key mismatch: stored {record.key!r}, expected {expected_key!r}")
        return record

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> Record:
        try:
            key = d["key"]
            owner = d["owner"]
            category = d["category"]
            created_at = d["created_at"]
            status = RecordStatus(d.get("status", RecordStatus.PENDING.value))
            payload = b64d(d["payload"])
        except KeyError as e:
            raise DecodeError(f"record missing field {e.args[0]!r}") from e
        except (ValueError, TypeError, AttributeError) as e:
            raise DecodeError(f"record field invalid: {e}") from e

        for name, value in (("key", key), ("owner", owner), ("category", category)):
            if not isinstance(value, str) or not value:
                raise DecodeError(f"record field {name!r} must be a non-empty string")
        if isinstance(created_at, bool) or not isinstance(created_at, int):
            raise DecodeError(f"record created_at must be an integer, got {created_at!r}")

        common = dict(key=key, payload=payload, created_at=created_at, owner=owner, category=category)
        outcome = d.get("outcome")

        if status is RecordStatus.ANALYZED:
            if not isinstance(outcome, dict):
                raise DecodeError("analyzed record has no outcome")
            try:
                return AnalyzedRecord(outcome=Outcome(label=outcome.get("label"), confidence=outcome.get("confidence")), **common)
            except ValidationError as e:
                raise DecodeError(f"analyzed record outcome invalid: {e}") from e

        if outcome is not None:
            raise DecodeError(f"{status.value} record must not carry an outcome")
        if status is RecordStatus.REJECTED:
            return RejectedRecord(**common)
        return PendingRecord(**common)
