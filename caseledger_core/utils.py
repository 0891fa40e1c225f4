"""
caseledger_core.utils
---------------------
Lightweight helpers for record key generation, timestamping, base64 utilities,
and canonical JSON serialization.
"""

from __future__ import annotations
import base64, json, secrets, time
from typing import Any, Dict

from .constants import RECORD_PREFIX


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    # validate=True: stray characters are a decode error, not silently dropped
    return base64.b64decode(s.encode("ascii"), validate=True)


def now_epoch() -> int:
    # Integer seconds, UTC epoch
    return int(time.time())


def now_ms() -> int:
    return int(time.time() * 1000)


def new_record_key() -> str:
    """
    Millisecond timestamp plus a 128-bit random suffix.

    The timestamp keeps keys roughly time-ordered for humans; uniqueness
    comes from the suffix, so two creators in the same millisecond still
    draw from a 2**128 space.
    """
    return f"{now_ms()}-{secrets.token_hex(16)}"


def record_store_key(key: str) -> str:
    return f"{RECORD_PREFIX}{key}"


def canonical_json(obj: Dict[str, Any]) -> bytes:
    # Deterministic, minimal JSON so equal records encode to equal bytes
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")
