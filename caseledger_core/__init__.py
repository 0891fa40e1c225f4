"""
CaseLedger Core Package
=======================
Record registry for encrypted case submissions kept in a primitive
get/set key-value store (e.g. an on-chain key-value contract).

Provides:
- Record model with per-status variants (pending / analyzed / rejected)
- Index and record codecs for the persisted byte layout
- Pluggable key-value store providers (memory, SQLite, HTTP gateway)
- AES-GCM encryption gateway and pluggable case analysis
- RecordRegistry with concurrency-safe index maintenance
"""

from .errors import (
    RegistryError,
    ValidationError,
    EncryptionFailed,
    StoreError,
    StoreReadFailed,
    StoreWriteFailed,
    IndexConflict,
    NotFound,
    NotAuthorized,
    InvalidTransition,
    DecodeError,
)
from .models import RecordStatus, Outcome, PendingRecord, AnalyzedRecord, RejectedRecord
from .registry import RecordRegistry, ListReport
from .config import build_registry

__all__ = [
    "RegistryError",
    "ValidationError",
    "EncryptionFailed",
    "StoreError",
    "StoreReadFailed",
    "StoreWriteFailed",
    "IndexConflict",
    "NotFound",
    "NotAuthorized",
    "InvalidTransition",
    "DecodeError",
    "RecordStatus",
    "Outcome",
    "PendingRecord",
    "AnalyzedRecord",
    "RejectedRecord",
    "RecordRegistry",
    "ListReport",
    "build_registry",
]
