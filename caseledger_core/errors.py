# caseledger_core/errors.py
from __future__ import annotations
from typing import Optional


class RegistryError(Exception):
    """Base class for every error the record registry reports."""
    kind: str = "registry_error"


class ValidationError(RegistryError):
    kind = "validation_error"


class EncryptionFailed(RegistryError):
    kind = "encryption_failed"


class StoreError(RegistryError):
    kind = "store_error"

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class StoreReadFailed(StoreError):
    kind = "store_read_failed"


class StoreWriteFailed(StoreError):
    kind = "store_write_failed"


class IndexConflict(RegistryError):
    """Optimistic retry budget on the index key was exhausted."""
    kind = "index_conflict"

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class NotFound(RegistryError):
    kind = "not_found"


class NotAuthorized(RegistryError):
    kind = "not_authorized"


class InvalidTransition(RegistryError):
    kind = "invalid_transition"


class DecodeError(RegistryError):
    kind = "decode_error"
