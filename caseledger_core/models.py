# caseledger_core/models.py
"""
caseledger_core.models
----------------------
Record model for submitted cases.

A record is one of three variants, one per workflow status:

    PendingRecord  ──analyze──▶ AnalyzedRecord   (carries an Outcome)
         │
         └──────reject───────▶ RejectedRecord

Only AnalyzedRecord has an ``outcome`` attribute, so "outcome present iff
analyzed" holds by construction. All variants are frozen; a transition
produces a new record value.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Union

from .constants import MIN_CONFIDENCE, MAX_CONFIDENCE
from .errors import InvalidTransition, ValidationError


class RecordStatus(str, Enum):
    PENDING = "pending"
    ANALYZED = "analyzed"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Union[str, "RecordStatus"]) -> "RecordStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(f"unknown record status: {value!r}") from None


@dataclass(frozen=True)
class Outcome:
    """Result descriptor attached to an analyzed record."""
    label: str
    confidence: int

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label:
            raise ValidationError(f"outcome label must be a non-empty string, got {self.label!r}")
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, int):
            raise ValidationError(f"outcome confidence must be an integer, got {self.confidence!r}")
        if not MIN_CONFIDENCE <= self.confidence <= MAX_CONFIDENCE:
            raise ValidationError(f"outcome confidence out of range: {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class _RecordBase:
    key: str
    payload: bytes
    created_at: int
    owner: str
    category: str

    status = RecordStatus.PENDING  # overridden per variant; not a dataclass field

    def is_owned_by(self, actor: str) -> bool:
        # Wallet identities are hex addresses; compare case-insensitively
        return isinstance(actor, str) and bool(actor.strip()) and actor.strip().lower() == self.owner.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d


@dataclass(frozen=True)
class PendingRecord(_RecordBase):
    status = RecordStatus.PENDING

    def analyzed(self, outcome: Outcome) -> "AnalyzedRecord":
        return AnalyzedRecord(
            key=self.key,
            payload=self.payload,
            created_at=self.created_at,
            owner=self.owner,
            category=self.category,
            outcome=outcome,
        )

    def rejected(self) -> "RejectedRecord":
        return RejectedRecord(
            key=self.key,
            payload=self.payload,
            created_at=self.created_at,
            owner=self.owner,
            category=self.category,
        )


@dataclass(frozen=True)
class AnalyzedRecord(_RecordBase):
    outcome: Outcome = None  # type: ignore[assignment]

    status = RecordStatus.ANALYZED

    def __post_init__(self):
        if not isinstance(self.outcome, Outcome):
            raise ValidationError("analyzed record requires an outcome")


@dataclass(frozen=True)
class RejectedRecord(_RecordBase):
    status = RecordStatus.REJECTED


Record = Union[PendingRecord, AnalyzedRecord, RejectedRecord]


def require_pending(record: Record) -> PendingRecord:
    """Return the record if it may still transition, else raise InvalidTransition."""
    if not isinstance(record, PendingRecord):
        raise InvalidTransition(
            f"record {record.key} is {record.status.value}; only pending records can transition"
        )
    return record
