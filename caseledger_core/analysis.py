# caseledger_core/analysis.py
from __future__ import annotations
import random
from typing import Optional

from .constants import ANALYSIS_CONFIDENCE_RANGE, OUTCOME_LABELS
from .models import Outcome, PendingRecord


class Analyzer:
    """Produces the outcome attached when a pending record is analyzed."""
    name: str = "base"

    def analyze(self, record: PendingRecord) -> Outcome:
        raise NotImplementedError


class SimulatedAnalyzer(Analyzer):
    """
    Reference behaviour: a label drawn from the fixed vocabulary and a
    confidence in [60, 99]. Stands in for a homomorphic computation over the
    encrypted payload; pass ``rng`` for deterministic results.
    """
    name = "simulated"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def analyze(self, record: PendingRecord) -> Outcome:
        lo, hi = ANALYSIS_CONFIDENCE_RANGE
        return Outcome(label=self.rng.choice(OUTCOME_LABELS), confidence=self.rng.randint(lo, hi))
