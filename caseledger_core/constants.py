# caseledger_core/constants.py

SCHEMA_VERSION = "1.0"

# Persisted layout inside the store's flat namespace
INDEX_KEY = "case_keys"
RECORD_PREFIX = "record:"

DEFAULT_MAX_INDEX_RETRIES = 5

# Reference analysis vocabulary
OUTCOME_LABELS = ("Favorable", "Unfavorable", "Neutral", "Complex")
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100
ANALYSIS_CONFIDENCE_RANGE = (60, 99)
