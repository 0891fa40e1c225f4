"""
caseledger_core.config
----------------------
Runtime configuration. Every setting may be passed in a plain dict or taken
from the environment; dict values win.

    provider            CASELEDGER_STORE_PROVIDER   memory | sqlite | http
    sqlite_path         CASELEDGER_DB_PATH
    http_url            CASELEDGER_STORE_URL
    http_timeout        CASELEDGER_STORE_TIMEOUT
    index_key           CASELEDGER_INDEX_KEY
    max_index_retries   CASELEDGER_INDEX_RETRIES
    encryption          CASELEDGER_ENCRYPTION       aesgcm | simulated
    encryption_key      CASELEDGER_ENCRYPTION_KEY   base64, 32 bytes
    log_level           CASELEDGER_LOG_LEVEL        DEBUG | INFO | WARNING | ...
"""

from __future__ import annotations
import os

from .analysis import Analyzer, SimulatedAnalyzer
from .constants import DEFAULT_MAX_INDEX_RETRIES, INDEX_KEY
from .crypto import AESGCMGateway, EncryptionGateway, SimulatedFHEGateway, generate_key
from .logger import get_logger, set_log_level
from .registry import RecordRegistry
from .store import load_store

log = get_logger("CaseLedger.Config")


def _setting(config: dict, name: str, env: str, default=None):
    value = config.get(name)
    if value is None or value == "":
        value = os.getenv(env, default)
    return value


def load_gateway(config: dict | None = None) -> EncryptionGateway:
    config = config or {}
    mode = str(_setting(config, "encryption", "CASELEDGER_ENCRYPTION", "aesgcm")).lower()

    if mode == "simulated":
        return SimulatedFHEGateway()

    if mode == "aesgcm":
        key_b64 = _setting(config, "encryption_key", "CASELEDGER_ENCRYPTION_KEY")
        if key_b64:
            return AESGCMGateway.from_b64(key_b64)
        log.warning("[CONFIG] no encryption key configured; using an ephemeral AES-GCM key")
        return AESGCMGateway(generate_key())

    raise ValueError(f"Unknown encryption mode: {mode}")


def build_registry(config: dict | None = None, analyzer: Analyzer | None = None) -> RecordRegistry:
    """Wire store, encryption gateway, analyzer and registry from config/env."""
    config = config or {}
    level = _setting(config, "log_level", "CASELEDGER_LOG_LEVEL")
    if level:
        set_log_level(level)
    store = load_store(config)
    gateway = load_gateway(config)
    index_key = _setting(config, "index_key", "CASELEDGER_INDEX_KEY", INDEX_KEY)
    retries = int(_setting(config, "max_index_retries", "CASELEDGER_INDEX_RETRIES", DEFAULT_MAX_INDEX_RETRIES))

    log.info(f"[CONFIG] store={store.name} encryption={gateway.name} index_key={index_key} retries={retries}")
    return RecordRegistry(
        store,
        gateway,
        analyzer=analyzer or SimulatedAnalyzer(),
        index_key=index_key,
        max_index_retries=retries,
    )
