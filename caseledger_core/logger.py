import logging, json, sys, time, os

LOGGER_PREFIX = "CaseLedger"


def resolve_level(level) -> int:
    """Map a level name or number to a logging level; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name="caseledger", level=None, to_file=None):
    """Unified structured logger for all CaseLedger components."""
    logger = logging.getLogger(name)
    if level is None:
        level = os.getenv("CASELEDGER_LOG_LEVEL", "INFO")
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # UTC timestamps
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def set_log_level(level) -> int:
    """Apply ``level`` to every CaseLedger logger created so far."""
    resolved = resolve_level(level)
    for name in list(logging.root.manager.loggerDict):
        if name == LOGGER_PREFIX or name.startswith(LOGGER_PREFIX + "."):
            logging.getLogger(name).setLevel(resolved)
    return resolved
