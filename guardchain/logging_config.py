"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
import re
from datetime import datetime
from typing import FrozenSet, Optional, Tuple  # noqa: UP035

from guardchain.constants import DEFAULT_LOG_LEVEL, LOG_DIR

# ── Secret redaction filter ──────────────────────────────────────────────

_REDACTED = "***REDACTED***"


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces registered secret values with a placeholder.

    Holds only caller-supplied secrets (configured remember-me and anonymous
    keys, passwords from chain config), so the set is bounded by
    configuration rather than by the number of chains built.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: FrozenSet[str] = frozenset()
        self._pattern: Optional[re.Pattern[str]] = None

    @property
    def secrets(self) -> FrozenSet[str]:
        return self._secrets

    def register(self, value: str) -> None:
        """Register a secret value for redaction."""
        if not value or len(value) < 4 or value in self._secrets:  # skip trivially short values
            return
        self._secrets = self._secrets | {value}
        # Longest-first so overlapping secrets redact fully
        escaped = sorted((re.escape(s) for s in self._secrets), key=len, reverse=True)
        self._pattern = re.compile("|".join(escaped))

    def redact(self, text: str) -> str:
        """Return *text* with every registered secret replaced."""
        if self._pattern is None:
            return text
        return self._pattern.sub(_REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is None:
            return True
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: self.redact(v) if isinstance(v, str) else v for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self.redact(a) if isinstance(a, str) else a for a in record.args)
        return True


# Module-level singleton so configurators can register keys at build time.
secret_redaction_filter = SecretRedactionFilter()

# Child loggers (guardchain.builder, guardchain.web.*, ...) propagate here.
APP_LOGGER = "guardchain"

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple_file": {
            "format": "%(asctime)s - %(name)30s:%(lineno)-4d - %(levelname)-7s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "file_handler": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple_file",
            "filename": "temp_log_name.log",
            "encoding": "utf-8",
        },
    },
    "loggers": {
        APP_LOGGER: {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
    },
    "root": {
        "handlers": ["file_handler"],
        "level": "WARNING",
    },
}

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(log_lvl_str: str = DEFAULT_LOG_LEVEL, *, log_dir: str = LOG_DIR) -> Tuple[str, str]:
    """
    Route Guardchain logging to a timestamped file under *log_dir*.

    An unknown level name falls back to INFO.  The root logger stays at
    WARNING unless DEBUG is requested.  Every configured handler gets the
    :data:`secret_redaction_filter`.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    if log_lvl_valid not in _VALID_LEVELS:
        logging.getLogger(__name__).warning("Invalid log level '%s'; using INFO", log_lvl_str)
        log_lvl_valid = "INFO"

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(log_dir, exist_ok=True)
    log_fpath = os.path.join(log_dir, f"guardchain_{ts}_{log_lvl_valid}.log")

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)
    log_cfg["handlers"]["file_handler"]["filename"] = log_fpath
    log_cfg["handlers"]["file_handler"]["filters"] = ["redact_secrets"]
    log_cfg["filters"] = {"redact_secrets": {"()": lambda: secret_redaction_filter}}
    log_cfg["loggers"][APP_LOGGER]["level"] = log_lvl_valid
    log_cfg["root"]["level"] = log_lvl_valid if log_lvl_valid == "DEBUG" else "WARNING"

    logging.config.dictConfig(log_cfg)
    return log_fpath, log_lvl_valid
