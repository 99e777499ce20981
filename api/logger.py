# api/logger.py
"""
Operational logger for the log-serving API.

Every call echoes to the console (stdlib logging) and appends an entry
to the log store, so the API's own activity shows up in /api/logs.
"""

import logging
from typing import Optional

from api.log_store import LogStore

_console = logging.getLogger("api")

_PY_LEVELS = {"INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}
_ALIASES = {"WARNING": "WARN", "ERR": "ERROR", "DEBUG": "INFO"}


def normalize_level(level: str) -> str:
    level = str(level).strip().upper()
    return _ALIASES.get(level, level)


class StoreLogger:
    def __init__(self, store: LogStore):
        self.store = store

    def _emit(self, level: str, py_level: int, message: str, status: Optional[str] = None):
        _console.log(py_level, message)
        self.store.append(level, message, status)

    def record(self, level: str, message: str, status: Optional[str] = None):
        """Write an entry at a caller-supplied level (write endpoint)."""
        level = normalize_level(level)
        self._emit(level, _PY_LEVELS.get(level, logging.INFO), message, status)

    def log(self, message: str, status: Optional[str] = None):
        self._emit("INFO", logging.INFO, message, status)

    def info(self, message: str, status: Optional[str] = None):
        self._emit("INFO", logging.INFO, message, status)

    def warn(self, message: str, status: Optional[str] = None):
        self._emit("WARN", logging.WARNING, message, status)

    def error(self, message: str, status: Optional[str] = None):
        self._emit("ERROR", logging.ERROR, message, status)
