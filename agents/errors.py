# agents/errors.py
"""Failure types surfaced by the log analysis agents. None of them are retried."""

from typing import Optional


class LogAnalysisError(Exception):
    """Base class for every analysis failure."""


class FetchFailed(LogAnalysisError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthRequired(FetchFailed):
    """Log source answered 401/403; caller should supply (or fix) a bearer token."""


class ParseFailure(LogAnalysisError):
    def __init__(self, message: str, raw_text: str = "", limit: int = 500):
        self.raw_text = (raw_text or "")[:limit]
        if self.raw_text:
            message = f"{message}. Raw output: {self.raw_text!r}"
        super().__init__(message)


class TimeRangeParseError(ParseFailure):
    pass


class ScheduleError(LogAnalysisError):
    pass


class ModelCallFailed(LogAnalysisError):
    """The LLM request itself failed (network, timeout, API error)."""
