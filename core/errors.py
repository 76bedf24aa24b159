"""Error types surfaced by the query gate, engine and translators."""
from __future__ import annotations

from typing import Optional


class SqlForgeError(Exception):
    """Base class for client-facing sqlforge errors."""

    status_code = 400


class InvalidInput(SqlForgeError, ValueError):
    """Blank or missing SQL / natural-language text."""


class PolicyRejected(SqlForgeError, ValueError):
    """The statement gate refused to let a statement run."""

    def __init__(self, message: str, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason


__all__ = ["SqlForgeError", "InvalidInput", "PolicyRejected"]
