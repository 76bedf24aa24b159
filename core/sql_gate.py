"""Allow/deny gate deciding whether a raw statement may reach the engine.

The default classifier is keyword based and deliberately coarse: a denied
keyword anywhere in the text (string literals and comments included) rejects
the statement even when it starts with SELECT. Callers depend only on the
``StatementClassifier`` protocol so a parser-backed implementation can be
swapped in with ``set_default_classifier``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Protocol

from core.errors import InvalidInput, PolicyRejected

ALLOWED_STATEMENT_RE = re.compile(r"^\s*(SELECT|WITH|EXPLAIN)\b", re.IGNORECASE)
DISALLOWED_RE = re.compile(
    r"\b(DROP|ALTER|TRUNCATE|DELETE|UPDATE|INSERT|REPLACE|MERGE|CREATE\s+TABLE)\b",
    re.IGNORECASE,
)

REASON_EMPTY = "empty"
REASON_DESTRUCTIVE = "destructive"
REASON_NOT_READ = "not_read"

MESSAGES = {
    REASON_EMPTY: "SQL must not be empty",
    REASON_DESTRUCTIVE: "Destructive or schema-changing statements are not allowed in the sandbox.",
    REASON_NOT_READ: "Only SELECT/WITH/EXPLAIN statements are allowed in the sandbox.",
}


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    keyword: Optional[str] = None

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: str, keyword: Optional[str] = None) -> "GateDecision":
        return cls(allowed=False, reason=reason, message=MESSAGES[reason], keyword=keyword)


class StatementClassifier(Protocol):
    def classify(self, sql: str) -> GateDecision:
        ...


class KeywordStatementClassifier:
    """Denylist-first, then leading-keyword allowlist."""

    def __init__(
        self,
        allowed: re.Pattern = ALLOWED_STATEMENT_RE,
        disallowed: re.Pattern = DISALLOWED_RE,
    ) -> None:
        self.allowed = allowed
        self.disallowed = disallowed

    def classify(self, sql: str) -> GateDecision:
        trimmed = (sql or "").strip()
        if not trimmed:
            return GateDecision.reject(REASON_EMPTY)

        hit = self.disallowed.search(trimmed)
        if hit:
            keyword = re.sub(r"\s+", " ", hit.group(1)).upper()
            return GateDecision.reject(REASON_DESTRUCTIVE, keyword=keyword)

        if not self.allowed.match(trimmed):
            return GateDecision.reject(REASON_NOT_READ)
        return GateDecision.allow()


_default_classifier: StatementClassifier = KeywordStatementClassifier()


def get_default_classifier() -> StatementClassifier:
    return _default_classifier


def set_default_classifier(classifier: StatementClassifier) -> StatementClassifier:
    """Install ``classifier`` as the process-wide gate; returns the previous one."""

    global _default_classifier
    previous = _default_classifier
    _default_classifier = classifier
    return previous


def classify(sql: str, classifier: Optional[StatementClassifier] = None) -> GateDecision:
    return (classifier or _default_classifier).classify(sql)


def ensure_allowed(sql: str, classifier: Optional[StatementClassifier] = None) -> str:
    """Return the trimmed statement or raise when the gate rejects it."""

    if sql is None or not str(sql).strip():
        raise InvalidInput(MESSAGES[REASON_EMPTY])
    decision = classify(sql, classifier)
    if not decision.allowed:
        if decision.reason == REASON_EMPTY:
            raise InvalidInput(decision.message or MESSAGES[REASON_EMPTY])
        raise PolicyRejected(decision.message or MESSAGES[REASON_NOT_READ], reason=decision.reason)
    return str(sql).strip()


__all__ = [
    "ALLOWED_STATEMENT_RE",
    "DISALLOWED_RE",
    "GateDecision",
    "StatementClassifier",
    "KeywordStatementClassifier",
    "classify",
    "ensure_allowed",
    "get_default_classifier",
    "set_default_classifier",
    "REASON_DESTRUCTIVE",
    "REASON_NOT_READ",
    "REASON_EMPTY",
]
