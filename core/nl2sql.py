"""Heuristic natural-language to SQL mapping for the sample schema.

Only a closed set of phrasings is understood. Rules are tried in order; a
rule whose builder returns ``None`` passes to the next one, and anything
left over becomes the fallback listing.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Sequence, Tuple

from core.errors import InvalidInput
from core.logging_utils import get_logger, log_event

log = get_logger("nl2sql")

TOP_SALARY_SQL = "SELECT * FROM employees ORDER BY salary DESC LIMIT 10"
DEPT_SQL = "SELECT * FROM employees WHERE dept = '{dept}' LIMIT 100"
COUNT_SQL = "SELECT COUNT(*) AS total_employees FROM employees"
OWNER_SQL = (
    "SELECT p.* FROM projects p JOIN employees e ON p.owner_id = e.id "
    "WHERE e.name LIKE '%{who}%'"
)
FALLBACK_SQL = "SELECT * FROM employees LIMIT 50"
FALLBACK_RULE = "fallback"


def extract_after(text: str, marker: str) -> Optional[str]:
    """First whitespace-delimited token after the first ``marker``."""

    idx = text.find(marker)
    if idx < 0:
        return None
    rest = text[idx + len(marker):].strip()
    parts = rest.split(None, 1)
    return parts[0] if parts else None


def capitalize_words(s: str) -> str:
    return " ".join(p[:1].upper() + p[1:] for p in s.split())


def escape_literal(s: str) -> str:
    return s.replace("'", "''")


def _literal_after(text: str, marker: str) -> Optional[str]:
    token = extract_after(text, marker)
    if not token:
        return None
    return escape_literal(capitalize_words(token))


def _department(text: str) -> Optional[str]:
    dept = _literal_after(text, "in ")
    return DEPT_SQL.format(dept=dept) if dept else None


def _owner(text: str) -> Optional[str]:
    who = _literal_after(text, "owned by ")
    return OWNER_SQL.format(who=who) if who else None


@dataclass(frozen=True)
class TranslationRule:
    name: str
    pattern: Pattern[str]
    build: Callable[[str], Optional[str]]

    def apply(self, text: str) -> Optional[str]:
        if not self.pattern.search(text):
            return None
        return self.build(text)


TRANSLATION_RULES: Sequence[TranslationRule] = (
    TranslationRule(
        "top_salary",
        re.compile(r"(top|highest) .*salary"),
        lambda _t: TOP_SALARY_SQL,
    ),
    TranslationRule("department", re.compile(r"list .*employees.*in "), _department),
    TranslationRule("count", re.compile(r"count .*employees"), lambda _t: COUNT_SQL),
    TranslationRule("owner", re.compile(r"projects owned by "), _owner),
)


def translate_with_rule(
    text: Optional[str],
    rules: Sequence[TranslationRule] = TRANSLATION_RULES,
) -> Tuple[str, str]:
    """Return ``(sql, rule_name)`` for ``text``."""

    if text is None or not text.strip():
        raise InvalidInput("Text cannot be empty")

    t = text.strip().lower()
    for rule in rules:
        sql = rule.apply(t)
        if sql is not None:
            log_event(log, "nl2sql", "nl2sql.match", {"rule": rule.name, "text_len": len(t)})
            return sql, rule.name

    log_event(log, "nl2sql", "nl2sql.fallback", {"text_len": len(t)})
    return FALLBACK_SQL, FALLBACK_RULE


def translate(text: Optional[str]) -> str:
    return translate_with_rule(text)[0]


__all__ = [
    "FALLBACK_RULE",
    "FALLBACK_SQL",
    "TRANSLATION_RULES",
    "TranslationRule",
    "capitalize_words",
    "escape_literal",
    "extract_after",
    "translate",
    "translate_with_rule",
]
