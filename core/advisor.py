"""Rule-based advisor that reads SQL text and suggests improvements.

There is no cost model here: each rule is a keyword predicate over the
lower-cased statement and contributes at most one tip. Rules run in the
order of ``ADVISOR_RULES`` and the tips keep that order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.logging_utils import get_logger, log_event
from core.time_utils import utc_now_iso

log = get_logger("advisor")

LONG_QUERY_CHARS = 1000
SCORE_CEILING = 100
SCORE_PENALTY_PER_TIP = 10


@dataclass(frozen=True)
class AdvisorRule:
    name: str
    predicate: Callable[[str], bool]
    tip: str


ADVISOR_RULES: Sequence[AdvisorRule] = (
    AdvisorRule(
        "where_index",
        lambda s: "where" in s and "idx_" not in s,
        "Check if WHERE columns are indexed. Consider adding appropriate indexes for selective filters.",
    ),
    AdvisorRule(
        "select_star",
        lambda s: "select *" in s,
        "Avoid SELECT *. Specify columns to reduce I/O and network transfer.",
    ),
    AdvisorRule(
        "order_without_limit",
        lambda s: "order by" in s and "limit" not in s,
        "Consider adding LIMIT when ordering large result sets to avoid full sort spills.",
    ),
    AdvisorRule(
        "join_columns",
        lambda s: "join" in s and "on" in s,
        "Ensure JOIN conditions use indexed columns and correct join types.",
    ),
    AdvisorRule(
        "long_query",
        lambda s: len(s) > LONG_QUERY_CHARS,
        "Query is long; consider breaking it into CTEs for readability and optimizer hints.",
    ),
    AdvisorRule(
        "count_cost",
        lambda s: "count(" in s,
        "COUNT can be expensive on large tables; consider using indexed counters or summarized tables.",
    ),
)


def score_for(tip_count: int) -> int:
    return max(0, SCORE_CEILING - SCORE_PENALTY_PER_TIP * tip_count)


@dataclass
class AdvisorFinding:
    ok: bool = True
    message: Optional[str] = None
    tips: List[str] = field(default_factory=list)
    score: int = 0
    original_sql: Optional[str] = None
    timestamp: Optional[str] = None
    rules: List[str] = field(default_factory=list)

    @classmethod
    def error(cls, message: str, original_sql: Optional[str] = None) -> "AdvisorFinding":
        return cls(ok=False, message=message, original_sql=original_sql, timestamp=utc_now_iso())

    def dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "message": self.message,
            "tips": list(self.tips),
            "score": self.score,
            "originalSql": self.original_sql,
            "timestamp": self.timestamp,
        }


def analyze(sql: Optional[str], rules: Sequence[AdvisorRule] = ADVISOR_RULES) -> AdvisorFinding:
    if sql is None or not sql.strip():
        return AdvisorFinding.error("SQL empty", original_sql=sql)

    s = sql.lower()
    tips: List[str] = []
    fired: List[str] = []
    try:
        for rule in rules:
            if rule.predicate(s):
                tips.append(rule.tip)
                fired.append(rule.name)
    except Exception as exc:
        log_event(
            log,
            "advisor",
            "advisor.failed",
            {"error": str(exc)},
            level=logging.ERROR,
            exc_info=True,
        )
        return AdvisorFinding.error(f"Advice analysis failed: {exc}", original_sql=sql)

    finding = AdvisorFinding(
        tips=tips,
        score=score_for(len(tips)),
        original_sql=sql,
        timestamp=utc_now_iso(),
        rules=fired,
    )
    log_event(log, "advisor", "advisor.done", {"rules": fired, "score": finding.score})
    return finding


__all__ = ["ADVISOR_RULES", "AdvisorFinding", "AdvisorRule", "analyze", "score_for"]
