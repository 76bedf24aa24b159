"""
Tiny CLI around the sandbox.

Usage:
  python -m core.cli seed
  python -m core.cli run "SELECT * FROM employees"
  python -m core.cli explain "SELECT * FROM employees WHERE dept = 'Sales'"
  python -m core.cli advise "SELECT * FROM employees ORDER BY salary"
  python -m core.cli translate "list all employees in engineering"
"""
from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from core import advisor, nl2sql
from core.errors import InvalidInput, SqlForgeError
from core.logging_utils import setup_logging
from core.seed import ensure_sample_schema
from core.settings import Settings
from core.sql_exec import ExecutionMode, QueryOutcome, SqlEngine

USAGE = "usage: python -m core.cli <run|explain|advise|translate|seed> [text]"
COMMANDS = ("run", "explain", "advise", "translate", "seed")


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str))


def main(argv: List[str], settings: Optional[Settings] = None) -> int:
    if len(argv) < 2:
        print(USAGE)
        return 2
    cmd = argv[1]
    text = " ".join(argv[2:])
    settings = settings or Settings()
    setup_logging(settings)

    try:
        if cmd != "seed" and cmd in COMMANDS and not text.strip():
            raise InvalidInput("SQL or text must be provided")
        if cmd == "seed":
            engine = SqlEngine.from_settings(settings)
            _emit(asdict(ensure_sample_schema(engine.engine)))
            return 0
        if cmd in ("run", "explain"):
            engine = SqlEngine.from_settings(settings)
            mode = ExecutionMode.EXPLAIN if cmd == "explain" else ExecutionMode.READ
            outcome = engine.execute(text, mode)
            _emit(outcome.dict())
            return 0 if outcome.ok else 1
        if cmd == "advise":
            finding = advisor.analyze(text)
            _emit(finding.dict())
            return 0 if finding.ok else 1
        if cmd == "translate":
            sql, rule = nl2sql.translate_with_rule(text)
            outcome = QueryOutcome.success([], []).with_sql(sql)
            outcome.message = f"OK ({rule})"
            _emit(outcome.dict())
            return 0
    except SqlForgeError as exc:
        _emit(QueryOutcome.failure(str(exc)).dict())
        return 2

    print(f"unknown command: {cmd}")
    return 2


def console_main() -> int:
    return main(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
