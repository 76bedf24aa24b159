"""Bootstrap the sample sandbox schema and its seed rows."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.logging_utils import get_logger, log_event

log = get_logger("seed")

SCHEMA_STATEMENTS: Sequence[str] = (
    "CREATE TABLE IF NOT EXISTS employees (id INT PRIMARY KEY, name VARCHAR(200), dept VARCHAR(100), salary DECIMAL)",
    "CREATE INDEX IF NOT EXISTS idx_employees_dept ON employees(dept)",
    "CREATE TABLE IF NOT EXISTS projects (id INT PRIMARY KEY, name VARCHAR(200), owner_id INT)",
    "CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_id)",
)

SEED_EMPLOYEE_COUNT = 5


@dataclass
class SeedResult:
    """How much of the bootstrap actually ran."""

    created_statements: int = 0
    seeded_rows: int = 0
    failed_statements: int = 0


def sample_employees(count: int = SEED_EMPLOYEE_COUNT) -> List[Dict[str, Any]]:
    return [
        {
            "id": i,
            "name": f"Employee {i}",
            "dept": "Engineering" if i % 2 == 0 else "Sales",
            "salary": 60000 + i * 1000,
        }
        for i in range(1, count + 1)
    ]


def ensure_sample_schema(engine: Engine) -> SeedResult:
    """Create the sample tables if absent and seed employees when empty.

    Each DDL statement runs on its own so one failure does not stop the rest.
    Errors are logged and reported through the result, never raised.
    """

    result = SeedResult()
    try:
        with engine.connect() as conn:
            for stmt in SCHEMA_STATEMENTS:
                try:
                    with conn.begin():
                        conn.execute(text(stmt))
                    result.created_statements += 1
                except SQLAlchemyError as exc:
                    result.failed_statements += 1
                    log_event(
                        log,
                        "seed",
                        "seed.schema.statement_failed",
                        {"statement": stmt, "error": str(exc)},
                        level=logging.WARNING,
                    )

            with conn.begin():
                existing = conn.execute(text("SELECT COUNT(*) FROM employees")).scalar() or 0
                if existing == 0:
                    rows = sample_employees()
                    conn.execute(
                        text(
                            "INSERT INTO employees(id, name, dept, salary) "
                            "VALUES (:id, :name, :dept, :salary)"
                        ),
                        rows,
                    )
                    result.seeded_rows = len(rows)
    except SQLAlchemyError as exc:
        log_event(
            log,
            "seed",
            "seed.failed",
            {"error": str(exc)},
            level=logging.ERROR,
            exc_info=True,
        )
        return result

    log_event(
        log,
        "seed",
        "seed.done",
        {
            "created_statements": result.created_statements,
            "failed_statements": result.failed_statements,
            "seeded_rows": result.seeded_rows,
        },
    )
    return result


__all__ = ["SCHEMA_STATEMENTS", "SeedResult", "ensure_sample_schema", "sample_employees"]
