from __future__ import annotations

from sqlalchemy import create_engine, text

from core.seed import SCHEMA_STATEMENTS, ensure_sample_schema, sample_employees


def _engine(tmp_path):
    return create_engine(f"sqlite:///{tmp_path / 'seed.db'}", future=True)


def test_seed_creates_schema_and_rows(tmp_path):
    engine = _engine(tmp_path)
    result = ensure_sample_schema(engine)
    assert result.created_statements == len(SCHEMA_STATEMENTS)
    assert result.seeded_rows == 5

    with engine.connect() as conn:
        rows = conn.execute(text("SELECT id, name, dept, salary FROM employees ORDER BY id")).fetchall()
        indexes = {
            r[0]
            for r in conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'index'"))
        }
    assert [tuple(r) for r in rows] == [
        (1, "Employee 1", "Sales", 61000),
        (2, "Employee 2", "Engineering", 62000),
        (3, "Employee 3", "Sales", 63000),
        (4, "Employee 4", "Engineering", 64000),
        (5, "Employee 5", "Sales", 65000),
    ]
    assert {"idx_employees_dept", "idx_projects_owner"} <= indexes


def test_seed_is_idempotent(tmp_path):
    engine = _engine(tmp_path)
    ensure_sample_schema(engine)
    again = ensure_sample_schema(engine)
    assert again.seeded_rows == 0
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM employees")).scalar() == 5


def test_seed_failure_is_not_fatal(tmp_path):
    bad = create_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'x.db'}", future=True)
    result = ensure_sample_schema(bad)
    assert result.seeded_rows == 0


def test_sample_employees_are_deterministic():
    assert sample_employees() == sample_employees()
    assert len(sample_employees()) == 5
