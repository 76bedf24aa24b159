from __future__ import annotations

import pytest

from core.errors import InvalidInput, PolicyRejected
from core.sql_gate import (
    GateDecision,
    KeywordStatementClassifier,
    REASON_DESTRUCTIVE,
    REASON_EMPTY,
    REASON_NOT_READ,
    classify,
    ensure_allowed,
    get_default_classifier,
    set_default_classifier,
)


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM employees",
        "select id from employees",
        "  WITH t AS (SELECT 1) SELECT * FROM t",
        "EXPLAIN SELECT * FROM employees",
        "SELECT name\nFROM employees\nWHERE dept = 'Sales'",
    ],
)
def test_read_statements_are_allowed(sql):
    assert classify(sql).allowed is True


@pytest.mark.parametrize(
    "sql",
    [
        "DROP TABLE employees",
        "drop table employees",
        "ALTER TABLE employees ADD COLUMN x INT",
        "TRUNCATE TABLE projects",
        "DELETE FROM employees",
        "UPDATE employees SET salary = 0",
        "INSERT INTO employees VALUES (9, 'x', 'y', 1)",
        "REPLACE INTO employees VALUES (9, 'x', 'y', 1)",
        "MERGE INTO employees USING x ON (1=1)",
        "create   table t (id int)",
    ],
)
def test_destructive_statements_are_rejected(sql):
    decision = classify(sql)
    assert decision.allowed is False
    assert decision.reason == REASON_DESTRUCTIVE
    assert "Destructive" in decision.message


def test_denylist_wins_over_allowlist_prefix():
    decision = classify("SELECT * FROM employees WHERE name = 'please delete me'")
    assert decision.allowed is False
    assert decision.reason == REASON_DESTRUCTIVE
    assert decision.keyword == "DELETE"


def test_keyword_must_sit_on_a_word_boundary():
    assert classify("SELECT updated_at, dropped FROM audit").allowed is True


@pytest.mark.parametrize("sql", ["SHOW TABLES", "PRAGMA table_info(employees)", "VALUES (1)", "(SELECT 1)"])
def test_unrecognized_statements_are_rejected(sql):
    decision = classify(sql)
    assert decision.allowed is False
    assert decision.reason == REASON_NOT_READ
    assert decision.message == "Only SELECT/WITH/EXPLAIN statements are allowed in the sandbox."


def test_blank_statement_is_rejected_as_empty():
    assert classify("   ").reason == REASON_EMPTY


def test_ensure_allowed_returns_trimmed_sql():
    assert ensure_allowed("  SELECT 1  ") == "SELECT 1"


def test_ensure_allowed_raises_typed_errors():
    with pytest.raises(InvalidInput):
        ensure_allowed("")
    with pytest.raises(InvalidInput):
        ensure_allowed(None)
    with pytest.raises(PolicyRejected) as info:
        ensure_allowed("DROP TABLE employees")
    assert info.value.reason == REASON_DESTRUCTIVE
    with pytest.raises(PolicyRejected) as info:
        ensure_allowed("SHOW TABLES")
    assert info.value.reason == REASON_NOT_READ


def test_default_classifier_is_replaceable():
    class AllowNothing:
        def classify(self, sql):
            return GateDecision.reject(REASON_NOT_READ)

    previous = set_default_classifier(AllowNothing())
    try:
        assert classify("SELECT 1").allowed is False
    finally:
        set_default_classifier(previous)
    assert isinstance(get_default_classifier(), KeywordStatementClassifier)
    assert classify("SELECT 1").allowed is True
