from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from datetime import date, datetime, time as dt_time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from core.logging_utils import get_logger, log_event
from core.sql_gate import StatementClassifier, ensure_allowed
from core.time_utils import utc_now_iso

log = get_logger("sql_exec")

DEFAULT_ROW_LIMIT = 5000
DEFAULT_TIMEOUT_SECONDS = 10.0

# SQLite opcodes between deadline checks
_PROGRESS_STEPS = 1000

_ENGINES: Dict[str, Engine] = {}
_ENGINES_LOCK = threading.Lock()


def get_engine_for_url(url: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Engine:
    """Create or reuse an Engine for the provided SQLAlchemy URL."""

    if not url:
        raise ValueError("Database URL must be provided")

    key = f"url::{url}::{timeout}"
    if key in _ENGINES:
        return _ENGINES[key]

    with _ENGINES_LOCK:
        if key in _ENGINES:
            return _ENGINES[key]

        parsed = make_url(url)
        kwargs: Dict[str, Any] = {"future": True}
        if parsed.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"timeout": timeout, "check_same_thread": False}
            database = parsed.database or ""
            if database in ("", ":memory:"):
                kwargs["poolclass"] = StaticPool
            else:
                Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(url, **kwargs)
        _ENGINES[key] = engine
        return engine


def dispose_engines() -> None:
    with _ENGINES_LOCK:
        for engine in _ENGINES.values():
            engine.dispose()
        _ENGINES.clear()


class ExecutionMode(str, Enum):
    READ = "read"
    EXPLAIN = "explain"

    @classmethod
    def parse(cls, value: Any) -> "ExecutionMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.EXPLAIN.value:
            return cls.EXPLAIN
        return cls.READ


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date, dt_time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return value


@dataclass
class QueryOutcome:
    """Normalised result of running one statement."""

    ok: bool
    message: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    row_count: int = 0
    truncated: bool = False
    update_count: Optional[int] = None
    sql: Optional[str] = None
    timestamp: str = field(default_factory=utc_now_iso)

    @classmethod
    def success(
        cls,
        rows: List[Dict[str, Any]],
        columns: List[str],
        *,
        truncated: bool = False,
    ) -> "QueryOutcome":
        return cls(
            ok=True,
            message="OK",
            rows=rows,
            columns=columns,
            row_count=len(rows),
            truncated=truncated,
        )

    @classmethod
    def updated(cls, count: int) -> "QueryOutcome":
        return cls(ok=True, message=f"Update count: {count}", update_count=count)

    @classmethod
    def failure(cls, message: str) -> "QueryOutcome":
        return cls(ok=False, message=message)

    def with_sql(self, sql: Optional[str]) -> "QueryOutcome":
        self.sql = sql
        return self

    def dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "message": self.message,
            "timestamp": self.timestamp,
            "rows": self.rows,
            "rowCount": self.row_count,
            "columns": self.columns,
            "truncated": self.truncated,
            "sql": self.sql,
        }


class _Deadline:
    """Aborts a running SQLite statement once ``seconds`` have elapsed."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.expired = False
        self._expires_at = 0.0

    def _check(self) -> int:
        if time.monotonic() > self._expires_at:
            self.expired = True
            return 1
        return 0

    @contextmanager
    def armed(self, conn: Connection) -> Iterator[None]:
        raw = conn.connection.driver_connection
        setter = getattr(raw, "set_progress_handler", None)
        if setter is None:
            yield
            return
        self._expires_at = time.monotonic() + self.seconds
        setter(self._check, _PROGRESS_STEPS)
        try:
            yield
        finally:
            setter(None, _PROGRESS_STEPS)


class SqlEngine:
    """Runs gated read statements with a row cap and an execution deadline."""

    def __init__(
        self,
        engine: Engine,
        *,
        row_limit: int = DEFAULT_ROW_LIMIT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        classifier: Optional[StatementClassifier] = None,
    ) -> None:
        self.engine = engine
        self.row_limit = min(DEFAULT_ROW_LIMIT, max(1, int(row_limit)))
        self.timeout = timeout
        self.classifier = classifier
        # StaticPool hands every caller the same sqlite3 handle (in-memory URLs)
        self._shared_handle_lock = threading.Lock() if isinstance(engine.pool, StaticPool) else None

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "SqlEngine":
        timeout = settings.query_timeout()
        engine = get_engine_for_url(settings.db_url(), timeout=timeout)
        return cls(engine, row_limit=settings.row_limit(), timeout=timeout, **kwargs)

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Scoped, auto-committing connection; closed on every exit path."""

        guard = self._shared_handle_lock or nullcontext()
        with guard, self.engine.connect() as conn:
            yield conn.execution_options(isolation_level="AUTOCOMMIT")

    def execute(self, sql: str, mode: Any = ExecutionMode.READ) -> QueryOutcome:
        trimmed = ensure_allowed(sql, self.classifier)
        mode = ExecutionMode.parse(mode)
        to_run = f"EXPLAIN {trimmed}" if mode is ExecutionMode.EXPLAIN else trimmed

        deadline = _Deadline(self.timeout)
        started = time.monotonic()
        try:
            with self.connection() as conn, deadline.armed(conn):
                result = conn.exec_driver_sql(to_run)
                if not result.returns_rows:
                    count = result.rowcount
                    result.close()
                    return QueryOutcome.updated(count)

                columns = list(result.keys())
                batch = result.fetchmany(self.row_limit + 1)
                result.close()
        except SQLAlchemyError as exc:
            detail = str(getattr(exc, "orig", None) or exc)
            if deadline.expired:
                detail = f"query exceeded {self.timeout:g}s timeout"
            log_event(
                log,
                "sql",
                "sql.exec.error",
                {"mode": mode.value, "error": detail},
                level=logging.ERROR,
            )
            return QueryOutcome.failure(f"SQL error: {detail}")
        except Exception as exc:
            log_event(
                log,
                "sql",
                "sql.exec.unexpected",
                {"mode": mode.value, "error": str(exc)},
                level=logging.ERROR,
                exc_info=True,
            )
            return QueryOutcome.failure(f"Execution error: {exc}")

        truncated = len(batch) > self.row_limit
        rows = [
            dict(zip(columns, (_jsonable(v) for v in raw)))
            for raw in batch[: self.row_limit]
        ]
        log_event(
            log,
            "sql",
            "sql.exec.done",
            {
                "mode": mode.value,
                "rows": len(rows),
                "truncated": truncated,
                "ms": int((time.monotonic() - started) * 1000),
            },
        )
        return QueryOutcome.success(rows, columns, truncated=truncated)

    def explain(self, sql: str) -> QueryOutcome:
        return self.execute(sql, ExecutionMode.EXPLAIN)


__all__ = [
    "DEFAULT_ROW_LIMIT",
    "DEFAULT_TIMEOUT_SECONDS",
    "ExecutionMode",
    "QueryOutcome",
    "SqlEngine",
    "dispose_engines",
    "get_engine_for_url",
    "utc_now_iso",
]
