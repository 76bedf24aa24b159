from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple

from flask import Blueprint, jsonify, request

from apps.forge.schemas import QueryRequest
from core import advisor, nl2sql
from core.errors import InvalidInput, PolicyRejected, SqlForgeError
from core.history import HistoryStore
from core.logging_utils import get_logger, log_event
from core.sql_exec import ExecutionMode, QueryOutcome, SqlEngine

log = get_logger("api")

INTERNAL_ERROR = "Internal server error"


def _client_error(exc: SqlForgeError, envelope: Callable[[str], Dict[str, Any]]) -> Tuple[Any, int]:
    payload: Dict[str, Any] = {"error": str(exc)}
    if isinstance(exc, PolicyRejected):
        payload["reason"] = exc.reason
    log_event(log, "api", "request.rejected", payload, level=logging.WARNING)
    return jsonify(envelope(str(exc))), exc.status_code


def _server_error(event: str, exc: Exception, envelope: Callable[[str], Dict[str, Any]]) -> Tuple[Any, int]:
    log_event(log, "api", event, {"error": str(exc)}, level=logging.ERROR, exc_info=True)
    return jsonify(envelope(INTERNAL_ERROR)), 500


def _query_envelope(message: str) -> Dict[str, Any]:
    return QueryOutcome.failure(message).dict()


def _advice_envelope(message: str) -> Dict[str, Any]:
    return advisor.AdvisorFinding.error(message).dict()


def _parse() -> QueryRequest:
    req = QueryRequest.from_payload(request.get_json(silent=True))
    if req.is_blank:
        raise InvalidInput("SQL or text must be provided")
    return req


def create_forge_blueprint(engine: SqlEngine, history: HistoryStore) -> Blueprint:
    bp = Blueprint("forge", __name__)

    def _execute(mode: ExecutionMode | None, record: bool):
        try:
            req = _parse()
            effective = mode or req.mode
            log_event(
                log,
                "api",
                "query.receive",
                {"user_id": req.user_id, "mode": effective.value, "sql_len": len(req.sql)},
            )
            outcome = engine.execute(req.sql, effective)
        except SqlForgeError as exc:
            return _client_error(exc, _query_envelope)
        except Exception as exc:
            return _server_error("query.unexpected", exc, _query_envelope)

        if record and outcome.ok:
            history.record(req.user_id, req.sql)
        log_event(
            log,
            "api",
            "query.response",
            {"ok": outcome.ok, "rows": outcome.row_count, "truncated": outcome.truncated},
        )
        return jsonify(outcome.dict())

    @bp.post("/run")
    def run_query():
        return _execute(None, record=True)

    @bp.post("/explain")
    def explain():
        return _execute(ExecutionMode.EXPLAIN, record=False)

    @bp.post("/advice")
    def advice():
        try:
            req = _parse()
            finding = advisor.analyze(req.sql)
        except SqlForgeError as exc:
            return _client_error(exc, _advice_envelope)
        except Exception as exc:
            return _server_error("advice.unexpected", exc, _advice_envelope)
        return jsonify(finding.dict())

    @bp.post("/nl-to-sql")
    def nl_to_sql():
        try:
            req = _parse()
            sql, rule = nl2sql.translate_with_rule(req.sql)
        except SqlForgeError as exc:
            return _client_error(exc, _query_envelope)
        except Exception as exc:
            return _server_error("nl2sql.unexpected", exc, _query_envelope)
        outcome = QueryOutcome.success([], []).with_sql(sql)
        outcome.message = f"OK ({rule})"
        return jsonify(outcome.dict())

    @bp.get("/history")
    def get_history():
        user_id = request.args.get("userId")
        limit = request.args.get("limit", type=int)
        return jsonify(history.fetch(user_id, limit=limit))

    return bp


__all__ = ["create_forge_blueprint"]
