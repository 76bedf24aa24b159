import logging
import time
from typing import Any, Mapping, Optional

from flask import Flask, g, jsonify, request

from apps.forge import create_forge_blueprint
from core.corr import get_corr_id, set_corr_id
from core.history import HistoryStore
from core.logging_utils import get_logger, log_event, setup_logging
from core.seed import ensure_sample_schema
from core.settings import Settings
from core.sql_exec import SqlEngine


def create_app(
    settings: Optional[Settings] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Flask:
    settings = settings or Settings(overrides)
    setup_logging(settings)
    log = get_logger("main")

    app = Flask(__name__)
    app.logger.handlers.clear()
    app.logger.propagate = True

    engine = SqlEngine.from_settings(settings)
    history = HistoryStore(limit=settings.history_limit())

    app.config["SETTINGS"] = settings
    app.config["SQL_ENGINE"] = engine
    app.config["HISTORY"] = history

    log_event(
        log,
        "boot",
        "app_boot",
        {
            "db": settings.db_url().split("://")[0],
            "row_limit": engine.row_limit,
            "timeout": engine.timeout,
            "history_limit": history.limit,
        },
    )

    if settings.get_bool("SQLFORGE_SEED", default=True):
        # never fatal: failures are logged inside
        app.config["SEED_RESULT"] = ensure_sample_schema(engine.engine)

    app.register_blueprint(create_forge_blueprint(engine, history), url_prefix="/api")
    _install_request_trace(app)

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/__routes")
    def list_routes():
        rows = []
        for rule in app.url_map.iter_rules():
            rows.append(
                {
                    "rule": str(rule),
                    "endpoint": rule.endpoint,
                    "methods": sorted(list(rule.methods - {"HEAD", "OPTIONS"})),
                }
            )
        return jsonify(routes=sorted(rows, key=lambda r: r["rule"]))

    return app


def _install_request_trace(app: Flask) -> None:
    logger = get_logger("http")

    @app.before_request
    def _trace_before():  # pragma: no cover - request hooks
        set_corr_id(request.headers.get("X-Request-ID"))
        g._t0 = time.time()

    @app.after_request
    def _trace_after(resp):  # pragma: no cover - request hooks
        cid = get_corr_id()
        if cid:
            resp.headers["X-Request-ID"] = cid
        ms = int((time.time() - g.get("_t0", time.time())) * 1000)
        log_event(
            logger,
            "http",
            "http.response",
            {"method": request.method, "path": request.path, "status": resp.status_code, "ms": ms},
            level=logging.INFO if resp.status_code < 500 else logging.ERROR,
        )
        return resp


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=8080)
