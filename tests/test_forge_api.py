from __future__ import annotations

import json

import pytest

pytest.importorskip("flask")


def _post(client, path: str, payload):
    return client.post(path, data=json.dumps(payload), content_type="application/json")


def test_run_returns_rows_and_records_history(client):
    resp = _post(client, "/api/run", {"userId": "ana", "sql": "SELECT * FROM employees"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is True
    assert data["rowCount"] == 5
    assert len(data["rows"]) == 5
    assert data["message"] == "OK"

    history = client.get("/api/history?userId=ana").get_json()
    assert history == ["SELECT * FROM employees"]


def test_run_failure_is_ok_false_and_not_recorded(client):
    resp = _post(client, "/api/run", {"userId": "ana", "sql": "SELECT * FROM nope"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is False
    assert data["message"].startswith("SQL error:")
    assert client.get("/api/history?userId=ana").get_json() == []


def test_run_rejects_destructive_sql(client):
    resp = _post(client, "/api/run", {"sql": "DROP TABLE employees"})
    assert resp.status_code == 400
    data = resp.get_json()
    assert data["ok"] is False
    assert "Destructive" in data["message"]
    assert client.get("/api/history").get_json() == []


def test_run_rejects_unrecognized_sql(client):
    resp = _post(client, "/api/run", {"sql": "PRAGMA table_info(employees)"})
    assert resp.status_code == 400
    assert "Only SELECT/WITH/EXPLAIN" in resp.get_json()["message"]


@pytest.mark.parametrize("payload", [{}, {"sql": "   "}, {"sql": 42}, ["not", "an", "object"]])
def test_blank_sql_is_bad_request(client, payload):
    resp = _post(client, "/api/run", payload)
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


def test_run_honours_explain_mode(client):
    resp = _post(client, "/api/run", {"sql": "SELECT * FROM employees", "mode": "explain"})
    data = resp.get_json()
    assert data["ok"] is True
    assert "name" not in (data["columns"] or [])


def test_explain_endpoint_does_not_record_history(client):
    resp = _post(client, "/api/explain", {"userId": "bo", "sql": "SELECT * FROM employees"})
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True
    assert client.get("/api/history?userId=bo").get_json() == []


def test_anonymous_history(client):
    _post(client, "/api/run", {"sql": "SELECT 1"})
    _post(client, "/api/run", {"userId": "", "sql": "SELECT 2"})
    assert client.get("/api/history").get_json() == ["SELECT 2", "SELECT 1"]
    assert client.get("/api/history?limit=1").get_json() == ["SELECT 2"]


def test_advice(client):
    resp = _post(client, "/api/advice", {"sql": "SELECT * FROM employees"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is True
    assert data["score"] == 90
    assert data["originalSql"] == "SELECT * FROM employees"
    assert len(data["tips"]) == 1


def test_advice_blank_is_bad_request(client):
    resp = _post(client, "/api/advice", {"sql": ""})
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


def test_nl_to_sql(client):
    resp = _post(client, "/api/nl-to-sql", {"sql": "list all employees in engineering"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is True
    assert data["sql"] == "SELECT * FROM employees WHERE dept = 'Engineering' LIMIT 100"
    assert data["rows"] == []
    assert data["rowCount"] == 0
    assert "department" in data["message"]


def test_nl_to_sql_blank_is_bad_request(client):
    resp = _post(client, "/api/nl-to-sql", {"sql": " "})
    assert resp.status_code == 400


def test_unexpected_error_is_enveloped(client, app, monkeypatch):
    engine = app.config["SQL_ENGINE"]

    def boom(sql, mode):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(engine, "execute", boom)
    resp = _post(client, "/api/run", {"sql": "SELECT 1"})
    assert resp.status_code == 500
    data = resp.get_json()
    assert data["ok"] is False
    assert data["message"] == "Internal server error"


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"].startswith("req:")


def test_routes_listing(client):
    rules = {r["rule"] for r in client.get("/__routes").get_json()["routes"]}
    assert {"/api/run", "/api/explain", "/api/advice", "/api/nl-to-sql", "/api/history"} <= rules
