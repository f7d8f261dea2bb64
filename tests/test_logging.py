import json
import logging
import random

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import JSONResponse

from orderflow.middlewares.logging import LoggingMiddleware
from orderflow.middlewares.request_id import RequestIdMiddleware
from orderflow.obs.logging import JsonFormatter, RequestIdFilter, configure_logging


def _make_app():
    test_app = FastAPI()
    test_app.add_middleware(LoggingMiddleware)
    test_app.add_middleware(RequestIdMiddleware)

    @test_app.get("/health")
    async def health():
        return {"ok": True}

    @test_app.post("/orders")
    async def create(data: dict):
        return data

    @test_app.post("/orders/o1/status")
    async def reject():
        return JSONResponse({}, status_code=409)

    return test_app


def test_request_id_propagation(monkeypatch, caplog):
    monkeypatch.setattr("orderflow.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        resp = client.get("/health", headers={"X-Request-ID": "abc"})
    assert resp.headers["X-Request-ID"] == "abc"
    data = json.loads(caplog.messages[1])
    assert data["req_id"] == "abc"
    assert data["status"] == 200


def test_request_id_generation(monkeypatch, caplog):
    monkeypatch.setattr("orderflow.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        resp = client.get("/health", headers={"X-Tenant-ID": "r1"})
    rid = resp.headers["X-Request-ID"]
    assert rid
    data = json.loads(caplog.messages[1])
    assert data["req_id"] == rid
    assert data["tenant"] == "r1"


def test_customer_details_redacted(monkeypatch, caplog):
    monkeypatch.setattr("orderflow.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    payload = {
        "table_number": 4,
        "customer_name": "Ana",
        "contact": {"email": "ana@example.com", "phone": "9998887776"},
    }
    with caplog.at_level(logging.INFO, logger="api"):
        client.post("/orders", json=payload, params={"customer_name": "Ana"})
    inbound = json.loads(caplog.messages[0])
    assert inbound["body"]["table_number"] == 4
    assert inbound["body"]["customer_name"] == "***"
    assert inbound["body"]["contact"] == {"email": "***", "phone": "***"}
    assert inbound["query"]["customer_name"] == "***"


def test_rejections_always_logged(monkeypatch, caplog):
    monkeypatch.setattr("orderflow.middlewares.logging.LOG_SAMPLE_2XX", 0)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        client.get("/health")
        client.post("/orders/o1/status")
    assert len(caplog.messages) == 2
    assert json.loads(caplog.messages[1])["status"] == 409


def test_2xx_sampling(monkeypatch, caplog):
    monkeypatch.setattr("orderflow.middlewares.logging.LOG_SAMPLE_2XX", 0.1)
    random.seed(1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        for _ in range(100):
            client.get("/health")
    logged = len(caplog.messages) // 2
    assert 5 <= logged <= 15


def test_json_logger_redaction_and_context():
    formatter = JsonFormatter()
    record = logging.LogRecord(
        "lifecycle",
        logging.INFO,
        __file__,
        0,
        "note from 9998887776 foo@example.com",
        (),
        None,
    )
    record.tenant = "r1"
    record.order_id = "o1"
    data = json.loads(formatter.format(record))
    assert "9998887776" not in data["msg"]
    assert "foo@example.com" not in data["msg"]
    assert data["tenant"] == "r1"
    assert data["order_id"] == "o1"
    assert data["logger"] == "lifecycle"


def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("WARNING")
        [handler] = root.handlers
        assert isinstance(handler.formatter, JsonFormatter)
        assert any(isinstance(f, RequestIdFilter) for f in handler.filters)
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
