import logging

from sqlalchemy import create_engine, text

from orderflow.obs import add_query_logger, capture_exception, init_sentry
from orderflow.obs import queries


def test_slow_queries_logged_with_tenant(monkeypatch, caplog):
    monkeypatch.setattr(queries, "SLOW_QUERY_MS", -1)
    engine = create_engine("sqlite://")
    add_query_logger(engine, "r1")
    with caplog.at_level(logging.WARNING, logger="obs"):
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    assert any("tenant=r1" in m and "SELECT 1" in m for m in caplog.messages)


def test_fast_queries_not_logged(monkeypatch, caplog):
    monkeypatch.setattr(queries, "SLOW_QUERY_MS", 10_000)
    engine = create_engine("sqlite://")
    add_query_logger(engine, "r1")
    with caplog.at_level(logging.WARNING, logger="obs"):
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    assert not caplog.messages


def test_sentry_disabled_without_dsn(monkeypatch, caplog):
    monkeypatch.delenv("ERROR_DSN", raising=False)
    with caplog.at_level(logging.INFO, logger="obs"):
        init_sentry(None, "test")
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            capture_exception(exc)
    assert "ERROR_DSN not set; error sink disabled" in caplog.messages
    assert "Unhandled exception" in caplog.messages
