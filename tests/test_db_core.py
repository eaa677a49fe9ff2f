import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from kpi_api import db_core


def test_database_url_prefers_full_override(monkeypatch):
    monkeypatch.setenv("KPI_DB_URL", "sqlite:///kpi.db")

    assert db_core.database_url() == "sqlite:///kpi.db"


def test_database_url_from_parts(monkeypatch):
    monkeypatch.delenv("KPI_DB_URL", raising=False)
    monkeypatch.delenv("KPI_DB_DRIVER", raising=False)
    monkeypatch.setenv("KPI_DB_USER", "report")
    monkeypatch.setenv("KPI_DB_PASSWORD", "p@ss:word")
    monkeypatch.setenv("KPI_DB_HOST", "db.internal")
    monkeypatch.setenv("KPI_DB_PORT", "3306")
    monkeypatch.setenv("KPI_DB_NAME", "kpi")

    url = db_core.database_url()

    assert url.drivername == "mysql+pymysql"
    assert url.password == "p@ss:word"
    assert (url.host, url.port, url.database, url.username) == ("db.internal", 3306, "kpi", "report")


def test_engine_is_shared_until_disposed(monkeypatch):
    monkeypatch.setenv("KPI_DB_URL", "sqlite://")
    db_core.dispose_engine()

    first = db_core.get_engine()
    assert db_core.get_engine() is first

    db_core.dispose_engine()
    assert db_core.get_engine() is not first
    db_core.dispose_engine()


def test_slow_queries_are_logged(monkeypatch, caplog):
    monkeypatch.setattr(db_core, "_SLOW_QUERY_THRESHOLD", -1.0)
    engine = create_engine("sqlite://")

    with caplog.at_level(logging.WARNING, logger="kpi_api.db_core"):
        with engine.connect() as conn:
            assert db_core.execute_with_timing(conn, "SELECT 1", query_name="ping").scalar() == 1

    assert "Slow query ping" in caplog.text


def test_failing_queries_are_logged_and_re_raised(caplog):
    engine = create_engine("sqlite://")

    with caplog.at_level(logging.ERROR, logger="kpi_api.db_core"):
        with engine.connect() as conn:
            with pytest.raises(OperationalError):
                db_core.execute_with_timing(conn, "SELECT * FROM vw_Missing", query_name="missing_view")

    assert "Query missing_view failed" in caplog.text
