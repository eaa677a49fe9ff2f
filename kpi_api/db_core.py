from typing import Any, Dict, Optional
import atexit
import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine

_logger = logging.getLogger(__name__)

# Reduced pool size keeps the reporting database responsive under dashboard fan-out
_POOL_SIZE = int(os.getenv("KPI_POOL_SIZE", "10"))
_POOL_MAX_OVERFLOW = int(os.getenv("KPI_POOL_MAX_OVERFLOW", "10"))
_POOL_TIMEOUT = int(os.getenv("KPI_POOL_TIMEOUT", "30"))
_POOL_RECYCLE = int(os.getenv("KPI_POOL_RECYCLE", "1200"))
_CONNECT_TIMEOUT = int(os.getenv("KPI_CONNECT_TIMEOUT", "10"))
_SLOW_QUERY_THRESHOLD = float(os.getenv("KPI_SLOW_QUERY_THRESHOLD", "2.0"))  # seconds

_engine: Optional[Engine] = None


def database_url():
    """Build the reporting database URL from the environment.

    ``KPI_DB_URL`` wins when set; otherwise the URL is assembled from the
    individual ``KPI_DB_*`` parts so that passwords with special characters
    are escaped properly.
    """
    override = os.getenv("KPI_DB_URL")
    if override:
        return override

    port = os.getenv("KPI_DB_PORT")
    return URL.create(
        os.getenv("KPI_DB_DRIVER", "mysql+pymysql"),
        username=os.getenv("KPI_DB_USER"),
        password=os.getenv("KPI_DB_PASSWORD"),
        host=os.getenv("KPI_DB_HOST", "localhost"),
        port=int(port) if port else None,
        database=os.getenv("KPI_DB_NAME"),
    )


def get_engine() -> Engine:
    """
    Get or create the shared reporting engine.
    One engine (and therefore one connection pool) is reused for every request.
    """
    global _engine
    if _engine is not None:
        return _engine

    url = database_url()
    options: Dict[str, Any] = {"pool_pre_ping": True, "echo": False}
    if not str(url).startswith("sqlite"):
        options.update(
            pool_size=_POOL_SIZE,
            max_overflow=_POOL_MAX_OVERFLOW,
            pool_recycle=_POOL_RECYCLE,
            pool_timeout=_POOL_TIMEOUT,
            connect_args={"connect_timeout": _CONNECT_TIMEOUT},
        )

    _engine = create_engine(url, **options)
    _logger.info("Created reporting engine for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


# Cleanup function to dispose of the engine on shutdown
def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None


atexit.register(dispose_engine)


def execute_with_timing(conn, query: str, params=None, query_name: str = "query"):
    """Run ``query`` as a bound ``text()`` statement, logging it when slow or failing."""
    started = time.perf_counter()
    try:
        result = conn.execute(text(query), params or {})
    except Exception as exc:
        _logger.error(
            "Query %s failed after %.2fs: %s\nSQL: %.200s",
            query_name,
            time.perf_counter() - started,
            exc,
            query,
        )
        raise

    elapsed = time.perf_counter() - started
    if elapsed > _SLOW_QUERY_THRESHOLD:
        _logger.warning(
            "Slow query %s took %.2fs (threshold %.2fs), params=%s", query_name, elapsed, _SLOW_QUERY_THRESHOLD, params
        )
    return result
