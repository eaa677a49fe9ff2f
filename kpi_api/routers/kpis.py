from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from kpi_api.datasource import KpiDataSource
from kpi_api.db_core import get_engine
from kpi_api.errors import DataSourceError, InvalidParameterError
from kpi_api.service import KpiService

router = APIRouter()

_logger = logging.getLogger(__name__)

DATABASE_ERROR = "Database query failed"


def get_service() -> KpiService:
    return KpiService(KpiDataSource(get_engine()))


def _bad_request(exc: InvalidParameterError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def _server_error(exc: DataSourceError) -> HTTPException:
    _logger.error("Report failed on %s: %s", exc.query_name, exc)
    return HTTPException(status_code=500, detail=DATABASE_ERROR)


@router.get("/stores")
def list_stores(
    year: Optional[int] = Query(default=None, description="Reporting year"),
    compare_year: Optional[int] = Query(default=None, alias="compareYear", description="Defaults to year - 1"),
    service: KpiService = Depends(get_service),
):
    """Per-store yearly totals ranked by sales, with YoY and contribution share."""
    try:
        return service.list_store_summaries(year, compare_year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}")
def get_store_series(
    store_id: str,
    year: Optional[int] = Query(default=None, description="Reporting year"),
    service: KpiService = Depends(get_service),
):
    """Monthly KPI rows for a single store."""
    try:
        return service.get_store_monthly_series(store_id, year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}/comparison")
def get_store_comparison(
    store_id: str,
    year: Optional[int] = Query(default=None),
    compare_year: Optional[int] = Query(default=None, alias="compareYear"),
    service: KpiService = Depends(get_service),
):
    """Store summary, network summary and the month-by-month peer comparison."""
    try:
        return service.get_store_comparison(store_id, year, compare_year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}/benchmark")
def get_store_benchmark(
    store_id: str,
    year: Optional[int] = Query(default=None),
    compare_year: Optional[int] = Query(default=None, alias="compareYear"),
    service: KpiService = Depends(get_service),
):
    try:
        return service.get_store_benchmark_series(store_id, year, compare_year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}/highlights")
def get_store_highlights(
    store_id: str,
    year: Optional[int] = Query(default=None),
    compare_year: Optional[int] = Query(default=None, alias="compareYear"),
    service: KpiService = Depends(get_service),
):
    """Headline cards for the store's latest month."""
    try:
        return service.get_store_highlights(store_id, year, compare_year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}/turnover")
def get_store_turnover(
    store_id: str,
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None, description="Month number 1-12"),
    service: KpiService = Depends(get_service),
):
    try:
        return service.get_turnover_breakdown(store_id, year, month)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/store/{store_id}/turnover/summary")
def get_store_turnover_summary(
    store_id: str,
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None, description="Month number 1-12"),
    service: KpiService = Depends(get_service),
):
    """Turnover totals and the job title ranking behind the turnover page."""
    try:
        return service.get_turnover_summary(store_id, year, month)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)


@router.get("/overview")
def get_overview(
    year: Optional[int] = Query(default=None),
    compare_year: Optional[int] = Query(default=None, alias="compareYear"),
    service: KpiService = Depends(get_service),
):
    """Network level summary, monthly totals and the top five stores."""
    try:
        return service.get_network_overview(year, compare_year)
    except InvalidParameterError as exc:
        raise _bad_request(exc)
    except DataSourceError as exc:
        raise _server_error(exc)
