"""
SQL access to the two reporting views.

Only filtering and ordering happen in SQL; every aggregate is computed in
:mod:`kpi_api.aggregation` once the rows have been normalized.
"""

from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar
import logging

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from kpi_api import config
from kpi_api.db_core import execute_with_timing
from kpi_api.errors import DataSourceError
from kpi_api.records import PeriodRecord, TurnoverRecord, ViewRow

_logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=ViewRow)


class KpiDataSource:
    """Read-only access to ``vw_Employee_KPI_All`` and the turnover view."""

    def __init__(self, engine: Engine, kpi_view: Optional[str] = None, turnover_view: Optional[str] = None):
        self.engine = engine
        self.kpi_view = config.checked_identifier(kpi_view or config.KPI_VIEW)
        self.turnover_view = config.checked_identifier(turnover_view or config.TURNOVER_VIEW)

    def _fetch(self, query: str, params: Dict[str, Any], query_name: str) -> List[Dict[str, Any]]:
        try:
            with self.engine.connect() as conn:
                result = execute_with_timing(conn, query, params, query_name=query_name)
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise DataSourceError(f"{query_name} failed: {exc.__class__.__name__}", query_name) from exc

    @staticmethod
    def _parse(model: Type[RowT], rows: Iterable[Dict[str, Any]], query_name: str) -> List[RowT]:
        parsed: List[RowT] = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as exc:
                # Key columns we cannot read make the row unusable for grouping
                _logger.warning("Skipping malformed %s row %r: %s", query_name, row, exc.errors()[0]["msg"])
        return parsed

    def fetch_period_records(
        self, year: int, compare_year: Optional[int] = None, store_id: Optional[str] = None
    ) -> List[PeriodRecord]:
        """Monthly KPI rows for ``year`` and ``compare_year``, for all stores or one."""
        where = ["Year IN (:year, :compare_year)"]
        params: Dict[str, Any] = {
            "year": year,
            "compare_year": year if compare_year is None else compare_year,
        }
        if store_id is not None:
            where.append("StoreID = :store_id")
            params["store_id"] = store_id

        query = f"""
            SELECT
                StoreID,
                Year,
                MonthNumber,
                TotalSales,
                AvgHeadcount,
                SalesPerEmployee,
                HeadcountGrowthPct,
                Turnover
            FROM {self.kpi_view}
            WHERE {' AND '.join(where)}
            ORDER BY StoreID, Year, MonthNumber
        """
        rows = self._fetch(query, params, "kpi_period_records")
        return self._parse(PeriodRecord, rows, "kpi_period_records")

    def fetch_turnover_records(self, store_id: str, year: int, month: Optional[int] = None) -> List[TurnoverRecord]:
        where = ["StoreID = :store_id", "Year = :year"]
        params: Dict[str, Any] = {"store_id": store_id, "year": year}
        if month is not None:
            where.append("MonthNumber = :month")
            params["month"] = month

        query = f"""
            SELECT
                StoreID,
                Year,
                MonthNumber,
                JobTitle,
                Gender,
                Start_Headcount,
                End_Headcount,
                Terminations,
                TurnoverPct
            FROM {self.turnover_view}
            WHERE {' AND '.join(where)}
            ORDER BY MonthNumber, JobTitle, Gender
        """
        rows = self._fetch(query, params, "turnover_records")
        return self._parse(TurnoverRecord, rows, "turnover_records")
