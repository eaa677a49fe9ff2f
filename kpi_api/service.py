from typing import Any, Dict, List, Optional
import logging

from kpi_api import aggregation
from kpi_api.datasource import KpiDataSource
from kpi_api.highlights import build_highlights, latest_and_previous
from kpi_api.params import parse_month, parse_store_id, resolve_years
from kpi_api.turnover import job_title_summary, turnover_breakdown, turnover_totals

_logger = logging.getLogger(__name__)


class KpiService:
    """
    One method per dashboard report.

    Each call validates its parameters, reads what it needs from the data
    source and either returns the complete report or raises. A
    ``DataSourceError`` is never turned into a partial result.
    """

    def __init__(self, source: KpiDataSource) -> None:
        self.source = source

    def list_store_summaries(self, year=None, compare_year=None) -> List[Dict[str, Any]]:
        year, compare_year = resolve_years(year, compare_year)
        records = self.source.fetch_period_records(year, compare_year)
        return aggregation.store_year_summaries(records, year, compare_year)

    def get_store_monthly_series(self, store_id, year=None) -> List[Dict[str, Any]]:
        store_id = parse_store_id(store_id)
        year, _ = resolve_years(year)
        records = self.source.fetch_period_records(year, store_id=store_id)
        return aggregation.store_monthly_series(records, store_id, year)

    def get_store_comparison(self, store_id, year=None, compare_year=None) -> Dict[str, Any]:
        store_id = parse_store_id(store_id)
        year, compare_year = resolve_years(year, compare_year)
        records = self.source.fetch_period_records(year, compare_year)

        store_summary = aggregation.store_summary(records, store_id, year, compare_year)
        peer_summary = aggregation.chain_summary(records, year, compare_year)
        return {
            "storeSummary": store_summary,
            "peerSummary": peer_summary,
            "monthlyComparison": aggregation.peer_monthly_comparison(records, store_id, year),
            "benchmarks": aggregation.benchmark_deltas(store_summary, peer_summary),
        }

    def get_store_benchmark_series(self, store_id, year=None, compare_year=None) -> List[Dict[str, Any]]:
        store_id = parse_store_id(store_id)
        year, compare_year = resolve_years(year, compare_year)
        records = self.source.fetch_period_records(year, compare_year)
        return aggregation.store_vs_chain_monthly(records, store_id, year, compare_year)

    def get_store_highlights(self, store_id, year=None, compare_year=None) -> Dict[str, Any]:
        series = self.get_store_benchmark_series(store_id, year, compare_year)
        latest, previous = latest_and_previous(series)
        if latest is None:
            _logger.info("No KPI rows for store %s; returning empty highlights", store_id)
            return {"MonthNumber": None, "highlights": []}

        prior_year = {
            "TotalSales": latest["PrevYearTotalSales"],
            "AvgHeadcount": latest["PrevYearAvgHeadcount"],
            "SalesPerEmployee": latest["PrevYearSalesPerEmployee"],
            "Turnover": latest["PrevYearTurnover"],
        }
        highlights = build_highlights(latest, previous, chain_latest=latest, prev_year_latest=prior_year)
        return {
            "MonthNumber": latest["MonthNumber"],
            "highlights": [h.model_dump() for h in highlights],
        }

    def get_network_overview(self, year=None, compare_year=None) -> Dict[str, Any]:
        year, compare_year = resolve_years(year, compare_year)
        records = self.source.fetch_period_records(year, compare_year)
        return aggregation.network_overview(records, year, compare_year)

    def get_turnover_breakdown(self, store_id, year=None, month: Optional[int] = None) -> List[Dict[str, Any]]:
        store_id = parse_store_id(store_id)
        year, _ = resolve_years(year)
        month = parse_month(month)
        records = self.source.fetch_turnover_records(store_id, year, month)
        return [r.to_row() for r in turnover_breakdown(records, store_id, year, month)]

    def get_turnover_summary(self, store_id, year=None, month: Optional[int] = None) -> Dict[str, Any]:
        store_id = parse_store_id(store_id)
        year, _ = resolve_years(year)
        month = parse_month(month)
        records = turnover_breakdown(self.source.fetch_turnover_records(store_id, year, month), store_id, year, month)
        return {
            "StoreID": store_id,
            "Year": year,
            "MonthNumber": month,
            "months": sorted({r.month_number for r in records}),
            "totals": turnover_totals(records),
            "byJobTitle": job_title_summary(records),
        }
