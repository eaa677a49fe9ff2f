"""
KPI aggregation formulas.

Every function here is a pure function of a list of :class:`PeriodRecord`
rows. Sums and averages follow SQL semantics: ``None`` values are skipped and
an aggregate over no values is ``None``. Ratios with a null or zero
denominator are ``None``.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from kpi_api.normalize import finite_or_none, merge_by_key
from kpi_api.records import PeriodRecord

TOP_STORES_LIMIT = 5


def sum_of(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    return finite_or_none(sum(present)) if present else None


def mean_of(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    return finite_or_none(sum(present) / len(present)) if present else None


def safe_divide(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or denominator is None or denominator == 0:
        return None
    return finite_or_none(numerator / denominator)


def yoy_pct(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """Year-over-year change in percent, ``None`` when previous is missing or zero."""
    change = safe_divide(None if current is None or previous is None else current - previous, previous)
    return None if change is None else finite_or_none(change * 100)


def _select(
    records: Iterable[PeriodRecord],
    year: Optional[int] = None,
    store_id: Optional[str] = None,
) -> List[PeriodRecord]:
    return [
        r
        for r in records
        if (year is None or r.year == year) and (store_id is None or r.store_id == store_id)
    ]


def _group(records: Iterable[PeriodRecord], key: Callable[[PeriodRecord], Any]) -> Dict[Any, List[PeriodRecord]]:
    groups: Dict[Any, List[PeriodRecord]] = defaultdict(list)
    for record in records:
        groups[key(record)].append(record)
    return groups


def _descending(rows: List[Dict[str, Any]], field: str) -> List[Dict[str, Any]]:
    # Stable: ties keep input order, rows without a value go last
    return sorted(rows, key=lambda row: (row[field] is None, -(row[field] or 0)))


def store_year_summaries(records: Sequence[PeriodRecord], year: int, compare_year: int) -> List[Dict[str, Any]]:
    """Per-store totals for ``year`` with YoY and share-of-chain figures."""
    current = _group(_select(records, year), lambda r: r.store_id)
    previous = _group(_select(records, compare_year), lambda r: r.store_id)

    rows: List[Dict[str, Any]] = []
    for store_id, store_rows in current.items():
        prev_rows = previous.get(store_id, [])
        total = sum_of(r.total_sales for r in store_rows)
        prev_total = sum_of(r.total_sales for r in prev_rows)
        avg_spe = mean_of(r.sales_per_employee for r in store_rows)
        prev_avg_spe = mean_of(r.sales_per_employee for r in prev_rows)
        avg_growth = mean_of(r.headcount_growth_pct for r in store_rows)
        prev_avg_growth = mean_of(r.headcount_growth_pct for r in prev_rows)
        rows.append(
            {
                "StoreID": store_id,
                "Year": year,
                "CompareYear": compare_year,
                "TotalSalesYear": total,
                "PrevYearSales": prev_total,
                "AvgSalesPerEmployee": avg_spe,
                "AvgSalesPerEmployeeCompareYear": prev_avg_spe,
                "AvgGrowth": avg_growth,
                "AvgGrowthCompareYear": prev_avg_growth,
                "SalesYoY": yoy_pct(total, prev_total),
                "SalesPerEmployeeYoYPct": yoy_pct(avg_spe, prev_avg_spe),
                "GrowthYoYPct": yoy_pct(avg_growth, prev_avg_growth),
            }
        )

    chain_total = sum_of(row["TotalSalesYear"] for row in rows)
    for row in rows:
        share = safe_divide(row["TotalSalesYear"], chain_total)
        row["SalesContributionPct"] = None if share is None else share * 100

    return _descending(rows, "TotalSalesYear")


def store_monthly_series(records: Sequence[PeriodRecord], store_id: str, year: int) -> List[Dict[str, Any]]:
    return [r.to_row() for r in sorted(_select(records, year, store_id), key=lambda r: r.month_number)]


def _chain_month(rows: List[PeriodRecord]) -> Dict[str, Any]:
    total = sum_of(r.total_sales for r in rows)
    return {
        "ChainTotalSales": total,
        "ChainAvgSales": safe_divide(total, len(rows)),
        "ChainAvgSalesPerEmployee": mean_of(r.sales_per_employee for r in rows),
        "ChainAvgHeadcount": mean_of(r.avg_headcount for r in rows),
        "ChainAvgGrowth": mean_of(r.headcount_growth_pct for r in rows),
        "ChainAvgTurnover": mean_of(r.turnover for r in rows),
        "ChainStoreCount": len(rows),
    }


def store_vs_chain_monthly(
    records: Sequence[PeriodRecord], store_id: str, year: int, compare_year: int
) -> List[Dict[str, Any]]:
    """The store's monthly series with chain benchmarks and prior-year values attached."""
    chain_by_month = _group(_select(records, year), lambda r: r.month_number)
    prior = {r.month_number: r for r in _select(records, compare_year, store_id)}

    series: List[Dict[str, Any]] = []
    for record in sorted(_select(records, year, store_id), key=lambda r: r.month_number):
        row = record.to_row()
        row.update(_chain_month(chain_by_month[record.month_number]))
        last_year = prior.get(record.month_number)
        row.update(
            {
                "PrevYearTotalSales": last_year.total_sales if last_year else None,
                "PrevYearAvgHeadcount": last_year.avg_headcount if last_year else None,
                "PrevYearSalesPerEmployee": last_year.sales_per_employee if last_year else None,
                "PrevYearHeadcountGrowth": last_year.headcount_growth_pct if last_year else None,
                "PrevYearTurnover": last_year.turnover if last_year else None,
            }
        )
        series.append(row)
    return series


def _period_aggregate(rows: List[PeriodRecord]) -> Dict[str, Optional[float]]:
    return {
        "TotalSales": sum_of(r.total_sales for r in rows),
        "AvgSalesPerEmployee": mean_of(r.sales_per_employee for r in rows),
        "AvgHeadcount": mean_of(r.avg_headcount for r in rows),
        "AvgTurnover": mean_of(r.turnover for r in rows),
        "AvgHeadcountGrowth": mean_of(r.headcount_growth_pct for r in rows),
    }


def _store_count(rows: List[PeriodRecord]) -> int:
    return len({r.store_id for r in rows if r.total_sales is not None})


def _compare_periods(current: Dict[str, Optional[float]], previous: Dict[str, Optional[float]]) -> Dict[str, Any]:
    return {
        "TotalSalesYear": current["TotalSales"],
        "TotalSalesCompareYear": previous["TotalSales"],
        "AvgSalesPerEmployee": current["AvgSalesPerEmployee"],
        "AvgSalesPerEmployeeCompareYear": previous["AvgSalesPerEmployee"],
        "AvgHeadcount": current["AvgHeadcount"],
        "AvgHeadcountCompareYear": previous["AvgHeadcount"],
        "AvgTurnover": current["AvgTurnover"],
        "AvgTurnoverCompareYear": previous["AvgTurnover"],
        "AvgHeadcountGrowth": current["AvgHeadcountGrowth"],
        "AvgHeadcountGrowthCompareYear": previous["AvgHeadcountGrowth"],
        "SalesYoYPct": yoy_pct(current["TotalSales"], previous["TotalSales"]),
        "SalesPerEmployeeYoYPct": yoy_pct(current["AvgSalesPerEmployee"], previous["AvgSalesPerEmployee"]),
        "TurnoverYoYPct": yoy_pct(current["AvgTurnover"], previous["AvgTurnover"]),
        "HeadcountGrowthYoYPct": yoy_pct(current["AvgHeadcountGrowth"], previous["AvgHeadcountGrowth"]),
        "HeadcountYoYPct": yoy_pct(current["AvgHeadcount"], previous["AvgHeadcount"]),
    }


def chain_summary(records: Sequence[PeriodRecord], year: int, compare_year: int) -> Dict[str, Any]:
    """Chain-wide aggregate for ``year`` cross-joined with ``compare_year``."""
    current_rows = _select(records, year)
    summary = _compare_periods(_period_aggregate(current_rows), _period_aggregate(_select(records, compare_year)))
    summary["StoreCount"] = _store_count(current_rows)
    return summary


def store_summary(records: Sequence[PeriodRecord], store_id: str, year: int, compare_year: int) -> Dict[str, Any]:
    """Same shape as :func:`chain_summary`, restricted to a single store."""
    return _compare_periods(
        _period_aggregate(_select(records, year, store_id)),
        _period_aggregate(_select(records, compare_year, store_id)),
    )


def _conditional_sum(rows: List[PeriodRecord], year: int) -> Optional[float]:
    # SUM(CASE WHEN Year = :year THEN TotalSales ELSE 0 END)
    return sum_of(r.total_sales if r.year == year else 0 for r in rows)


def top_stores(
    records: Sequence[PeriodRecord], year: int, compare_year: int, limit: int = TOP_STORES_LIMIT
) -> List[Dict[str, Any]]:
    by_store = _group((r for r in records if r.year in (year, compare_year)), lambda r: r.store_id)
    rows = []
    for store_id, store_rows in by_store.items():
        total = _conditional_sum(store_rows, year)
        prev_total = _conditional_sum(store_rows, compare_year)
        rows.append(
            {
                "StoreID": store_id,
                "TotalSalesYear": total,
                "TotalSalesCompareYear": prev_total,
                "AvgSalesPerEmployee": mean_of(r.sales_per_employee for r in store_rows if r.year == year),
                "SalesYoYPct": yoy_pct(total, prev_total),
            }
        )
    return _descending(rows, "TotalSalesYear")[:limit]


def monthly_totals(records: Sequence[PeriodRecord], year: int) -> List[Dict[str, Any]]:
    by_month = _group(_select(records, year), lambda r: r.month_number)
    return [
        {
            "MonthNumber": month,
            "TotalSales": sum_of(r.total_sales for r in rows),
            "AvgSalesPerEmployee": mean_of(r.sales_per_employee for r in rows),
            "AvgHeadcount": mean_of(r.avg_headcount for r in rows),
            "AvgHeadcountGrowth": mean_of(r.headcount_growth_pct for r in rows),
            "AvgTurnover": mean_of(r.turnover for r in rows),
            "StoreCount": _store_count(rows),
        }
        for month, rows in sorted(by_month.items())
    ]


def network_overview(records: Sequence[PeriodRecord], year: int, compare_year: int) -> Dict[str, Any]:
    return {
        "summary": chain_summary(records, year, compare_year),
        "monthlyTotals": monthly_totals(records, year),
        "topStores": top_stores(records, year, compare_year),
    }


PEER_FIELDS = (
    "AvgPeerSales",
    "AvgPeerSalesPerEmployee",
    "AvgPeerHeadcount",
    "AvgPeerHeadcountPct",
    "AvgPeerTurnover",
)
STORE_FIELDS = (
    "StoreSales",
    "StoreSalesPerEmployee",
    "StoreAvgHeadcount",
    "StoreHeadcountGrowthPct",
    "StoreTurnover",
)


def peer_monthly_comparison(records: Sequence[PeriodRecord], store_id: str, year: int) -> List[Dict[str, Any]]:
    """
    Peer averages per month of ``year`` (across every store, the selected one
    included) joined with the store's own values. Months where only peers
    reported keep ``None`` store fields.
    """
    peers = [
        {
            "MonthNumber": month,
            "AvgPeerSales": mean_of(r.total_sales for r in rows),
            "AvgPeerSalesPerEmployee": mean_of(r.sales_per_employee for r in rows),
            "AvgPeerHeadcount": mean_of(r.avg_headcount for r in rows),
            "AvgPeerHeadcountPct": mean_of(r.headcount_growth_pct for r in rows),
            "AvgPeerTurnover": mean_of(r.turnover for r in rows),
        }
        for month, rows in _group(_select(records, year), lambda r: r.month_number).items()
    ]
    store = [
        {
            "MonthNumber": month,
            "StoreSales": sum_of(r.total_sales for r in rows),
            "StoreSalesPerEmployee": mean_of(r.sales_per_employee for r in rows),
            "StoreAvgHeadcount": mean_of(r.avg_headcount for r in rows),
            "StoreHeadcountGrowthPct": mean_of(r.headcount_growth_pct for r in rows),
            "StoreTurnover": mean_of(r.turnover for r in rows),
        }
        for month, rows in _group(_select(records, year, store_id), lambda r: r.month_number).items()
    ]
    return merge_by_key(peers, store, key="MonthNumber", primary_fields=PEER_FIELDS, secondary_fields=STORE_FIELDS)


def _difference(a: Optional[float], b: Optional[float]) -> Optional[float]:
    return None if a is None or b is None else finite_or_none(a - b)


# (metric, summary field, lower-is-better)
BENCHMARK_METRICS = (
    ("YoY Sales Growth", "SalesYoYPct", False),
    ("Sales per Employee", "AvgSalesPerEmployee", False),
    ("Turnover Rate", "AvgTurnover", True),
    ("Headcount Growth", "AvgHeadcountGrowth", False),
)


def benchmark_deltas(store: Dict[str, Any], peer: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Store-minus-network deltas for the benchmark cards."""
    deltas = []
    for title, field, invert in BENCHMARK_METRICS:
        delta = _difference(store.get(field), peer.get(field))
        deltas.append(
            {
                "title": title,
                "field": field,
                "store": store.get(field),
                "network": peer.get(field),
                "delta": delta,
                "favorable": None if delta is None else (delta <= 0 if invert else delta >= 0),
            }
        )
    return deltas
