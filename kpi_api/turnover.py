"""Turnover breakdowns by job title and gender."""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from kpi_api.aggregation import mean_of, sum_of
from kpi_api.normalize import finite_or_none
from kpi_api.records import TurnoverRecord


def _text_key(value: Optional[str]):
    return (value is None, value or "")


def turnover_breakdown(
    records: Sequence[TurnoverRecord], store_id: str, year: int, month: Optional[int] = None
) -> List[TurnoverRecord]:
    """Rows for one store/year (optionally one month) ordered by month, job title, gender."""
    rows = [
        r
        for r in records
        if r.store_id == store_id and r.year == year and (month is None or r.month_number == month)
    ]
    return sorted(rows, key=lambda r: (r.month_number, _text_key(r.job_title), _text_key(r.gender)))


def job_title_summary(records: Sequence[TurnoverRecord]) -> List[Dict[str, Any]]:
    grouped: "OrderedDict[str, List[TurnoverRecord]]" = OrderedDict()
    for record in records:
        grouped.setdefault(record.job_title or "Unknown", []).append(record)

    summary = [
        {
            "JobTitle": job_title,
            "AvgTurnover": mean_of(r.turnover_pct for r in rows),
            "Terminations": sum_of(r.terminations for r in rows) or 0,
            "StartHeadcount": sum_of(r.start_headcount for r in rows) or 0,
            "EndHeadcount": sum_of(r.end_headcount for r in rows) or 0,
        }
        for job_title, rows in grouped.items()
    ]
    return sorted(summary, key=lambda row: (row["AvgTurnover"] is None, -(row["AvgTurnover"] or 0)))


def turnover_totals(records: Sequence[TurnoverRecord]) -> Dict[str, Any]:
    start = sum_of(r.start_headcount for r in records) or 0
    end = sum_of(r.end_headcount for r in records) or 0
    return {
        "AvgTurnover": mean_of(r.turnover_pct for r in records),
        "Terminations": sum_of(r.terminations for r in records) or 0,
        "StartHeadcount": start,
        "EndHeadcount": end,
        "HeadcountChange": finite_or_none(end - start),
    }
