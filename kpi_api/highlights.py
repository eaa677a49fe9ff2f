"""
Headline metrics for the KPI cards.

Cards show the latest month of a store's series along with how it moved
against the previous month, the same month of the comparison year and the
chain average for that month.
"""

from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Sequence
import math

from pydantic import BaseModel

from kpi_api.formatting import (
    format_absolute_percent,
    format_currency,
    format_number,
    format_percent,
    round_or_none,
)
from kpi_api.normalize import finite_or_none, normalize_record


class LatestPair(NamedTuple):
    latest: Optional[Mapping[str, Any]]
    previous: Optional[Mapping[str, Any]]


class DeltaChip(BaseModel):
    comparison: str
    label: str
    delta: float
    formatted: str
    favorable: bool


class Highlight(BaseModel):
    metric: str
    title: str
    value: float
    formatted: str
    deltas: List[DeltaChip] = []


class _Metric(NamedTuple):
    field: str
    title: str
    chain_field: str
    formatter: Callable[[Any], str]
    lower_is_better: bool = False


TRACKED_METRICS = (
    _Metric("TotalSales", "Total Sales", "ChainAvgSales", format_currency),
    _Metric("AvgHeadcount", "Avg Headcount", "ChainAvgHeadcount", format_number),
    _Metric("SalesPerEmployee", "Sales per Employee", "ChainAvgSalesPerEmployee", lambda v: format_currency(v, 2)),
    _Metric("Turnover", "Turnover", "ChainAvgTurnover", format_absolute_percent, lower_is_better=True),
)

# (comparison id, chip label)
COMPARISONS = (
    ("previous", "vs prev month"),
    ("prior_year", "vs last year"),
    ("chain", "vs chain avg"),
)


def latest_and_previous(series: Sequence[Mapping[str, Any]]) -> LatestPair:
    if not series:
        return LatestPair(None, None)
    return LatestPair(series[-1], series[-2] if len(series) >= 2 else None)


def percent_change(current, previous) -> Optional[float]:
    """Change relative to ``abs(previous)``, in percent rounded to one decimal."""
    if current is None or previous is None:
        return None
    if not (math.isfinite(current) and math.isfinite(previous)) or previous == 0:
        return None
    return round_or_none(finite_or_none((current - previous) / abs(previous) * 100), 1)


def _normalized(row: Optional[Mapping[str, Any]], fields: Sequence[str]) -> Mapping[str, Any]:
    return {} if row is None else normalize_record(row, fields)


def build_highlights(
    latest: Optional[Mapping[str, Any]],
    previous: Optional[Mapping[str, Any]] = None,
    chain_latest: Optional[Mapping[str, Any]] = None,
    prev_year_latest: Optional[Mapping[str, Any]] = None,
) -> List[Highlight]:
    """
    One highlight per tracked metric with a non-null latest value.

    ``chain_latest`` is read through the chain field of each metric
    (``ChainAvgSales`` for ``TotalSales`` and so on); ``previous`` and
    ``prev_year_latest`` use the metric's own field name. Metrics whose latest
    value is missing are left out entirely.
    """
    own_fields = [m.field for m in TRACKED_METRICS]
    latest = _normalized(latest, own_fields)
    previous = _normalized(previous, own_fields)
    prev_year_latest = _normalized(prev_year_latest, own_fields)
    chain_latest = _normalized(chain_latest, [m.chain_field for m in TRACKED_METRICS])

    highlights: List[Highlight] = []
    for metric in TRACKED_METRICS:
        value = latest.get(metric.field)
        if value is None:
            continue

        baselines = {
            "previous": previous.get(metric.field),
            "prior_year": prev_year_latest.get(metric.field),
            "chain": chain_latest.get(metric.chain_field),
        }
        chips = []
        for comparison, label in COMPARISONS:
            delta = percent_change(value, baselines[comparison])
            if delta is None:
                continue
            chips.append(
                DeltaChip(
                    comparison=comparison,
                    label=label,
                    delta=delta,
                    formatted=f"{format_percent(delta)} {label}",
                    favorable=delta <= 0 if metric.lower_is_better else delta >= 0,
                )
            )

        highlights.append(
            Highlight(
                metric=metric.field,
                title=metric.title,
                value=value,
                formatted=metric.formatter(value),
                deltas=chips,
            )
        )
    return highlights
