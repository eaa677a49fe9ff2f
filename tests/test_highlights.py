import pytest

from kpi_api import aggregation
from kpi_api.formatting import format_absolute_percent, format_currency, format_number, format_percent
from kpi_api.highlights import build_highlights, latest_and_previous, percent_change


def test_latest_and_previous():
    assert latest_and_previous([]) == (None, None)
    assert latest_and_previous([{"m": 1}]) == ({"m": 1}, None)
    assert latest_and_previous([{"m": 1}, {"m": 2}, {"m": 3}]) == ({"m": 3}, {"m": 2})


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (150, 100, 50.0),
        (1, 3, -66.7),
        (100, 0, None),
        (None, 100, None),
        (100, None, None),
        (float("nan"), 100, None),
        (100, float("inf"), None),
        (1e308, -1e308, None),
    ],
)
def test_percent_change(current, previous, expected):
    assert percent_change(current, previous) == expected


def test_percent_change_uses_the_magnitude_of_a_negative_base():
    # -50 -> -25 is an improvement and must read as positive
    assert percent_change(-25, -50) == 50.0
    assert percent_change(-75, -50) == -50.0


def test_highlights_omit_metrics_without_a_latest_value():
    latest = {"TotalSales": 1000, "AvgHeadcount": 12, "SalesPerEmployee": 83.3, "Turnover": None}

    highlights = build_highlights(latest, None, None, None)

    assert [h.metric for h in highlights] == ["TotalSales", "AvgHeadcount", "SalesPerEmployee"]
    assert all(h.deltas == [] for h in highlights)


def test_highlights_accept_text_values():
    highlights = build_highlights({"TotalSales": "1,000", "Turnover": "4.5%"}, {"Turnover": "3%"})

    assert [h.metric for h in highlights] == ["Turnover"]
    assert highlights[0].formatted == "4.5%"
    assert highlights[0].deltas[0].delta == 50.0


def test_highlights_from_a_chain_benchmarked_series(kpi_records):
    series = aggregation.store_vs_chain_monthly(kpi_records, "A", 2025, 2024)
    latest, previous = latest_and_previous(series)
    prior_year = {
        "TotalSales": latest["PrevYearTotalSales"],
        "AvgHeadcount": latest["PrevYearAvgHeadcount"],
        "SalesPerEmployee": latest["PrevYearSalesPerEmployee"],
        "Turnover": latest["PrevYearTurnover"],
    }

    highlights = {h.metric: h for h in build_highlights(latest, previous, latest, prior_year)}

    sales = highlights["TotalSales"]
    assert sales.value == 200
    assert sales.formatted == "$200"
    assert {c.comparison: c.delta for c in sales.deltas} == {"previous": 100.0, "prior_year": 33.3, "chain": 60.0}
    assert sales.deltas[0].formatted == "+100.0% vs prev month"

    turnover = highlights["Turnover"]
    chips = {c.comparison: c for c in turnover.deltas}
    # no prior year turnover for February
    assert set(chips) == {"previous", "chain"}
    assert chips["previous"].favorable is False
    assert chips["chain"].delta == -33.3
    assert chips["chain"].favorable is True


def test_formatting_helpers():
    assert format_currency(1234567.4) == "$1,234,567"
    assert format_currency(-12.5, 2) == "-$12.50"
    assert format_currency(None) == "-"
    assert format_number("7.4") == "7.40"
    assert format_percent(4.26) == "+4.3%"
    assert format_percent(-0.04) == "-0.0%"
    assert format_percent("abc") == "-"
    assert format_absolute_percent(9.09) == "9.1%"
