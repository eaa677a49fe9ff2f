import pytest

from kpi_api import config
from kpi_api.errors import InvalidParameterError
from kpi_api.params import parse_month, parse_store_id, parse_year, resolve_years


def test_store_id_is_trimmed():
    assert parse_store_id("  S-01 ") == "S-01"
    assert parse_store_id(42) == "42"


@pytest.mark.parametrize("value", [None, "", "   ", "S1;DROP", "x" * 65])
def test_bad_store_ids_are_rejected(value):
    with pytest.raises(InvalidParameterError):
        parse_store_id(value)


@pytest.mark.parametrize("value, expected", [(2025, 2025), ("2024", 2024), (2023.0, 2023)])
def test_year_accepts_integral_values(value, expected):
    assert parse_year(value) == expected


@pytest.mark.parametrize("value", ["abc", 2025.5, 1800, 3000, True])
def test_year_rejects_garbage_instead_of_coercing(value):
    with pytest.raises(InvalidParameterError):
        parse_year(value)


def test_month_bounds():
    assert parse_month(None) is None
    assert parse_month("12") == 12
    with pytest.raises(InvalidParameterError, match="month"):
        parse_month(0)
    with pytest.raises(InvalidParameterError):
        parse_month(13)


def test_compare_year_defaults_to_previous_year(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_YEAR", 2025)

    assert resolve_years() == (2025, 2024)
    assert resolve_years(2023) == (2023, 2022)
    assert resolve_years(2023, 2020) == (2023, 2020)


def test_invalid_compare_year_is_named_in_the_error():
    with pytest.raises(InvalidParameterError, match="compare year"):
        resolve_years(2025, "last")


def test_derived_compare_year_is_validated_too():
    with pytest.raises(InvalidParameterError, match="compare year"):
        resolve_years(1900)
