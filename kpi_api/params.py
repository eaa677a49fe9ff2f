"""Validation of the store/year/month parameters accepted by every report."""

from typing import Any, Optional, Tuple
import re

from kpi_api import config
from kpi_api.errors import InvalidParameterError

MIN_YEAR = 1900
MAX_YEAR = 2100
MAX_STORE_ID_LENGTH = 64

_STORE_ID = re.compile(r"^[A-Za-z0-9 _.\-]+$")


def parse_store_id(value: Any) -> str:
    if value is None:
        raise InvalidParameterError("store id", value, "a store id is required")
    store_id = str(value).strip()
    if not store_id:
        raise InvalidParameterError("store id", value, "a store id is required")
    if len(store_id) > MAX_STORE_ID_LENGTH:
        raise InvalidParameterError("store id", value, f"longer than {MAX_STORE_ID_LENGTH} characters")
    if not _STORE_ID.match(store_id):
        raise InvalidParameterError("store id", value, "unexpected characters")
    return store_id


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParameterError(name, value, "not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    raise InvalidParameterError(name, value, "not an integer")


def parse_year(value: Any, name: str = "year") -> int:
    year = _parse_int(name, value)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidParameterError(name, value, f"expected a year between {MIN_YEAR} and {MAX_YEAR}")
    return year


def parse_month(value: Any) -> Optional[int]:
    if value is None:
        return None
    month = _parse_int("month", value)
    if not 1 <= month <= 12:
        raise InvalidParameterError("month", value, "expected a month number between 1 and 12")
    return month


def resolve_years(year: Any = None, compare_year: Any = None) -> Tuple[int, int]:
    """Apply the reporting defaults: ``year`` falls back to DEFAULT_YEAR, ``compare_year`` to ``year - 1``."""
    resolved = parse_year(config.DEFAULT_YEAR if year is None else year)
    return resolved, parse_year(resolved - 1 if compare_year is None else compare_year, "compare year")
