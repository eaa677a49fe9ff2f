from typing import Optional

from kpi_api.normalize import to_number

PLACEHOLDER = "-"


def format_currency(value, decimals: int = 0) -> str:
    number = to_number(value)
    if number is None:
        return PLACEHOLDER
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.{decimals}f}"


def format_number(value, decimals: int = 2) -> str:
    number = to_number(value)
    return PLACEHOLDER if number is None else f"{number:,.{decimals}f}"


def format_percent(value) -> str:
    """Signed percentage with one decimal, e.g. ``+4.2%``."""
    number = to_number(value)
    if number is None:
        return PLACEHOLDER
    return f"{'+' if number >= 0 else ''}{number:.1f}%"


def format_absolute_percent(value) -> str:
    number = to_number(value)
    return PLACEHOLDER if number is None else f"{number:.1f}%"


def round_or_none(value: Optional[float], digits: int = 1) -> Optional[float]:
    return None if value is None else round(value, digits)
