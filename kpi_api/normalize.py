"""
Row normalization helpers.

Values coming back from the reporting views are not uniformly typed: the same
column can arrive as a number, a ``Decimal``, a numeric string or a
percent-suffixed string such as ``"9.09%"``. Everything in here converts those
into a float (or ``None``) and never raises, so the aggregation code only ever
deals with numbers-or-null.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import math


def to_number(value: Any) -> Optional[float]:
    """Coerce ``value`` to a finite number, or ``None`` when that is not possible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value) if isinstance(value, Decimal) else value
            return number if math.isfinite(number) else None
        except (OverflowError, ValueError):
            # ints beyond float range, signaling NaN decimals
            return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Drop results that overflowed to infinity (or became NaN) along the way."""
    try:
        return value if value is not None and math.isfinite(value) else None
    except OverflowError:
        return None


def normalize_record(raw: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of ``raw`` with every field in ``fields`` passed through :func:`to_number`."""
    record = dict(raw)
    for field in fields:
        record[field] = to_number(raw.get(field))
    return record


def _key_value(value: Any) -> Any:
    number = to_number(value)
    if number is not None and float(number).is_integer():
        return int(number)
    return value


def _key_order(value: Any) -> Tuple[int, Any]:
    # numeric keys first in numeric order, anything else after them as text
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0, value
    return 1, str(value)


def merge_by_key(
    primary: Sequence[Mapping[str, Any]],
    secondary: Sequence[Mapping[str, Any]],
    key: str = "MonthNumber",
    conflict_prefix: str = "Peer",
    primary_fields: Sequence[str] = (),
    secondary_fields: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """
    Full outer join of two series on ``key``.

    Every key present in either series appears exactly once. Fields of the side
    missing a key are present as ``None`` placeholders. A secondary field whose
    name is already used by the primary series is exposed as
    ``conflict_prefix + name`` rather than overwriting the primary value; the
    prefix is repeated until the name is unused on both sides.
    ``primary_fields``/``secondary_fields`` declare placeholder names for a side
    that may be entirely empty.

    Keys are ordered numerically; keys that are not numbers sort after the
    numeric ones by their text.
    """
    primary_names: List[str] = list(primary_fields)
    for row in primary:
        primary_names.extend(name for name in row if name != key and name not in primary_names)

    secondary_names: List[str] = []
    for name in list(secondary_fields) + [n for row in secondary for n in row]:
        if name != key and name not in secondary_names:
            secondary_names.append(name)

    taken = set(primary_names) | set(secondary_names)
    renames: Dict[str, str] = {}
    for name in secondary_names:
        if name not in primary_names:
            renames[name] = name
            continue
        renamed = f"{conflict_prefix}{name}"
        while renamed in taken:
            renamed = f"{conflict_prefix}{renamed}"
        taken.add(renamed)
        renames[name] = renamed

    merged: Dict[Any, Dict[str, Any]] = {}

    def _slot(raw_key: Any) -> Dict[str, Any]:
        k = _key_value(raw_key)
        if k not in merged:
            row: Dict[str, Any] = {key: k}
            row.update({name: None for name in primary_names})
            row.update({renamed: None for renamed in renames.values()})
            merged[k] = row
        return merged[k]

    for row in primary:
        if row.get(key) is None:
            continue
        slot = _slot(row[key])
        slot.update((name, value) for name, value in row.items() if name != key)

    for row in secondary:
        if row.get(key) is None:
            continue
        slot = _slot(row[key])
        slot.update((renames[name], value) for name, value in row.items() if name != key)

    return [merged[k] for k in sorted(merged, key=_key_order)]
