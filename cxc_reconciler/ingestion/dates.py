"""
Date helpers: Spanish "DD de Mes" parsing and calendar-date coercion.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from ..exceptions import ValidationError

MESES_ES = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}

_ES_DATE_RE = re.compile(r"^(\d{1,2})\s+de\s+(\w+)$")


def to_iso_from_es(fecha: str, year: Optional[int] = None) -> str:
    """
    Convert a Spanish "DD de Mes" date to YYYY-MM-DD.

    Args:
        fecha: Date text such as "15 de enero" (case and spacing are ignored)
        year: Year to apply; defaults to the current year

    Returns:
        ISO calendar date string

    Raises:
        ValidationError: If the text is not "DD de Mes", the month is
            unknown, or the day does not exist in that month
    """
    if not isinstance(fecha, str):
        raise ValidationError(
            f'Invalid date format: {fecha!r}. Use "DD de Mes".', field="fecha"
        )

    current_year = year or date.today().year
    normalized = " ".join(fecha.strip().lower().split())

    match = _ES_DATE_RE.match(normalized)
    if not match:
        raise ValidationError(
            f'Invalid date format: {fecha}. Use "DD de Mes".', field="fecha"
        )

    day_str, month_name = match.groups()
    month = MESES_ES.get(month_name)
    if month is None:
        raise ValidationError(f"Unrecognized month name: {month_name}", field="fecha")

    try:
        return date(current_year, month, int(day_str)).isoformat()
    except ValueError:
        raise ValidationError(
            f"Day {day_str} does not exist in {month_name} {current_year}",
            field="fecha",
        )


def coerce_date(value: Any) -> Optional[date]:
    """
    Reduce a date-like value to a calendar date.

    Timezone-aware timestamps are converted to UTC first; naive ones keep
    their own date. Returns None for anything unparseable, including aware
    timestamps whose UTC instant falls outside the supported date range.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc)
        except OverflowError:
            return None
    return parsed.date()


def canonical_date(value: Any) -> Optional[str]:
    """YYYY-MM-DD form of a date-like value, or None."""
    parsed = coerce_date(value)
    return parsed.isoformat() if parsed else None
