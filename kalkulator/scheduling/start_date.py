# kalkulator/scheduling/start_date.py
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any, Optional

from kalkulator.forms.models import CATEGORY_HOURLY, DayOfYear, FormConfig


class ServiceCategory(StrEnum):
    HOURLY = "hourly"
    RECURRING = "recurring"


MINIMUM_DELAY_DAYS = {
    ServiceCategory.HOURLY: 1,
    ServiceCategory.RECURRING: 10,
}

_CZECH_DATE = re.compile(r"^\s*(\d{1,2})\.\s*(\d{1,2})\.\s*(\d{4})\s*$")


def category_of(form_config: Optional[FormConfig]) -> ServiceCategory:
    if form_config is not None and form_config.category == CATEGORY_HOURLY:
        return ServiceCategory.HOURLY
    return ServiceCategory.RECURRING


def minimum_start_date(category: ServiceCategory | str, today: Optional[date] = None) -> date:
    today = today or date.today()
    return today + timedelta(days=MINIMUM_DELAY_DAYS[ServiceCategory(category)])


def enforce_minimum_delay(
    candidate: Optional[date], category: ServiceCategory | str, today: Optional[date] = None
) -> date:
    """Dates before the minimum are raised to it; later dates pass through unchanged."""
    minimum = minimum_start_date(category, today)
    if candidate is None or candidate < minimum:
        return minimum
    return candidate


def parse_date(value: Any) -> Optional[date]:
    """
    Boundary parser: `date`, `datetime`, ISO `YYYY-MM-DD`, ISO datetime and Czech
    `D. M. YYYY`. Anything else is None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    m = _CZECH_DATE.match(text)
    try:
        if m:
            day, month, year = (int(g) for g in m.groups())
            return date(year, month, day)
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_iso_date(day: date) -> str:
    return day.isoformat()


def format_czech_date(day: date) -> str:
    return f"{day.day}. {day.month}. {day.year}"


def resolve_start_date(
    value: Any, category: ServiceCategory | str, today: Optional[date] = None
) -> date:
    """Parse whatever the payload carried and correct it by the category policy."""
    return enforce_minimum_delay(parse_date(value), category, today)


def is_winter_maintenance_period(
    day: Optional[date] = None,
    *,
    start: DayOfYear = DayOfYear(11, 15),
    end: DayOfYear = DayOfYear(3, 14),
) -> bool:
    """Inclusive period that wraps the new year (15 November through 14 March by default)."""
    day = day or date.today()
    md = (day.month, day.day)
    return md >= (start.month, start.day) or md <= (end.month, end.day)
