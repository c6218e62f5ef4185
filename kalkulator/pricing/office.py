"""
Office cleaning path.

Bypasses the per-field configuration walk: every answer is priced from fixed
lookup tables. Seven answers are mandatory; a missing one raises
PricingValidationError with the Czech message shown on the form.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from kalkulator.domain.regions import DEFAULT_REGION, RegionInfo, RegionTable

from .coefficients import WalkState, is_empty
from .errors import PricingValidationError
from .models import AppliedCoefficient, FullDetail, round_half_up

DAILY_FREQUENCIES = frozenset({"daily", "daily-basic-weekly", "daily-basic-weekly-wc"})

FREQUENCY = {
    "daily": 3.67,
    "3x-weekly": 2.0,
    "2x-weekly": 1.67,
    "weekly": 1.0,
    "biweekly": 0.75,
    "daily-basic-weekly": 2.5,
    "daily-basic-weekly-wc": 2.0,
}

# (upper bound in hours, coefficient); above the last bound -> HOURS_OVER
HOURS_BANDS: Tuple[Tuple[float, float], ...] = ((0.5, 0.85), (1.0, 1.0), (1.5, 1.1), (2.0, 1.3), (3.0, 1.45))
HOURS_OVER = 1.9
# band keys of the form that are not numbers; numeric answers go through HOURS_BANDS
HOURS_BY_KEY = {"2-3": 1.45, "3+": HOURS_OVER}

# (upper bound in m², coefficient)
AREA_STANDARD: Tuple[Tuple[float, float], ...] = (
    (50, 0.73), (75, 0.91), (100, 1.0), (125, 1.1), (200, 1.3), (300, 1.6), (500, 1.9), (700, 2.07),
)
AREA_STANDARD_OVER = 2.67
AREA_DAILY: Tuple[Tuple[float, float], ...] = (
    (50, 0.42), (75, 0.58), (100, 0.62), (125, 0.66), (200, 0.8), (300, 0.957), (500, 1.25), (700, 1.5),
    (1500, 2.4), (2500, 3.35),
)
AREA_DAILY_OVER = 3.7
# form band key -> representative area inside the band
AREA_BY_KEY = {
    "up-to-50": 50, "50-75": 75, "75-100": 100, "100-125": 125, "125-200": 200,
    "200-300": 300, "300-500": 500, "500-700": 700, "700-plus": 701,
}

FLOOR_TYPE = {
    "smooth": 0.96, "pvc": 0.96, "stone": 0.96, "floating": 0.96,
    "ceramic": 0.93, "carpet": 1.06, "combination": 1.03,
}
DISHWASHING = {"yes": 1.02, "no": 0.97, "dishwasher-only": 1.01}
TOILET_CLEANING = {"yes": 1.05, "no": 0.96}
AFTER_HOURS = {"yes": 1.0, "no": 1.05}
GENERAL_CLEANING_YES = 1.04
GENERAL_CLEANING_NO = 0.98

GENERAL_CLEANING_FREQUENCY = "2x ročně"


def _band(value: float, bands: Tuple[Tuple[float, float], ...], over: float) -> float:
    for limit, coefficient in bands:
        if value <= limit:
            return coefficient
    return over


def _number(value: Any) -> Optional[float]:
    try:
        return float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class OfficeTables:
    frequency: Mapping[str, float] = field(default_factory=lambda: dict(FREQUENCY))
    floor_type: Mapping[str, float] = field(default_factory=lambda: dict(FLOOR_TYPE))
    dishwashing: Mapping[str, float] = field(default_factory=lambda: dict(DISHWASHING))
    toilet_cleaning: Mapping[str, float] = field(default_factory=lambda: dict(TOILET_CLEANING))
    after_hours: Mapping[str, float] = field(default_factory=lambda: dict(AFTER_HOURS))

    def hourly_coefficient(self, raw: Any) -> Tuple[float, str]:
        hours = _number(raw)
        if hours is not None:
            return _band(hours, HOURS_BANDS, HOURS_OVER), f"Hodinový výpočet ({hours:g}h)"
        key = str(raw)
        if key in HOURS_BY_KEY:
            return HOURS_BY_KEY[key], f"Hodinový výpočet ({key}h)"
        return 1.0, ""

    def area_coefficient(self, raw: Any, frequency: str) -> Tuple[float, str]:
        key = str(raw)
        area = AREA_BY_KEY.get(key)
        if area is None:
            area = _number(raw)
        if area is None:
            return 1.0, ""
        if frequency in DAILY_FREQUENCIES:
            coefficient = _band(area, AREA_DAILY, AREA_DAILY_OVER)
        else:
            coefficient = _band(area, AREA_STANDARD, AREA_STANDARD_OVER)
        return coefficient, f"Plošný výpočet ({key}m²)"


DEFAULT_TABLES = OfficeTables()


def _require(answers: Mapping[str, Any], field_id: str, message: str) -> str:
    value = answers.get(field_id)
    if is_empty(value) or not isinstance(value, (str, int)):
        raise PricingValidationError(field_id, message)
    return str(value)


def _add(state: WalkState, field_id: str, label: str, coefficient: float) -> WalkState:
    if coefficient == 1.0:
        return state
    return state.record(AppliedCoefficient.multiplier(field_id, label, coefficient), coefficient=coefficient)


def _sizing(answers: Mapping[str, Any], frequency: str, tables: OfficeTables) -> Tuple[float, str]:
    method = answers.get("calculationMethod")
    if method == "hourly" and not is_empty(answers.get("hoursPerCleaning")):
        return tables.hourly_coefficient(answers["hoursPerCleaning"])
    if method == "area":
        for field_id in ("officeArea", "officeAreaDaily", "officeAreaNonDaily"):
            if not is_empty(answers.get(field_id)):
                return tables.area_coefficient(answers[field_id], frequency)
    return 1.0, ""


def _location(
    answers: Mapping[str, Any], resolved: Optional[RegionInfo], regions: RegionTable
) -> Optional[RegionInfo]:
    explicit = answers.get("location")
    if not is_empty(explicit):
        return regions.get(str(explicit))
    if not is_empty(answers.get("zipCode")):
        return resolved or regions.get(DEFAULT_REGION)
    raise PricingValidationError("location", "Lokalita je povinná")


def calculate_office_price(
    answers: Mapping[str, Any],
    *,
    base_price: float,
    resolved_region: Optional[RegionInfo] = None,
    regions: Optional[RegionTable] = None,
    tables: OfficeTables = DEFAULT_TABLES,
) -> Tuple[float, FullDetail]:
    regions = regions or RegionTable()
    state = WalkState()

    frequency = _require(answers, "cleaningFrequency", "Četnost úklidu je povinná")
    state = _add(state, "cleaningFrequency", "Četnost úklidu", tables.frequency.get(frequency, 1.0))

    sizing, sizing_label = _sizing(answers, frequency, tables)
    state = _add(state, "calculationMethod", sizing_label or "Způsob výpočtu", sizing)

    floor = _require(answers, "floorType", "Typ podlahové krytiny je povinný")
    state = _add(state, "floorType", "Typ podlahové krytiny", tables.floor_type.get(floor, 1.0))

    general = _require(answers, "generalCleaning", "Požadavek generálního úklidu je povinný")
    if general == "yes":
        state = _add(state, "generalCleaning", "Generální úklid", GENERAL_CLEANING_YES)
    else:
        state = _add(state, "generalCleaning", "Bez generálního úklidu", GENERAL_CLEANING_NO)

    dishwashing = _require(answers, "dishwashing", "Požadavek na mytí nádobí je povinný")
    state = _add(state, "dishwashing", "Mytí nádobí", tables.dishwashing.get(dishwashing, 1.0))

    toilet = _require(answers, "toiletCleaning", "Požadavek na úklid WC je povinný")
    state = _add(state, "toiletCleaning", "Úklid WC", tables.toilet_cleaning.get(toilet, 1.0))

    after_hours = _require(answers, "afterHours", "Požadavek na úklid mimo pracovní dobu je povinný")
    state = _add(state, "afterHours", "Úklid mimo pracovní dobu", tables.after_hours.get(after_hours, 1.0))

    region = _location(answers, resolved_region, regions)
    if region is not None:
        state = _add(state, "location", f"Lokalita ({region.label})", region.coefficient)

    price = round_half_up(base_price * state.final_coefficient, "0.1")
    details = FullDetail(
        base_price=base_price,
        applied_coefficients=state.entries,
        final_coefficient=state.final_coefficient,
    )
    return price, details
