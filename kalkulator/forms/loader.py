from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft202012Validator, validate

from .conditions import iter_conditions
from .models import (
    CATEGORY_HOURLY,
    Condition,
    DayOfYear,
    FormConfig,
    FormSection,
    GeneralCleaningStream,
    HourlyPricing,
    InflationPolicy,
    PricingModes,
    TransportFees,
    WinterMaintenance,
)

FORMS_DIR = Path(__file__).resolve().parent
DEFINITIONS_DIR = FORMS_DIR / "definitions"
SCHEMA_PATH = FORMS_DIR / "schemas" / "form_config.schema.json"


@lru_cache(maxsize=1)
def form_config_schema() -> Dict[str, Any]:
    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft202012Validator.check_schema(schema)
    return schema


def _dup_ids(ids: List[str]) -> List[str]:
    seen, dups = set(), []
    for fid in ids:
        if fid in seen and fid not in dups:
            dups.append(fid)
        seen.add(fid)
    return dups


def form_config_from_dict(d: Dict[str, Any]) -> FormConfig:
    """
    Build a FormConfig from its (already schema-valid) dict form and cross-validate:
    - field ids unique within the form
    - price streams only reference declared fields
    """
    infl = d.get("inflation") or {}
    inflation = InflationPolicy(
        rate=float(infl.get("rate", 0.04)),
        start_year=int(infl.get("startYear", 2026)),
        year_offset=int(infl.get("yearOffset", 0)),
    )

    pricing_modes = None
    if d.get("pricingModes"):
        pm = d["pricingModes"]
        pricing_modes = PricingModes(
            field=str(pm["field"]),
            base_prices={str(k): float(v) for k, v in pm["basePrices"].items()},
        )

    hourly = None
    if d.get("hourly") is not None or d.get("category") == CATEGORY_HOURLY:
        h = d.get("hourly") or {}
        hourly = HourlyPricing(
            excluded_fields=tuple(h.get("excludedFields") or ()),
            default_minimum_hours=float(h.get("defaultMinimumHours", 4)),
        )

    general = None
    if d.get("generalCleaning"):
        g = d["generalCleaning"]
        general = GeneralCleaningStream(
            trigger=Condition.from_dict(g["trigger"]),
            type_field=str(g["typeField"]),
            base_prices={str(k): float(v) for k, v in g["basePrices"].items()},
            frequencies={str(k): str(v) for k, v in g["frequencies"].items()},
            default_type=str(g["defaultType"]),
            fields=tuple(g["fields"]),
            exclusive_fields=tuple(g.get("exclusiveFields") or ()),
        )

    winter = None
    if d.get("winterMaintenance"):
        w = d["winterMaintenance"]
        period = w.get("period") or {}
        start = period.get("start") or {"month": 11, "day": 15}
        end = period.get("end") or {"month": 3, "day": 14}
        winter = WinterMaintenance(
            trigger=Condition.from_dict(w["trigger"]),
            service_fee=float(w.get("serviceFee", 500)),
            callout_fee=float(w.get("calloutFee", 600)),
            period_start=DayOfYear(int(start["month"]), int(start["day"])),
            period_end=DayOfYear(int(end["month"]), int(end["day"])),
        )

    transport = None
    if d.get("transportFees"):
        t = d["transportFees"]
        transport = TransportFees(
            fees={str(k): float(v) for k, v in t["fees"].items()},
            default=float(t["default"]),
            condition=Condition.from_dict(t["condition"]) if t.get("condition") else None,
        )

    config = FormConfig(
        id=str(d["id"]),
        title=str(d["title"]),
        description=str(d.get("description") or ""),
        sections=tuple(FormSection.from_dict(s) for s in d.get("sections") or []),
        base_price=float(d["basePrice"]),
        category=str(d.get("category") or "recurring"),
        calculator=str(d.get("calculator") or "generic"),
        inflation=inflation,
        pricing_modes=pricing_modes,
        hourly=hourly,
        general_cleaning=general,
        winter_maintenance=winter,
        transport_fees=transport,
        conditions=tuple(d.get("conditions") or ()),
        common_services={str(k): list(v) for k, v in (d.get("commonServices") or {}).items()},
    )

    # Cross-validation
    ids = [lf.field.id for lf in config.iter_fields()]
    dups = _dup_ids(ids)
    if dups:
        raise ValueError(f"{config.id}: duplicate field ids: {dups}")

    known = set(ids)
    referenced: List[str] = []
    if pricing_modes:
        referenced.append(pricing_modes.field)
    if hourly:
        referenced.extend(hourly.excluded_fields)
    if general:
        referenced.extend([general.type_field, *general.fields, *general.exclusive_fields])
        referenced.extend(c.field for c in iter_conditions(general.trigger))
        if general.default_type not in general.base_prices:
            raise ValueError(f"{config.id}: generalCleaning.defaultType has no base price")
    if winter:
        referenced.extend(c.field for c in iter_conditions(winter.trigger))
    unknown = sorted(set(referenced) - known)
    if unknown:
        raise ValueError(f"{config.id}: price streams reference unknown fields: {unknown}")

    return config


def load_form_config(path: str | Path) -> FormConfig:
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as f:
        d = yaml.safe_load(f) or {}

    validate(instance=d, schema=form_config_schema())
    return form_config_from_dict(d)


def load_definitions(directory: str | Path | None = None) -> List[FormConfig]:
    base = Path(directory) if directory else DEFINITIONS_DIR
    return [load_form_config(p) for p in sorted(base.glob("*.yaml"))]
