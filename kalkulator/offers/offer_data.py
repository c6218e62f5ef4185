"""
Document-facing offer record built from a calculation, the answers it came from and the
optional customer block. Rendering (PDF, e-mail) consumes this record as-is.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from kalkulator.forms.models import (
    CheckboxField,
    FormConfig,
    FormField,
    RadioField,
    SelectField,
)
from kalkulator.hashing.payload import CustomerData, HashPayload
from kalkulator.pricing.engine import PricingEngine, minimum_hours
from kalkulator.pricing.models import CalculationResult, FullDetail, round_half_up
from kalkulator.pricing.reconstruction import ensure_calculation_details
from kalkulator.scheduling.start_date import (
    category_of,
    format_czech_date,
    resolve_start_date,
)

CUSTOMER_PLACEHOLDER = "Údaje o zákazníkovi budou doplněny později"
TRANSPORT_LABEL = "Doprava"

COMPANY = {
    "name": "HandyHands, s.r.o.",
    "address": "Praha 4, Hvězdova 13/2, PSČ 14078",
    "ico": "49240901",
    "registerInfo": "v obchodním rejstříku vedeném Městským soudem v Praze, oddíl B, vložka 2051",
    "email": "info@handyhands.cz",
    "phone": "+420 412 440 000",
}


@dataclass(frozen=True)
class SummaryItem:
    label: str
    value: str


@dataclass(frozen=True)
class AddonItem:
    label: str
    amount: float


@dataclass(frozen=True)
class OfferData:
    quote_date: str
    price: float
    start_date: str
    service_title: str
    customer: Dict[str, Any]
    company: Dict[str, str]
    summary_items: List[SummaryItem]
    origin_form_note: Optional[str] = None
    confirmation_step_note: Optional[str] = None
    conditions: List[str] = field(default_factory=list)
    common_services: Dict[str, List[str]] = field(default_factory=dict)
    general_cleaning_price: Optional[float] = None
    general_cleaning_frequency: Optional[str] = None
    winter_service_fee: Optional[float] = None
    winter_callout_fee: Optional[float] = None
    winter_period: Optional[Dict[str, Dict[str, int]]] = None
    is_hourly_service: bool = False
    hourly_rate: Optional[float] = None
    fixed_addons: Optional[List[AddonItem]] = None
    minimum_hours: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        return {_camel(k): v for k, v in d.items()}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def display_value(f: FormField, value: Any) -> str:
    if isinstance(value, bool):
        return "ano" if value else "ne"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        if isinstance(f, CheckboxField):
            labels = []
            for v in value:
                opt = f.option_for(v)
                labels.append(opt.label if opt else str(v))
            return ", ".join(labels)
        return ", ".join(str(v) for v in value)
    if isinstance(value, str) and isinstance(f, (RadioField, SelectField)):
        opt = f.option_for(value)
        return opt.label if opt else value
    return str(value)


def summary_items(form_data: Mapping[str, Any], form_config: FormConfig) -> List[SummaryItem]:
    """Question/answer rows for the top-level fields of every section, in form order."""
    items: List[SummaryItem] = []
    for section in form_config.sections:
        for f in section.fields:
            if f.id == "notes":
                continue
            value = form_data.get(f.id)
            if value is None or value == "":
                continue
            text = display_value(f, value)
            if text:
                items.append(SummaryItem(label=f.label or section.title or f.id, value=text))
    return items


def grouped_addons(form_config: FormConfig, result: CalculationResult) -> List[AddonItem]:
    """Fixed addons summed per section title; transport goes last as a single line."""
    details = result.calculation_details
    if not isinstance(details, FullDetail):
        return []

    by_section: Dict[str, float] = {}
    transport = 0.0
    for entry in details.applied_coefficients:
        if not (entry.is_fixed_addon and entry.impact > 0):
            continue
        if entry.field == "zipCode" or "doprava" in entry.label.lower():
            transport = entry.impact
            continue
        section = form_config.section_of(entry.field)
        if section is not None:
            by_section[section.title] = by_section.get(section.title, 0.0) + entry.impact

    items = [AddonItem(label=title, amount=amount) for title, amount in by_section.items()]
    if transport > 0:
        items.append(AddonItem(label=TRANSPORT_LABEL, amount=transport))
    return items


def _customer_block(customer: Optional[CustomerData]) -> Dict[str, Any]:
    if customer is None:
        return {"name": CUSTOMER_PLACEHOLDER}
    block = customer.to_dict()
    block.update(
        {
            "name": customer.full_name,
            "email": customer.email,
            "phone": customer.phone or "",
            "address": customer.address or "",
        }
    )
    return block


def convert_form_data_to_offer_data(
    form_data: Mapping[str, Any],
    result: CalculationResult,
    form_config: FormConfig,
    customer: Optional[CustomerData] = None,
    *,
    start_date: Any = None,
    origin_form_note: Optional[str] = None,
    confirmation_step_note: Optional[str] = None,
    today: Optional[date] = None,
) -> OfferData:
    today = today or date.today()
    hourly = form_config.is_hourly

    if hourly:
        price = round_half_up(result.hourly_rate or result.total_monthly_price)
    else:
        price = round_half_up(result.total_monthly_price, "10")

    requested = start_date if start_date is not None else form_data.get("serviceStartDate")
    start = resolve_start_date(requested, category_of(form_config), today)

    winter = form_config.winter_maintenance
    winter_period = None
    if winter is not None:
        winter_period = {
            "start": {"day": winter.period_start.day, "month": winter.period_start.month},
            "end": {"day": winter.period_end.day, "month": winter.period_end.month},
        }

    notes = origin_form_note or form_data.get("notes")
    return OfferData(
        quote_date=format_czech_date(today),
        price=price,
        start_date=format_czech_date(start),
        service_title=form_config.title,
        customer=_customer_block(customer),
        company=dict(COMPANY),
        summary_items=summary_items(form_data, form_config),
        origin_form_note=notes if isinstance(notes, str) and notes else None,
        confirmation_step_note=confirmation_step_note or None,
        conditions=list(form_config.conditions),
        common_services={k: list(v) for k, v in form_config.common_services.items()},
        general_cleaning_price=result.general_cleaning_price,
        general_cleaning_frequency=result.general_cleaning_frequency,
        winter_service_fee=result.winter_service_fee,
        winter_callout_fee=result.winter_callout_fee,
        winter_period=winter_period,
        is_hourly_service=hourly,
        hourly_rate=result.hourly_rate,
        fixed_addons=grouped_addons(form_config, result) if hourly else None,
        minimum_hours=minimum_hours(form_config, form_data) if hourly else None,
    )


def offer_data_from_payload(
    payload: HashPayload,
    form_config: FormConfig,
    *,
    today: Optional[date] = None,
    engine: Optional[PricingEngine] = None,
) -> OfferData:
    """
    Offer for a decoded token; an optimized token gets its audit trail rebuilt first.
    Pass the engine that priced the order so the postal code resolves the same way and
    the transport line survives the rebuild.
    """
    data = payload.calculation_data
    if data is None:
        raise ValueError("Hash payload carries no calculation data")
    result = ensure_calculation_details(data.result, data.form_data, form_config, engine=engine)
    return convert_form_data_to_offer_data(
        data.form_data,
        result,
        form_config,
        data.customer,
        start_date=data.start_date,
        origin_form_note=data.origin_form_note,
        confirmation_step_note=data.confirmation_step_note,
        today=today,
    )
