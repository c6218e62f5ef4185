# kalkulator/hashing/payload.py
from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional

from kalkulator.forms.models import FormConfig
from kalkulator.pricing.models import CalculationResult, SummaryOnly
from kalkulator.scheduling.start_date import format_iso_date, parse_date

DEFAULT_SERVICE = "Ostatní služby"
DEFAULT_CURRENCY = "Kč"


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value != "" else None


@dataclass(frozen=True)
class CustomerData:
    """Contact block collected on the enquiry page."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    invoice_email: Optional[str] = None
    company: Optional[Mapping[str, str]] = None  # name, ico, dic, address

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "email": self.email,
                "phone": self.phone,
                "address": self.address,
                "invoiceEmail": self.invoice_email,
                "company": dict(self.company) if self.company else None,
            }
        )

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "CustomerData":
        company = d.get("company")
        return CustomerData(
            first_name=str(d.get("firstName") or ""),
            last_name=str(d.get("lastName") or ""),
            email=str(d.get("email") or ""),
            phone=_text(d.get("phone")),
            address=_text(d.get("address")),
            invoice_email=_text(d.get("invoiceEmail")),
            company={str(k): str(v) for k, v in company.items()} if isinstance(company, Mapping) else None,
        )


@dataclass(frozen=True)
class CalculationData:
    """
    A calculation result plus the answers it was computed from.

    The two notes never share a slot: `origin_form_note` is the calculation form's
    `notes` answer, `confirmation_step_note` is written on the enquiry confirmation step.
    """

    result: CalculationResult
    form_data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[int] = None
    origin_form_note: Optional[str] = None
    confirmation_step_note: Optional[str] = None
    start_date: Optional[date] = None
    customer: Optional[CustomerData] = None

    def _extras(self) -> Dict[str, Any]:
        return {
            "originFormNote": self.origin_form_note,
            "confirmationStepNote": self.confirmation_step_note,
            "startDate": format_iso_date(self.start_date) if self.start_date else None,
            "customer": self.customer.to_dict() if self.customer else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        out = self.result.to_dict()
        out["formData"] = dict(self.form_data)
        out.update(_drop_none({"timestamp": self.timestamp, **self._extras()}))
        return out

    def to_minimal(self) -> Dict[str, Any]:
        r = self.result
        extras = self._extras()
        return _drop_none(
            {
                "rcp": r.regular_cleaning_price,
                "gcp": r.general_cleaning_price,
                "gcf": r.general_cleaning_frequency,
                "tmp": r.total_monthly_price,
                "hr": r.hourly_rate,
                "wsf": r.winter_service_fee,
                "wcf": r.winter_callout_fee,
                "oid": r.order_id or None,
                "fd": dict(self.form_data) if self.form_data else None,
                "on": extras["originFormNote"],
                "cn": extras["confirmationStepNote"],
                "sd": extras["startDate"],
                "cu": extras["customer"],
            }
        )

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "CalculationData":
        form_data = dict(d.get("formData") or {})
        customer = d.get("customer")
        timestamp = d.get("timestamp")
        return CalculationData(
            result=CalculationResult.from_dict(dict(d)),
            form_data=form_data,
            timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else None,
            origin_form_note=_text(d.get("originFormNote")) or _text(form_data.get("notes")),
            confirmation_step_note=_text(d.get("confirmationStepNote")),
            start_date=parse_date(d.get("startDate")),
            customer=CustomerData.from_dict(customer) if isinstance(customer, Mapping) else None,
        )

    @staticmethod
    def from_minimal(cd: Mapping[str, Any]) -> "CalculationData":
        def opt_float(key: str) -> Optional[float]:
            v = cd.get(key)
            return float(v) if v is not None else None

        form_data = dict(cd.get("fd") or {})
        customer = cd.get("cu")
        result = CalculationResult(
            regular_cleaning_price=float(cd.get("rcp") or 0),
            total_monthly_price=float(cd.get("tmp") or 0),
            order_id=str(cd.get("oid") or ""),
            calculation_details=SummaryOnly(),
            general_cleaning_price=opt_float("gcp"),
            general_cleaning_frequency=cd.get("gcf") or None,
            hourly_rate=opt_float("hr"),
            winter_service_fee=opt_float("wsf"),
            winter_callout_fee=opt_float("wcf"),
        )
        return CalculationData(
            result=result,
            form_data=form_data,
            origin_form_note=_text(cd.get("on")) or _text(form_data.get("notes")),
            confirmation_step_note=_text(cd.get("cn")),
            start_date=parse_date(cd.get("sd")),
            customer=CustomerData.from_dict(customer) if isinstance(customer, Mapping) else None,
        )


@dataclass(frozen=True)
class HashPayload:
    service_type: str
    service_title: str
    total_price: float
    currency: str = DEFAULT_CURRENCY
    calculation_data: Optional[CalculationData] = None

    def with_enquiry(
        self,
        *,
        customer: Optional[CustomerData] = None,
        confirmation_step_note: Optional[str] = None,
        start_date: Optional[date] = None,
    ) -> "HashPayload":
        """New payload carrying the enquiry-page fields; unspecified ones keep their value."""
        data = self.calculation_data or CalculationData(
            result=CalculationResult(
                regular_cleaning_price=self.total_price, total_monthly_price=self.total_price, order_id=""
            )
        )
        changes: Dict[str, Any] = {}
        if customer is not None:
            changes["customer"] = customer
        if confirmation_step_note is not None:
            changes["confirmation_step_note"] = confirmation_step_note or None
        if start_date is not None:
            changes["start_date"] = start_date
        return replace(self, calculation_data=replace(data, **changes))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "serviceType": self.service_type,
            "serviceTitle": self.service_title,
            "totalPrice": self.total_price,
            "currency": self.currency,
        }
        if self.calculation_data is not None:
            out["calculationData"] = self.calculation_data.to_dict()
        return out

    def to_minimal(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "st": self.service_type,
            "stt": self.service_title,
            "tp": self.total_price,
            "c": self.currency or DEFAULT_CURRENCY,
        }
        if self.calculation_data is not None:
            out["cd"] = self.calculation_data.to_minimal()
        return out

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "HashPayload":
        cd = d.get("calculationData")
        return HashPayload(
            service_type=str(d["serviceType"]),
            service_title=str(d.get("serviceTitle") or d["serviceType"]),
            total_price=float(d.get("totalPrice") or 0),
            currency=str(d.get("currency") or DEFAULT_CURRENCY),
            calculation_data=CalculationData.from_dict(cd) if isinstance(cd, Mapping) else None,
        )

    @staticmethod
    def from_minimal(d: Mapping[str, Any]) -> "HashPayload":
        cd = d.get("cd")
        return HashPayload(
            service_type=str(d["st"]),
            service_title=str(d.get("stt") or d["st"]),
            total_price=float(d.get("tp") or 0),
            currency=str(d.get("c") or DEFAULT_CURRENCY),
            calculation_data=CalculationData.from_minimal(cd) if isinstance(cd, Mapping) else None,
        )

    @staticmethod
    def from_any(d: Mapping[str, Any]) -> "HashPayload":
        if "st" in d:
            return HashPayload.from_minimal(d)
        return HashPayload.from_dict(d)


def build_hash_payload(
    result: CalculationResult,
    form_data: Mapping[str, Any],
    form_config: Optional[FormConfig] = None,
    *,
    total_price: Optional[float] = None,
    currency: str = DEFAULT_CURRENCY,
    timestamp: Optional[int] = None,
) -> HashPayload:
    title = form_config.title if form_config else DEFAULT_SERVICE
    data = CalculationData(
        result=result,
        form_data=dict(form_data),
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        origin_form_note=_text(form_data.get("notes")),
    )
    return HashPayload(
        service_type=form_config.id if form_config else DEFAULT_SERVICE,
        service_title=title,
        total_price=result.total_monthly_price if total_price is None else total_price,
        currency=currency,
        calculation_data=data,
    )
