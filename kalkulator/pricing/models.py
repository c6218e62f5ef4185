from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

D = Decimal


def round_half_up(value: float, step: str = "1") -> float:
    """Round to a multiple of `step` ("1", "0.1", "10"), halves away from zero."""
    q = D(step)
    amount = D(str(value))
    if q >= 1:
        return float((amount / q).quantize(D("1"), rounding=ROUND_HALF_UP) * q)
    return float(amount.quantize(q, rounding=ROUND_HALF_UP))


# -----------------------------
# Audit trail
# -----------------------------


@dataclass(frozen=True)
class AppliedCoefficient:
    """
    One line of the audit trail.
    - coefficient != 1: rate multiplier, impact = (coefficient - 1) * 100 (percent)
    - coefficient == 1: fixed amount, impact = currency amount
    """

    field: str
    label: str
    coefficient: float
    impact: float

    @property
    def is_fixed_addon(self) -> bool:
        return self.coefficient == 1

    @classmethod
    def multiplier(cls, field_id: str, label: str, coefficient: float) -> "AppliedCoefficient":
        return cls(field=field_id, label=label, coefficient=coefficient, impact=(coefficient - 1) * 100)

    @classmethod
    def fixed(cls, field_id: str, label: str, amount: float) -> "AppliedCoefficient":
        return cls(field=field_id, label=label, coefficient=1, impact=amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "coefficient": self.coefficient,
            "impact": self.impact,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AppliedCoefficient":
        return AppliedCoefficient(
            field=str(d.get("field") or ""),
            label=str(d.get("label") or ""),
            coefficient=float(d.get("coefficient", 1)),
            impact=float(d.get("impact", 0)),
        )


# -----------------------------
# Calculation details (sum type)
# -----------------------------


@dataclass(frozen=True)
class FullDetail:
    base_price: float
    applied_coefficients: Tuple[AppliedCoefficient, ...]
    final_coefficient: float

    kind: ClassVar[str] = "full"


@dataclass(frozen=True)
class SummaryOnly:
    """Audit trail omitted; rebuild with reconstruct_calculation_details()."""

    base_price: Optional[float] = None

    kind: ClassVar[str] = "summary"


CalculationDetails = Union[FullDetail, SummaryOnly]


def details_to_dict(details: CalculationDetails) -> Dict[str, Any]:
    if isinstance(details, FullDetail):
        return {
            "basePrice": details.base_price,
            "appliedCoefficients": [c.to_dict() for c in details.applied_coefficients],
            "finalCoefficient": details.final_coefficient,
        }
    # wire sentinel for "not computed": empty list, neutral coefficient
    return {"basePrice": details.base_price or 0, "appliedCoefficients": [], "finalCoefficient": 1}


def details_from_dict(d: Optional[Dict[str, Any]]) -> CalculationDetails:
    if not d or not d.get("appliedCoefficients"):
        base = (d or {}).get("basePrice")
        return SummaryOnly(base_price=float(base) if base else None)
    return FullDetail(
        base_price=float(d.get("basePrice") or 0),
        applied_coefficients=tuple(AppliedCoefficient.from_dict(x) for x in d["appliedCoefficients"]),
        final_coefficient=float(d.get("finalCoefficient", 1)),
    )


# -----------------------------
# Result
# -----------------------------


@dataclass(frozen=True)
class CalculationResult:
    regular_cleaning_price: float  # hourly services: the hourly rate
    total_monthly_price: float  # hourly services: the hourly rate
    order_id: str
    calculation_details: CalculationDetails = field(default_factory=SummaryOnly)
    general_cleaning_price: Optional[float] = None
    general_cleaning_frequency: Optional[str] = None
    hourly_rate: Optional[float] = None
    winter_service_fee: Optional[float] = None
    winter_callout_fee: Optional[float] = None

    def with_details(self, details: CalculationDetails) -> "CalculationResult":
        return replace(self, calculation_details=details)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "regularCleaningPrice": self.regular_cleaning_price,
            "totalMonthlyPrice": self.total_monthly_price,
            "orderId": self.order_id,
            "calculationDetails": details_to_dict(self.calculation_details),
        }
        optional = {
            "generalCleaningPrice": self.general_cleaning_price,
            "generalCleaningFrequency": self.general_cleaning_frequency,
            "hourlyRate": self.hourly_rate,
            "winterServiceFee": self.winter_service_fee,
            "winterCalloutFee": self.winter_callout_fee,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CalculationResult":
        def opt_float(key: str) -> Optional[float]:
            v = d.get(key)
            return float(v) if v is not None else None

        return CalculationResult(
            regular_cleaning_price=float(d.get("regularCleaningPrice") or 0),
            total_monthly_price=float(d.get("totalMonthlyPrice") or 0),
            order_id=str(d.get("orderId") or ""),
            calculation_details=details_from_dict(d.get("calculationDetails")),
            general_cleaning_price=opt_float("generalCleaningPrice"),
            general_cleaning_frequency=d.get("generalCleaningFrequency") or None,
            hourly_rate=opt_float("hourlyRate"),
            winter_service_fee=opt_float("winterServiceFee"),
            winter_callout_fee=opt_float("winterCalloutFee"),
        )
