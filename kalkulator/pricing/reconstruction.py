"""
Rebuild the audit trail of a result that travelled in the optimized hash form.

Only raw answers and the summary figures survive optimization; the coefficient walk is
deterministic, so re-running it against the same FormConfig yields the same entries.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from kalkulator.core.logging_config import logger
from kalkulator.forms.models import FormConfig

from .engine import OFFICE_CALCULATOR, PricingEngine, calculation_answers
from .errors import PricingValidationError
from .models import CalculationResult, FullDetail
from .office import calculate_office_price

FALLBACK_BASE_PRICE = 1500.0


def reconstruct_calculation_details(
    form_data: Mapping[str, Any],
    form_config: FormConfig,
    partial_result: Optional[CalculationResult] = None,
    *,
    engine: Optional[PricingEngine] = None,
) -> FullDetail:
    """
    Re-run the walk in detail-only mode. The base price comes from the partial result when
    it carries one, else from the configuration (pricing mode and inflation applied).

    The engine should be the one that priced the order: the locality and transport entries
    depend on how it resolves the postal code. Without one a default engine is used.
    """
    engine = engine or PricingEngine()
    answers = calculation_answers(form_data)

    base_price: Optional[float] = None
    if partial_result is not None and partial_result.calculation_details.base_price:
        base_price = partial_result.calculation_details.base_price
    if base_price is None:
        base_price = form_config.base_price_for(answers, engine.current_date()) or FALLBACK_BASE_PRICE

    region = engine.resolve_region(answers.get("zipCode"))

    if form_config.calculator == OFFICE_CALCULATOR:
        try:
            _, details = calculate_office_price(
                answers, base_price=base_price, resolved_region=region, regions=engine.regions
            )
        except PricingValidationError as e:
            logger.warning("office_reconstruction_incomplete", field=e.field, error=e.message)
            return FullDetail(base_price=base_price, applied_coefficients=(), final_coefficient=1.0)
        return details

    state = engine.walk(answers, form_config, region)
    _, transport_entry = engine.transport_fee(answers, form_config, region)
    entries = state.entries + ((transport_entry,) if transport_entry is not None else ())
    return FullDetail(base_price=base_price, applied_coefficients=entries, final_coefficient=state.final_coefficient)


def ensure_calculation_details(
    result: CalculationResult,
    form_data: Optional[Mapping[str, Any]],
    form_config: FormConfig,
    *,
    engine: Optional[PricingEngine] = None,
) -> CalculationResult:
    """Return `result` with a FullDetail, reconstructing it when only the summary travelled."""
    if isinstance(result.calculation_details, FullDetail):
        return result
    if form_data is None:
        raise ValueError("formData is required to reconstruct calculation details")
    details = reconstruct_calculation_details(form_data, form_config, result, engine=engine)
    return result.with_details(details)
