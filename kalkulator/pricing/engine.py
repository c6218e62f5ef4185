# kalkulator/pricing/engine.py
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from kalkulator.core.logging_config import logger
from kalkulator.domain.regions import RegionInfo, RegionTable
from kalkulator.forms.conditions import evaluate
from kalkulator.forms.models import FormConfig, TransportFees

from .coefficients import WalkState, is_empty, lookup_effect, stream_coefficient, walk_answers
from .models import AppliedCoefficient, CalculationResult, FullDetail, round_half_up
from .office import GENERAL_CLEANING_FREQUENCY, calculate_office_price
from .order_ids import generate_order_id

OFFICE_CALCULATOR = "office"
DEFAULT_REGION_LABEL = "Lokalita (Praha - výchozí)"


def calculation_answers(form_data: Mapping[str, Any]) -> Dict[str, Any]:
    """Answers the walk sees: booleans (UI toggles like consents) never price anything."""
    return {k: v for k, v in form_data.items() if not isinstance(v, bool)}


def minimum_hours(form_config: FormConfig, form_data: Mapping[str, Any]) -> Optional[float]:
    """
    Hourly services only: the displayed minimum duration. Taken from the coefficients of the
    rate-excluded (duration) fields, falling back to the configured default.
    """
    if not form_config.is_hourly:
        return None
    hourly = form_config.hourly
    default = hourly.default_minimum_hours if hourly else 4.0
    if hourly is None:
        return default

    candidates = []
    for field_id in hourly.excluded_fields:
        value = form_data.get(field_id)
        if is_empty(value):
            continue
        effect = lookup_effect(form_config.find_field(field_id), value)
        if effect.coefficient != 1.0:
            candidates.append(effect.coefficient)
    return max(candidates) if candidates else default


class PricingEngine:
    """
    Form answers + FormConfig -> CalculationResult.

    Collaborators are injected so tests can substitute them: the postal-code resolver
    (anything with `resolve(zip_code) -> region key | None`), the region table, the order
    id factory and the calculation date. `transport_fees` overrides the per-form fee tables
    keyed by form id.
    """

    def __init__(
        self,
        *,
        region_resolver: Any = None,
        regions: Optional[RegionTable] = None,
        order_id_factory: Callable[[], str] = generate_order_id,
        today: Optional[date] = None,
        transport_fees: Optional[Mapping[str, TransportFees]] = None,
    ):
        self.region_resolver = region_resolver
        self.regions = regions or RegionTable()
        self.order_id_factory = order_id_factory
        self.today = today
        self.transport_fees = dict(transport_fees or {})

    # -----------------
    # collaborators
    # -----------------

    def _resolver(self):
        if self.region_resolver is None:
            from kalkulator.services.region_resolver import get_region_resolver

            self.region_resolver = get_region_resolver()
        return self.region_resolver

    def current_date(self) -> date:
        return self.today or date.today()

    def resolve_region(self, zip_code: Any) -> Optional[RegionInfo]:
        """Region of a postal code; every failure is 'no region'."""
        if not isinstance(zip_code, str) or not zip_code.strip():
            return None
        try:
            key = self._resolver().resolve(zip_code)
        except Exception as e:  # noqa: BLE001 - resolver failures degrade to the default region
            logger.warning("region_resolve_failed", zip_code=zip_code, error=repr(e))
            return None
        return self.regions.get(key) if key else None

    def transport_fees_for(self, form_config: FormConfig) -> Optional[TransportFees]:
        return self.transport_fees.get(form_config.id, form_config.transport_fees)

    # -----------------
    # calculation
    # -----------------

    def calculate_price(
        self,
        form_data: Mapping[str, Any],
        form_config: FormConfig,
        *,
        order_id: Optional[str] = None,
    ) -> CalculationResult:
        answers = calculation_answers(form_data)
        order_id = order_id or self.order_id_factory()
        base_price = form_config.base_price_for(answers, self.current_date())
        zip_code = answers.get("zipCode")
        region = self.resolve_region(zip_code)

        if form_config.calculator == OFFICE_CALCULATOR:
            price, details = calculate_office_price(
                answers, base_price=base_price, resolved_region=region, regions=self.regions
            )
            logger.info("price_calculated", service_type=form_config.id, order_id=order_id, price=price)
            return CalculationResult(
                regular_cleaning_price=price,
                total_monthly_price=price,
                order_id=order_id,
                calculation_details=details,
                general_cleaning_frequency=GENERAL_CLEANING_FREQUENCY,
            )

        state = self.walk(answers, form_config, region)
        details = FullDetail(
            base_price=base_price,
            applied_coefficients=state.entries,
            final_coefficient=state.final_coefficient,
        )

        hourly_rate: Optional[float] = None
        if form_config.is_hourly:
            hourly_rate = round_half_up(base_price * state.final_coefficient)
            regular_price = hourly_rate
        else:
            regular_price = round_half_up(base_price * state.final_coefficient + state.total_addons, "0.1")

        general_price, general_frequency = self.general_cleaning(answers, form_config)
        winter_service_fee, winter_callout_fee = self.winter_fees(answers, form_config)

        transport_fee, transport_entry = self.transport_fee(answers, form_config, region)
        if transport_entry is not None:
            details = FullDetail(
                base_price=base_price,
                applied_coefficients=details.applied_coefficients + (transport_entry,),
                final_coefficient=details.final_coefficient,
            )

        if form_config.is_hourly:
            total = hourly_rate
        else:
            total = round_half_up(regular_price + transport_fee, "0.1")

        logger.info("price_calculated", service_type=form_config.id, order_id=order_id, price=regular_price)
        return CalculationResult(
            regular_cleaning_price=regular_price,
            total_monthly_price=total,
            order_id=order_id,
            calculation_details=details,
            general_cleaning_price=general_price,
            general_cleaning_frequency=general_frequency,
            hourly_rate=hourly_rate,
            winter_service_fee=winter_service_fee,
            winter_callout_fee=winter_callout_fee,
        )

    def walk(self, answers: Mapping[str, Any], form_config: FormConfig, region: Optional[RegionInfo]) -> WalkState:
        """Region entry followed by the per-field fold of the regular price stream."""
        state = WalkState()
        if isinstance(answers.get("zipCode"), str) and answers["zipCode"].strip():
            state = self.record_region(state, region)

        skip = form_config.general_cleaning.exclusive_fields if form_config.general_cleaning else ()
        rate_excluded = form_config.hourly.excluded_fields if form_config.is_hourly and form_config.hourly else ()
        return walk_answers(state, form_config, answers, skip=skip, rate_excluded=rate_excluded)

    @staticmethod
    def record_region(state: WalkState, region: Optional[RegionInfo]) -> WalkState:
        if region is None:
            return state.record(AppliedCoefficient(field="zipCode", label=DEFAULT_REGION_LABEL, coefficient=1.0, impact=0))
        entry = AppliedCoefficient.multiplier("zipCode", f"Lokalita ({region.label})", region.coefficient)
        return state.record(entry, coefficient=region.coefficient)

    def general_cleaning(
        self, answers: Mapping[str, Any], form_config: FormConfig
    ) -> Tuple[Optional[float], Optional[str]]:
        stream = form_config.general_cleaning
        if stream is None or not evaluate(stream.trigger, answers):
            return None, None
        cleaning_type = answers.get(stream.type_field)
        if is_empty(cleaning_type):
            return None, None

        base = form_config.inflation.adjust(stream.base_price_for(str(cleaning_type)), self.current_date().year)
        coefficient = stream_coefficient(form_config, answers, stream.fields)
        return round_half_up(base * coefficient, "0.1"), stream.frequency_for(str(cleaning_type))

    @staticmethod
    def winter_fees(answers: Mapping[str, Any], form_config: FormConfig) -> Tuple[Optional[float], Optional[float]]:
        winter = form_config.winter_maintenance
        if winter is None or not evaluate(winter.trigger, answers):
            return None, None
        return winter.service_fee, winter.callout_fee

    def transport_fee(
        self, answers: Mapping[str, Any], form_config: FormConfig, region: Optional[RegionInfo]
    ) -> Tuple[float, Optional[AppliedCoefficient]]:
        fees = self.transport_fees_for(form_config)
        if fees is None or region is None:
            return 0.0, None
        if fees.condition is not None and not evaluate(fees.condition, answers):
            return 0.0, None
        fee = fees.fee_for(str(region.value))
        if fee <= 0:
            return 0.0, None
        return fee, AppliedCoefficient.fixed("zipCode", f"Doprava ({region.value}) - pevná cena", fee)


def calculate_price(
    form_data: Mapping[str, Any],
    form_config: FormConfig,
    *,
    engine: Optional[PricingEngine] = None,
) -> CalculationResult:
    return (engine or PricingEngine()).calculate_price(form_data, form_config)
