from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

from kalkulator.forms.conditions import is_active
from kalkulator.forms.models import (
    AlertField,
    CheckboxField,
    ConditionalField,
    FormConfig,
    FormField,
    InputField,
    Option,
    RadioField,
    SelectField,
    TextareaField,
)

from .models import AppliedCoefficient

REGULAR = "regular"
GENERAL = "general"

SKIPPED_FIELDS = frozenset({"zipCode", "notes"})


@dataclass(frozen=True)
class FieldEffect:
    coefficient: float = 1.0
    addon: float = 0.0
    label: str = ""

    @property
    def is_neutral(self) -> bool:
        return self.coefficient == 1.0 and self.addon == 0


NEUTRAL = FieldEffect()


def is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and not value)


def _option_coefficient(option: Option, stream: str) -> float:
    if stream == GENERAL and option.general_coefficient is not None:
        return option.general_coefficient
    return option.coefficient


def lookup_effect(field: Optional[FormField], value: Any, *, stream: str = REGULAR) -> FieldEffect:
    """
    Coefficient/addon of one submitted answer. Unknown fields, unknown values and
    variants without options are neutral.
    """
    if field is None or is_empty(value):
        return NEUTRAL

    if isinstance(field, CheckboxField):
        values = value if isinstance(value, (list, tuple)) else [value]
        coefficient, addon, labels = 1.0, 0.0, []
        for v in values:
            opt = field.option_for(v)
            if opt is None:
                labels.append(str(v))
                continue
            coefficient *= _option_coefficient(opt, stream)
            addon += opt.fixed_addon
            labels.append(opt.label or str(v))
        return FieldEffect(coefficient, addon, ", ".join(labels))

    if isinstance(field, (RadioField, SelectField)):
        if isinstance(value, (list, tuple)):
            return NEUTRAL
        opt = field.option_for(value)
        if opt is None:
            return NEUTRAL
        return FieldEffect(_option_coefficient(opt, stream), opt.fixed_addon, opt.label or field.label or field.id)

    if isinstance(field, (InputField, TextareaField, AlertField, ConditionalField)):
        return NEUTRAL

    raise TypeError(f"Unhandled field variant: {type(field).__name__}")


# -----------------------
# Fold
# -----------------------


@dataclass(frozen=True)
class WalkState:
    final_coefficient: float = 1.0
    total_addons: float = 0.0
    entries: Tuple[AppliedCoefficient, ...] = ()

    def record(self, entry: AppliedCoefficient, *, coefficient: float = 1.0, addon: float = 0.0) -> "WalkState":
        return WalkState(
            final_coefficient=self.final_coefficient * coefficient,
            total_addons=self.total_addons + addon,
            entries=self.entries + (entry,),
        )


def apply_effect(
    state: WalkState, field_id: str, effect: FieldEffect, *, affects_rate: bool = True
) -> WalkState:
    """
    One fold step. A non-neutral coefficient gives a multiplier entry (and multiplies the
    running rate unless `affects_rate` is off); a positive addon gives a fixed entry.
    """
    label = effect.label or field_id
    if effect.coefficient != 1.0:
        state = state.record(
            AppliedCoefficient.multiplier(field_id, label, effect.coefficient),
            coefficient=effect.coefficient if affects_rate else 1.0,
        )
    if effect.addon > 0:
        state = state.record(AppliedCoefficient.fixed(field_id, label, effect.addon), addon=effect.addon)
    return state


def walk_answers(
    state: WalkState,
    form_config: FormConfig,
    answers: Mapping[str, Any],
    *,
    skip: Iterable[str] = (),
    rate_excluded: Iterable[str] = (),
) -> WalkState:
    """Fold every active, non-empty answer of the regular price stream into `state`."""
    skipped = SKIPPED_FIELDS | set(skip)
    excluded = set(rate_excluded)
    located = form_config.located_fields

    for field_id, value in answers.items():
        if field_id in skipped or is_empty(value):
            continue
        lf = located.get(field_id)
        if lf is None or not is_active(lf, answers):
            continue
        effect = lookup_effect(lf.field, value)
        state = apply_effect(state, field_id, effect, affects_rate=field_id not in excluded)
    return state


def stream_coefficient(form_config: FormConfig, answers: Mapping[str, Any], field_ids: Iterable[str]) -> float:
    """Product of the general-stream coefficients of the listed (active) answers."""
    coefficient = 1.0
    located = form_config.located_fields
    for field_id in field_ids:
        lf = located.get(field_id)
        if lf is None or not is_active(lf, answers):
            continue
        coefficient *= lookup_effect(lf.field, answers.get(field_id), stream=GENERAL).coefficient
    return coefficient
