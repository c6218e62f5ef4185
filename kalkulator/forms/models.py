from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from functools import cached_property
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple, Union


# -----------------------
# Conditions
# -----------------------


@dataclass(frozen=True)
class Condition:
    field: str
    value: Any
    operator: str = "equals"  # equals | not_equals | greater_than | less_than

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AnyCondition":
        if "conditions" in d:
            return ConditionGroup(
                operator=str(d.get("operator") or "and").lower(),
                conditions=tuple(Condition.from_dict(x) for x in d["conditions"]),
            )
        return Condition(
            field=str(d["field"]),
            value=d.get("value"),
            operator=str(d.get("operator") or "equals"),
        )


@dataclass(frozen=True)
class ConditionGroup:
    operator: str  # and | or
    conditions: Tuple["AnyCondition", ...]


AnyCondition = Union[Condition, ConditionGroup]


def _condition(d: Optional[Dict[str, Any]]) -> Optional[AnyCondition]:
    return Condition.from_dict(d) if d else None


# -----------------------
# Fields (closed tagged union)
# -----------------------


@dataclass(frozen=True)
class Option:
    value: Union[str, int]
    label: str
    coefficient: float = 1.0
    fixed_addon: float = 0.0
    # coefficient inside the general-cleaning price stream; None -> same as coefficient
    general_coefficient: Optional[float] = None
    hidden: bool = False

    @property
    def key(self) -> str:
        return str(self.value)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Option":
        general = d.get("generalCoefficient")
        return Option(
            value=d["value"],
            label=str(d.get("label") or d["value"]),
            coefficient=float(d.get("coefficient", 1.0)),
            fixed_addon=float(d.get("fixedAddon", 0)),
            general_coefficient=float(general) if general is not None else None,
            hidden=bool(d.get("hidden", False)),
        )


@dataclass(frozen=True)
class BaseField:
    id: str
    label: str = ""
    required: bool = False
    condition: Optional[AnyCondition] = None

    type: ClassVar[str] = ""


@dataclass(frozen=True)
class OptionField(BaseField):
    options: Tuple[Option, ...] = ()

    def option_for(self, value: Any) -> Optional[Option]:
        key = str(value)
        for opt in self.options:
            if opt.key == key:
                return opt
        return None


@dataclass(frozen=True)
class RadioField(OptionField):
    type: ClassVar[str] = "radio"


@dataclass(frozen=True)
class SelectField(OptionField):
    type: ClassVar[str] = "select"


@dataclass(frozen=True)
class CheckboxField(OptionField):
    type: ClassVar[str] = "checkbox"


@dataclass(frozen=True)
class InputField(BaseField):
    input_type: str = "text"  # text | number | email
    type: ClassVar[str] = "input"


@dataclass(frozen=True)
class TextareaField(BaseField):
    type: ClassVar[str] = "textarea"


@dataclass(frozen=True)
class AlertField(BaseField):
    title: str = ""
    type: ClassVar[str] = "alert"


@dataclass(frozen=True)
class ConditionalField(BaseField):
    fields: Tuple["FormField", ...] = ()
    type: ClassVar[str] = "conditional"


FormField = Union[
    RadioField,
    SelectField,
    CheckboxField,
    InputField,
    TextareaField,
    AlertField,
    ConditionalField,
]

_OPTION_TYPES = {"radio": RadioField, "select": SelectField, "checkbox": CheckboxField}


def field_from_dict(d: Dict[str, Any]) -> FormField:
    ftype = str(d.get("type") or "")
    common = dict(
        id=str(d["id"]),
        label=str(d.get("label") or ""),
        required=bool(d.get("required", False)),
        condition=_condition(d.get("condition")),
    )
    if ftype in _OPTION_TYPES:
        options = tuple(Option.from_dict(o) for o in d.get("options") or [])
        return _OPTION_TYPES[ftype](options=options, **common)
    if ftype == "input":
        return InputField(input_type=str(d.get("inputType") or "text"), **common)
    if ftype == "textarea":
        return TextareaField(**common)
    if ftype == "alert":
        return AlertField(title=str(d.get("title") or ""), **common)
    if ftype == "conditional":
        nested = tuple(field_from_dict(x) for x in d.get("fields") or [])
        return ConditionalField(fields=nested, **common)
    raise ValueError(f"Unknown field type for {common['id']}: {ftype!r}")


@dataclass(frozen=True)
class FormSection:
    id: str
    title: str
    fields: Tuple[FormField, ...] = ()
    condition: Optional[AnyCondition] = None

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "FormSection":
        return FormSection(
            id=str(d["id"]),
            title=str(d.get("title") or ""),
            fields=tuple(field_from_dict(x) for x in d.get("fields") or []),
            condition=_condition(d.get("condition")),
        )


@dataclass(frozen=True)
class LocatedField:
    """A leaf field plus every condition that gates it (section, wrappers, own)."""

    field: FormField
    section: FormSection
    gates: Tuple[AnyCondition, ...]
    top_level: bool


# -----------------------
# Price stream declarations
# -----------------------


@dataclass(frozen=True)
class InflationPolicy:
    rate: float = 0.04
    start_year: int = 2026
    year_offset: int = 0

    def adjust(self, price: float, year: int) -> float:
        if year < self.start_year:
            return price
        years = year - self.start_year + self.year_offset
        return price * (1 + self.rate) ** years


@dataclass(frozen=True)
class PricingModes:
    """A selector field that swaps the base price entirely (e.g. monthly tariff vs hourly rate)."""

    field: str
    base_prices: Mapping[str, float]


@dataclass(frozen=True)
class HourlyPricing:
    # fields whose coefficient is a duration, never a rate multiplier
    excluded_fields: Tuple[str, ...] = ()
    default_minimum_hours: float = 4.0


@dataclass(frozen=True)
class GeneralCleaningStream:
    trigger: AnyCondition
    type_field: str
    base_prices: Mapping[str, float]
    frequencies: Mapping[str, str]
    default_type: str
    fields: Tuple[str, ...]
    exclusive_fields: Tuple[str, ...] = ()

    def base_price_for(self, cleaning_type: str) -> float:
        return float(self.base_prices.get(cleaning_type, self.base_prices[self.default_type]))

    def frequency_for(self, cleaning_type: str) -> str:
        return self.frequencies.get(cleaning_type, self.frequencies[self.default_type])


@dataclass(frozen=True)
class DayOfYear:
    month: int
    day: int


@dataclass(frozen=True)
class WinterMaintenance:
    trigger: AnyCondition
    service_fee: float = 500.0
    callout_fee: float = 600.0
    period_start: DayOfYear = DayOfYear(11, 15)
    period_end: DayOfYear = DayOfYear(3, 14)


@dataclass(frozen=True)
class TransportFees:
    fees: Mapping[str, float]
    default: float
    condition: Optional[AnyCondition] = None

    def fee_for(self, region_key: str) -> float:
        return float(self.fees.get(region_key, self.default))


# -----------------------
# FormConfig
# -----------------------

CATEGORY_HOURLY = "hourly"
CATEGORY_RECURRING = "recurring"


@dataclass(frozen=True)
class FormConfig:
    id: str
    title: str
    sections: Tuple[FormSection, ...]
    base_price: float = 1500.0
    category: str = CATEGORY_RECURRING
    calculator: str = "generic"  # generic | office
    description: str = ""
    inflation: InflationPolicy = field(default_factory=InflationPolicy)
    pricing_modes: Optional[PricingModes] = None
    hourly: Optional[HourlyPricing] = None
    general_cleaning: Optional[GeneralCleaningStream] = None
    winter_maintenance: Optional[WinterMaintenance] = None
    transport_fees: Optional[TransportFees] = None
    conditions: Tuple[str, ...] = ()
    common_services: Mapping[str, List[str]] = field(default_factory=dict)

    @property
    def is_hourly(self) -> bool:
        return self.category == CATEGORY_HOURLY

    @cached_property
    def located_fields(self) -> Dict[str, LocatedField]:
        return {lf.field.id: lf for lf in self.iter_fields()}

    def iter_fields(self) -> Iterator[LocatedField]:
        """Depth-first over leaf fields; conditional wrappers contribute their gate."""

        def walk(fields, section, gates, top_level):
            for f in fields:
                own = gates + ((f.condition,) if f.condition is not None else ())
                if isinstance(f, ConditionalField):
                    yield from walk(f.fields, section, own, False)
                else:
                    yield LocatedField(field=f, section=section, gates=own, top_level=top_level)

        for section in self.sections:
            gates = (section.condition,) if section.condition is not None else ()
            yield from walk(section.fields, section, gates, True)

    def find_field(self, field_id: str) -> Optional[FormField]:
        lf = self.located_fields.get(field_id)
        return lf.field if lf else None

    def section_of(self, field_id: str) -> Optional[FormSection]:
        lf = self.located_fields.get(field_id)
        return lf.section if lf else None

    def base_price_for(self, form_data: Mapping[str, Any], today: date) -> float:
        base = self.base_price
        if self.pricing_modes is not None:
            mode = form_data.get(self.pricing_modes.field)
            if mode is not None and str(mode) in self.pricing_modes.base_prices:
                base = float(self.pricing_modes.base_prices[str(mode)])
        return self.inflation.adjust(base, today.year)
