import pytest
from jsonschema import ValidationError, validate

from kalkulator.forms import registry
from kalkulator.forms.conditions import evaluate, is_active
from kalkulator.forms.loader import form_config_from_dict, form_config_schema, load_definitions
from kalkulator.forms.models import CheckboxField, Condition, ConditionGroup, RadioField


def _minimal(**overrides):
    d = {
        "id": "demo",
        "title": "Demo",
        "basePrice": 1000,
        "sections": [
            {
                "id": "main",
                "title": "Main",
                "fields": [
                    {
                        "id": "size",
                        "type": "radio",
                        "label": "Size",
                        "options": [{"value": "s", "label": "S", "coefficient": 0.9}],
                    }
                ],
            }
        ],
    }
    d.update(overrides)
    return d


def test_all_shipped_definitions_load():
    ids = {c.id for c in load_definitions()}
    assert ids == {
        "residential-building",
        "panel-building",
        "office-cleaning",
        "commercial-spaces",
        "home-cleaning",
        "one-time-cleaning",
        "handyman-services",
    }


def test_shipped_definitions_are_schema_valid(configs):
    assert configs["one-time-cleaning"].is_hourly
    assert configs["handyman-services"].is_hourly
    assert not configs["residential-building"].is_hourly
    assert configs["office-cleaning"].calculator == "office"


def test_nested_fields_are_found(residential):
    f = residential.find_field("basementCleaning")
    assert isinstance(f, RadioField)
    opt = f.option_for("general")
    assert opt.coefficient == 0.95
    assert opt.general_coefficient == 1.0
    assert f.option_for("regular").general_coefficient == 0.95


def test_options_match_by_string_form(residential):
    f = residential.find_field("aboveGroundFloors")
    assert f.option_for(5) is f.option_for("5")


def test_duplicate_field_ids_raise():
    d = _minimal()
    d["sections"].append(
        {
            "id": "other",
            "title": "Other",
            "fields": [{"id": "size", "type": "input", "inputType": "text"}],
        }
    )
    with pytest.raises(ValueError, match="duplicate field ids"):
        form_config_from_dict(d)


def test_stream_referencing_unknown_field_raises():
    d = _minimal(hourly={"excludedFields": ["missing"]}, category="hourly")
    with pytest.raises(ValueError, match="unknown fields"):
        form_config_from_dict(d)


def test_schema_rejects_option_field_without_options():
    d = _minimal()
    d["sections"][0]["fields"][0].pop("options")
    with pytest.raises(ValidationError):
        validate(instance=d, schema=form_config_schema())


def test_schema_rejects_unknown_top_level_key():
    with pytest.raises(ValidationError):
        validate(instance=_minimal(surprise=True), schema=form_config_schema())


def test_condition_operators():
    answers = {"floors": "2", "kind": "a", "extras": ["x", "y"]}
    assert evaluate(Condition("kind", "a"), answers)
    assert evaluate(Condition("kind", "b", "not_equals"), answers)
    assert evaluate(Condition("floors", 1, "greater_than"), answers)
    assert not evaluate(Condition("floors", 1, "less_than"), answers)
    assert evaluate(Condition("extras", "y"), answers)
    # unparsable numbers never satisfy a comparison
    assert not evaluate(Condition("kind", 1, "greater_than"), answers)


def test_condition_groups():
    answers = {"a": "1", "b": "2"}
    both = ConditionGroup("and", (Condition("a", "1"), Condition("b", "3")))
    either = ConditionGroup("or", (Condition("a", "1"), Condition("b", "3")))
    assert not evaluate(both, answers)
    assert evaluate(either, answers)


def test_unknown_operator_raises():
    with pytest.raises(ValueError):
        evaluate(Condition("a", "1", "between"), {"a": "1"})


def test_field_activity_follows_wrappers_and_own_condition(residential):
    lf = residential.located_fields["basementCleaning"]
    assert not lf.top_level
    assert is_active(lf, {"generalCleaning": "yes", "undergroundFloors": 1})
    assert not is_active(lf, {"generalCleaning": "yes", "undergroundFloors": 0})
    assert not is_active(lf, {"generalCleaning": "no", "undergroundFloors": 1})


def test_checkbox_fields_parse(configs):
    f = configs["one-time-cleaning"].find_field("cleaningSupplies")
    assert isinstance(f, CheckboxField)
    assert f.option_for("worker-brings").fixed_addon == 400


def test_registry_unknown_service_raises():
    registry.register_definitions()
    assert registry.get("office-cleaning").id == "office-cleaning"
    with pytest.raises(KeyError, match="Unknown service type"):
        registry.get("window-washing-on-mars")
    assert registry.find(None) is None


def test_base_price_inflation(configs, today):
    one_time = configs["one-time-cleaning"]
    assert one_time.inflation.adjust(335, 2025) == 335
    assert one_time.inflation.adjust(335, 2026) == pytest.approx(335 * 1.04)
    assert one_time.base_price_for({}, today) == 335
