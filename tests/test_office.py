import pytest

from kalkulator.domain.regions import RegionTable
from kalkulator.pricing.errors import PricingValidationError
from kalkulator.pricing.office import DEFAULT_TABLES, calculate_office_price


@pytest.fixture
def office_answers():
    return {
        "cleaningFrequency": "weekly",
        "calculationMethod": "area",
        "officeAreaNonDaily": "75-100",
        "floorType": "carpet",
        "generalCleaning": "no",
        "dishwashing": "no",
        "toiletCleaning": "yes",
        "afterHours": "yes",
        "zipCode": "14000",
    }


def _labels(result):
    return [e.label for e in result.calculation_details.applied_coefficients]


def test_office_price(office, office_answers, engine):
    result = engine.calculate_price(office_answers, office)

    expected = 2450 * 1.06 * 0.98 * 0.97 * 1.05
    assert result.regular_cleaning_price == pytest.approx(expected, abs=0.1)
    assert result.total_monthly_price == result.regular_cleaning_price
    assert result.general_cleaning_frequency == "2x ročně"
    assert result.general_cleaning_price is None
    assert _labels(result) == [
        "Typ podlahové krytiny",
        "Bez generálního úklidu",
        "Mytí nádobí",
        "Úklid WC",
    ]


def test_office_records_only_non_neutral_coefficients(office, office_answers, engine):
    result = engine.calculate_price(office_answers, office)
    assert all(e.coefficient != 1 for e in result.calculation_details.applied_coefficients)


@pytest.mark.parametrize(
    "missing, message",
    [
        ("cleaningFrequency", "Četnost úklidu je povinná"),
        ("floorType", "Typ podlahové krytiny je povinný"),
        ("generalCleaning", "Požadavek generálního úklidu je povinný"),
        ("dishwashing", "Požadavek na mytí nádobí je povinný"),
        ("toiletCleaning", "Požadavek na úklid WC je povinný"),
        ("afterHours", "Požadavek na úklid mimo pracovní dobu je povinný"),
    ],
)
def test_office_required_fields(office, office_answers, engine, missing, message):
    answers = dict(office_answers)
    answers.pop(missing)
    with pytest.raises(PricingValidationError) as exc:
        engine.calculate_price(answers, office)
    assert exc.value.message == message
    assert exc.value.field == missing


def test_office_location_is_required(office, office_answers, engine):
    answers = dict(office_answers)
    answers.pop("zipCode")
    with pytest.raises(PricingValidationError, match="Lokalita je povinná"):
        engine.calculate_price(answers, office)


def test_office_location_from_zip_and_explicit(office, office_answers, engine):
    brno = engine.calculate_price(dict(office_answers, zipCode="60200"), office)
    assert "Lokalita (Jihomoravský kraj)" in _labels(brno)

    explicit = engine.calculate_price(dict(office_answers, location="ustecky"), office)
    assert "Lokalita (Ústecký kraj)" in _labels(explicit)

    # present but unknown PSČ: default region, neutral
    unknown = engine.calculate_price(dict(office_answers, zipCode="99999"), office)
    assert not [label for label in _labels(unknown) if label.startswith("Lokalita")]


def test_office_hourly_sizing(office, office_answers, engine):
    answers = dict(office_answers, calculationMethod="hourly", hoursPerCleaning="2-3")
    answers.pop("officeAreaNonDaily")
    result = engine.calculate_price(answers, office)
    assert "Hodinový výpočet (2-3h)" in _labels(result)
    entry = [e for e in result.calculation_details.applied_coefficients if e.field == "calculationMethod"][0]
    assert entry.coefficient == 1.45


@pytest.mark.parametrize("hours", [3, 3.0, "3", "3,0"])
def test_three_hours_price_the_same_however_sent(office, office_answers, engine, hours):
    answers = dict(office_answers, calculationMethod="hourly", hoursPerCleaning=hours)
    answers.pop("officeAreaNonDaily")
    result = engine.calculate_price(answers, office)
    band = engine.calculate_price(dict(answers, hoursPerCleaning="2-3"), office)

    assert result.regular_cleaning_price == band.regular_cleaning_price
    assert "Hodinový výpočet (3h)" in _labels(result)


def test_hourly_coefficient_bands():
    assert DEFAULT_TABLES.hourly_coefficient("0.5")[0] == 0.85
    assert DEFAULT_TABLES.hourly_coefficient(2)[0] == 1.3
    assert DEFAULT_TABLES.hourly_coefficient(3.5)[0] == 1.9
    assert DEFAULT_TABLES.hourly_coefficient("3+") == (1.9, "Hodinový výpočet (3+h)")
    assert DEFAULT_TABLES.hourly_coefficient("plenty") == (1.0, "")


def test_office_area_tables():
    assert DEFAULT_TABLES.area_coefficient("700-plus", "weekly")[0] == 2.67
    assert DEFAULT_TABLES.area_coefficient("700-plus", "daily")[0] == 2.4
    assert DEFAULT_TABLES.area_coefficient("up-to-50", "daily-basic-weekly")[0] == 0.42
    assert DEFAULT_TABLES.area_coefficient(3000, "daily")[0] == 3.7
    assert DEFAULT_TABLES.area_coefficient("not-a-band", "weekly") == (1.0, "")


def test_office_hour_bands():
    assert DEFAULT_TABLES.hourly_coefficient("0.5")[0] == 0.85
    assert DEFAULT_TABLES.hourly_coefficient("3")[0] == 1.6
    assert DEFAULT_TABLES.hourly_coefficient(2.5)[0] == 1.45
    assert DEFAULT_TABLES.hourly_coefficient(6)[0] == 1.9


def test_office_function_with_custom_regions(office_answers):
    regions = RegionTable([])
    price, details = calculate_office_price(
        dict(office_answers, location="prague"), base_price=1000, regions=regions
    )
    assert details.base_price == 1000
    assert price == pytest.approx(1000 * details.final_coefficient, abs=0.05)
