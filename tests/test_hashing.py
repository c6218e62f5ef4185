from dataclasses import replace
from datetime import date

import pytest
from itsdangerous import URLSafeSerializer

from kalkulator.hashing.codec import HashCodec, create_enquiry_url
from kalkulator.hashing.payload import CalculationData, CustomerData, build_hash_payload
from kalkulator.pricing.models import FullDetail, SummaryOnly

SECRET = "unit_test_secret_0123456789"


@pytest.fixture
def codec():
    return HashCodec(SECRET)


@pytest.fixture
def payload(residential, residential_answers, engine):
    answers = dict(residential_answers, notes="Klíče u správce", winterMaintenance="yes")
    result = engine.calculate_price(answers, residential)
    return build_hash_payload(result, answers, residential, timestamp=1767225600000).with_enquiry(
        customer=CustomerData(first_name="Jana", last_name="Nováková", email="jana@example.cz"),
        confirmation_step_note="Volejte po 17. hodině",
        start_date=date(2026, 4, 1),
    )


def test_builder_defaults(engine, residential, residential_answers):
    result = engine.calculate_price(residential_answers, residential)
    p = build_hash_payload(result, residential_answers)
    assert p.service_type == "Ostatní služby"
    assert p.service_title == "Ostatní služby"
    assert p.currency == "Kč"
    assert p.total_price == result.total_monthly_price
    assert p.calculation_data.origin_form_note is None


def test_full_round_trip(codec, payload):
    decoded = codec.decode(codec.encode(payload, optimized=False))
    assert decoded == payload
    assert isinstance(decoded.calculation_data.result.calculation_details, FullDetail)


def test_optimized_round_trip_keeps_everything_needed_for_the_offer(codec, payload):
    token = codec.encode(payload)
    decoded = codec.decode(token)
    data, original = decoded.calculation_data, payload.calculation_data

    assert decoded.service_type == "residential-building"
    assert decoded.total_price == payload.total_price
    assert data.form_data == original.form_data
    assert data.result.regular_cleaning_price == original.result.regular_cleaning_price
    assert data.result.winter_service_fee == 500
    assert data.result.order_id == original.result.order_id
    assert isinstance(data.result.calculation_details, SummaryOnly)
    assert data.start_date == date(2026, 4, 1)
    assert data.customer == original.customer


def test_both_notes_travel_independently(codec, payload):
    for optimized in (True, False):
        data = codec.decode(codec.encode(payload, optimized=optimized)).calculation_data
        assert data.origin_form_note == "Klíče u správce"
        assert data.confirmation_step_note == "Volejte po 17. hodině"

    original = payload.calculation_data
    only_origin = replace(
        payload,
        calculation_data=CalculationData(
            result=original.result, form_data=original.form_data, origin_form_note=original.origin_form_note
        ),
    )
    data = codec.decode(codec.encode(only_origin)).calculation_data
    assert data.confirmation_step_note is None


def test_optimized_token_is_shorter(codec, payload):
    assert len(codec.encode(payload)) < len(codec.encode(payload, optimized=False))


def test_legacy_notes_map_to_origin_note(codec):
    legacy = URLSafeSerializer(SECRET, salt="kalkulator-hash-v1").dumps(
        {
            "serviceType": "home-cleaning",
            "serviceTitle": "Pravidelný úklid domácností",
            "totalPrice": 3500,
            "currency": "Kč",
            "calculationData": {
                "regularCleaningPrice": 3500,
                "totalMonthlyPrice": 3500,
                "orderId": "order_abc_123456",
                "calculationDetails": {"basePrice": 0, "appliedCoefficients": [], "finalCoefficient": 1},
                "formData": {"notes": "Pes je hodný"},
            },
        }
    )
    data = codec.decode(legacy).calculation_data
    assert data.origin_form_note == "Pes je hodný"
    assert data.confirmation_step_note is None
    assert isinstance(data.result.calculation_details, SummaryOnly)


@pytest.mark.parametrize("token", ["", "not-a-token", "eyJzdCI6IngifQ", "a.b.c"])
def test_garbage_decodes_to_none(codec, token):
    assert codec.decode(token) is None


def test_tampered_token_decodes_to_none(codec, payload):
    token = codec.encode(payload)
    flipped = token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1]
    assert codec.decode(flipped) is None


def test_foreign_secret_decodes_to_none(codec, payload):
    other = HashCodec("another_secret_0123456789")
    assert other.decode(codec.encode(payload)) is None


def test_signed_non_payload_decodes_to_none(codec):
    token = URLSafeSerializer(SECRET, salt="kalkulator-hash-v1").dumps(["just", "a", "list"])
    assert codec.decode(token) is None
    token = URLSafeSerializer(SECRET, salt="kalkulator-hash-v1").dumps({"unrelated": 1})
    assert codec.decode(token) is None


def test_short_secret_rejected():
    with pytest.raises(ValueError):
        HashCodec("short")


def test_enquiry_url():
    assert create_enquiry_url("abc", "https://kalkulator.example/") == "https://kalkulator.example/poptavka?hash=abc"
