from datetime import date

import pytest

from kalkulator.hashing.codec import HashCodec
from kalkulator.hashing.payload import CustomerData, HashPayload, build_hash_payload
from kalkulator.offers.offer_data import (
    CUSTOMER_PLACEHOLDER,
    AddonItem,
    SummaryItem,
    convert_form_data_to_offer_data,
    offer_data_from_payload,
)


def test_recurring_offer(residential, residential_answers, engine, today):
    answers = dict(residential_answers, notes="Klíče u správce", winterMaintenance="yes", consent=True)
    result = engine.calculate_price(answers, residential)
    offer = convert_form_data_to_offer_data(answers, result, residential, today=today)

    assert offer.price == 2520  # 2521.4 to the nearest ten
    assert offer.quote_date == "2. 6. 2025"
    assert offer.start_date == "12. 6. 2025"
    assert offer.service_title == residential.title
    assert offer.customer == {"name": CUSTOMER_PLACEHOLDER}
    assert offer.company["name"] == "HandyHands, s.r.o."
    assert offer.origin_form_note == "Klíče u správce"
    assert offer.confirmation_step_note is None
    assert offer.winter_service_fee == 500
    assert offer.winter_period == {"start": {"day": 15, "month": 11}, "end": {"day": 14, "month": 3}}
    assert not offer.is_hourly_service
    assert offer.fixed_addons is None
    assert offer.minimum_hours is None
    assert offer.conditions == list(residential.conditions)

    assert SummaryItem(label="Četnost úklidu domu", value="1x týdně") in offer.summary_items
    assert SummaryItem(label="Počet nadzemních pater v domě včetně přízemí", value="5") in offer.summary_items
    assert all(item.value != "Klíče u správce" for item in offer.summary_items)


def test_requested_start_date_is_corrected(residential, residential_answers, engine, today):
    result = engine.calculate_price(residential_answers, residential)
    early = convert_form_data_to_offer_data(residential_answers, result, residential, start_date="2025-06-03", today=today)
    late = convert_form_data_to_offer_data(residential_answers, result, residential, start_date="1. 9. 2025", today=today)
    assert early.start_date == "12. 6. 2025"
    assert late.start_date == "1. 9. 2025"


def test_hourly_offer_groups_addons(configs, engine, today):
    config = configs["one-time-cleaning"]
    answers = {
        "cleaningType": "after-moving-out",
        "spaceArea": "up-to-50",
        "cleaningSupplies": ["worker-brings", "own-ladders"],
        "zipCode": "14000",
    }
    result = engine.calculate_price(answers, config)
    customer = CustomerData(first_name="Jan", last_name="Novák", email="jan@example.cz", phone="+420 777 000 000")
    offer = convert_form_data_to_offer_data(answers, result, config, customer, today=today)

    assert offer.is_hourly_service
    assert offer.price == result.hourly_rate
    assert offer.start_date == "3. 6. 2025"
    assert offer.minimum_hours == 3.5
    assert offer.fixed_addons == [
        AddonItem(label="Úklidové náčiní a úklidová chemie", amount=650),
        AddonItem(label="Doprava", amount=250),
    ]
    assert offer.customer["name"] == "Jan Novák"
    assert offer.customer["phone"] == "+420 777 000 000"
    assert offer.customer["address"] == ""
    assert SummaryItem(
        label="Úklidové náčiní a úklidová chemie",
        value="Přiveze pracovník úklidu, K úklidu jsou potřeba štafle nebo schůdky",
    ) in offer.summary_items


def test_offer_from_optimized_token(residential, residential_answers, engine, today):
    answers = dict(residential_answers, notes="Původní poznámka")
    result = engine.calculate_price(answers, residential)
    payload = build_hash_payload(result, answers, residential).with_enquiry(
        confirmation_step_note="Poznámka z poptávky", start_date=date(2025, 5, 1)
    )
    codec = HashCodec("offer_secret_0123456789")
    offer = offer_data_from_payload(codec.decode(codec.encode(payload)), residential, today=today)

    assert offer.origin_form_note == "Původní poznámka"
    assert offer.confirmation_step_note == "Poznámka z poptávky"
    assert offer.start_date == "12. 6. 2025"
    assert offer.price == 2520


def test_offer_wire_keys(residential, residential_answers, engine, today):
    result = engine.calculate_price(residential_answers, residential)
    d = convert_form_data_to_offer_data(residential_answers, result, residential, today=today).to_dict()
    assert {"quoteDate", "summaryItems", "originFormNote", "confirmationStepNote", "isHourlyService"} <= set(d)
    assert d["summaryItems"][0] == {"label": "Četnost úklidu domu", "value": "1x týdně"}


def test_offer_without_calculation_data_raises(residential):
    with pytest.raises(ValueError):
        offer_data_from_payload(HashPayload("residential-building", "x", 1.0), residential)


def test_hourly_offer_from_optimized_token_keeps_transport(configs, engine, today):
    config = configs["one-time-cleaning"]
    answers = {
        "cleaningType": "after-moving-out",
        "spaceArea": "up-to-50",
        "zipCode": "14000",
    }
    result = engine.calculate_price(answers, config)
    fresh = convert_form_data_to_offer_data(answers, result, config, today=today)
    assert fresh.fixed_addons == [AddonItem(label="Doprava", amount=250)]

    codec = HashCodec("offer_secret_0123456789")
    decoded = codec.decode(codec.encode(build_hash_payload(result, answers, config)))
    rebuilt = offer_data_from_payload(decoded, config, today=today, engine=engine)

    assert rebuilt.fixed_addons == fresh.fixed_addons
    assert rebuilt.price == fresh.price
    assert rebuilt.minimum_hours == fresh.minimum_hours
