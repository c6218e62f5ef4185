from __future__ import annotations

import os

os.environ.setdefault("HH_SKIP_ZIP_RESOLVE", "1")  # no PSČ lookups during tests
os.environ.setdefault("HASH_SECRET", "test_hash_secret_0123456789")

from datetime import date

import pytest

from kalkulator.forms.loader import load_definitions
from kalkulator.pricing.engine import PricingEngine
from kalkulator.services.region_resolver import RegionResolver


@pytest.fixture
def today():
    # before the inflation start year: base prices are used as declared
    return date(2025, 6, 2)


@pytest.fixture(scope="session")
def configs():
    return {c.id: c for c in load_definitions()}


@pytest.fixture
def residential(configs):
    return configs["residential-building"]


@pytest.fixture
def office(configs):
    return configs["office-cleaning"]


@pytest.fixture
def stub_resolver():
    return RegionResolver(
        mapping={
            "14000": "prague",
            "25001": "stredocesky",
            "40001": "ustecky",
            "60200": "jihomoravsky",
        }
    )


@pytest.fixture
def skip_resolver():
    return RegionResolver(skip=True)


@pytest.fixture
def engine(stub_resolver, today):
    return PricingEngine(region_resolver=stub_resolver, today=today, order_id_factory=lambda: "order_test_000001")


@pytest.fixture
def residential_answers():
    """Weekly cleaning, 5 + 1 floors, 3 flats per floor, lift, cold water only, pre-1945."""
    return {
        "cleaningFrequency": "weekly",
        "aboveGroundFloors": 5,
        "undergroundFloors": 1,
        "apartmentsPerFloor": "3",
        "hasElevator": "yes",
        "hasHotWater": "no",
        "buildingPeriod": "pre1945",
        "generalCleaning": "no",
        "winterMaintenance": "no",
        "zipCode": "14000",
    }
