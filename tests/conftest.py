"""Shared fixtures for the country_currency test suite."""

from datetime import datetime, timezone

import pytest
from rest_framework.test import APIClient

NOW = datetime(2025, 10, 22, 12, 0, tzinfo=timezone.utc)

RATES = {"USD": 1.0, "NGN": 1500.0, "GHS": 15.0, "EUR": 0.9}

RAW_COUNTRIES = [
    {
        "name": "Nigeria",
        "capital": "Abuja",
        "region": "Africa",
        "population": 206139589,
        "flag": "https://flagcdn.com/ng.svg",
        "currencies": [{"code": "NGN", "name": "Nigerian naira", "symbol": "₦"}],
    },
    {
        "name": "Ghana",
        "capital": "Accra",
        "region": "Africa",
        "population": 31072940,
        "flag": "https://flagcdn.com/gh.svg",
        "currencies": [{"code": "GHS", "name": "Ghanaian cedi", "symbol": "₵"}],
    },
    {
        "name": "Germany",
        "capital": "Berlin",
        "region": "Europe",
        "population": 83240525,
        "flag": "https://flagcdn.com/de.svg",
        "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}],
    },
    {
        "name": "Antarctica",
        "region": "Polar",
        "population": 1000,
        "flag": "https://flagcdn.com/aq.svg",
    },
]


def fixed_multiplier():
    return 1500.0


class FakeFetch:
    """Stands in for utils.fetch_external_data."""

    def __init__(self, countries=None, rates=None, error=None):
        self.countries = RAW_COUNTRIES if countries is None else countries
        self.rates = RATES if rates is None else rates
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.countries, self.rates


@pytest.fixture(autouse=True)
def cache_dir(settings, tmp_path):
    settings.CACHE_DIR = str(tmp_path / "cache")
    return settings.CACHE_DIR


@pytest.fixture(autouse=True)
def fresh_refresher():
    from countries.services import get_refresher

    get_refresher.cache_clear()
    yield
    get_refresher.cache_clear()


@pytest.fixture
def api_client():
    return APIClient()
