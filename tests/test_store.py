from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from countries.exceptions import StoreUnavailable, StoreWriteFailed
from countries.models import Country
from countries.store import SORT_GDP_DESC, CountryStore

pytestmark = pytest.mark.django_db


@pytest.fixture
def store():
    return CountryStore()


@pytest.fixture
def countries():
    return [
        Country.objects.create(name="Nigeria", region="Africa", population=10, currency_code="NGN", estimated_gdp=50.0),
        Country.objects.create(name="Ghana", region="Africa", population=10, currency_code="GHS", estimated_gdp=900.0),
        Country.objects.create(name="Egypt", region="africa", population=10, currency_code="EGP", estimated_gdp=300.0),
        Country.objects.create(name="France", region="Europe", population=10, currency_code="EUR", estimated_gdp=700.0),
    ]


def test_find_by_name_is_exact(store, countries):
    assert store.find_by_name("Ghana").pk == countries[1].pk
    assert store.find_by_name("ghana") is None
    assert store.find_by_name("Gha") is None


def test_region_filter_is_exact_and_case_sensitive(store, countries):
    names = [c.name for c in store.find_all(region="Africa")]
    assert names == ["Nigeria", "Ghana"]


def test_currency_filter(store, countries):
    assert [c.name for c in store.find_all(currency_code="EUR")] == ["France"]


def test_sort_by_gdp_desc(store, countries):
    gdps = [c.estimated_gdp for c in store.find_all(sort=SORT_GDP_DESC)]
    assert gdps == sorted(gdps, reverse=True)


def test_unknown_sort_rejected(store):
    with pytest.raises(ValueError):
        store.find_all(sort="name_asc")


def test_insert_and_update_timestamps(store):
    country = store.insert({"name": "Chad", "population": 5})
    created_at, updated_at = country.created_at, country.updated_at

    store.update(country, {"population": 6, "region": "Africa"})
    country.refresh_from_db()

    assert country.population == 6
    assert country.region == "Africa"
    assert country.created_at == created_at
    assert country.updated_at >= updated_at


def test_delete(store, countries):
    store.delete(countries[0])
    assert store.find_by_name("Nigeria") is None
    assert store.count() == 3


def test_status_aggregates_on_empty_store(store):
    assert store.count() == 0
    assert store.max_of("last_refreshed_at") is None


def test_max_of_last_refreshed_at(store):
    early = datetime(2025, 1, 1, tzinfo=timezone.utc)
    late = datetime(2025, 6, 1, tzinfo=timezone.utc)
    store.insert({"name": "A", "population": 1, "last_refreshed_at": early})
    store.insert({"name": "B", "population": 1, "last_refreshed_at": late})
    assert store.max_of("last_refreshed_at") == late


def test_read_errors_become_store_unavailable(store):
    with patch.object(Country.objects, "filter", side_effect=DatabaseError("gone")):
        with pytest.raises(StoreUnavailable):
            store.find_by_name("Ghana")


def test_write_errors_become_store_write_failed(store):
    with patch.object(Country.objects, "create", side_effect=DatabaseError("read-only")):
        with pytest.raises(StoreWriteFailed):
            store.insert({"name": "Chad", "population": 5})
