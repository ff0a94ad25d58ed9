"""
Refresh pipeline: join raw countries with the rate table and upsert them.

``reconcile_country`` turns one raw entry from the Countries API into the
field values of a ``Country``. ``CountryRefresher`` fetches both external
datasets, reconciles every entry in order and writes it to the store, then
hands the complete record set to a post-refresh hook (the summary renderer
in production).
"""
import logging
import time
from dataclasses import dataclass
from functools import lru_cache

from django.conf import settings

from . import utils
from .exceptions import InvalidCountryEntry
from .store import CountryStore

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    total_countries: int
    processed: int
    created: int
    updated: int
    last_refreshed_at: object
    duration_seconds: float


def extract_currency_code(entry):
    """Primary currency only; secondary currencies are ignored."""
    currencies = entry.get("currencies") or []
    if not currencies:
        return None
    first = currencies[0] or {}
    return first.get("code") or None


def lookup_rate(rates, currency_code):
    if currency_code is None or currency_code not in rates:
        return None
    try:
        rate = float(rates[currency_code])
    except (TypeError, ValueError):
        return None
    # a zero or negative rate cannot be divided by
    return rate if rate > 0 else None


def reconcile_country(entry, rates, multiplier, now):
    """
    Build the Country field values for one raw entry.

    ``multiplier`` is a zero-argument callable returning a value in
    [1000, 2000); it is only called when a GDP estimate can be made.
    """
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidCountryEntry(f"Country entry without a name: {entry!r}")

    population = entry.get("population")
    if isinstance(population, bool) or not isinstance(population, int) or population < 0:
        raise InvalidCountryEntry(f"{name}: population must be a non-negative integer")

    currency_code = extract_currency_code(entry)
    exchange_rate = lookup_rate(rates, currency_code)

    estimated_gdp = 0
    if currency_code is not None and exchange_rate is not None:
        estimated_gdp = population * multiplier() / exchange_rate

    return {
        "name": name,
        "capital": entry.get("capital"),
        "region": entry.get("region"),
        "population": population,
        "currency_code": currency_code,
        "exchange_rate": exchange_rate,
        "estimated_gdp": estimated_gdp,
        "flag_url": entry.get("flag"),
        "last_refreshed_at": now,
    }


class CountryRefresher:
    """
    Upsert every fetched country by exact name.

    Records are written one at a time with no surrounding transaction: a
    failure on one record aborts the rest of the batch but leaves the ones
    already written in place. Errors from ``on_complete`` are logged and do
    not fail the refresh.
    """

    def __init__(self, store, fetch=utils.fetch_external_data, on_complete=None,
                 multiplier=None, clock=utils.get_now):
        self.store = store
        self.fetch = fetch
        self.on_complete = on_complete
        self.multiplier = multiplier or utils.make_multiplier()
        self.clock = clock

    def refresh(self):
        start_time = time.time()
        countries, rates = self.fetch()
        logger.info("Refreshing %d countries against %d rates", len(countries), len(rates))

        created = updated = 0
        last_refreshed_at = None
        for entry in countries:
            fields = reconcile_country(entry, rates, self.multiplier, self.clock())
            last_refreshed_at = fields["last_refreshed_at"]

            existing = self.store.find_by_name(fields["name"])
            if existing is not None:
                self.store.update(existing, fields)
                updated += 1
            else:
                self.store.insert(fields)
                created += 1

        records = self.store.find_all()
        self._run_hook(records)

        result = RefreshResult(
            total_countries=len(records),
            processed=created + updated,
            created=created,
            updated=updated,
            last_refreshed_at=last_refreshed_at or self.clock(),
            duration_seconds=round(time.time() - start_time, 2),
        )
        logger.info(
            "Refresh finished: %d created, %d updated, %d stored",
            result.created, result.updated, result.total_countries,
        )
        return result

    def _run_hook(self, records):
        if self.on_complete is None:
            return
        try:
            self.on_complete(records)
        except Exception:
            logger.exception("Post-refresh hook failed")


@lru_cache(maxsize=None)
def get_refresher():
    """Production wiring, built once per process."""
    return CountryRefresher(
        CountryStore(),
        fetch=utils.fetch_external_data,
        on_complete=utils.render_summary,
        multiplier=utils.make_multiplier(settings.GDP_MULTIPLIER_SEED),
    )
