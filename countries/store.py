import logging

from django.db import DatabaseError
from django.db.models import Max

from .exceptions import StoreUnavailable, StoreWriteFailed
from .models import Country

logger = logging.getLogger(__name__)

SORT_GDP_DESC = "gdp_desc"

SORT_ORDERINGS = {
    SORT_GDP_DESC: ("-estimated_gdp", "id"),
}


class CountryStore:
    """
    Country records keyed by exact (case-sensitive) name.

    Database errors surface as StoreUnavailable on reads and StoreWriteFailed
    on writes.
    """

    model = Country

    def find_by_name(self, name):
        try:
            return self.model.objects.filter(name=name).first()
        except DatabaseError as exc:
            logger.error("Lookup of %r failed: %s", name, exc)
            raise StoreUnavailable(str(exc)) from exc

    def insert(self, fields):
        try:
            return self.model.objects.create(**fields)
        except DatabaseError as exc:
            logger.error("Insert of %r failed: %s", fields.get("name"), exc)
            raise StoreWriteFailed(str(exc)) from exc

    def update(self, country, fields):
        """Overwrite every given field of ``country``; updated_at advances on save."""
        for field, value in fields.items():
            setattr(country, field, value)
        try:
            country.save()
        except DatabaseError as exc:
            logger.error("Update of %r failed: %s", country.name, exc)
            raise StoreWriteFailed(str(exc)) from exc
        return country

    def delete(self, country):
        try:
            country.delete()
        except DatabaseError as exc:
            logger.error("Delete of %r failed: %s", country.name, exc)
            raise StoreWriteFailed(str(exc)) from exc

    def find_all(self, region=None, currency_code=None, sort=None):
        qs = self.model.objects.all()
        if region is not None:
            qs = qs.filter(region=region)
        if currency_code is not None:
            qs = qs.filter(currency_code=currency_code)
        if sort is not None:
            if sort not in SORT_ORDERINGS:
                raise ValueError(f"Unsupported sort: {sort}")
            qs = qs.order_by(*SORT_ORDERINGS[sort])
        try:
            return list(qs)
        except DatabaseError as exc:
            logger.error("Listing countries failed: %s", exc)
            raise StoreUnavailable(str(exc)) from exc

    def count(self):
        try:
            return self.model.objects.count()
        except DatabaseError as exc:
            raise StoreUnavailable(str(exc)) from exc

    def max_of(self, field):
        try:
            return self.model.objects.aggregate(value=Max(field))["value"]
        except DatabaseError as exc:
            raise StoreUnavailable(str(exc)) from exc
