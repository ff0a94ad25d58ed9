from django.db import models


class Country(models.Model):
    # id — auto-generated
    # name — exact, case-sensitive key used by refresh/get/delete
    name = models.CharField(max_length=200, unique=True)
    capital = models.CharField(max_length=200, null=True, blank=True)
    region = models.CharField(max_length=100, null=True, blank=True)
    population = models.BigIntegerField()
    # currency_code — null when the source lists no currency
    currency_code = models.CharField(max_length=10, null=True, blank=True)
    # exchange_rate — null when currency_code is null or has no rate
    exchange_rate = models.FloatField(null=True, blank=True)
    # estimated_gdp — 0 when it cannot be computed
    estimated_gdp = models.FloatField(default=0)
    flag_url = models.URLField(max_length=500, null=True, blank=True)
    # last_refreshed_at — stamped per record on every refresh
    last_refreshed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "countries"

    def __str__(self):
        return self.name
