from django.contrib import admin

from .models import Country


@admin.register(Country)
class CountryAdmin(admin.ModelAdmin):
    list_display = ("name", "region", "currency_code", "exchange_rate", "estimated_gdp", "last_refreshed_at")
    list_filter = ("region",)
    search_fields = ("name", "capital")
    readonly_fields = ("created_at", "updated_at")
