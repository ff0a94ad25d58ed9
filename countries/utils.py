import logging
import os
import random
from datetime import datetime, timezone

import requests
from django.conf import settings
from PIL import Image, ImageDraw, ImageFont
from requests.exceptions import RequestException

from .exceptions import ExternalDataUnavailable

logger = logging.getLogger(__name__)

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000
SUMMARY_IMAGE_NAME = "summary.png"
TOP_COUNTRIES = 5


def fetch_countries():
    resp = requests.get(settings.COUNTRIES_API_URL, timeout=settings.EXTERNAL_API_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, list):
        raise ValueError("Countries API returned an unexpected payload")
    return data


def fetch_exchange_rates():
    resp = requests.get(settings.EXCHANGE_RATES_API_URL, timeout=settings.EXTERNAL_API_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    # API returns 'rates' mapping
    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ValueError("Exchange rates API returned no rates")
    return rates


def fetch_external_data():
    """
    Fetch the raw country list and the rate table.

    Either call failing (network, non-2xx, malformed body) fails the whole
    fetch with ExternalDataUnavailable; nothing partial is returned.
    """
    try:
        countries = fetch_countries()
    except (RequestException, ValueError) as exc:
        logger.warning("Countries API fetch failed: %s", exc)
        raise ExternalDataUnavailable("Could not fetch data from Countries API") from exc

    try:
        rates = fetch_exchange_rates()
    except (RequestException, ValueError) as exc:
        logger.warning("Exchange rates API fetch failed: %s", exc)
        raise ExternalDataUnavailable("Could not fetch data from Exchange rates API") from exc

    return countries, rates


def make_multiplier(seed=None):
    """
    Return a callable drawing GDP multipliers uniformly from [1000, 2000).

    With a seed the sequence is reproducible; without one it is not.
    """
    rng = random.Random(seed)
    span = MULTIPLIER_MAX - MULTIPLIER_MIN

    def draw():
        value = MULTIPLIER_MIN + rng.random() * span
        # float rounding can land exactly on the upper bound
        return value if value < MULTIPLIER_MAX else float(MULTIPLIER_MIN)

    return draw


def get_now():
    """Return current UTC datetime (aware)."""
    return datetime.now(timezone.utc)


def get_cache_path():
    path = os.path.abspath(settings.CACHE_DIR)
    os.makedirs(path, exist_ok=True)
    return path


def get_summary_image_path():
    """Return full path to the summary image in the writable cache."""
    return os.path.join(get_cache_path(), SUMMARY_IMAGE_NAME)


def render_summary(countries):
    """Post-refresh hook: draw the summary for the full set of stored countries."""
    countries = list(countries)
    top = sorted(countries, key=lambda c: c.estimated_gdp or 0, reverse=True)[:TOP_COUNTRIES]
    stamps = [c.last_refreshed_at for c in countries if c.last_refreshed_at]
    timestamp = max(stamps) if stamps else get_now()
    return generate_summary_image(len(countries), top, timestamp.isoformat())


def generate_summary_image(total_countries, top5, timestamp):
    """
    Generate a summary PNG showing total countries, top 5 GDP countries,
    and last refresh timestamp. Saves image to cache path.
    """
    path = get_summary_image_path()

    img = Image.new("RGB", (800, 500), color="white")
    draw = ImageDraw.Draw(img)

    try:
        font_title = ImageFont.truetype("arial.ttf", 28)
        font_body = ImageFont.truetype("arial.ttf", 20)
    except OSError:
        font_title = ImageFont.load_default()
        font_body = ImageFont.load_default()

    draw.text((20, 20), "Country Summary Report", fill="black", font=font_title)
    draw.text((20, 70), f"Total Countries: {total_countries}", fill="black", font=font_body)
    draw.text((20, 120), f"Top {TOP_COUNTRIES} Countries by Estimated GDP:", fill="black", font=font_body)

    y = 160
    if not top5:
        draw.text((40, y), "No GDP data available.", fill="gray", font=font_body)
    else:
        for c in top5:
            draw.text((40, y), f"- {c.name}: {round(c.estimated_gdp or 0, 2):,}", fill="blue", font=font_body)
            y += 30

    draw.text((20, 400), f"Last Refresh: {timestamp}", fill="black", font=font_body)

    img.save(path, "PNG")
    logger.info("Summary image written to %s", path)
    return path
