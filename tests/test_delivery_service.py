"""Tests for the advisory delivery estimate."""

from datetime import date, datetime

import pytz

from storefront.config import Config
from storefront.services.delivery_service import (
    LOCAL_LABEL,
    STANDARD_LABEL,
    estimate_delivery,
    normalize_city,
)

TODAY = date(2024, 3, 4)


def test_local_city_is_today_or_tomorrow():
    estimate = estimate_delivery("Manila", TODAY, hub_city="Manila")
    assert estimate.is_local
    assert estimate.label == LOCAL_LABEL
    assert estimate.range_start == TODAY
    assert estimate.range_end == date(2024, 3, 5)


def test_city_is_normalized():
    assert normalize_city("  San  Juan ") == "sanjuan"
    estimate = estimate_delivery("  SAN juan ", TODAY, hub_city="San Juan")
    assert estimate.is_local


def test_other_city_is_three_to_four_days():
    estimate = estimate_delivery("Cebu City", TODAY, hub_city="Manila")
    assert not estimate.is_local
    assert estimate.label == STANDARD_LABEL
    assert estimate.range_start == date(2024, 3, 7)
    assert estimate.range_end == date(2024, 3, 8)


def test_missing_city_is_not_local():
    assert not estimate_delivery(None, TODAY, hub_city="Manila").is_local
    assert not estimate_delivery("", TODAY, hub_city="Manila").is_local


def test_aware_datetime_uses_store_timezone(monkeypatch):
    monkeypatch.setattr(Config, "TIMEZONE", "Asia/Manila")
    # 20:00 UTC on the 3rd is already the 4th in Manila
    reference = datetime(2024, 3, 3, 20, 0, tzinfo=pytz.utc)
    estimate = estimate_delivery("Davao", reference, hub_city="Manila")
    assert estimate.range_start == date(2024, 3, 7)


def test_window_display():
    estimate = estimate_delivery("Manila", TODAY, hub_city="Manila")
    assert estimate.window == "Mar 04 - Mar 05"
