# storefront/services/delivery_service.py
from datetime import date, datetime, timedelta
from typing import Optional, Union
import pytz
from ..config import Config
from ..models.delivery import DeliveryEstimate

LOCAL_LABEL = "Today or Tomorrow"
STANDARD_LABEL = "3–4 Business Days"

def normalize_city(city: Optional[str]) -> str:
    """Trim, case-fold and drop all whitespace"""
    return "".join((city or "").split()).casefold()

def is_local_city(city: Optional[str], hub_city: Optional[str] = None) -> bool:
    hub = normalize_city(hub_city if hub_city is not None else Config.LOCAL_HUB_CITY)
    return bool(hub) and normalize_city(city) == hub

def _today(reference: Optional[Union[date, datetime]]) -> date:
    if reference is None:
        return datetime.now(pytz.timezone(Config.TIMEZONE)).date()
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(pytz.timezone(Config.TIMEZONE))
        return reference.date()
    return reference

def estimate_delivery(city: Optional[str],
                      reference: Optional[Union[date, datetime]] = None,
                      hub_city: Optional[str] = None) -> DeliveryEstimate:
    """Advisory delivery window; never feeds pricing or order status"""
    today = _today(reference)
    if is_local_city(city, hub_city):
        return DeliveryEstimate(
            label=LOCAL_LABEL,
            range_start=today,
            range_end=today + timedelta(days=1),
            is_local=True,
        )
    return DeliveryEstimate(
        label=STANDARD_LABEL,
        range_start=today + timedelta(days=3),
        range_end=today + timedelta(days=4),
        is_local=False,
    )
