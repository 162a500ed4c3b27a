# storefront/models/delivery.py
from datetime import date
from ..utils.formatters import format_date_range
from .base import FrozenModel

class DeliveryEstimate(FrozenModel):
    """Advisory delivery window shown at checkout"""
    label: str
    range_start: date
    range_end: date
    is_local: bool

    @property
    def window(self) -> str:
        return format_date_range(self.range_start, self.range_end)
