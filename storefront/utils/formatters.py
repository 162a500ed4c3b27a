# storefront/utils/formatters.py
from datetime import date
from decimal import Decimal
from ..config import Config

def format_price(amount: Decimal) -> str:
    """Money with currency code and two decimals"""
    return f"{Config.CURRENCY} {Decimal(amount):,.2f}"

def format_date_range(start: date, end: date) -> str:
    """Short delivery window, e.g. 'Mar 04 - Mar 05'"""
    return f"{start.strftime('%b %d')} - {end.strftime('%b %d')}"
