"""Order-fulfillment engine for a multi-seller storefront"""

__version__ = "1.0.0"
