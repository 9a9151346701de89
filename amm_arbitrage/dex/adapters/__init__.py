"""
AMM adapters for different pool types.
"""

from .v2 import fetch_pool_async, price_quote_in_out, quote, swap_out

__all__ = ["fetch_pool_async", "price_quote_in_out", "quote", "swap_out"]
