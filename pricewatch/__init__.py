"""
PriceWatch: price change detection for a product catalog.
"""

__version__ = "1.0.0"
