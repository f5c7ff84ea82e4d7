"""
Price Monitoring Services Package

- Scan engine: watermark polling and snapshot diffing
- Notifier gate: enable flag in front of the message broker
- Cache janitor: snapshot retention
- Analytics: change views over stored catalog prices
"""

from pricewatch.services.monitoring.scan_engine import PriceScanEngine, ScanCycleResult, MonitoringStatus
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from pricewatch.services.monitoring.cache_janitor import CacheJanitor, CACHE_RETENTION_HOURS
from pricewatch.services.monitoring.analytics import PriceAnalyticsService

__all__ = [
    'PriceScanEngine',
    'ScanCycleResult',
    'MonitoringStatus',
    'PriceChangeNotifier',
    'CacheJanitor',
    'CACHE_RETENTION_HOURS',
    'PriceAnalyticsService'
]
