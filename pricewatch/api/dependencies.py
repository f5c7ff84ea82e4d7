"""
Dependency Injection
"""
from fastapi import Depends

from pricewatch.core.config import MonitoringSettings
from pricewatch.core.domain.repositories import CatalogScope, MessageBroker
from pricewatch.services.container import MonitoringContainer, get_container as get_process_container
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from pricewatch.services.monitoring.analytics import PriceAnalyticsService
from pricewatch.services.monitoring.worker_client import MonitoringWorkerClient

def get_container() -> MonitoringContainer:
    """Process-wide monitoring container."""
    return get_process_container()

def get_worker() -> MonitoringWorkerClient:
    """Client for the worker that owns the scan engine."""
    return MonitoringWorkerClient()

def get_notifier(container: MonitoringContainer = Depends(get_container)) -> PriceChangeNotifier:
    return container.notifier

def get_monitoring_config(container: MonitoringContainer = Depends(get_container)) -> MonitoringSettings:
    return container.config

def get_analytics(container: MonitoringContainer = Depends(get_container)) -> PriceAnalyticsService:
    return container.analytics

def get_catalog_scope(container: MonitoringContainer = Depends(get_container)) -> CatalogScope:
    return container.catalog_scope

def get_broker(container: MonitoringContainer = Depends(get_container)) -> MessageBroker:
    return container.broker

__all__ = [
    'get_container',
    'get_worker',
    'get_notifier',
    'get_monitoring_config',
    'get_analytics',
    'get_catalog_scope',
    'get_broker'
]
