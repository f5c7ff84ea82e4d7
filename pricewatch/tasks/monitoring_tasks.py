"""
Celery tasks for price monitoring.
"""

from typing import Dict, Any
from celery import shared_task
from celery.utils.log import get_task_logger

from pricewatch.services.container import get_container

logger = get_task_logger(__name__)

@shared_task(name='pricewatch.tasks.monitoring_tasks.run_scan_cycle_task')
def run_scan_cycle_task() -> Dict[str, Any]:
    """One scan cycle over items changed since the watermark."""
    result = get_container().engine.run_scan_cycle()
    return result.to_dict()

@shared_task(name='pricewatch.tasks.monitoring_tasks.sweep_cache_task')
def sweep_cache_task() -> Dict[str, Any]:
    """Evict stale snapshots."""
    container = get_container()
    removed = container.janitor.sweep()

    logger.info(f"Snapshot sweep removed {removed} entries")
    return {
        'status': 'SUCCESS',
        'removed': removed,
        'cached_items': container.cache.size()
    }

@shared_task(name='pricewatch.tasks.monitoring_tasks.force_full_scan_task')
def force_full_scan_task() -> Dict[str, Any]:
    """Resynchronise the snapshot cache without publishing."""
    cached = get_container().engine.force_full_scan()
    return {'status': 'SUCCESS', 'cached_items': cached}

@shared_task(name='pricewatch.tasks.monitoring_tasks.set_notifications_enabled_task')
def set_notifications_enabled_task(enabled: bool) -> Dict[str, Any]:
    """Toggle notifications inside the worker process."""
    container = get_container()
    container.notifier.set_enabled(enabled)
    return {'status': 'SUCCESS', 'enabled': container.notifier.is_enabled()}

@shared_task(name='pricewatch.tasks.monitoring_tasks.monitoring_status_task')
def monitoring_status_task() -> Dict[str, Any]:
    return get_container().engine.get_status().to_dict()

__all__ = [
    'run_scan_cycle_task',
    'sweep_cache_task',
    'force_full_scan_task',
    'set_notifications_enabled_task',
    'monitoring_status_task'
]
