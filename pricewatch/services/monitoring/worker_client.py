"""
Monitoring Worker Client

The watermark, the snapshot cache and the notification flag belong to the
Celery worker that runs the scheduled scans. Other processes (the API)
control that engine through its tasks and wait for the worker's reply.
"""

import logging
from typing import Any, Dict, Optional

from celery.exceptions import TimeoutError as CeleryTimeoutError
from kombu.exceptions import OperationalError

from pricewatch.celery_app import MONITORING_QUEUE
from pricewatch.core.config import settings
from pricewatch.core.exceptions import WorkerUnavailableError
from pricewatch.tasks.monitoring_tasks import (
    force_full_scan_task,
    monitoring_status_task,
    set_notifications_enabled_task
)

class MonitoringWorkerClient:
    """Request/reply calls to the monitoring worker."""

    def __init__(self, queue: str = MONITORING_QUEUE, timeout: Optional[float] = None):
        self.logger = logging.getLogger(__name__)
        self.queue = queue
        self.timeout = timeout if timeout is not None else settings.monitoring.control_timeout_seconds

    def _call(self, task, *args) -> Dict[str, Any]:
        try:
            result = task.apply_async(args=list(args), queue=self.queue)
            return result.get(timeout=self.timeout)
        except (CeleryTimeoutError, OperationalError) as e:
            self.logger.warning(f"Monitoring worker did not answer {task.name}: {e}")
            raise WorkerUnavailableError(task.name, cause=e)

    def set_notifications_enabled(self, enabled: bool) -> Dict[str, Any]:
        return self._call(set_notifications_enabled_task, enabled)

    def status(self) -> Dict[str, Any]:
        """Engine status as reported by the worker."""
        return self._call(monitoring_status_task)

    def force_full_scan(self) -> Dict[str, Any]:
        return self._call(force_full_scan_task)

__all__ = ['MonitoringWorkerClient']
