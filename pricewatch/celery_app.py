"""
Celery application: the scheduler for scan cycles and cache sweeps.

Beat drives two independent periodic entries. Snapshot state is held per
worker process, so run a single monitoring worker process.
"""

from celery import Celery, Task
from celery.signals import setup_logging, worker_ready, worker_shutdown
from datetime import timedelta

from pricewatch.core.config import settings
from pricewatch.core.logging_config import get_logger, setup_logging as configure_app_logging
from pricewatch.core.domain.entities import utcnow

logger = get_logger(__name__)

MONITORING_QUEUE = 'monitoring'

# ======================== CUSTOM TASK CLASS ========================

class MonitoringTask(Task):
    """Task base class with structured failure logging."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"Task failed: {self.name}",
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "exception": str(exc),
                "traceback": str(einfo)
            }
        )

    def on_success(self, retval, task_id, args, kwargs):
        logger.debug(
            f"Task completed: {self.name}",
            extra={"task_id": task_id, "task_name": self.name}
        )

# ======================== CREATE CELERY APP ========================

def build_beat_schedule():
    """Two independent repeating entries: scan cadence and janitor cadence."""
    monitoring = settings.monitoring
    return {
        'run-price-scan': {
            'task': 'pricewatch.tasks.monitoring_tasks.run_scan_cycle_task',
            'schedule': timedelta(milliseconds=monitoring.poll_interval_ms),
            'options': {
                'queue': MONITORING_QUEUE,
                # A late scan is replaced by the next one
                'expires': monitoring.poll_interval_seconds
            }
        },
        'sweep-snapshot-cache': {
            'task': 'pricewatch.tasks.monitoring_tasks.sweep_cache_task',
            'schedule': timedelta(milliseconds=monitoring.janitor_interval_ms),
            'options': {
                'queue': MONITORING_QUEUE,
                'expires': monitoring.janitor_interval_seconds
            }
        }
    }

def create_celery_app() -> Celery:
    app = Celery(
        'pricewatch',
        task_cls=MonitoringTask,
        include=['pricewatch.tasks.monitoring_tasks']
    )

    app.config_from_object(settings.celery.get_celery_config())

    app.conf.update(
        worker_hijack_root_logger=False,
        task_ignore_result=False,
        worker_log_format='[%(asctime)s: %(levelname)s/%(processName)s] %(message)s',
        beat_schedule=build_beat_schedule(),
    )

    return app

app = create_celery_app()

# ======================== SIGNAL HANDLERS ========================

@setup_logging.connect
def configure_logging(**kwargs):
    """Use the application logging setup instead of Celery's."""
    configure_app_logging()

@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    logger.info(
        "Celery worker ready",
        extra={
            "hostname": sender.hostname if sender else "unknown",
            "timestamp": utcnow().isoformat()
        }
    )

@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info(
        "Celery worker shutting down",
        extra={
            "hostname": sender.hostname if sender else "unknown",
            "timestamp": utcnow().isoformat()
        }
    )

__all__ = ['app', 'MonitoringTask', 'MONITORING_QUEUE', 'build_beat_schedule']
