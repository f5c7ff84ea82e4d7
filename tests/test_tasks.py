"""
Celery task and schedule tests. Tasks are called in-process.
"""

import pytest

from pricewatch.celery_app import app, build_beat_schedule
from pricewatch.services.container import MonitoringContainer, set_container
from pricewatch.tasks.monitoring_tasks import (
    run_scan_cycle_task,
    sweep_cache_task,
    force_full_scan_task,
    set_notifications_enabled_task,
    monitoring_status_task
)
from tests.fakes import FakeCatalogRepository, RecordingBroker

@pytest.fixture
def container():
    catalog = FakeCatalogRepository()
    catalog.add(1, "10.00")
    catalog.add(2, "20.00")
    container = MonitoringContainer(catalog_scope=catalog.scope, broker=RecordingBroker())
    set_container(container)
    yield container
    set_container(None)

class TestMonitoringTasks:

    def test_force_full_scan_task(self, container):
        assert force_full_scan_task() == {'status': 'SUCCESS', 'cached_items': 2}
        assert container.cache.size() == 2

    def test_sweep_task_keeps_fresh_entries(self, container):
        force_full_scan_task()

        result = sweep_cache_task()

        assert result['removed'] == 0
        assert result['cached_items'] == 2

    def test_scan_cycle_task_returns_summary(self, container):
        container.engine.last_poll_time = container.engine.last_poll_time.replace(year=2000)

        result = run_scan_cycle_task()

        assert result['status'] == 'SUCCESS'
        assert result['fetched'] == 2
        assert result['notifications_sent'] == 0

    def test_notifications_toggle_task(self, container):
        assert set_notifications_enabled_task(False) == {'status': 'SUCCESS', 'enabled': False}
        assert container.notifier.is_enabled() is False

        assert run_scan_cycle_task()['status'] == 'SKIPPED'

    def test_status_task(self, container):
        assert monitoring_status_task()['enabled'] is True

class TestBeatSchedule:

    def test_two_independent_entries(self):
        schedule = build_beat_schedule()

        assert set(schedule) == {'run-price-scan', 'sweep-snapshot-cache'}
        assert schedule['run-price-scan']['task'] == 'pricewatch.tasks.monitoring_tasks.run_scan_cycle_task'
        assert schedule['run-price-scan']['schedule'].total_seconds() == 30
        assert schedule['sweep-snapshot-cache']['schedule'].total_seconds() == 300

    def test_app_uses_schedule(self):
        assert 'run-price-scan' in app.conf.beat_schedule
