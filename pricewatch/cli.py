"""
Administration CLI for the monitoring worker.

Commands queue tasks on the ``monitoring`` queue; the worker process owns
the snapshot cache and the notification flag.
"""

import click

from pricewatch.celery_app import app, MONITORING_QUEUE

@click.group()
def cli():
    """PriceWatch management CLI."""
    pass

@cli.command()
@click.option('--wait/--no-wait', default=False, help='Wait for the cycle result')
@click.option('--timeout', default=60, help='Seconds to wait')
def trigger_scan(wait: bool, timeout: int):
    """Queue one scan cycle."""
    from pricewatch.tasks.monitoring_tasks import run_scan_cycle_task

    result = run_scan_cycle_task.apply_async(queue=MONITORING_QUEUE)
    click.echo(f"Scan cycle queued: {result.id}")

    if wait:
        summary = result.get(timeout=timeout)
        click.echo(
            f"{summary['status']}: fetched {summary['fetched']}, processed {summary['processed']}, "
            f"notified {summary['notifications_sent']}, failed {summary['failed']}"
        )

@cli.command()
def force_scan():
    """Resynchronise the snapshot cache without notifications."""
    from pricewatch.tasks.monitoring_tasks import force_full_scan_task

    result = force_full_scan_task.apply_async(queue=MONITORING_QUEUE)
    click.echo(f"Full scan queued: {result.id}")

@cli.command()
def sweep():
    """Evict snapshots older than the retention window."""
    from pricewatch.tasks.monitoring_tasks import sweep_cache_task

    result = sweep_cache_task.apply_async(queue=MONITORING_QUEUE)
    click.echo(f"Cache sweep queued: {result.id}")

@cli.command()
@click.option('--enable/--disable', default=True, help='Notification state')
def notifications(enable: bool):
    """Enable or disable change notifications in the worker."""
    from pricewatch.tasks.monitoring_tasks import set_notifications_enabled_task

    result = set_notifications_enabled_task.apply_async(args=[enable], queue=MONITORING_QUEUE)
    state = "enable" if enable else "disable"
    click.echo(f"Request to {state} notifications queued: {result.id}")

@cli.command()
@click.option('--timeout', default=10, help='Seconds to wait')
def status(timeout: int):
    """Show the worker's engine status."""
    from pricewatch.tasks.monitoring_tasks import monitoring_status_task

    result = monitoring_status_task.apply_async(queue=MONITORING_QUEUE)
    for key, value in result.get(timeout=timeout).items():
        click.echo(f"{key}: {value}")

@cli.command()
def env_template():
    """Print a .env template."""
    from pricewatch.core.config import ENV_TEMPLATE

    click.echo(ENV_TEMPLATE.strip())

@cli.command()
@click.option('--queue', '-q', default=MONITORING_QUEUE, help='Queue name')
def inspect_queue(queue: str):
    """Inspect queue status."""
    inspector = app.control.inspect()

    active = inspector.active()
    if active:
        click.echo(f"\nActive tasks in queue '{queue}':")
        for worker, tasks in active.items():
            for task in tasks:
                if task.get('delivery_info', {}).get('routing_key') == queue:
                    click.echo(f"  - {task['id']}: {task['name']}")

    reserved = inspector.reserved()
    if reserved:
        click.echo(f"\nReserved tasks in queue '{queue}':")
        for worker, tasks in reserved.items():
            click.echo(f"  Worker: {worker} - {len(tasks)} tasks")

    stats = inspector.stats()
    if stats:
        click.echo("\nWorker statistics:")
        for worker, stat in stats.items():
            click.echo(f"  {worker}:")
            click.echo(f"    - Total tasks: {stat.get('total', {})}")
            click.echo(f"    - Pool: {stat.get('pool', {})}")

if __name__ == '__main__':
    cli()
