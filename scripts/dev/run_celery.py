# run_celery.py
from pricewatch.celery_app import app

if __name__ == '__main__':
    # One process: the snapshot cache lives in worker memory
    app.worker_main([
        'worker',
        '--loglevel=info',
        '--pool=solo',
        '--concurrency=1',
        '--queues=monitoring,default',
    ])
