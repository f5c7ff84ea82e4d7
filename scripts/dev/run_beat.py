# run_beat.py
from pricewatch.celery_app import app

if __name__ == '__main__':
    app.start(['beat', '--loglevel=info'])
