#!/usr/bin/env python3
"""
Celery Worker Entry Point
Run with: celery -A celery_worker.celery worker --beat --loglevel=info
Or: python celery_worker.py
"""
import os

from celery.schedules import crontab

from hms import create_app
from hms.extensions import celery

# Create Flask app to initialize Celery
app = create_app()

# Import tasks so Celery can discover them
from tasks import notification_tasks  # noqa: E402,F401

# Same-day reminders, once every morning in CELERY_TIMEZONE
celery.conf.beat_schedule = {
    'daily-appointment-reminders': {
        'task': 'tasks.send_daily_reminders',
        'schedule': crontab(
            hour=int(os.getenv('REMINDER_HOUR', '8')),
            minute=int(os.getenv('REMINDER_MINUTE', '0')),
        ),
    },
}

if __name__ == '__main__':
    # For development: run worker directly
    celery.worker_main([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=4'
    ])
