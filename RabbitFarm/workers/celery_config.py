from celery import Celery
from celery.schedules import crontab
from config.settings import settings

app = Celery(
    'rabbitfarm',
    broker=settings.REDIS_URL or 'redis://localhost:6379/0',
    backend=settings.REDIS_URL or 'redis://localhost:6379/0',
)

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.FARM_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 minutos hard limit
    task_soft_time_limit=8 * 60,  # 8 minutos soft timeout
    beat_schedule={
        'process-due-alerts': {
            'task': 'workers.tasks.process_due_alerts_task',
            'schedule': 300.0,  # cada 5 minutos
        },
        'cleanup-expired-tokens': {
            'task': 'workers.tasks.cleanup_expired_tokens_task',
            'schedule': crontab(hour=3, minute=0),
        },
    },
)

app.autodiscover_tasks(['workers'])
