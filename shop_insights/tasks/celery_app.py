from celery import Celery
from celery.schedules import crontab

from shop_insights.core.config import get_settings

settings = get_settings()

# Create Celery instance
celery_app = Celery(
    'shop_insights',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['shop_insights.tasks.shopify_sync']
)

# Celery configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)

# Configure Celery Beat schedule
celery_app.conf.beat_schedule = {
    'schedule-periodic-store-syncs': {
        'task': 'shop_insights.tasks.shopify_sync.schedule_periodic_syncs',
        'schedule': crontab(minute=2),
    },
}

if __name__ == '__main__':
    celery_app.start()
