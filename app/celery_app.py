from celery import Celery
from celery.schedules import crontab

from app.config import settings


def _at(value: str) -> crontab:
    hour, minute = value.split(":", 1)
    return crontab(hour=int(hour), minute=int(minute))


celery_app = Celery(
    "family_records",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.birthdays", "app.tasks.push"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.timezone,
    enable_utc=True,
    task_always_eager=settings.celery_task_always_eager,
    beat_schedule={
        "birthday-notifications-today": {
            "task": "app.tasks.birthdays.send_birthday_notifications",
            "schedule": _at(settings.birthday_today_at),
            "args": (0,),
        },
        "birthday-notifications-tomorrow": {
            "task": "app.tasks.birthdays.send_birthday_notifications",
            "schedule": _at(settings.birthday_tomorrow_at),
            "args": (1,),
        },
    },
)
