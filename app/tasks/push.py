import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.push.send_push_notifications", ignore_result=True)
def send_push_notifications(
    tokens: list[str], title: str, body: str, data: dict | None = None
) -> None:
    """Deliver one push batch. Failures are logged, never retried."""
    from app.services.push import send_batch

    send_batch(tokens, title, body, data)
