import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.celery_app import celery_app
from app.config import settings

logger = logging.getLogger(__name__)


def local_today() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def days_text(days_ahead: int) -> str:
    if days_ahead == 0:
        return "today"
    if days_ahead == 1:
        return "tomorrow"
    return f"in {days_ahead} days"


@celery_app.task(
    name="app.tasks.birthdays.send_birthday_notifications", ignore_result=True
)
def send_birthday_notifications(days_ahead: int = 1) -> None:
    """Notify every user about birthdays ``days_ahead`` days from today."""
    from app.db import SessionLocal

    db = SessionLocal()
    try:
        _notify(db, days_ahead)
    except Exception as e:
        logger.exception("Birthday notifications failed (days=%s): %s", days_ahead, e)
        db.rollback()
    finally:
        db.close()


def _notify(
    db: Session,
    days_ahead: int,
    today: date | None = None,
) -> dict:
    from app.models.notification import NotificationType
    from app.services.birthdays import age_on, birthdays_on
    from app.services.notification import notifications
    from app.services.push import device_tokens, send_batch

    today = today or local_today()
    target = today + timedelta(days=days_ahead)
    people = birthdays_on(db, target)
    if not people:
        logger.info("No birthdays on %s", target.isoformat())
        return {"target_date": target, "people": 0, "notifications": 0, "tokens": 0}

    title = "Birthday Today!" if days_ahead == 0 else "Upcoming Birthday"
    when = days_text(days_ahead)
    created = 0
    for person in people:
        age = age_on(person.date_of_birth, target)
        created += notifications.create_for_all_users(
            db,
            NotificationType.birthday_reminder.value,
            title,
            f"{person.name} turning {age} birthday is {when}!",
            person_id=person.id,
        )
    db.commit()
    logger.info(
        "Created %d birthday notification(s) for %d person(s) on %s",
        created,
        len(people),
        target.isoformat(),
    )

    tokens = device_tokens(db)
    if tokens:
        if len(people) == 1:
            body = f"{people[0].name}'s birthday is {when}!"
        else:
            body = f"You have {len(people)} birthdays coming up {when}!"
        send_batch(
            tokens,
            title,
            body,
            {
                "type": NotificationType.birthday_reminder.value,
                "person_id": str(people[0].id) if len(people) == 1 else None,
            },
        )
    return {
        "target_date": target,
        "people": len(people),
        "notifications": created,
        "tokens": len(tokens),
    }
