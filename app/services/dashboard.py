from __future__ import annotations

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.person import Favorite, Person, PersonShare
from app.models.user import User
from app.services import access, birthdays
from app.services.community import events
from app.services.notification import notifications

UPCOMING_DAYS = 30
PREVIEW_SIZE = 10


def _count(db: Session, stmt) -> int:
    return db.scalar(select(func.count()).select_from(stmt.subquery())) or 0


def upcoming_birthday_rows(
    db: Session, user: User, days: int = UPCOMING_DAYS, today: date | None = None
) -> list[dict]:
    today = today or date.today()
    person_ids = None if user.is_admin else access.accessible_person_ids(db, user)
    rows = []
    for person in birthdays.upcoming_birthdays(db, days, today, person_ids):
        upcoming = birthdays.next_birthday(person.date_of_birth, today)
        rows.append(
            {
                "id": person.id,
                "name": person.name,
                "date_of_birth": person.date_of_birth,
                "next_birthday": upcoming,
                "days_until_birthday": (upcoming - today).days,
                "turning": birthdays.age_on(person.date_of_birth, upcoming),
            }
        )
    return rows


def build(db: Session, user: User, today: date | None = None) -> dict:
    today = today or date.today()
    mine = select(Person).where(Person.user_id == user.id)
    shared = select(Person).where(
        Person.id.in_(
            select(PersonShare.person_id).where(
                PersonShare.shared_with_user_id == user.id
            )
        )
    )
    return {
        "upcoming_birthdays": upcoming_birthday_rows(db, user, UPCOMING_DAYS, today),
        "my_people": db.scalars(
            mine.order_by(Person.created_at.desc()).limit(PREVIEW_SIZE)
        ).all(),
        "shared_people": db.scalars(
            shared.order_by(Person.name.asc()).limit(PREVIEW_SIZE)
        ).all(),
        "counts": {
            "my_people": _count(db, mine),
            "shared_people": _count(db, shared),
            "favorites": _count(
                db, select(Favorite.id).where(Favorite.user_id == user.id)
            ),
            "unread_notifications": notifications.unread_count(db, user),
        },
        "upcoming_events": events.upcoming(db, UPCOMING_DAYS, today),
    }
