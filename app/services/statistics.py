from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.models.document import Document
from app.models.person import Person
from app.models.user import User
from app.services.birthdays import age_on

AGE_GROUPS = (
    ("0-17", 0, 17),
    ("18-25", 18, 25),
    ("26-35", 26, 35),
    ("36-50", 36, 50),
    ("51-65", 51, 65),
    ("65+", 66, None),
)


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _count(db: Session, model, *criteria) -> int:
    stmt = select(func.count(model.id))
    if criteria:
        stmt = stmt.where(*criteria)
    return db.scalar(stmt) or 0


def _top_users(db: Session, limit: int) -> list[dict]:
    people_count = func.count(Person.id).label("people_count")
    stmt = (
        select(User.id, User.name, User.email, people_count)
        .join(Person, Person.user_id == User.id)
        .group_by(User.id, User.name, User.email)
        .order_by(people_count.desc(), User.name.asc())
        .limit(limit)
    )
    return [
        {"id": row.id, "name": row.name, "email": row.email, "people_count": row.people_count}
        for row in db.execute(stmt)
    ]


def age_groups(db: Session, today: date | None = None) -> dict[str, int]:
    today = today or date.today()
    groups = {label: 0 for label, _, _ in AGE_GROUPS}
    for born in db.scalars(
        select(Person.date_of_birth).where(Person.date_of_birth.is_not(None))
    ):
        age = age_on(born, today)
        for label, low, high in AGE_GROUPS:
            if age >= low and (high is None or age <= high):
                groups[label] += 1
                break
    return groups


def overview(db: Session, now: datetime | None = None, today: date | None = None) -> dict:
    """Figures shown on the statistics page for every approved user."""
    now = now or datetime.now(timezone.utc)
    month_start = _month_start(now)

    total_people = _count(db, Person)
    total_documents = _count(db, Document)

    gender_distribution = {
        (gender or "Unknown"): count
        for gender, count in db.execute(
            select(Person.gender, func.count(Person.id)).group_by(Person.gender)
        )
    }

    doc_type = case(
        (Document.mime_type.like("image/%"), "Images"),
        (Document.mime_type == "application/pdf", "PDFs"),
        else_="Other",
    ).label("doc_type")
    document_types = {
        kind: count
        for kind, count in db.execute(
            select(doc_type, func.count(Document.id)).group_by(doc_type)
        )
    }

    people_with_documents = db.scalar(
        select(func.count(func.distinct(Document.person_id)))
    ) or 0
    average = (
        round(total_documents / people_with_documents, 1) if people_with_documents else 0
    )

    return {
        "overview": {
            "total_people": total_people,
            "total_users": _count(db, User),
            "total_documents": total_documents,
            "people_this_month": _count(db, Person, Person.created_at >= month_start),
            "users_this_month": _count(db, User, User.created_at >= month_start),
            "documents_this_month": _count(
                db, Document, Document.created_at >= month_start
            ),
        },
        "gender_distribution": gender_distribution,
        "document_types": document_types,
        "document_visibility": {
            "public": _count(db, Document, Document.is_public.is_(True)),
            "private": _count(db, Document, Document.is_public.is_(False)),
        },
        "top_users": _top_users(db, 5),
        "age_groups": age_groups(db, today),
        "additional_metrics": {
            "average_documents_per_person": average,
            "people_with_documents": people_with_documents,
            "people_without_documents": total_people - people_with_documents,
        },
    }


def admin_overview(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    month_start = _month_start(now)
    recent_users = db.scalars(
        select(User).order_by(User.created_at.desc()).limit(10)
    ).all()
    return {
        "overview": {
            "total_users": _count(db, User),
            "total_admins": _count(db, User, User.is_admin.is_(True)),
            "total_approved_users": _count(db, User, User.approved_at.is_not(None)),
            "pending_users": _count(
                db, User, User.approved_at.is_(None), User.is_admin.is_(False)
            ),
            "total_people": _count(db, Person),
            "total_documents": _count(db, Document),
            "public_documents": _count(db, Document, Document.is_public.is_(True)),
            "private_documents": _count(db, Document, Document.is_public.is_(False)),
            "users_this_month": _count(db, User, User.created_at >= month_start),
            "people_this_month": _count(db, Person, Person.created_at >= month_start),
            "documents_this_month": _count(
                db, Document, Document.created_at >= month_start
            ),
        },
        "top_users": _top_users(db, 10),
        "recent_users": [
            {
                "id": u.id,
                "name": u.name,
                "email": u.email,
                "is_admin": u.is_admin,
                "is_approved": u.is_approved,
                "created_at": u.created_at,
            }
            for u in recent_users
        ],
    }
