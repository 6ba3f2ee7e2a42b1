"""Ownership and visibility rules shared by the API and the web panel.

A person is accessible to a user when the user is an admin, owns the
person, or holds a share grant for it. Documents inherit that rule from
their parent person, with ``is_public`` opening them to every user.
"""

from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.document import Document
from app.models.person import Person, PersonShare
from app.models.user import User


def is_owner(user: User | None, person: Person) -> bool:
    return user is not None and user.id == person.user_id


def is_owner_or_admin(user: User | None, person: Person) -> bool:
    return user is not None and (user.is_admin or user.id == person.user_id)


def has_share(db: Session, user: User, person: Person) -> bool:
    stmt = select(PersonShare.id).where(
        PersonShare.person_id == person.id,
        PersonShare.shared_with_user_id == user.id,
    )
    return db.scalar(stmt) is not None


def can_access_person(db: Session, user: User | None, person: Person) -> bool:
    if user is None:
        return False
    if is_owner_or_admin(user, person):
        return True
    return has_share(db, user, person)


def can_view_document(db: Session, user: User | None, document: Document) -> bool:
    if document.is_public:
        return True
    return can_access_person(db, user, document.person)


def ensure_can_access_person(
    db: Session,
    user: User | None,
    person: Person,
    message: str = "You are not allowed to access this person.",
) -> None:
    if not can_access_person(db, user, person):
        raise HTTPException(status_code=403, detail=message)


def ensure_owner_or_admin(
    user: User | None,
    person: Person,
    message: str = "You are not allowed to manage this person.",
) -> None:
    if not is_owner_or_admin(user, person):
        raise HTTPException(status_code=403, detail=message)


def ensure_can_view_document(
    db: Session, user: User | None, document: Document
) -> None:
    if not can_view_document(db, user, document):
        raise HTTPException(
            status_code=403, detail="You are not allowed to view this document."
        )


def require_admin(user: User | None) -> None:
    if user is None or not user.is_admin:
        raise HTTPException(status_code=403, detail="This action is unauthorized.")


def accessible_person_ids(db: Session, user: User):
    """Subquery of person ids the user owns or has been shared."""
    owned = select(Person.id).where(Person.user_id == user.id)
    shared = select(PersonShare.person_id).where(
        PersonShare.shared_with_user_id == user.id
    )
    return owned.union(shared)
