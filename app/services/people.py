from __future__ import annotations

import logging
from datetime import date

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ValidationFailed
from app.models.notification import NotificationType
from app.models.person import Favorite, Person, PersonShare
from app.models.user import User
from app.schemas.person import PersonCreate, PersonUpdate
from app.services import access, birthdays
from app.services.activity import activity, change_details
from app.services.common import apply_pagination, apply_search, coerce_uuid
from app.services.notification import notifications
from app.services.nric import parse_nric
from app.services.push import device_tokens, queue_push
from app.services.response import ListResponseMixin
from app.services.storage import storage

logger = logging.getLogger(__name__)

NRIC_TAKEN = "The nric has already been taken."

_TRACKED_FIELDS = (
    "name",
    "nric",
    "date_of_birth",
    "gender",
    "blood_type",
    "occupation",
    "address",
    "phone",
    "email",
)


def _nric_taken(db: Session, nric: str, exclude_id=None) -> bool:
    stmt = select(Person.id).where(Person.nric == nric)
    if exclude_id is not None:
        stmt = stmt.where(Person.id != exclude_id)
    return db.scalar(stmt) is not None


def _prefilled(payload: PersonCreate | PersonUpdate) -> dict:
    """Payload values with date of birth and gender filled from the NRIC when blank."""
    data = payload.model_dump()
    if data.get("email") is not None:
        data["email"] = str(data["email"])
    if data["date_of_birth"] is None or data["gender"] is None:
        parsed = parse_nric(data["nric"])
        if data["date_of_birth"] is None:
            data["date_of_birth"] = parsed.date_of_birth
        if data["gender"] is None:
            data["gender"] = parsed.gender
    return data


def _snapshot(person: Person) -> dict:
    return {field: getattr(person, field) for field in _TRACKED_FIELDS}


class People(ListResponseMixin):
    @staticmethod
    def nric_prefill(value: str | None) -> dict:
        parsed = parse_nric(value)
        return {"date_of_birth": parsed.date_of_birth, "gender": parsed.gender}

    @staticmethod
    def create(
        db: Session,
        user: User,
        payload: PersonCreate,
        ip_address: str | None = None,
    ) -> Person:
        data = _prefilled(payload)
        if _nric_taken(db, data["nric"]):
            raise ValidationFailed({"nric": [NRIC_TAKEN]})

        person = Person(user_id=user.id, **data)
        db.add(person)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed({"nric": [NRIC_TAKEN]})

        activity.log(
            db,
            "person.created",
            f"{user.name} created person: {person.name}",
            actor=user,
            subject=person,
            properties={"person_name": person.name},
            ip_address=ip_address,
        )
        title = "New Family Member Added"
        message = f"{user.display_name} added {person.name} to the family records."
        notifications.create_for_all_users(
            db,
            NotificationType.person_created.value,
            title,
            message,
            person_id=person.id,
        )
        db.commit()
        db.refresh(person)
        logger.info("Created person %s", person.id)

        queue_push(
            device_tokens(db),
            title,
            message,
            {"type": NotificationType.person_created.value, "person_id": str(person.id)},
        )
        return person

    @staticmethod
    def get(db: Session, person_id: str) -> Person:
        person = db.get(Person, coerce_uuid(person_id))
        if not person:
            raise HTTPException(status_code=404, detail="Person not found")
        return person

    @staticmethod
    def get_for_user(db: Session, user: User, person_id: str) -> Person:
        person = People.get(db, person_id)
        access.ensure_can_access_person(db, user, person)
        return person

    @staticmethod
    def list(
        db: Session,
        user: User,
        scope: str,
        search: str | None,
        limit: int,
        offset: int,
    ) -> list[Person]:
        """People visible to ``user``.

        ``scope`` is ``mine`` (owned), ``shared`` (shared with the user) or
        ``all`` (everything the user can access; every person for admins).
        """
        stmt = select(Person)
        if scope == "mine":
            stmt = stmt.where(Person.user_id == user.id)
        elif scope == "shared":
            stmt = stmt.where(
                Person.id.in_(
                    select(PersonShare.person_id).where(
                        PersonShare.shared_with_user_id == user.id
                    )
                )
            )
        elif scope == "all":
            if not user.is_admin:
                stmt = stmt.where(Person.id.in_(access.accessible_person_ids(db, user)))
        else:
            raise HTTPException(
                status_code=400, detail="Invalid scope. Allowed: all, mine, shared"
            )
        stmt = apply_search(stmt, search, Person.name, Person.nric)
        stmt = stmt.order_by(Person.name.asc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def list_all(
        db: Session, search: str | None, limit: int, offset: int
    ) -> list[Person]:
        stmt = apply_search(select(Person), search, Person.name, Person.nric)
        stmt = stmt.order_by(Person.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def favorites(db: Session, user: User, limit: int, offset: int) -> list[Person]:
        stmt = (
            select(Person)
            .join(Favorite, Favorite.person_id == Person.id)
            .where(Favorite.user_id == user.id)
            .order_by(Person.name.asc())
        )
        # A favourite outlives a revoked share; only accessible people are listed.
        if not user.is_admin:
            stmt = stmt.where(Person.id.in_(access.accessible_person_ids(db, user)))
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def update(
        db: Session,
        user: User,
        person_id: str,
        payload: PersonUpdate,
        ip_address: str | None = None,
        action: str = "person.updated",
    ) -> Person:
        person = People.get_for_user(db, user, person_id)
        data = _prefilled(payload)
        if _nric_taken(db, data["nric"], exclude_id=person.id):
            raise ValidationFailed({"nric": [NRIC_TAKEN]})

        before = _snapshot(person)
        for key, value in data.items():
            setattr(person, key, value)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed({"nric": [NRIC_TAKEN]})

        changes = change_details(before, _snapshot(person))
        activity.log(
            db,
            action,
            f"{user.name} updated person: {person.name}",
            actor=user,
            subject=person,
            properties={"changes": changes},
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(person)
        logger.info("Updated person %s", person.id)
        return person

    @staticmethod
    def delete(
        db: Session,
        user: User,
        person_id: str,
        ip_address: str | None = None,
        action: str = "person.deleted",
    ) -> None:
        person = People.get(db, person_id)
        access.ensure_owner_or_admin(user, person)
        for document in list(person.documents):
            storage.delete(document.file_path)
        name = person.name
        activity.log(
            db,
            action,
            f"{user.name} deleted person: {name}",
            actor=user,
            subject=person,
            properties={"person_name": name},
            ip_address=ip_address,
        )
        db.delete(person)
        db.commit()
        logger.info("Deleted person %s", person_id)

    @staticmethod
    def is_favorite(db: Session, user: User, person: Person) -> bool:
        stmt = select(Favorite.id).where(
            Favorite.user_id == user.id, Favorite.person_id == person.id
        )
        return db.scalar(stmt) is not None

    @staticmethod
    def detail(
        db: Session, user: User, person: Person, today: date | None = None
    ) -> dict:
        """Person fields plus the derived birthday values for display."""
        today = today or date.today()
        return {
            "id": person.id,
            "user_id": person.user_id,
            "name": person.name,
            "nric": person.nric,
            "date_of_birth": person.date_of_birth,
            "gender": person.gender,
            "blood_type": person.blood_type,
            "occupation": person.occupation,
            "address": person.address,
            "phone": person.phone,
            "email": person.email,
            "created_at": person.created_at,
            "updated_at": person.updated_at,
            "owner": person.owner,
            "age": birthdays.age_breakdown(person.date_of_birth, today),
            "next_birthday": birthdays.next_birthday(person.date_of_birth, today),
            "days_until_birthday": birthdays.days_until_birthday(
                person.date_of_birth, today
            ),
            "is_favorite": People.is_favorite(db, user, person),
            "can_manage": access.is_owner_or_admin(user, person),
        }


people = People()
