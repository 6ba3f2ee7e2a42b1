from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.person import Favorite, Person, PersonShare
from app.models.user import User
from app.services import access
from app.services.activity import activity
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)

ALREADY_SHARED = "This person is already shared with this user."


class Shares:
    @staticmethod
    def list(db: Session, user: User, person: Person) -> list[PersonShare]:
        access.ensure_owner_or_admin(
            user, person, "You are not allowed to view shares for this person."
        )
        stmt = (
            select(PersonShare)
            .where(PersonShare.person_id == person.id)
            .order_by(PersonShare.created_at.asc())
        )
        return list(db.scalars(stmt).all())

    @staticmethod
    def create(
        db: Session,
        user: User,
        person: Person,
        shared_with_user_id,
        ip_address: str | None = None,
    ) -> PersonShare:
        access.ensure_owner_or_admin(
            user, person, "You are not allowed to share this person."
        )
        target_id = coerce_uuid(shared_with_user_id)
        if target_id == user.id:
            raise HTTPException(
                status_code=400, detail="You cannot share a person with yourself."
            )
        target = db.get(User, target_id)
        if not target:
            raise HTTPException(status_code=404, detail="User not found")

        existing = db.scalar(
            select(PersonShare.id).where(
                PersonShare.person_id == person.id,
                PersonShare.shared_with_user_id == target.id,
            )
        )
        if existing is not None:
            raise HTTPException(status_code=409, detail=ALREADY_SHARED)

        share = PersonShare(
            person_id=person.id,
            shared_with_user_id=target.id,
            shared_by_user_id=user.id,
        )
        db.add(share)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=409, detail=ALREADY_SHARED)

        activity.log(
            db,
            "person.shared",
            f"{user.name} shared {person.name} with {target.name}",
            actor=user,
            subject=person,
            properties={"shared_with_user_id": str(target.id)},
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(share)
        logger.info("Shared person %s with user %s", person.id, target.id)
        return share

    @staticmethod
    def delete(
        db: Session,
        user: User,
        person: Person,
        share_id: str,
        ip_address: str | None = None,
    ) -> None:
        share = db.get(PersonShare, coerce_uuid(share_id))
        if not share or share.person_id != person.id:
            raise HTTPException(status_code=404, detail="Share not found")
        if not (
            access.is_owner_or_admin(user, person)
            or share.shared_with_user_id == user.id
        ):
            raise HTTPException(
                status_code=403, detail="You are not allowed to remove this share."
            )
        activity.log(
            db,
            "person.unshared",
            f"{user.name} removed share of {person.name}",
            actor=user,
            subject=person,
            properties={"shared_with_user_id": str(share.shared_with_user_id)},
            ip_address=ip_address,
        )
        db.delete(share)
        db.commit()
        logger.info("Removed share %s on person %s", share_id, person.id)


class Favorites:
    @staticmethod
    def toggle(
        db: Session, user: User, person: Person, ip_address: str | None = None
    ) -> bool:
        """Flip the favourite flag for (user, person) and return the new state."""
        favorite = db.scalar(
            select(Favorite).where(
                Favorite.user_id == user.id, Favorite.person_id == person.id
            )
        )
        if favorite is not None:
            db.delete(favorite)
            action, state = "person.unfavorited", False
        else:
            db.add(Favorite(user_id=user.id, person_id=person.id))
            action, state = "person.favorited", True
        activity.log(
            db,
            action,
            f"{user.name} {'favorited' if state else 'unfavorited'} {person.name}",
            actor=user,
            subject=person,
            ip_address=ip_address,
        )
        db.commit()
        logger.info("Favorite for person %s by user %s is now %s", person.id, user.id, state)
        return state


shares = Shares()
favorites = Favorites()
