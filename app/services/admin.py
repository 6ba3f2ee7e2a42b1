"""Admin moderation of user accounts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.community import Message
from app.models.document import Document
from app.models.notification import Notification
from app.models.person import Person
from app.models.user import User
from app.services.activity import activity
from app.services.common import apply_pagination, apply_search, coerce_uuid
from app.services.response import ListResponseMixin
from app.services.storage import storage

logger = logging.getLogger(__name__)

USER_STATUSES = {"all", "approved", "pending"}


def _unprocessable(message: str) -> HTTPException:
    return HTTPException(status_code=422, detail=message)


def _documents_count(db: Session, user_id) -> int:
    return db.scalar(
        select(func.count(Document.id))
        .join(Person, Person.id == Document.person_id)
        .where(Person.user_id == user_id)
    ) or 0


def _count(db: Session, model, user_id) -> int:
    return db.scalar(select(func.count(model.id)).where(model.user_id == user_id)) or 0


class AdminUsers(ListResponseMixin):
    @staticmethod
    def get(db: Session, user_id: str) -> User:
        user = db.get(User, coerce_uuid(user_id))
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    @staticmethod
    def list(
        db: Session,
        search: str | None,
        status: str,
        limit: int,
        offset: int,
    ) -> list[User]:
        if status not in USER_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Allowed: {', '.join(sorted(USER_STATUSES))}",
            )
        stmt = apply_search(select(User), search, User.name, User.email)
        if status == "approved":
            stmt = stmt.where(User.approved_at.is_not(None))
        elif status == "pending":
            stmt = stmt.where(User.approved_at.is_(None), User.is_admin.is_(False))
        stmt = stmt.order_by(User.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def summary(db: Session, user: User) -> dict:
        return {
            "id": user.id,
            "name": user.name,
            "nickname": user.nickname,
            "email": user.email,
            "is_admin": user.is_admin,
            "is_approved": user.is_approved,
            "approved_at": user.approved_at,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
            "people_count": _count(db, Person, user.id),
            "documents_count": _documents_count(db, user.id),
            "notifications_count": _count(db, Notification, user.id),
            "messages_count": _count(db, Message, user.id),
        }

    @staticmethod
    def approve(
        db: Session, admin: User, user_id: str, ip_address: str | None = None
    ) -> User:
        user = AdminUsers.get(db, user_id)
        if user.is_approved:
            raise HTTPException(status_code=400, detail="User is already approved.")
        user.approved_at = datetime.now(timezone.utc)
        activity.log(
            db,
            "admin.user_approved",
            f"{admin.name} approved user: {user.name}",
            actor=admin,
            subject=user,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(user)
        logger.info("Approved user %s", user.id)
        return user

    @staticmethod
    def _remove(
        db: Session,
        admin: User,
        user: User,
        action: str,
        verb: str,
        ip_address: str | None,
    ) -> None:
        if user.id == admin.id:
            raise _unprocessable(f"You cannot {verb} your own account.")
        if user.is_admin:
            raise _unprocessable(f"You cannot {verb} an admin account.")

        keys = db.scalars(
            select(Document.file_path)
            .join(Person, Person.id == Document.person_id)
            .where(Person.user_id == user.id)
        ).all()
        for key in keys:
            storage.delete(key)

        properties = {"user_id": str(user.id), "user_email": user.email}
        name = user.name
        db.delete(user)
        db.flush()
        activity.log(
            db,
            action,
            f"{admin.name} rejected and deleted user: {name}"
            if action == "admin.user_rejected"
            else f"{admin.name} deleted user: {name}",
            actor=admin,
            properties=properties,
            ip_address=ip_address,
        )
        db.commit()
        logger.info("Removed user %s (%s)", properties["user_id"], action)

    @staticmethod
    def reject(
        db: Session, admin: User, user_id: str, ip_address: str | None = None
    ) -> None:
        user = AdminUsers.get(db, user_id)
        AdminUsers._remove(db, admin, user, "admin.user_rejected", "reject", ip_address)

    @staticmethod
    def delete(
        db: Session, admin: User, user_id: str, ip_address: str | None = None
    ) -> None:
        user = AdminUsers.get(db, user_id)
        AdminUsers._remove(db, admin, user, "admin.user_deleted", "delete", ip_address)

    @staticmethod
    def make_admin(
        db: Session, admin: User | None, user_id: str, ip_address: str | None = None
    ) -> User:
        user = AdminUsers.get(db, user_id)
        if user.is_admin:
            raise HTTPException(status_code=400, detail="User is already an admin.")
        user.is_admin = True
        if user.approved_at is None:
            user.approved_at = datetime.now(timezone.utc)
        activity.log(
            db,
            "admin.user_promoted",
            f"{admin.name if admin else 'System'} promoted {user.name} to admin",
            actor=admin,
            subject=user,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(user)
        logger.info("Promoted user %s to admin", user.id)
        return user

    @staticmethod
    def remove_admin(
        db: Session, admin: User, user_id: str, ip_address: str | None = None
    ) -> User:
        user = AdminUsers.get(db, user_id)
        if user.id == admin.id:
            raise _unprocessable(
                "You cannot remove admin privileges from your own account."
            )
        if not user.is_admin:
            raise HTTPException(status_code=400, detail="User is not an admin.")
        admins = db.scalar(select(func.count(User.id)).where(User.is_admin.is_(True)))
        if admins <= 1:
            raise _unprocessable("The last remaining admin cannot be demoted.")
        user.is_admin = False
        activity.log(
            db,
            "admin.user_demoted",
            f"{admin.name} removed admin privileges from {user.name}",
            actor=admin,
            subject=user,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(user)
        logger.info("Demoted user %s", user.id)
        return user

    @staticmethod
    def find_by_email(db: Session, email: str) -> User | None:
        return db.scalar(select(User).where(func.lower(User.email) == email.lower()))


admin_users = AdminUsers()
