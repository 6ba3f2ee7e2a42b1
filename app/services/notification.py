from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.notification import DevicePlatform, DeviceToken, Notification
from app.models.user import User
from app.services.common import apply_pagination, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


class Notifications(ListResponseMixin):
    @staticmethod
    def get_for_user(db: Session, user: User, notification_id: str) -> Notification:
        notification = db.get(Notification, coerce_uuid(notification_id))
        if not notification or notification.user_id != user.id:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    @staticmethod
    def list(
        db: Session,
        user_id,
        is_read: bool | None,
        limit: int,
        offset: int,
    ) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == coerce_uuid(user_id))
        if is_read is not None:
            stmt = stmt.where(Notification.is_read == is_read)
        stmt = stmt.order_by(Notification.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def unread_count(db: Session, user: User) -> int:
        return db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user.id,
                Notification.is_read.is_(False),
            )
        )

    @staticmethod
    def mark_read(db: Session, user: User, notification_id: str) -> Notification:
        notification = Notifications.get_for_user(db, user, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user: User) -> int:
        result = db.execute(
            update(Notification)
            .where(Notification.user_id == user.id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        db.commit()
        logger.info(
            "Marked all %d notifications as read for user %s", result.rowcount, user.id
        )
        return result.rowcount

    @staticmethod
    def create_for_all_users(
        db: Session,
        type: str,
        title: str,
        message: str,
        person_id=None,
    ) -> int:
        """Add one notification per user. The caller commits."""
        user_ids = db.scalars(select(User.id)).all()
        for user_id in user_ids:
            db.add(
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    person_id=person_id,
                )
            )
        db.flush()
        return len(user_ids)


class DeviceTokens:
    @staticmethod
    def register(
        db: Session, user: User, token: str, platform: str | None = None
    ) -> DeviceToken:
        platform_value = DevicePlatform(platform) if platform else None
        device = db.scalar(
            select(DeviceToken).where(
                DeviceToken.user_id == user.id, DeviceToken.token == token
            )
        )
        if device is None:
            device = DeviceToken(user_id=user.id, token=token, platform=platform_value)
            db.add(device)
        else:
            device.platform = platform_value or device.platform
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            device = db.scalar(
                select(DeviceToken).where(
                    DeviceToken.user_id == user.id, DeviceToken.token == token
                )
            )
        db.refresh(device)
        logger.info("Registered device token for user %s", user.id)
        return device

    @staticmethod
    def remove(db: Session, user: User, token: str) -> None:
        device = db.scalar(
            select(DeviceToken).where(
                DeviceToken.user_id == user.id, DeviceToken.token == token
            )
        )
        if not device:
            raise HTTPException(status_code=404, detail="Device token not found")
        db.delete(device)
        db.commit()
        logger.info("Removed device token for user %s", user.id)


notifications = Notifications()
device_tokens = DeviceTokens()
