from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.activity import ActivityLog
from app.models.user import User
from app.services.common import apply_pagination, coerce_uuid

logger = logging.getLogger(__name__)


def format_value(value):
    """Normalise a value so it can be stored in the JSON properties column."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set)):
        return [format_value(item) for item in value]
    if isinstance(value, dict):
        return {str(k): format_value(v) for k, v in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def change_details(before: dict, after: dict) -> dict:
    changes = {}
    for key, new_value in after.items():
        old_value = before.get(key)
        if old_value != new_value:
            changes[key] = {"old": format_value(old_value), "new": format_value(new_value)}
    return changes


class ActivityLogger:
    @staticmethod
    def log(
        db: Session,
        action: str,
        description: str,
        actor: User | None = None,
        subject=None,
        properties: dict | None = None,
        ip_address: str | None = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=actor.id if actor is not None else None,
            action=action,
            description=description,
            subject_type=type(subject).__name__ if subject is not None else None,
            subject_id=str(subject.id) if subject is not None else None,
            properties=format_value(properties) if properties else None,
            ip_address=ip_address,
            occurred_at=datetime.now(timezone.utc),
        )
        db.add(entry)
        db.flush()
        logger.debug("Activity %s by %s", action, entry.user_id)
        return entry

    @staticmethod
    def list(
        db: Session,
        action: str | None,
        user_id: str | None,
        limit: int,
        offset: int,
    ) -> list[ActivityLog]:
        stmt = select(ActivityLog)
        if action:
            stmt = stmt.where(ActivityLog.action.startswith(action))
        if user_id is not None:
            stmt = stmt.where(ActivityLog.user_id == coerce_uuid(user_id))
        stmt = stmt.order_by(ActivityLog.occurred_at.desc(), ActivityLog.created_at.desc())
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def count(db: Session, action: str | None = None, user_id: str | None = None) -> int:
        stmt = select(func.count(ActivityLog.id))
        if action:
            stmt = stmt.where(ActivityLog.action.startswith(action))
        if user_id is not None:
            stmt = stmt.where(ActivityLog.user_id == coerce_uuid(user_id))
        return db.scalar(stmt) or 0


activity = ActivityLogger()
