from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.community import Event, Message, Suggestion
from app.models.user import User
from app.services.activity import activity, change_details
from app.services.common import apply_pagination, coerce_uuid
from app.services.push import device_tokens, queue_push
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

CHAT_PREVIEW_LENGTH = 100


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


class Suggestions(ListResponseMixin):
    @staticmethod
    def create(
        db: Session,
        user: User,
        subject: str,
        message: str,
        ip_address: str | None = None,
    ) -> Suggestion:
        suggestion = Suggestion(user_id=user.id, subject=subject, message=message)
        db.add(suggestion)
        db.flush()
        activity.log(
            db,
            "suggestion.created",
            f"{user.name} submitted a suggestion: {subject}",
            actor=user,
            subject=suggestion,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(suggestion)
        logger.info("Created suggestion %s", suggestion.id)
        return suggestion

    @staticmethod
    def get(db: Session, suggestion_id: str) -> Suggestion:
        suggestion = db.get(Suggestion, coerce_uuid(suggestion_id))
        if not suggestion:
            raise HTTPException(status_code=404, detail="Suggestion not found")
        return suggestion

    @staticmethod
    def list(
        db: Session, is_read: bool | None, limit: int, offset: int
    ) -> list[Suggestion]:
        stmt = select(Suggestion)
        if is_read is not None:
            stmt = stmt.where(Suggestion.is_read == is_read)
        stmt = stmt.order_by(Suggestion.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def set_read(db: Session, suggestion_id: str, is_read: bool) -> Suggestion:
        suggestion = Suggestions.get(db, suggestion_id)
        suggestion.is_read = is_read
        db.commit()
        db.refresh(suggestion)
        return suggestion

    @staticmethod
    def delete(db: Session, suggestion_id: str) -> None:
        suggestion = Suggestions.get(db, suggestion_id)
        db.delete(suggestion)
        db.commit()
        logger.info("Deleted suggestion %s", suggestion_id)


# ---------------------------------------------------------------------------
# Calendar events
# ---------------------------------------------------------------------------


class Events(ListResponseMixin):
    @staticmethod
    def get(db: Session, event_id: str) -> Event:
        event = db.get(Event, coerce_uuid(event_id))
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    @staticmethod
    def list(
        db: Session,
        start: date | None,
        end: date | None,
        limit: int,
        offset: int,
    ) -> list[Event]:
        stmt = select(Event)
        if start is not None:
            stmt = stmt.where(Event.event_date >= start)
        if end is not None:
            stmt = stmt.where(Event.event_date <= end)
        stmt = stmt.order_by(Event.event_date.asc(), Event.name.asc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def upcoming(db: Session, days: int = 30, today: date | None = None) -> list[Event]:
        today = today or date.today()
        return Events.list(db, today, today + timedelta(days=days), 100, 0)

    @staticmethod
    def create(
        db: Session, admin: User, name: str, event_date: date, ip_address=None
    ) -> Event:
        event = Event(name=name, event_date=event_date)
        db.add(event)
        db.flush()
        activity.log(
            db,
            "admin.event_created",
            f"{admin.name} created event: {name}",
            actor=admin,
            subject=event,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(event)
        logger.info("Created event %s", event.id)
        return event

    @staticmethod
    def update(
        db: Session, admin: User, event_id: str, data: dict, ip_address=None
    ) -> Event:
        event = Events.get(db, event_id)
        before = {key: getattr(event, key) for key in data}
        for key, value in data.items():
            setattr(event, key, value)
        activity.log(
            db,
            "admin.event_updated",
            f"{admin.name} updated event: {event.name}",
            actor=admin,
            subject=event,
            properties={"changes": change_details(before, data)},
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(event)
        logger.info("Updated event %s", event.id)
        return event

    @staticmethod
    def delete(db: Session, admin: User, event_id: str, ip_address=None) -> None:
        event = Events.get(db, event_id)
        activity.log(
            db,
            "admin.event_deleted",
            f"{admin.name} deleted event: {event.name}",
            actor=admin,
            subject=event,
            ip_address=ip_address,
        )
        db.delete(event)
        db.commit()
        logger.info("Deleted event %s", event_id)


# ---------------------------------------------------------------------------
# Group chat
# ---------------------------------------------------------------------------


class Chat(ListResponseMixin):
    @staticmethod
    def list(db: Session, limit: int, offset: int) -> list[Message]:
        """Most recent messages, returned oldest first."""
        stmt = select(Message).order_by(Message.created_at.desc())
        recent = db.scalars(apply_pagination(stmt, limit, offset)).all()
        return list(reversed(recent))

    @staticmethod
    def send(
        db: Session, user: User, text: str, ip_address: str | None = None
    ) -> Message:
        message = Message(user_id=user.id, message=text)
        db.add(message)
        db.flush()
        activity.log(
            db,
            "chat.message_sent",
            f"{user.name} sent a chat message",
            actor=user,
            subject=message,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(message)
        logger.info("User %s sent chat message %s", user.id, message.id)

        preview = text
        if len(preview) > CHAT_PREVIEW_LENGTH:
            preview = preview[:CHAT_PREVIEW_LENGTH] + "..."
        queue_push(
            device_tokens(db, exclude_user_id=user.id),
            f"New message from {user.display_name}",
            preview,
            {"type": "chat_message", "message_id": str(message.id)},
        )
        return message


suggestions = Suggestions()
events = Events()
chat = Chat()
