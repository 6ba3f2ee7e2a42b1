from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from passlib.hash import pbkdf2_sha256 as hasher
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ValidationFailed
from app.models.user import ApiToken, User
from app.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdate,
    RegisterRequest,
)
from app.services.activity import activity

logger = logging.getLogger(__name__)

PENDING_APPROVAL_MESSAGE = (
    "Your account is pending admin approval. "
    "Please wait for approval before accessing the system."
)


def hash_password(password: str) -> str:
    return hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return hasher.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def pending_approval_error() -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "code": "approval_required",
            "message": PENDING_APPROVAL_MESSAGE,
            "requires_approval": True,
        },
    )


def _email_taken(db: Session, email: str, exclude_id=None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.scalar(stmt) is not None


class Auth:
    @staticmethod
    def register(
        db: Session, payload: RegisterRequest, ip_address: str | None = None
    ) -> User:
        if _email_taken(db, payload.email):
            raise ValidationFailed({"email": ["The email has already been taken."]})
        user = User(
            name=payload.name,
            email=payload.email.lower(),
            password_hash=hash_password(payload.password),
            is_admin=False,
            approved_at=None,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed({"email": ["The email has already been taken."]})
        activity.log(
            db,
            "auth.register",
            f"New user registered: {user.name} ({user.email})",
            actor=user,
            subject=user,
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    @staticmethod
    def authenticate(db: Session, payload: LoginRequest) -> User:
        user = db.scalar(
            select(User).where(func.lower(User.email) == payload.email.lower())
        )
        if not user or not verify_password(payload.password, user.password_hash):
            raise HTTPException(status_code=422, detail="Invalid credentials.")
        if not user.is_admin and not user.is_approved:
            raise pending_approval_error()
        return user

    @staticmethod
    def login(
        db: Session,
        payload: LoginRequest,
        token_name: str = "mobile",
        ip_address: str | None = None,
    ) -> tuple[User, str]:
        user = Auth.authenticate(db, payload)
        token = Auth.issue_token(db, user, token_name)
        activity.log(
            db,
            "auth.login",
            f"{user.name} logged in via {token_name}",
            actor=user,
            subject=user,
            ip_address=ip_address,
        )
        db.commit()
        logger.info("User %s logged in (%s)", user.id, token_name)
        return user, token

    @staticmethod
    def issue_token(db: Session, user: User, name: str = "mobile") -> str:
        raw = secrets.token_urlsafe(40)
        expires_at = None
        if settings.token_ttl_days > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(
                days=settings.token_ttl_days
            )
        db.add(
            ApiToken(
                user_id=user.id,
                name=name,
                token_hash=hash_token(raw),
                expires_at=expires_at,
            )
        )
        db.flush()
        return raw

    @staticmethod
    def resolve_token(db: Session, raw_token: str | None) -> User | None:
        if not raw_token:
            return None
        token = db.scalar(
            select(ApiToken).where(ApiToken.token_hash == hash_token(raw_token))
        )
        if token is None:
            return None
        now = datetime.now(timezone.utc)
        if token.expires_at is not None and _as_utc(token.expires_at) <= now:
            return None
        token.last_used_at = now
        db.commit()
        return token.user

    @staticmethod
    def revoke_token(db: Session, raw_token: str, user: User | None = None) -> None:
        token = db.scalar(
            select(ApiToken).where(ApiToken.token_hash == hash_token(raw_token))
        )
        if token is None:
            return
        db.delete(token)
        if user is not None:
            activity.log(db, "auth.logout", f"{user.name} logged out", actor=user)
        db.commit()

    @staticmethod
    def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
        if _email_taken(db, payload.email, exclude_id=user.id):
            raise ValidationFailed({"email": ["The email has already been taken."]})
        user.name = payload.name
        user.nickname = payload.nickname or None
        user.email = payload.email.lower()
        activity.log(
            db,
            "profile.updated",
            f"{user.name} updated their profile",
            actor=user,
            subject=user,
        )
        db.commit()
        db.refresh(user)
        logger.info("Updated profile for user %s", user.id)
        return user

    @staticmethod
    def change_password(
        db: Session, user: User, payload: PasswordChangeRequest
    ) -> None:
        if not verify_password(payload.current_password, user.password_hash):
            raise ValidationFailed(
                {"current_password": ["Current password is incorrect."]}
            )
        user.password_hash = hash_password(payload.password)
        activity.log(
            db,
            "profile.password_changed",
            f"{user.name} changed their password",
            actor=user,
            subject=user,
        )
        db.commit()
        logger.info("Password changed for user %s", user.id)


auth = Auth()
