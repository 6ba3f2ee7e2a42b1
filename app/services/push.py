from __future__ import annotations

import logging

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.notification import DeviceToken
from app.observability import PUSH_BATCHES

logger = logging.getLogger(__name__)


def _headers() -> dict[str, str]:
    headers = {
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
        "Content-Type": "application/json",
    }
    if settings.push_access_token:
        headers["Authorization"] = f"Bearer {settings.push_access_token}"
    return headers


def build_messages(
    tokens: list[str], title: str, body: str, data: dict | None = None
) -> list[dict]:
    return [
        {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }
        for token in tokens
    ]


def unique_tokens(tokens) -> list[str]:
    seen: dict[str, None] = {}
    for token in tokens:
        if token:
            seen.setdefault(token, None)
    return list(seen)


def device_tokens(db: Session, exclude_user_id=None) -> list[str]:
    """Distinct push tokens across all users, optionally skipping one user."""
    stmt = select(DeviceToken.token)
    if exclude_user_id is not None:
        stmt = stmt.where(DeviceToken.user_id != exclude_user_id)
    return unique_tokens(db.scalars(stmt).all())


def send_batch(
    tokens: list[str], title: str, body: str, data: dict | None = None
) -> dict | None:
    """Submit one batch to the push gateway.

    Delivery is best-effort: gateway and transport errors are logged and
    ``None`` is returned.
    """
    tokens = unique_tokens(tokens)
    if not tokens:
        return None
    if not settings.push_enabled:
        logger.info("Push disabled, skipping %d message(s): %s", len(tokens), title)
        PUSH_BATCHES.labels("disabled").inc()
        return None

    messages = build_messages(tokens, title, body, data)
    try:
        with httpx.Client(timeout=settings.push_timeout_seconds) as client:
            resp = client.post(settings.push_api_url, json=messages, headers=_headers())
        resp.raise_for_status()
        result = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Push batch of %d message(s) failed: %s", len(messages), e)
        PUSH_BATCHES.labels("failed").inc()
        return None

    PUSH_BATCHES.labels("sent").inc()
    logger.info("Sent push batch of %d message(s): %s", len(messages), title)
    return result


def queue_push(
    tokens: list[str], title: str, body: str, data: dict | None = None
) -> None:
    """Hand a batch to the worker without waiting for delivery."""
    tokens = unique_tokens(tokens)
    if not tokens:
        return
    from app.tasks.push import send_push_notifications

    try:
        send_push_notifications.delay(tokens, title, body, data or {})
    except Exception as e:
        logger.warning("Could not queue push batch %r: %s", title, e)
