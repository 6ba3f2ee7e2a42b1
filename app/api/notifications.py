from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approved_user
from app.models.user import User
from app.schemas.notification import (
    DeviceTokenCreate,
    DeviceTokenRead,
    MarkAllReadResponse,
    NotificationList,
    NotificationRead,
)
from app.services.notification import device_tokens, notifications

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=NotificationList)
def list_notifications(
    is_read: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    response = notifications.list_response(db, user.id, is_read, limit, offset)
    response["unread_count"] = notifications.unread_count(db, user)
    return response


@router.patch("/notifications/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: str,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return notifications.mark_read(db, user, notification_id)


@router.post("/notifications/mark-all-read", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return {"updated": notifications.mark_all_read(db, user)}


@router.post(
    "/device-tokens",
    response_model=DeviceTokenRead,
    status_code=status.HTTP_201_CREATED,
)
def register_device_token(
    payload: DeviceTokenCreate,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return device_tokens.register(db, user, payload.token, payload.platform)


@router.delete("/device-tokens/{token}", status_code=status.HTTP_204_NO_CONTENT)
def remove_device_token(
    token: str,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    device_tokens.remove(db, user, token)
