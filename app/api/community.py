from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approved_user
from app.models.user import User
from app.schemas.auth import UserSummary
from app.schemas.common import ListResponse
from app.schemas.community import (
    EventRead,
    MessageCreate,
    MessageRead,
    SuggestionCreate,
    SuggestionRead,
)
from app.schemas.dashboard import DashboardResponse, StatisticsResponse
from app.services import dashboard, statistics
from app.services.common import apply_search
from app.services.community import chat, events, suggestions

router = APIRouter(tags=["community"])


def _ip(request: Request) -> str | None:
    return getattr(request.state, "client_ip", None)


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return dashboard.build(db, user)


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return statistics.overview(db)


@router.get("/users", response_model=list[UserSummary])
def list_share_targets(
    search: str | None = None,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    stmt = select(User).where(User.id != user.id, User.approved_at.is_not(None))
    stmt = apply_search(stmt, search, User.name, User.email)
    return db.scalars(stmt.order_by(User.name.asc())).all()


@router.get("/chat/messages", response_model=ListResponse[MessageRead])
def list_messages(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return chat.list_response(db, limit, offset)


@router.post(
    "/chat/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED
)
def send_message(
    payload: MessageCreate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return chat.send(db, user, payload.message, ip_address=_ip(request))


@router.get("/events", response_model=ListResponse[EventRead])
def list_events(
    start: date | None = None,
    end: date | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return events.list_response(db, start, end, limit, offset)


@router.post(
    "/suggestions", response_model=SuggestionRead, status_code=status.HTTP_201_CREATED
)
def create_suggestion(
    payload: SuggestionCreate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return suggestions.create(
        db, user, payload.subject, payload.message, ip_address=_ip(request)
    )
