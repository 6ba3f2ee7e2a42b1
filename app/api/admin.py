from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin
from app.models.user import User
from app.schemas.admin import ActivityLogRead, AdminUserActionResponse, AdminUserDetail
from app.schemas.auth import UserRead
from app.schemas.common import ListResponse, MessageResponse
from app.schemas.community import EventCreate, EventRead, EventUpdate, SuggestionRead
from app.schemas.document import DocumentRead
from app.schemas.person import PersonDetail, PersonRead, PersonUpdate
from app.services import statistics
from app.services.activity import activity
from app.services.admin import admin_users
from app.services.community import events, suggestions
from app.services.documents import documents
from app.services.people import people

router = APIRouter(prefix="/admin", tags=["admin"])


def _ip(request: Request) -> str | None:
    return getattr(request.state, "client_ip", None)


# ------------------------------------------------------------------
# Users
# ------------------------------------------------------------------


@router.get("/users", response_model=ListResponse[UserRead])
def list_users(
    search: str | None = None,
    status_filter: str = Query(default="all", alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return admin_users.list_response(db, search, status_filter, limit, offset)


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def get_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return admin_users.summary(db, admin_users.get(db, user_id))


@router.post("/users/{user_id}/approve", response_model=AdminUserActionResponse)
def approve_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = admin_users.approve(db, admin, user_id, ip_address=_ip(request))
    return {"message": "User approved successfully.", "user": user}


@router.post("/users/{user_id}/reject", response_model=MessageResponse)
def reject_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    admin_users.reject(db, admin, user_id, ip_address=_ip(request))
    return {"message": "User rejected and deleted."}


@router.post("/users/{user_id}/make-admin", response_model=AdminUserActionResponse)
def make_admin(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = admin_users.make_admin(db, admin, user_id, ip_address=_ip(request))
    return {"message": "User promoted to admin successfully.", "user": user}


@router.post("/users/{user_id}/remove-admin", response_model=AdminUserActionResponse)
def remove_admin(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = admin_users.remove_admin(db, admin, user_id, ip_address=_ip(request))
    return {"message": "Admin privileges removed.", "user": user}


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    admin_users.delete(db, admin, user_id, ip_address=_ip(request))
    return {"message": "User deleted."}


# ------------------------------------------------------------------
# People & documents
# ------------------------------------------------------------------


@router.get("/people", response_model=ListResponse[PersonRead])
def list_people(
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    items = people.list_all(db, search, limit, offset)
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


@router.put("/people/{person_id}", response_model=PersonDetail)
def update_person(
    person_id: str,
    payload: PersonUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    person = people.update(
        db,
        admin,
        person_id,
        payload,
        ip_address=_ip(request),
        action="admin.person_updated",
    )
    return people.detail(db, admin, person)


@router.delete("/people/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(
    person_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    people.delete(
        db, admin, person_id, ip_address=_ip(request), action="admin.person_deleted"
    )


@router.get("/documents", response_model=ListResponse[DocumentRead])
def list_documents(
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    items = documents.list_all(db, search, limit, offset)
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    documents.delete(
        db, admin, document_id, ip_address=_ip(request), action="admin.document_deleted"
    )


# ------------------------------------------------------------------
# Statistics & activity
# ------------------------------------------------------------------


@router.get("/statistics")
def get_statistics(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return statistics.admin_overview(db)


@router.get("/activity-logs")
def list_activity_logs(
    action: str | None = None,
    user_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    items = activity.list(db, action, user_id, limit, offset)
    return {
        "items": [ActivityLogRead.model_validate(item) for item in items],
        "count": len(items),
        "total": activity.count(db, action, user_id),
        "limit": limit,
        "offset": offset,
    }


# ------------------------------------------------------------------
# Events
# ------------------------------------------------------------------


@router.post("/events", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return events.create(
        db, admin, payload.name, payload.event_date, ip_address=_ip(request)
    )


@router.put("/events/{event_id}", response_model=EventRead)
def update_event(
    event_id: str,
    payload: EventUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    return events.update(db, admin, event_id, data, ip_address=_ip(request))


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    events.delete(db, admin, event_id, ip_address=_ip(request))


# ------------------------------------------------------------------
# Suggestions
# ------------------------------------------------------------------


@router.get("/suggestions", response_model=ListResponse[SuggestionRead])
def list_suggestions(
    is_read: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return suggestions.list_response(db, is_read, limit, offset)


@router.post("/suggestions/{suggestion_id}/mark-read", response_model=SuggestionRead)
def mark_suggestion_read(
    suggestion_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return suggestions.set_read(db, suggestion_id, True)


@router.post("/suggestions/{suggestion_id}/mark-unread", response_model=SuggestionRead)
def mark_suggestion_unread(
    suggestion_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return suggestions.set_read(db, suggestion_id, False)


@router.delete("/suggestions/{suggestion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_suggestion(
    suggestion_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    suggestions.delete(db, suggestion_id)
