from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approved_user
from app.models.user import User
from app.schemas.common import ListResponse, MessageResponse
from app.schemas.document import DocumentRead
from app.schemas.person import (
    FavoriteState,
    NricPrefill,
    PersonCreate,
    PersonDetail,
    PersonRead,
    PersonUpdate,
    ShareCreate,
    ShareRead,
)
from app.services.documents import documents
from app.services.people import people
from app.services.sharing import favorites, shares

router = APIRouter(prefix="/people", tags=["people"])


def _ip(request: Request) -> str | None:
    return getattr(request.state, "client_ip", None)


@router.get("", response_model=ListResponse[PersonRead])
def list_people(
    scope: str = Query(default="all", pattern="^(all|mine|shared)$"),
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return people.list_response(db, user, scope, search, limit, offset)


@router.post("", response_model=PersonDetail, status_code=status.HTTP_201_CREATED)
def create_person(
    payload: PersonCreate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.create(db, user, payload, ip_address=_ip(request))
    return people.detail(db, user, person)


@router.get("/nric-prefill", response_model=NricPrefill)
def nric_prefill(
    nric: str = Query(default=""),
    user: User = Depends(require_approved_user),
):
    return people.nric_prefill(nric)


@router.get("/favorites", response_model=ListResponse[PersonRead])
def list_favorites(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    items = people.favorites(db, user, limit, offset)
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


@router.get("/{person_id}", response_model=PersonDetail)
def get_person(
    person_id: str,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    return people.detail(db, user, person)


@router.put("/{person_id}", response_model=PersonDetail)
def update_person(
    person_id: str,
    payload: PersonUpdate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.update(db, user, person_id, payload, ip_address=_ip(request))
    return people.detail(db, user, person)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(
    person_id: str,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    people.delete(db, user, person_id, ip_address=_ip(request))


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


@router.get("/{person_id}/documents", response_model=ListResponse[DocumentRead])
def list_person_documents(
    person_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return documents.list_response(db, user, person_id, limit, offset)


@router.post(
    "/{person_id}/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    person_id: str,
    request: Request,
    name: str = Form(...),
    file: UploadFile = File(...),
    is_public: bool = Form(default=False),
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get(db, person_id)
    return await documents.create_from_upload(
        db, user, person, name, file, is_public, ip_address=_ip(request)
    )


# ------------------------------------------------------------------
# Favorites & sharing
# ------------------------------------------------------------------


@router.post("/{person_id}/favorite", response_model=FavoriteState)
def toggle_favorite(
    person_id: str,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    state = favorites.toggle(db, user, person, ip_address=_ip(request))
    return {"person_id": person.id, "is_favorite": state}


@router.get("/{person_id}/shares", response_model=list[ShareRead])
def list_shares(
    person_id: str,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get(db, person_id)
    return shares.list(db, user, person)


@router.post(
    "/{person_id}/share", response_model=ShareRead, status_code=status.HTTP_201_CREATED
)
def share_person(
    person_id: str,
    payload: ShareCreate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get(db, person_id)
    return shares.create(db, user, person, payload.user_id, ip_address=_ip(request))


@router.delete("/{person_id}/share/{share_id}", response_model=MessageResponse)
def unshare_person(
    person_id: str,
    share_id: str,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    person = people.get(db, person_id)
    shares.delete(db, user, person, share_id, ip_address=_ip(request))
    return {"message": "Share removed."}
