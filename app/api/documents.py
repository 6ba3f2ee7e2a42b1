from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approved_user
from app.models.user import User
from app.schemas.document import DocumentRead, DocumentVisibilityUpdate
from app.services.documents import documents

router = APIRouter(prefix="/documents", tags=["documents"])


def _ip(request: Request) -> str | None:
    return getattr(request.state, "client_ip", None)


@router.get("/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: str,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return documents.get_for_user(db, user, document_id)


@router.patch("/{document_id}", response_model=DocumentRead)
def update_document_visibility(
    document_id: str,
    payload: DocumentVisibilityUpdate,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return documents.set_visibility(
        db, user, document_id, payload.is_public, ip_address=_ip(request)
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    documents.delete(db, user, document_id, ip_address=_ip(request))


@router.get("/{document_id}/download")
def download_document(
    document_id: str,
    inline: bool = False,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    document, content = documents.read_content(db, user, document_id)
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type=document.mime_type,
        headers={
            "Content-Disposition": (
                f"{disposition}; filename*=UTF-8''{quote(document.original_name)}"
            )
        },
    )
