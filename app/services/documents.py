from __future__ import annotations

import logging
from pathlib import Path

from fastapi import HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ValidationFailed
from app.models.document import Document
from app.models.person import Person
from app.models.user import User
from app.services import access
from app.services.activity import activity
from app.services.common import apply_pagination, apply_search, coerce_uuid
from app.services.response import ListResponseMixin
from app.services.storage import StorageNotFound, storage

logger = logging.getLogger(__name__)


def get_allowed_extensions() -> set[str]:
    return {
        ext.strip().lower().lstrip(".")
        for ext in settings.document_allowed_extensions.split(",")
        if ext.strip()
    }


def _extension(file_name: str) -> str:
    return Path(file_name or "").suffix.lower().lstrip(".")


def validate_upload(name: str, file_name: str, size: int) -> None:
    errors: dict[str, list[str]] = {}
    if not (name or "").strip():
        errors["name"] = ["The name field is required."]
    elif len(name) > 255:
        errors["name"] = ["The name may not be greater than 255 characters."]

    allowed = get_allowed_extensions()
    if not file_name:
        errors["file"] = ["The file field is required."]
    elif _extension(file_name) not in allowed:
        errors["file"] = [
            f"The file must be a file of type: {', '.join(sorted(allowed))}."
        ]
    elif size > settings.document_max_size_bytes:
        errors["file"] = [
            "The file may not be greater than "
            f"{settings.document_max_size_bytes // 1024} kilobytes."
        ]
    elif size == 0:
        errors["file"] = ["The file must not be empty."]

    if errors:
        raise ValidationFailed(errors)


class Documents(ListResponseMixin):
    @staticmethod
    def create(
        db: Session,
        user: User,
        person: Person,
        name: str,
        file_name: str,
        content: bytes,
        mime_type: str | None = None,
        is_public: bool = False,
        ip_address: str | None = None,
    ) -> Document:
        access.ensure_can_access_person(
            db, user, person, "You are not allowed to add documents to this person."
        )
        validate_upload(name, file_name, len(content))

        mime_type = (
            mime_type
            if mime_type and mime_type != "application/octet-stream"
            else storage.guess_mime_type(file_name)
        )
        key = storage.generate_storage_key(person.id, file_name)
        storage.save(key, content, mime_type)

        document = Document(
            person_id=person.id,
            name=name.strip(),
            file_path=key,
            original_name=Path(file_name).name,
            file_size=len(content),
            mime_type=mime_type,
            is_public=is_public,
        )
        db.add(document)
        db.flush()
        activity.log(
            db,
            "document.created",
            f"{user.name} uploaded document '{document.name}' for {person.name}",
            actor=user,
            subject=document,
            properties={"person_id": str(person.id), "file_size": document.file_size},
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(document)
        logger.info("Created document %s", document.id)
        return document

    @staticmethod
    async def create_from_upload(
        db: Session,
        user: User,
        person: Person,
        name: str,
        upload: UploadFile,
        is_public: bool = False,
        ip_address: str | None = None,
    ) -> Document:
        limit = settings.document_max_size_bytes
        if upload.size is not None and upload.size > limit:
            validate_upload(name, upload.filename or "", upload.size)
        # One byte past the limit is enough for validation to reject it.
        content = await upload.read(limit + 1)
        return Documents.create(
            db,
            user,
            person,
            name,
            upload.filename or "",
            content,
            upload.content_type,
            is_public,
            ip_address,
        )

    @staticmethod
    def get(db: Session, document_id: str) -> Document:
        document = db.get(Document, coerce_uuid(document_id))
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        return document

    @staticmethod
    def get_for_user(db: Session, user: User, document_id: str) -> Document:
        document = Documents.get(db, document_id)
        access.ensure_can_view_document(db, user, document)
        return document

    @staticmethod
    def list(
        db: Session,
        user: User,
        person_id: str,
        limit: int,
        offset: int,
    ) -> list[Document]:
        """Documents of a person that ``user`` may see."""
        person = db.get(Person, coerce_uuid(person_id))
        if not person:
            raise HTTPException(status_code=404, detail="Person not found")
        stmt = select(Document).where(Document.person_id == person.id)
        if not access.can_access_person(db, user, person):
            stmt = stmt.where(Document.is_public.is_(True))
        stmt = stmt.order_by(Document.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def list_all(
        db: Session, search: str | None, limit: int, offset: int
    ) -> list[Document]:
        stmt = apply_search(
            select(Document), search, Document.name, Document.original_name
        )
        stmt = stmt.order_by(Document.created_at.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def set_visibility(
        db: Session,
        user: User,
        document_id: str,
        is_public: bool,
        ip_address: str | None = None,
    ) -> Document:
        document = Documents.get(db, document_id)
        access.ensure_can_access_person(
            db, user, document.person, "You are not allowed to modify this document."
        )
        previous = document.is_public
        document.is_public = is_public
        activity.log(
            db,
            "document.updated",
            f"{user.name} made document '{document.name}' "
            f"{'public' if is_public else 'private'}",
            actor=user,
            subject=document,
            properties={"changes": {"is_public": {"old": previous, "new": is_public}}},
            ip_address=ip_address,
        )
        db.commit()
        db.refresh(document)
        logger.info("Updated visibility of document %s", document.id)
        return document

    @staticmethod
    def delete(
        db: Session,
        user: User,
        document_id: str,
        ip_address: str | None = None,
        action: str = "document.deleted",
    ) -> None:
        document = Documents.get(db, document_id)
        if not user.is_admin:
            access.ensure_can_access_person(
                db, user, document.person, "You are not allowed to delete this document."
            )
        storage.delete(document.file_path)
        activity.log(
            db,
            action,
            f"{user.name} deleted document '{document.name}'",
            actor=user,
            subject=document,
            properties={"person_id": str(document.person_id)},
            ip_address=ip_address,
        )
        db.delete(document)
        db.commit()
        logger.info("Deleted document %s", document_id)

    @staticmethod
    def read_content(db: Session, user: User, document_id: str) -> tuple[Document, bytes]:
        document = Documents.get_for_user(db, user, document_id)
        try:
            content = storage.read(document.file_path)
        except StorageNotFound:
            logger.warning(
                "Stored file %s for document %s is missing",
                document.file_path,
                document.id,
            )
            raise HTTPException(status_code=404, detail="File not found")
        return document, content


documents = Documents()
