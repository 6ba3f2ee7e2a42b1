import asyncio
from dataclasses import replace

import pytest
from fastapi import HTTPException

from app.config import settings
from app.errors import ValidationFailed
from app.models.person import PersonShare
from app.services import documents as documents_module
from app.services.documents import documents, get_allowed_extensions, validate_upload
from app.services.storage import StorageNotFound, safe_filename, storage

PDF = b"%PDF-1.4 family record"


@pytest.fixture()
def document(db_session, user, person):
    return documents.create(db_session, user, person, "Birth certificate", "birth.pdf", PDF)


class TestUploadValidation:
    def test_allowed_extensions(self) -> None:
        assert get_allowed_extensions() == {"pdf", "jpg", "jpeg", "png", "gif", "webp"}

    def test_requires_name(self) -> None:
        with pytest.raises(ValidationFailed) as exc:
            validate_upload("  ", "a.pdf", 10)
        assert "name" in exc.value.errors

    def test_rejects_extension(self) -> None:
        with pytest.raises(ValidationFailed) as exc:
            validate_upload("Script", "run.exe", 10)
        assert "file" in exc.value.errors

    def test_rejects_oversize(self) -> None:
        with pytest.raises(ValidationFailed) as exc:
            validate_upload("Scan", "scan.png", 10 * 1024 * 1024 + 1)
        assert "kilobytes" in exc.value.errors["file"][0]

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValidationFailed):
            validate_upload("Scan", "scan.png", 0)


class TestStorage:
    def test_safe_filename(self) -> None:
        assert safe_filename("../../etc/pass wd.pdf") == "pass_wd.pdf"
        assert safe_filename("") == "file"

    def test_storage_key_layout(self) -> None:
        key = storage.generate_storage_key("abc", "My Scan.pdf")
        prefix, person_id, unique, name = key.split("/")
        assert (prefix, person_id, name) == ("documents", "abc", "My_Scan.pdf")
        assert len(unique) == 12

    def test_round_trip_and_delete(self) -> None:
        storage.save("documents/x/y/file.txt", b"hello")
        assert storage.exists("documents/x/y/file.txt")
        assert storage.read("documents/x/y/file.txt") == b"hello"
        storage.delete("documents/x/y/file.txt")
        assert not storage.exists("documents/x/y/file.txt")
        storage.delete("documents/x/y/file.txt")

    def test_rejects_path_traversal(self) -> None:
        with pytest.raises(StorageNotFound):
            storage.read("../outside.txt")

    def test_local_url(self) -> None:
        assert storage.url("documents/a/b/c.pdf") == "/storage/documents/a/b/c.pdf"


class TestDocumentsService:
    def test_create_stores_file(self, document) -> None:
        assert document.is_public is False
        assert document.mime_type == "application/pdf"
        assert document.file_size == len(PDF)
        assert storage.read(document.file_path) == PDF

    def test_create_requires_access(self, db_session, other_user, person) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.create(db_session, other_user, person, "Doc", "a.pdf", PDF)
        assert exc.value.status_code == 403

    def test_grantee_can_upload(self, db_session, other_user, person) -> None:
        db_session.add(
            PersonShare(person_id=person.id, shared_with_user_id=other_user.id)
        )
        db_session.commit()
        doc = documents.create(db_session, other_user, person, "Doc", "a.png", b"png")
        assert doc.mime_type == "image/png"

    def test_private_document_hidden_from_stranger(
        self, db_session, other_user, document
    ) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.get_for_user(db_session, other_user, str(document.id))
        assert exc.value.status_code == 403
        assert documents.list(db_session, other_user, str(document.person_id), 50, 0) == []

    def test_public_document_visible_to_stranger(
        self, db_session, user, other_user, document
    ) -> None:
        documents.set_visibility(db_session, user, str(document.id), True)
        assert documents.get_for_user(db_session, other_user, str(document.id)).id == document.id
        listed = documents.list(db_session, other_user, str(document.person_id), 50, 0)
        assert [d.id for d in listed] == [document.id]

    def test_stranger_cannot_toggle(self, db_session, other_user, document) -> None:
        with pytest.raises(HTTPException) as exc:
            documents.set_visibility(db_session, other_user, str(document.id), True)
        assert exc.value.status_code == 403

    def test_delete_removes_file(self, db_session, user, document) -> None:
        key = document.file_path
        documents.delete(db_session, user, str(document.id))
        assert not storage.exists(key)
        with pytest.raises(HTTPException):
            documents.get(db_session, str(document.id))

    def test_read_content_missing_file(self, db_session, user, document) -> None:
        storage.delete(document.file_path)
        with pytest.raises(HTTPException) as exc:
            documents.read_content(db_session, user, str(document.id))
        assert exc.value.status_code == 404

    def test_person_delete_removes_files(self, db_session, user, person, document) -> None:
        from app.services.people import people

        key = document.file_path
        people.delete(db_session, user, str(person.id))
        assert not storage.exists(key)


class _StreamedUpload:
    """Upload without a declared size, recording how much was read."""

    filename = "scan.png"
    content_type = "image/png"
    size = None

    def __init__(self, payload: bytes):
        self.payload = payload
        self.requested = None

    async def read(self, size: int = -1) -> bytes:
        self.requested = size
        return self.payload if size < 0 else self.payload[:size]


class TestCreateFromUpload:
    def test_read_is_bounded_by_limit(
        self, monkeypatch, db_session, user, person
    ) -> None:
        monkeypatch.setattr(
            documents_module, "settings", replace(settings, document_max_size_bytes=16)
        )
        upload = _StreamedUpload(b"x" * 1024)
        with pytest.raises(ValidationFailed) as exc:
            asyncio.run(documents.create_from_upload(db_session, user, person, "Scan", upload))
        assert upload.requested == 17
        assert "kilobytes" in exc.value.errors["file"][0]

    def test_small_upload_is_stored(self, db_session, user, person) -> None:
        upload = _StreamedUpload(b"\x89PNG data")
        document = asyncio.run(
            documents.create_from_upload(db_session, user, person, "Scan", upload)
        )
        assert document.file_size == len(b"\x89PNG data")
        assert storage.exists(document.file_path)
