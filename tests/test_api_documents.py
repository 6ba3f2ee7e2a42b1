from dataclasses import replace

import pytest

from app.config import settings
from app.services import documents as documents_module
from app.services.documents import documents

PDF = b"%PDF-1.4 family record"


@pytest.fixture()
def document(db_session, user, person):
    return documents.create(db_session, user, person, "Passport", "passport.pdf", PDF)


class TestDocumentEndpoints:
    def test_upload(self, client, auth_headers, person) -> None:
        resp = client.post(
            f"/people/{person.id}/documents",
            data={"name": "Scan", "is_public": "true"},
            files={"file": ("scan.png", b"\x89PNG data", "image/png")},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["original_name"] == "scan.png"
        assert data["is_public"] is True

    def test_upload_rejects_extension(self, client, auth_headers, person) -> None:
        resp = client.post(
            f"/people/{person.id}/documents",
            data={"name": "Script"},
            files={"file": ("run.sh", b"echo", "text/plain")},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert "file" in resp.json()["details"]

    def test_upload_rejects_oversize(
        self, client, monkeypatch, auth_headers, person
    ) -> None:
        monkeypatch.setattr(
            documents_module, "settings", replace(settings, document_max_size_bytes=16)
        )
        resp = client.post(
            f"/people/{person.id}/documents",
            data={"name": "Scan"},
            files={"file": ("scan.png", b"x" * 64, "image/png")},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert "kilobytes" in resp.json()["details"]["file"][0]
        resp = client.get(f"/people/{person.id}/documents", headers=auth_headers)
        assert resp.json()["count"] == 0

    def test_list(self, client, auth_headers, person, document) -> None:
        resp = client.get(f"/people/{person.id}/documents", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["count"] == 1

    def test_get_private_forbidden(self, client, other_headers, document) -> None:
        resp = client.get(f"/documents/{document.id}", headers=other_headers)
        assert resp.status_code == 403

    def test_toggle_visibility(self, client, auth_headers, other_headers, document) -> None:
        resp = client.patch(
            f"/documents/{document.id}", json={"is_public": True}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["is_public"] is True
        resp = client.get(f"/documents/{document.id}", headers=other_headers)
        assert resp.status_code == 200

    def test_download(self, client, auth_headers, document) -> None:
        resp = client.get(f"/documents/{document.id}/download", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.content == PDF
        assert resp.headers["content-disposition"].startswith("attachment;")

        resp = client.get(
            f"/documents/{document.id}/download?inline=true", headers=auth_headers
        )
        assert resp.headers["content-disposition"].startswith("inline;")

    def test_delete(self, client, auth_headers, document) -> None:
        resp = client.delete(f"/documents/{document.id}", headers=auth_headers)
        assert resp.status_code == 204
        resp = client.get(f"/documents/{document.id}", headers=auth_headers)
        assert resp.status_code == 404

    def test_storage_serves_public_files_only(
        self, client, db_session, user, document
    ) -> None:
        resp = client.get(f"/storage/{document.file_path}")
        assert resp.status_code == 404

        documents.set_visibility(db_session, user, str(document.id), True)
        resp = client.get(f"/storage/{document.file_path}")
        assert resp.status_code == 200
        assert resp.content == PDF
