import uuid

import pytest

from app.models.notification import Notification


@pytest.fixture()
def notifications_batch(db_session, user):
    items = []
    for i in range(3):
        n = Notification(
            user_id=user.id,
            type="birthday_reminder",
            title=f"Notification {i}",
            message=f"Body {i}",
        )
        db_session.add(n)
        items.append(n)
    db_session.commit()
    for n in items:
        db_session.refresh(n)
    return items


class TestNotificationEndpoints:
    def test_list(self, client, auth_headers, notifications_batch) -> None:
        resp = client.get("/notifications", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 3
        assert data["unread_count"] == 3

    def test_list_only_own(self, client, other_headers, notifications_batch) -> None:
        resp = client.get("/notifications", headers=other_headers)
        assert resp.json()["count"] == 0

    def test_mark_read(self, client, auth_headers, notifications_batch) -> None:
        target = notifications_batch[0]
        resp = client.patch(f"/notifications/{target.id}/read", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["is_read"] is True
        assert resp.json()["read_at"] is not None

        resp = client.get("/notifications?is_read=false", headers=auth_headers)
        assert resp.json()["count"] == 2

    def test_mark_read_of_other_user(
        self, client, other_headers, notifications_batch
    ) -> None:
        target = notifications_batch[0]
        resp = client.patch(f"/notifications/{target.id}/read", headers=other_headers)
        assert resp.status_code == 404

    def test_mark_read_not_found(self, client, auth_headers) -> None:
        resp = client.patch(f"/notifications/{uuid.uuid4()}/read", headers=auth_headers)
        assert resp.status_code == 404

    def test_mark_all_read(self, client, auth_headers, notifications_batch) -> None:
        resp = client.post("/notifications/mark-all-read", headers=auth_headers)
        assert resp.json() == {"updated": 3}
        resp = client.get("/notifications", headers=auth_headers)
        assert resp.json()["unread_count"] == 0


class TestDeviceTokenEndpoints:
    def test_register_is_idempotent(self, client, auth_headers) -> None:
        body = {"token": "ExponentPushToken[abc]", "platform": "ios"}
        first = client.post("/device-tokens", json=body, headers=auth_headers)
        assert first.status_code == 201
        assert first.json()["platform"] == "ios"

        second = client.post(
            "/device-tokens",
            json={"token": "ExponentPushToken[abc]", "platform": "android"},
            headers=auth_headers,
        )
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["platform"] == "android"

    def test_invalid_platform(self, client, auth_headers) -> None:
        resp = client.post(
            "/device-tokens",
            json={"token": "x", "platform": "blackberry"},
            headers=auth_headers,
        )
        assert resp.status_code == 422

    def test_remove(self, client, auth_headers) -> None:
        client.post("/device-tokens", json={"token": "tok-1"}, headers=auth_headers)
        resp = client.delete("/device-tokens/tok-1", headers=auth_headers)
        assert resp.status_code == 204
        resp = client.delete("/device-tokens/tok-1", headers=auth_headers)
        assert resp.status_code == 404
