from datetime import date


class TestAdminEndpoints:
    def test_requires_admin(self, client, auth_headers) -> None:
        resp = client.get("/admin/users", headers=auth_headers)
        assert resp.status_code == 403

    def test_list_pending(self, client, admin_headers, pending_user) -> None:
        resp = client.get("/admin/users?status=pending", headers=admin_headers)
        assert resp.status_code == 200
        assert [u["id"] for u in resp.json()["items"]] == [str(pending_user.id)]

    def test_approve(self, client, admin_headers, pending_user) -> None:
        resp = client.post(
            f"/admin/users/{pending_user.id}/approve", headers=admin_headers
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["is_approved"] is True

    def test_user_detail(self, client, admin_headers, user, person) -> None:
        resp = client.get(f"/admin/users/{user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["people_count"] == 1

    def test_admin_sees_everyone(self, client, admin_headers, person) -> None:
        resp = client.get("/admin/people", headers=admin_headers)
        assert resp.json()["count"] == 1
        resp = client.get(f"/people/{person.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["can_manage"] is True

    def test_admin_deletes_person(self, client, admin_headers, person) -> None:
        resp = client.delete(f"/admin/people/{person.id}", headers=admin_headers)
        assert resp.status_code == 204
        resp = client.get("/admin/activity-logs?action=admin.person", headers=admin_headers)
        assert resp.json()["items"][0]["action"] == "admin.person_deleted"

    def test_statistics(self, client, admin_headers, pending_user, person) -> None:
        resp = client.get("/admin/statistics", headers=admin_headers)
        assert resp.status_code == 200
        overview = resp.json()["overview"]
        assert overview["pending_users"] == 1
        assert overview["total_people"] == 1

    def test_event_lifecycle(self, client, admin_headers, auth_headers) -> None:
        resp = client.post(
            "/admin/events",
            json={"name": "Family reunion", "event_date": "2030-08-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        event_id = resp.json()["id"]

        resp = client.put(
            f"/admin/events/{event_id}",
            json={"name": "Reunion"},
            headers=admin_headers,
        )
        assert resp.json()["name"] == "Reunion"
        assert resp.json()["event_date"] == date(2030, 8, 1).isoformat()

        resp = client.get("/events", headers=auth_headers)
        assert resp.json()["count"] == 1

        resp = client.delete(f"/admin/events/{event_id}", headers=admin_headers)
        assert resp.status_code == 204

    def test_suggestions(self, client, admin_headers, auth_headers) -> None:
        resp = client.post(
            "/suggestions",
            json={"subject": "Calendar", "message": "Please add anniversaries."},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        suggestion_id = resp.json()["id"]

        resp = client.get("/admin/suggestions?is_read=false", headers=admin_headers)
        assert resp.json()["count"] == 1

        resp = client.post(
            f"/admin/suggestions/{suggestion_id}/mark-read", headers=admin_headers
        )
        assert resp.json()["is_read"] is True

        resp = client.delete(f"/admin/suggestions/{suggestion_id}", headers=admin_headers)
        assert resp.status_code == 204
