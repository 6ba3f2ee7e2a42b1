from dataclasses import replace

import httpx
import pytest

from app.config import settings
from app.models.notification import DeviceToken
from app.services import push
from tests.mocks import FakeHTTPXResponse


@pytest.fixture()
def push_enabled(monkeypatch):
    monkeypatch.setattr(
        push, "settings", replace(settings, push_enabled=True, push_access_token="tok")
    )


class TestPushHelpers:
    def test_build_messages(self) -> None:
        messages = push.build_messages(["a"], "Title", "Body", {"type": "x"})
        assert messages == [
            {"to": "a", "sound": "default", "title": "Title", "body": "Body", "data": {"type": "x"}}
        ]

    def test_unique_tokens_keeps_order(self) -> None:
        assert push.unique_tokens(["b", "a", "b", "", None]) == ["b", "a"]

    def test_device_tokens_excludes_user(self, db_session, user, other_user) -> None:
        db_session.add_all(
            [
                DeviceToken(user_id=user.id, token="ExponentPushToken[1]"),
                DeviceToken(user_id=other_user.id, token="ExponentPushToken[2]"),
                DeviceToken(user_id=other_user.id, token="ExponentPushToken[1]"),
            ]
        )
        db_session.commit()
        assert sorted(push.device_tokens(db_session)) == [
            "ExponentPushToken[1]",
            "ExponentPushToken[2]",
        ]
        assert sorted(push.device_tokens(db_session, exclude_user_id=user.id)) == [
            "ExponentPushToken[1]",
            "ExponentPushToken[2]",
        ]
        assert push.device_tokens(db_session, exclude_user_id=other_user.id) == [
            "ExponentPushToken[1]"
        ]


class TestSendBatch:
    def test_disabled_skips_gateway(self, monkeypatch) -> None:
        def fail(*args, **kwargs):
            raise AssertionError("gateway should not be called")

        monkeypatch.setattr(httpx.Client, "post", fail)
        assert push.send_batch(["t"], "Title", "Body") is None

    def test_no_tokens(self, push_enabled) -> None:
        assert push.send_batch([], "Title", "Body") is None

    def test_posts_batch(self, monkeypatch, push_enabled) -> None:
        calls = []

        def fake_post(self, url, json=None, headers=None):
            calls.append((url, json, headers))
            return FakeHTTPXResponse({"data": [{"status": "ok"}]})

        monkeypatch.setattr(httpx.Client, "post", fake_post)
        result = push.send_batch(["t1", "t1", "t2"], "Title", "Body", {"k": "v"})

        assert result == {"data": [{"status": "ok"}]}
        url, body, headers = calls[0]
        assert url == settings.push_api_url
        assert [m["to"] for m in body] == ["t1", "t2"]
        assert headers["Authorization"] == "Bearer tok"

    def test_gateway_error_is_swallowed(self, monkeypatch, push_enabled) -> None:
        monkeypatch.setattr(
            httpx.Client,
            "post",
            lambda self, url, json=None, headers=None: FakeHTTPXResponse(status_code=500),
        )
        assert push.send_batch(["t1"], "Title", "Body") is None

    def test_transport_error_is_swallowed(self, monkeypatch, push_enabled) -> None:
        def boom(self, url, json=None, headers=None):
            raise httpx.ConnectError("unreachable")

        monkeypatch.setattr(httpx.Client, "post", boom)
        assert push.send_batch(["t1"], "Title", "Body") is None


class _FakeTask:
    def __init__(self):
        self.queued = []

    def delay(self, *args):
        self.queued.append(args)


class TestQueuePush:
    def test_hands_off_to_worker(self, monkeypatch) -> None:
        from app.tasks import push as push_tasks

        task = _FakeTask()
        monkeypatch.setattr(push_tasks, "send_push_notifications", task)
        push.queue_push(["t1", "t1"], "Title", "Body")
        assert task.queued == [(["t1"], "Title", "Body", {})]

    def test_nothing_to_send(self, monkeypatch) -> None:
        from app.tasks import push as push_tasks

        task = _FakeTask()
        monkeypatch.setattr(push_tasks, "send_push_notifications", task)
        push.queue_push([], "Title", "Body")
        assert task.queued == []

    def test_eager_task_calls_gateway(self, monkeypatch, push_enabled) -> None:
        sent = []
        monkeypatch.setattr(
            httpx.Client,
            "post",
            lambda self, url, json=None, headers=None: sent.append(json)
            or FakeHTTPXResponse({"data": []}),
        )
        push.queue_push(["t1"], "Title", "Body")
        assert sent[0][0]["to"] == "t1"


class TestSendBatchPayload:
    def test_invalid_json_is_swallowed(self, monkeypatch, push_enabled) -> None:
        monkeypatch.setattr(
            httpx.Client,
            "post",
            lambda self, url, json=None, headers=None: FakeHTTPXResponse(ValueError),
        )
        assert push.send_batch(["t1"], "Title", "Body") is None
