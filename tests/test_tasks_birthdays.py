from datetime import date

from sqlalchemy import select

from app.models.notification import DeviceToken, Notification
from app.tasks import birthdays as birthday_tasks
from app.tasks.birthdays import _notify, days_text
from tests.factories import make_person


class TestBirthdayNotifications:
    def test_days_text(self) -> None:
        assert days_text(0) == "today"
        assert days_text(1) == "tomorrow"
        assert days_text(3) == "in 3 days"

    def test_nothing_due(self, db_session, person) -> None:
        result = _notify(db_session, 1, today=date(2025, 1, 1))
        assert result["people"] == 0
        assert db_session.scalars(select(Notification)).all() == []

    def test_tomorrow(self, db_session, user, other_user, person) -> None:
        result = _notify(db_session, 1, today=date(2025, 6, 11))

        assert result["target_date"] == date(2025, 6, 12)
        assert result["people"] == 1
        assert result["notifications"] == 2
        rows = db_session.scalars(select(Notification)).all()
        assert {n.user_id for n in rows} == {user.id, other_user.id}
        assert rows[0].title == "Upcoming Birthday"
        assert rows[0].message == "Aisha Rahman turning 35 birthday is tomorrow!"
        assert rows[0].type == "birthday_reminder"
        assert rows[0].person_id == person.id

    def test_today_title(self, db_session, person) -> None:
        _notify(db_session, 0, today=date(2025, 6, 12))
        row = db_session.scalar(select(Notification))
        assert row.title == "Birthday Today!"
        assert row.message.endswith("birthday is today!")

    def test_pushes_single_person(self, db_session, monkeypatch, user, person) -> None:
        db_session.add(DeviceToken(user_id=user.id, token="ExponentPushToken[1]"))
        db_session.commit()
        sent = []
        monkeypatch.setattr(
            "app.services.push.send_batch",
            lambda tokens, title, body, data=None: sent.append((tokens, title, body, data)),
        )

        result = _notify(db_session, 1, today=date(2025, 6, 11))

        assert result["tokens"] == 1
        tokens, title, body, data = sent[0]
        assert tokens == ["ExponentPushToken[1]"]
        assert body == "Aisha Rahman's birthday is tomorrow!"
        assert data == {"type": "birthday_reminder", "person_id": str(person.id)}

    def test_pushes_summary_for_many(self, db_session, monkeypatch, user) -> None:
        make_person(db_session, user, "One", "900612145566")
        make_person(db_session, user, "Two", "910612145566",
                    date_of_birth=date(1991, 6, 12))
        db_session.add(DeviceToken(user_id=user.id, token="tok"))
        db_session.commit()
        sent = []
        monkeypatch.setattr(
            "app.services.push.send_batch",
            lambda tokens, title, body, data=None: sent.append(body),
        )

        _notify(db_session, 0, today=date(2025, 6, 12))
        assert sent == ["You have 2 birthdays coming up today!"]

    def test_task_uses_own_session(self, monkeypatch, db_session, person) -> None:
        calls = []
        monkeypatch.setattr("app.db.SessionLocal", lambda: db_session)
        monkeypatch.setattr(
            birthday_tasks, "_notify", lambda db, days: calls.append((db, days))
        )
        birthday_tasks.send_birthday_notifications(0)
        assert calls == [(db_session, 0)]

    def test_beat_schedule(self) -> None:
        from app.celery_app import celery_app

        schedule = celery_app.conf.beat_schedule
        assert schedule["birthday-notifications-today"]["args"] == (0,)
        assert schedule["birthday-notifications-tomorrow"]["args"] == (1,)
