from datetime import date

from click.testing import CliRunner

from app import cli as cli_module
from app.models.user import User


def _use_session(monkeypatch, db_session):
    monkeypatch.setattr(cli_module, "SessionLocal", lambda: db_session)


class TestCli:
    def test_birthdays_notify(self, monkeypatch, db_session, person) -> None:
        _use_session(monkeypatch, db_session)
        monkeypatch.setattr(
            "app.tasks.birthdays.local_today", lambda: date(2025, 6, 11)
        )
        result = CliRunner().invoke(cli_module.cli, ["birthdays-notify", "--days", "1"])
        assert result.exit_code == 0, result.output
        assert "Target date: 2025-06-12" in result.output
        assert "Birthdays found: 1" in result.output

    def test_birthdays_notify_rejects_negative(self, monkeypatch, db_session) -> None:
        _use_session(monkeypatch, db_session)
        result = CliRunner().invoke(cli_module.cli, ["birthdays-notify", "--days", "-1"])
        assert result.exit_code != 0

    def test_make_admin(self, monkeypatch, db_session, pending_user) -> None:
        _use_session(monkeypatch, db_session)
        user_id = pending_user.id
        result = CliRunner().invoke(cli_module.cli, ["make-admin", "PENDING@example.com"])
        assert result.exit_code == 0, result.output
        user = db_session.get(User, user_id)
        assert user.is_admin
        assert user.is_approved

    def test_make_admin_unknown(self, monkeypatch, db_session) -> None:
        _use_session(monkeypatch, db_session)
        result = CliRunner().invoke(cli_module.cli, ["make-admin", "nobody@example.com"])
        assert result.exit_code == 1
        assert "No user with email" in result.output
