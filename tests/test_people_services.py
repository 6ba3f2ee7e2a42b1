import uuid
from datetime import date

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from app.errors import ValidationFailed
from app.models.activity import ActivityLog
from app.models.notification import Notification
from app.models.person import PersonShare
from app.schemas.person import PersonCreate, PersonUpdate
from app.services.people import people
from tests.factories import make_person


class TestPeopleService:
    def test_create_prefills_from_nric(self, db_session, user) -> None:
        payload = PersonCreate(name="Nur Aina", nric="050301-10-1233")
        person = people.create(db_session, user, payload)
        assert person.user_id == user.id
        assert person.date_of_birth == date(2005, 3, 1)
        assert person.gender == "Female"

    def test_create_keeps_explicit_values(self, db_session, user) -> None:
        payload = PersonCreate(
            name="Nur Aina",
            nric="050301-10-1233",
            date_of_birth=date(2005, 3, 2),
            gender="Male",
        )
        person = people.create(db_session, user, payload)
        assert person.date_of_birth == date(2005, 3, 2)
        assert person.gender == "Male"

    def test_create_logs_and_notifies_everyone(
        self, db_session, user, other_user
    ) -> None:
        person = people.create(
            db_session, user, PersonCreate(name="Nur Aina", nric="050301101233")
        )
        log = db_session.scalar(
            select(ActivityLog).where(ActivityLog.action == "person.created")
        )
        assert log is not None
        assert log.subject_id == str(person.id)

        rows = db_session.scalars(select(Notification)).all()
        assert {n.user_id for n in rows} == {user.id, other_user.id}
        assert all(n.type == "person_created" for n in rows)
        assert all(n.title == "New Family Member Added" for n in rows)

    def test_create_duplicate_nric(self, db_session, user, person) -> None:
        with pytest.raises(ValidationFailed) as exc:
            people.create(
                db_session, user, PersonCreate(name="Copy", nric=person.nric)
            )
        assert exc.value.status_code == 422
        assert "nric" in exc.value.errors

    def test_get_not_found(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            people.get(db_session, str(uuid.uuid4()))
        assert exc.value.status_code == 404

    def test_get_for_user_forbidden(self, db_session, other_user, person) -> None:
        with pytest.raises(HTTPException) as exc:
            people.get_for_user(db_session, other_user, str(person.id))
        assert exc.value.status_code == 403

    def test_get_for_user_shared(self, db_session, other_user, person) -> None:
        db_session.add(
            PersonShare(person_id=person.id, shared_with_user_id=other_user.id)
        )
        db_session.commit()
        assert people.get_for_user(db_session, other_user, str(person.id)).id == person.id

    def test_list_scopes(self, db_session, user, other_user, admin_user) -> None:
        mine = make_person(db_session, user, "Mine", "900101010101")
        shared = make_person(db_session, other_user, "Shared", "900101010102")
        make_person(db_session, other_user, "Hidden", "900101010103")
        db_session.add(PersonShare(person_id=shared.id, shared_with_user_id=user.id))
        db_session.commit()

        assert [p.name for p in people.list(db_session, user, "mine", None, 50, 0)] == [
            mine.name
        ]
        assert [
            p.name for p in people.list(db_session, user, "shared", None, 50, 0)
        ] == [shared.name]
        assert [p.name for p in people.list(db_session, user, "all", None, 50, 0)] == [
            "Mine",
            "Shared",
        ]
        assert len(people.list(db_session, admin_user, "all", None, 50, 0)) == 3

    def test_list_search(self, db_session, user) -> None:
        make_person(db_session, user, "Mariam", "900101010101")
        make_person(db_session, user, "Yusof", "900101010102")
        result = people.list(db_session, user, "mine", "mari", 50, 0)
        assert [p.name for p in result] == ["Mariam"]

    def test_list_invalid_scope(self, db_session, user) -> None:
        with pytest.raises(HTTPException) as exc:
            people.list(db_session, user, "everyone", None, 50, 0)
        assert exc.value.status_code == 400

    def test_update_records_changes(self, db_session, user, person) -> None:
        payload = PersonUpdate(
            name=person.name,
            nric=person.nric,
            date_of_birth=person.date_of_birth,
            gender="Male",
            occupation="Engineer",
        )
        updated = people.update(db_session, user, str(person.id), payload)
        assert updated.occupation == "Engineer"
        log = db_session.scalar(
            select(ActivityLog).where(ActivityLog.action == "person.updated")
        )
        assert log.properties["changes"]["occupation"] == {
            "old": None,
            "new": "Engineer",
        }

    def test_update_duplicate_nric(self, db_session, user, person) -> None:
        other = make_person(db_session, user, "Other", "900101010101")
        payload = PersonUpdate(name=other.name, nric=person.nric)
        with pytest.raises(ValidationFailed):
            people.update(db_session, user, str(other.id), payload)

    def test_delete_requires_owner(self, db_session, other_user, person) -> None:
        db_session.add(
            PersonShare(person_id=person.id, shared_with_user_id=other_user.id)
        )
        db_session.commit()
        with pytest.raises(HTTPException) as exc:
            people.delete(db_session, other_user, str(person.id))
        assert exc.value.status_code == 403

    def test_admin_can_delete(self, db_session, admin_user, person) -> None:
        person_id = str(person.id)
        people.delete(db_session, admin_user, person_id)
        with pytest.raises(HTTPException):
            people.get(db_session, person_id)

    def test_detail(self, db_session, user, person) -> None:
        detail = people.detail(db_session, user, person, today=date(2025, 6, 10))
        assert detail["age"] == {"years": 34, "months": 11}
        assert detail["next_birthday"] == date(2025, 6, 12)
        assert detail["days_until_birthday"] == 2
        assert detail["is_favorite"] is False
        assert detail["can_manage"] is True

    def test_nric_prefill(self) -> None:
        assert people.nric_prefill("900612-14-5566") == {
            "date_of_birth": date(1990, 6, 12),
            "gender": "Male",
        }
