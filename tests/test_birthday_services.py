from datetime import date

from app.services.birthdays import (
    age_breakdown,
    age_on,
    birthday_in_year,
    birthdays_on,
    days_until_birthday,
    next_birthday,
    upcoming_birthdays,
)
from tests.factories import make_person


class TestBirthdayArithmetic:
    def test_leap_day_moves_to_first_of_march(self) -> None:
        assert birthday_in_year(date(2000, 2, 29), 2025) == date(2025, 3, 1)
        assert birthday_in_year(date(2000, 2, 29), 2028) == date(2028, 2, 29)

    def test_next_birthday_today(self) -> None:
        today = date(2025, 6, 12)
        assert next_birthday(date(1990, 6, 12), today) == today
        assert days_until_birthday(date(1990, 6, 12), today) == 0

    def test_next_birthday_rolls_to_next_year(self) -> None:
        today = date(2025, 6, 13)
        assert next_birthday(date(1990, 6, 12), today) == date(2026, 6, 12)
        assert days_until_birthday(date(1990, 6, 12), today) == 364

    def test_missing_date_of_birth(self) -> None:
        assert next_birthday(None) is None
        assert days_until_birthday(None) is None
        assert age_breakdown(None) is None

    def test_age_on(self) -> None:
        assert age_on(date(1990, 6, 12), date(2025, 6, 11)) == 34
        assert age_on(date(1990, 6, 12), date(2025, 6, 12)) == 35

    def test_age_breakdown(self) -> None:
        assert age_breakdown(date(1990, 6, 12), date(2025, 9, 20)) == {
            "years": 35,
            "months": 3,
        }
        assert age_breakdown(date(1990, 6, 12), date(2025, 9, 11)) == {
            "years": 35,
            "months": 2,
        }


class TestUpcomingBirthdays:
    def test_window_within_year(self, db_session, user) -> None:
        make_person(db_session, user, "In Window", "900612145566",
                    date_of_birth=date(1990, 6, 12))
        make_person(db_session, user, "Later", "900620145566",
                    date_of_birth=date(1990, 6, 20))
        make_person(db_session, user, "Earlier", "900601145566",
                    date_of_birth=date(1990, 6, 1))

        result = upcoming_birthdays(db_session, 7, today=date(2025, 6, 10))
        assert [p.name for p in result] == ["In Window"]

    def test_window_includes_boundaries(self, db_session, user) -> None:
        make_person(db_session, user, "Start", "850610145566",
                    date_of_birth=date(1985, 6, 10))
        make_person(db_session, user, "End", "850617145566",
                    date_of_birth=date(1985, 6, 17))

        result = upcoming_birthdays(db_session, 7, today=date(2025, 6, 10))
        assert [p.name for p in result] == ["Start", "End"]

    def test_window_wraps_year_end(self, db_session, user) -> None:
        make_person(db_session, user, "January", "900103145566",
                    date_of_birth=date(1990, 1, 3))
        make_person(db_session, user, "December", "901230145566",
                    date_of_birth=date(1990, 12, 30))
        make_person(db_session, user, "November", "901101145566",
                    date_of_birth=date(1990, 11, 1))

        result = upcoming_birthdays(db_session, 10, today=date(2025, 12, 28))
        assert [p.name for p in result] == ["December", "January"]

    def test_leap_day_in_window_starting_first_of_march(self, db_session, user) -> None:
        make_person(db_session, user, "Leapling", "000229145566",
                    date_of_birth=date(2000, 2, 29))
        make_person(db_session, user, "March Second", "900302145566",
                    date_of_birth=date(1990, 3, 2))

        today = date(2025, 3, 1)
        result = upcoming_birthdays(db_session, 7, today=today)
        assert [p.name for p in result] == ["Leapling", "March Second"]
        assert days_until_birthday(date(2000, 2, 29), today) == 0

    def test_leap_day_excluded_from_window_ending_february(
        self, db_session, user
    ) -> None:
        make_person(db_session, user, "Leapling", "000229145566",
                    date_of_birth=date(2000, 2, 29))
        assert upcoming_birthdays(db_session, 3, today=date(2025, 2, 25)) == []
        result = upcoming_birthdays(db_session, 3, today=date(2028, 2, 26))
        assert [p.name for p in result] == ["Leapling"]

    def test_people_without_date_are_skipped(self, db_session, user) -> None:
        make_person(db_session, user, "Unknown", "000000000000", date_of_birth=None)
        assert upcoming_birthdays(db_session, 365, today=date(2025, 1, 1)) == []

    def test_restricted_to_ids(self, db_session, user, other_user) -> None:
        mine = make_person(db_session, user, "Mine", "900612145566")
        make_person(db_session, other_user, "Theirs", "900612145568")

        result = upcoming_birthdays(
            db_session, 7, today=date(2025, 6, 10), person_ids=[mine.id]
        )
        assert [p.name for p in result] == ["Mine"]


class TestBirthdaysOn:
    def test_exact_date(self, db_session, user) -> None:
        make_person(db_session, user, "Today", "900612145566")
        make_person(db_session, user, "Tomorrow", "900613145566",
                    date_of_birth=date(1990, 6, 13))

        result = birthdays_on(db_session, date(2025, 6, 12))
        assert [p.name for p in result] == ["Today"]

    def test_leap_day_celebrated_on_first_of_march(self, db_session, user) -> None:
        make_person(db_session, user, "Leapling", "000229145566",
                    date_of_birth=date(2000, 2, 29))

        assert [p.name for p in birthdays_on(db_session, date(2025, 3, 1))] == [
            "Leapling"
        ]
        assert birthdays_on(db_session, date(2025, 2, 28)) == []
        assert [p.name for p in birthdays_on(db_session, date(2028, 2, 29))] == [
            "Leapling"
        ]
        assert birthdays_on(db_session, date(2028, 3, 1)) == []


class TestSevenDayWindow:
    def test_included_before_birthday(self, db_session, user) -> None:
        make_person(db_session, user, "June", "900615145566",
                    date_of_birth=date(1990, 6, 15))
        result = upcoming_birthdays(db_session, 7, today=date(2025, 6, 10))
        assert [p.name for p in result] == ["June"]

    def test_excluded_after_birthday(self, db_session, user) -> None:
        make_person(db_session, user, "June", "900615145566",
                    date_of_birth=date(1990, 6, 15))
        assert upcoming_birthdays(db_session, 7, today=date(2025, 6, 16)) == []
