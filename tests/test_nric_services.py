from datetime import date

from app.services.nric import normalize_nric, parse_nric


class TestParseNric:
    def test_parses_twentieth_century_date(self) -> None:
        details = parse_nric("900612-14-5566")
        assert details.date_of_birth == date(1990, 6, 12)

    def test_parses_two_thousands_date(self) -> None:
        details = parse_nric("050301-10-1234")
        assert details.date_of_birth == date(2005, 3, 1)

    def test_pivot_year_belongs_to_two_thousands(self) -> None:
        assert parse_nric("300101-01-0001").date_of_birth == date(2030, 1, 1)
        assert parse_nric("310101-01-0001").date_of_birth == date(1931, 1, 1)

    def test_even_last_digit_is_male(self) -> None:
        assert parse_nric("900612145566").gender == "Male"

    def test_odd_last_digit_is_female(self) -> None:
        assert parse_nric("900612145567").gender == "Female"

    def test_invalid_date_keeps_gender(self) -> None:
        details = parse_nric("901332-14-5567")
        assert details.date_of_birth is None
        assert details.gender == "Female"

    def test_wrong_length_yields_nothing(self) -> None:
        details = parse_nric("12345")
        assert details.date_of_birth is None
        assert details.gender is None

    def test_non_digits_yield_nothing(self) -> None:
        assert parse_nric("90061A-14-5566").gender is None
        assert parse_nric(None).date_of_birth is None

    def test_as_dict(self) -> None:
        assert parse_nric("900612-14-5566").as_dict() == {
            "date_of_birth": "1990-06-12",
            "gender": "Male",
        }

    def test_normalize_strips_separators(self) -> None:
        assert normalize_nric("900612 14-5566") == "900612145566"
