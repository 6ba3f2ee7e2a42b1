import re
from dataclasses import dataclass
from datetime import date

_SEPARATORS = re.compile(r"[-\s]")

# Two-digit years up to this value belong to the 2000s.
CENTURY_PIVOT = 30


@dataclass(frozen=True)
class NricDetails:
    date_of_birth: date | None = None
    gender: str | None = None

    def as_dict(self) -> dict:
        return {
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "gender": self.gender,
        }


def normalize_nric(value: str | None) -> str:
    return _SEPARATORS.sub("", value or "")


def parse_nric(value: str | None) -> NricDetails:
    """Derive birth date and gender from a 12-digit YYMMDD-PB-###G number.

    Malformed input yields an empty result instead of an error.
    """
    digits = normalize_nric(value)
    if len(digits) != 12 or not digits.isdigit():
        return NricDetails()

    yy, mm, dd = int(digits[0:2]), int(digits[2:4]), int(digits[4:6])
    year = 2000 + yy if yy <= CENTURY_PIVOT else 1900 + yy
    try:
        born = date(year, mm, dd)
    except ValueError:
        born = None

    gender = "Male" if int(digits[-1]) % 2 == 0 else "Female"
    return NricDetails(date_of_birth=born, gender=gender)
