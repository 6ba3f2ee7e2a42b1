"""Birthday arithmetic and the upcoming-birthday window query."""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from app.models.person import Person


def birthday_in_year(born: date, year: int) -> date:
    """Birthday falling in ``year``. 29 February moves to 1 March in common years."""
    if born.month == 2 and born.day == 29 and not calendar.isleap(year):
        return date(year, 3, 1)
    return born.replace(year=year)


def next_birthday(born: date | None, today: date | None = None) -> date | None:
    if born is None:
        return None
    today = today or date.today()
    upcoming = birthday_in_year(born, today.year)
    if upcoming < today:
        upcoming = birthday_in_year(born, today.year + 1)
    return upcoming


def days_until_birthday(born: date | None, today: date | None = None) -> int | None:
    today = today or date.today()
    upcoming = next_birthday(born, today)
    if upcoming is None:
        return None
    return (upcoming - today).days


def age_on(born: date, on: date) -> int:
    years = on.year - born.year
    if on < birthday_in_year(born, on.year):
        years -= 1
    return years


def age_breakdown(born: date | None, today: date | None = None) -> dict | None:
    """Completed years and months since ``born``."""
    if born is None:
        return None
    today = today or date.today()
    months = (today.year - born.year) * 12 + (today.month - born.month)
    if today.day < born.day:
        months -= 1
    months = max(months, 0)
    return {"years": months // 12, "months": months % 12}


def month_day(db: Session, column):
    """SQL expression rendering ``column`` as ``MM-DD`` for the bound dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return func.to_char(column, "MM-DD")
    if dialect in ("mysql", "mariadb"):
        return func.date_format(column, "%m-%d")
    return func.strftime("%m-%d", column)


def upcoming_birthdays(
    db: Session,
    days: int,
    today: date | None = None,
    person_ids=None,
) -> list[Person]:
    """People whose birthday falls within ``[today, today + days]``.

    Ordered chronologically from ``today``; when the window crosses a year
    end the December part comes first. ``person_ids`` optionally restricts
    the candidates to a subquery of ids.
    """
    today = today or date.today()
    end = today + timedelta(days=max(days, 0))
    md = month_day(db, Person.date_of_birth)
    march_first = date(today.year, 3, 1)
    if march_first < today:
        march_first = date(today.year + 1, 3, 1)
    if not calendar.isleap(march_first.year):
        # 29 Feb birthdays are celebrated on 1 Mar in common years.
        md = case((md == "02-29", "03-01"), else_=md)
    start_md = today.strftime("%m-%d")
    end_md = end.strftime("%m-%d")

    stmt = select(Person).where(Person.date_of_birth.is_not(None))
    if person_ids is not None:
        stmt = stmt.where(Person.id.in_(person_ids))

    if days >= 365:
        stmt = stmt.order_by(case((md >= start_md, 0), else_=1), md, Person.name)
    elif end.year > today.year:
        stmt = stmt.where(or_(md >= start_md, md <= end_md)).order_by(
            case((md >= start_md, 0), else_=1), md, Person.name
        )
    else:
        stmt = stmt.where(md >= start_md, md <= end_md).order_by(md, Person.name)
    return list(db.scalars(stmt).all())


def birthdays_on(db: Session, target: date) -> list[Person]:
    """People whose birthday lands exactly on ``target`` this year."""
    md = month_day(db, Person.date_of_birth)
    candidates = [target.strftime("%m-%d")]
    if target.month == 3 and target.day == 1 and not calendar.isleap(target.year):
        candidates.append("02-29")
    stmt = (
        select(Person)
        .where(Person.date_of_birth.is_not(None), md.in_(candidates))
        .order_by(Person.name)
    )
    return [
        person
        for person in db.scalars(stmt).all()
        if birthday_in_year(person.date_of_birth, target.year) == target
    ]
