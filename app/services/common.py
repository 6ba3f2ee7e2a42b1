import uuid

from fastapi import HTTPException
from sqlalchemy import or_


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=404, detail="Resource not found")


def apply_pagination(query, limit, offset):
    return query.limit(limit).offset(offset)


def apply_search(query, term, *columns):
    """Case-insensitive substring match of ``term`` against any of ``columns``."""
    term = (term or "").strip()
    if not term:
        return query
    pattern = f"%{term}%"
    return query.where(or_(*(column.ilike(pattern) for column in columns)))
