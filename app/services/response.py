class ListResponseMixin:
    """Wraps a service's ``list`` result in the paginated envelope.

    ``limit`` and ``offset`` are always the last two arguments of ``list``,
    whether passed positionally or by keyword. ``count`` is the size of the
    returned page.
    """

    @classmethod
    def list_response(cls, db, *args, **kwargs):
        items = cls.list(db, *args, **kwargs)
        if "limit" in kwargs:
            limit, offset = kwargs["limit"], kwargs.get("offset", 0)
        else:
            limit, offset = args[-2], args[-1]
        return {"items": items, "count": len(items), "limit": limit, "offset": offset}
