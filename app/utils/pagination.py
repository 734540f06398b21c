import math


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(page: int, limit: int, total: int) -> dict:
    """{current, pages, total} with pages = ceil(total / limit)."""
    return {"current": page, "pages": math.ceil(total / limit) if limit else 0, "total": total}
