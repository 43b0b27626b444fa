import math
from sqlalchemy import func
from sqlmodel import select


def normalize_page(page: int, limit: int, default_limit: int = 20):
    if page < 1:
        page = 1

    if limit < 1:
        limit = default_limit

    return page, limit, (page - 1) * limit


def pagination_meta(*, page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 20,
):
    page, limit, offset = normalize_page(page, limit)

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    results = session.exec(
        query.offset(offset).limit(limit)
    ).all()

    return results, pagination_meta(page=page, limit=limit, total=total)
