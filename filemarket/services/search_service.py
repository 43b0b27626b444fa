"""File search.

Filters are a small tagged list (``Equals``, ``Like``, ``Range``). The page
query and the count query are both compiled from the same list, so ``total``
always counts exactly the rows the page is drawn from.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from sqlalchemy import and_, case, func, or_
from sqlmodel import Session, select

from filemarket.constants.statuses import PurchaseStatus
from filemarket.models.category import Category
from filemarket.models.digital_file import DigitalFile
from filemarket.models.purchase import Purchase
from filemarket.schemas.file_schemas import SearchFileRead
from filemarket.utils.pagination import normalize_page, pagination_meta

SORT_KEYS = ("relevance", "newest", "oldest", "price_low", "price_high", "popular")

POPULAR_SEARCHES = [
    "resume template",
    "business plan",
    "logo design",
    "presentation template",
    "invoice template",
    "brochure design",
    "social media template",
    "website template",
]


@dataclass(frozen=True)
class Equals:
    column: Any
    value: Any


@dataclass(frozen=True)
class Like:
    columns: Tuple[Any, ...]
    term: str


@dataclass(frozen=True)
class Range:
    column: Any
    min: Optional[float] = None
    max: Optional[float] = None


Filter = Union[Equals, Like, Range]


@dataclass
class SearchParams:
    q: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    is_free: Optional[bool] = None
    sort_by: str = "relevance"
    page: int = 1
    limit: int = 20


LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Substring pattern with the term's own `%`, `_` and `\\` matched literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def compile_filter(f: Filter):
    if isinstance(f, Equals):
        return f.column == f.value
    if isinstance(f, Like):
        pattern = like_pattern(f.term)
        return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in f.columns))
    if isinstance(f, Range):
        bounds = []
        if f.min is not None:
            bounds.append(f.column >= f.min)
        if f.max is not None:
            bounds.append(f.column <= f.max)
        return and_(*bounds)
    raise TypeError(f"Unknown filter {f!r}")


def build_filters(params: SearchParams) -> List[Filter]:
    filters: List[Filter] = []

    if params.q:
        filters.append(Like(
            (DigitalFile.title, DigitalFile.description, Category.name),
            params.q,
        ))

    if params.category:
        filters.append(Equals(Category.slug, params.category))

    if params.is_free is not None:
        filters.append(Equals(DigitalFile.is_free, params.is_free))

    # a price range means nothing for free-only results
    if params.is_free is not True and (
        params.min_price is not None or params.max_price is not None
    ):
        filters.append(Range(DigitalFile.price, params.min_price, params.max_price))

    return filters


def _purchase_counts():
    return (
        select(
            Purchase.file_id.label("file_id"),
            func.count(Purchase.id).label("purchase_count"),
        )
        .where(Purchase.status == PurchaseStatus.completed.value)
        .group_by(Purchase.file_id)
        .subquery("purchase_stats")
    )


def build_order_by(params: SearchParams, purchase_count) -> Sequence[Any]:
    newest = (DigitalFile.created_at.desc(), DigitalFile.id.desc())

    if params.sort_by == "price_low":
        return (DigitalFile.price.asc(), *newest)
    if params.sort_by == "price_high":
        return (DigitalFile.price.desc(), *newest)
    if params.sort_by == "oldest":
        return (DigitalFile.created_at.asc(), DigitalFile.id.asc())
    if params.sort_by == "popular":
        return (purchase_count.desc(), *newest)
    if params.sort_by == "relevance" and params.q:
        pattern = like_pattern(params.q)
        rank = case(
            (DigitalFile.title.ilike(pattern, escape=LIKE_ESCAPE), 1),
            (DigitalFile.description.ilike(pattern, escape=LIKE_ESCAPE), 2),
            (Category.name.ilike(pattern, escape=LIKE_ESCAPE), 3),
            else_=4,
        )
        return (rank, *newest)
    return newest


def build_queries(params: SearchParams):
    """Return ``(page_query, count_query)`` sharing one filter predicate."""
    clauses = [compile_filter(f) for f in build_filters(params)]
    stats = _purchase_counts()
    purchase_count = func.coalesce(stats.c.purchase_count, 0)

    page_query = (
        select(
            DigitalFile,
            Category.name,
            Category.slug,
            purchase_count.label("purchase_count"),
        )
        .outerjoin(Category, DigitalFile.category_id == Category.id)
        .outerjoin(stats, stats.c.file_id == DigitalFile.id)
    )
    count_query = (
        select(func.count(DigitalFile.id))
        .select_from(DigitalFile)
        .outerjoin(Category, DigitalFile.category_id == Category.id)
    )

    for clause in clauses:
        page_query = page_query.where(clause)
        count_query = count_query.where(clause)

    page_query = page_query.order_by(*build_order_by(params, purchase_count))
    return page_query, count_query


def search_files(session: Session, params: SearchParams) -> dict:
    page, limit, offset = normalize_page(params.page, params.limit)
    page_query, count_query = build_queries(params)

    total = session.exec(count_query).one()
    rows = session.exec(page_query.offset(offset).limit(limit)).all()

    files = [
        SearchFileRead.model_validate(file).model_copy(update={
            "category_name": category_name,
            "category_slug": category_slug,
            "purchase_count": int(count or 0),
        })
        for file, category_name, category_slug, count in rows
    ]

    return {
        "files": files,
        "pagination": pagination_meta(page=page, limit=limit, total=total),
        "filters": {
            "searchQuery": params.q,
            "category": params.category,
            "minPrice": params.min_price,
            "maxPrice": params.max_price,
            "isFree": params.is_free,
            "sortBy": params.sort_by,
        },
    }


def suggest_titles(session: Session, q: Optional[str]) -> List[str]:
    if not q or len(q) < 2:
        return []

    return list(session.exec(
        select(DigitalFile.title)
        .where(DigitalFile.title.ilike(like_pattern(q), escape=LIKE_ESCAPE))
        .distinct()
        .order_by(DigitalFile.title)
        .limit(10)
    ).all())
