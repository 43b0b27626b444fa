from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from filemarket.database import get_session
from filemarket.services.search_service import (
    POPULAR_SEARCHES,
    SearchParams,
    search_files,
    suggest_titles,
)
from filemarket.utils.responses import success

router = APIRouter()

SortKey = Literal["relevance", "newest", "oldest", "price_low", "price_high", "popular"]


@router.get("")
def search(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    is_free: Optional[bool] = None,
    sort_by: SortKey = "relevance",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    params = SearchParams(
        q=q.strip() if q and q.strip() else None,
        category=category,
        min_price=min_price,
        max_price=max_price,
        is_free=is_free,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    return success(search_files(session, params))


@router.get("/suggestions")
def suggestions(q: Optional[str] = None, session: Session = Depends(get_session)):
    return success(suggest_titles(session, q))


@router.get("/popular")
def popular_searches():
    return success(POPULAR_SEARCHES)
