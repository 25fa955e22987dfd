# portal/routers/articles.py
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from portal.db.session import get_db
from portal.exceptions import InvalidInputError
from portal.models.article import ArticleStatus
from portal.schemas import full, page_out
from portal.services import articles as article_service
from portal.services.listing import (
    ADMIN_PAGE_SIZE,
    ADMIN_SEARCH_FIELDS,
    COVER_FILTERS,
    ArticleFilters,
    get_article,
    list_articles,
)
from portal.services.storage import ObjectStore, get_optional_storage
from portal.utils.authz import require_admin
from portal.utils.text import positive_int

router = APIRouter(
    prefix="/api/articles",
    tags=["admin-articles"],
    dependencies=[Depends(require_admin)],
)


def _status_or_none(v: Optional[str]) -> Optional[ArticleStatus]:
    if not v or v.strip().lower() == "all":
        return None
    try:
        return ArticleStatus(v.strip().upper())
    except ValueError:
        raise InvalidInputError(f"Unknown status '{v}'") from None


@router.get("")
def admin_list(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    filter: Optional[str] = "all",
    search: Optional[str] = "",
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    cover = filter if filter in COVER_FILTERS else "all"
    filters = ArticleFilters(
        search=search,
        search_fields=ADMIN_SEARCH_FIELDS,
        status=_status_or_none(status),
        cover=cover,
    )
    result = list_articles(db, positive_int(page, 1), positive_int(limit, ADMIN_PAGE_SIZE), filters)
    return page_out(result)


# Declared before /{article_id} so "stats" is not parsed as an id
@router.get("/stats/summary")
def stats(db: Session = Depends(get_db)):
    return article_service.stats_summary(db)


@router.get("/{article_id}")
def admin_detail(article_id: int, db: Session = Depends(get_db)):
    return {"article": full(get_article(db, article_id))}


@router.patch("/{article_id}/category")
def update_category(article_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"categoryId": 3}"""
    article = article_service.change_category(db, article_id, (payload or {}).get("categoryId"))
    return {"success": True, "article": full(article)}


@router.post("/{article_id}/cover")
def update_cover(
    article_id: int,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    storage: Optional[ObjectStore] = Depends(get_optional_storage),
):
    """Body: {"coverImageUrl": "...", "thumbnailUrl": "..."} (from /api/upload/image)"""
    payload = payload or {}
    article = article_service.set_cover(
        db,
        article_id,
        payload.get("coverImageUrl"),
        payload.get("thumbnailUrl"),
        storage=storage,
    )
    return {"success": True, "article": full(article)}


@router.delete("/{article_id}/cover")
def delete_cover(
    article_id: int,
    db: Session = Depends(get_db),
    storage: Optional[ObjectStore] = Depends(get_optional_storage),
):
    article = article_service.set_cover(db, article_id, None, None, storage=storage)
    return {"success": True, "article": full(article)}


@router.patch("/{article_id}/featured")
def update_featured(article_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"isFeatured": true}"""
    article = article_service.set_featured(db, article_id, (payload or {}).get("isFeatured"))
    return {"success": True, "article": full(article)}


@router.delete("/{article_id}")
def delete_article(
    article_id: int,
    db: Session = Depends(get_db),
    storage: Optional[ObjectStore] = Depends(get_optional_storage),
):
    article_service.delete_article(db, article_id, storage=storage)
    return {"success": True}
