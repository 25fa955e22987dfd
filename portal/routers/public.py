# portal/routers/public.py
"""Reader-facing endpoints. No session; published articles only."""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from portal import config
from portal.db.session import get_db
from portal.schemas import category_out, full, page_out, summaries, summary
from portal.services import categories as category_service
from portal.services import listing
from portal.services.listing import ArticleFilters
from portal.utils.text import parse_id_list, positive_int
from portal.utils.view_tracker import ViewedSlugs

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/articles")
def list_articles(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    filters = ArticleFilters.public(search=search, category=category or None)
    result = listing.list_articles(
        db, positive_int(page, 1), positive_int(limit, listing.PUBLIC_PAGE_SIZE), filters
    )
    return page_out(result)


@router.get("/articles/{slug}")
def article_detail(slug: str, request: Request, response: Response, db: Session = Depends(get_db)):
    viewed = ViewedSlugs.load(request.cookies.get(config.VIEW_COOKIE))
    article = listing.get_public_article(db, slug, viewed)

    if viewed.changed:
        response.set_cookie(
            config.VIEW_COOKIE,
            viewed.dumps(),
            max_age=config.VIEW_WINDOW_SECONDS,
            httponly=True,
            samesite="lax",
            secure=config.COOKIE_SECURE,
        )
    return {"article": full(article)}


@router.get("/articles/{slug}/related")
def related(slug: str, db: Session = Depends(get_db)):
    return {"articles": summaries(listing.related_articles(db, slug))}


@router.get("/categories")
def categories(db: Session = Depends(get_db)):
    rows = category_service.list_categories(db, published_only=True)
    return {"categories": [category_out(c, n) for c, n in rows]}


@router.get("/categories/{slug}/articles")
def category_articles(
    slug: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    exclude: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """?exclude=4,9 drops articles already shown elsewhere on the page."""
    filters = ArticleFilters.public(category=slug, exclude_ids=parse_id_list(exclude))
    result = listing.list_articles(
        db, positive_int(page, 1), positive_int(limit, listing.PUBLIC_PAGE_SIZE), filters
    )
    return page_out(result)


@router.get("/featured")
def featured(db: Session = Depends(get_db)):
    lead, grid = listing.featured_grid(db)
    return {"hero": summary(lead), "grid": summaries(grid)}


@router.get("/hero")
def hero(db: Session = Depends(get_db)):
    lead, side = listing.hero(db, side=listing.HERO_SIDE_COUNT)
    return {"featured": summary(lead), "sideArticles": summaries(side)}


@router.get("/search")
def search(
    q: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_n = positive_int(page, 1)
    limit_n = positive_int(limit, listing.PUBLIC_PAGE_SIZE)
    term = (q or "").strip()

    if not term:
        return {**page_out(listing.empty_page(page_n, limit_n)), "query": ""}

    result = listing.list_articles(db, page_n, limit_n, ArticleFilters.public(search=term))
    return {**page_out(result), "query": term}
