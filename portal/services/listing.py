# portal/services/listing.py
"""
Article listing/query engine shared by the admin and public APIs.

Every paginated listing goes through `list_articles`: filters (including id
exclusions) are applied in the WHERE clause of both the page query and the
count query, so `total` and the slice boundaries always describe the same
set.

Ordering is `published_at DESC NULLS LAST, id DESC`. The id tie-breaker makes
the order total, so two pages of the same query never overlap or skip rows
that share a publish timestamp.

The page and count reads run in the same session but without snapshot
isolation; a write landing between them can make `total` disagree with the
items by that one write.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from portal.exceptions import NotFoundError
from portal.models.article import Article, ArticleStatus
from portal.models.category import Category
from portal.utils.view_tracker import ViewedSlugs

logger = logging.getLogger(__name__)

PUBLIC_PAGE_SIZE = 12
ADMIN_PAGE_SIZE = 20
RELATED_LIMIT = 4
HERO_SIDE_COUNT = 2
FEATURED_GRID_SIZE = 6

# Admin search stays on the short fields; public search also scans the body.
ADMIN_SEARCH_FIELDS = ("title", "excerpt")
PUBLIC_SEARCH_FIELDS = ("title", "excerpt", "content")

COVER_FILTERS = ("all", "with-cover", "without-cover")


@dataclass
class ArticleFilters:
    search: Optional[str] = None
    search_fields: Sequence[str] = ADMIN_SEARCH_FIELDS
    category: Optional[str] = None
    status: Optional[ArticleStatus] = None
    exclude_ids: Sequence[int] = field(default_factory=tuple)
    cover: str = "all"

    @classmethod
    def public(cls, **kwargs) -> "ArticleFilters":
        """Reader-facing listing: published only, full-text search scope."""
        kwargs.setdefault("search_fields", PUBLIC_SEARCH_FIELDS)
        kwargs["status"] = ArticleStatus.PUBLISHED
        return cls(**kwargs)

    def conditions(self) -> list:
        where = []

        term = (self.search or "").strip()
        if term:
            columns = [getattr(Article, name) for name in self.search_fields]
            where.append(
                or_(*(col.icontains(term, autoescape=True) for col in columns))
            )

        if self.category:
            where.append(Article.category.has(Category.slug == self.category))

        if self.status is not None:
            where.append(Article.status == self.status)

        if self.exclude_ids:
            where.append(Article.id.not_in(list(self.exclude_ids)))

        if self.cover == "with-cover":
            where.append(Article.cover_image_url.is_not(None))
        elif self.cover == "without-cover":
            where.append(Article.cover_image_url.is_(None))

        return where


@dataclass
class Page:
    items: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def newest_first(stmt):
    return stmt.order_by(Article.published_at.desc().nulls_last(), Article.id.desc())


def list_articles(db: Session, page: int, limit: int, filters: ArticleFilters) -> Page:
    page = max(int(page), 1)
    limit = max(int(limit), 1)
    skip = (page - 1) * limit
    where = filters.conditions()

    total = db.execute(
        select(func.count()).select_from(Article).where(*where)
    ).scalar_one()

    # Past the last page; also keeps huge offsets away from the driver
    if skip >= total:
        return Page(items=[], total=total, page=page, limit=limit)

    stmt = newest_first(select(Article).where(*where)).offset(skip).limit(min(limit, total - skip))
    items = list(db.execute(stmt).scalars())
    return Page(items=items, total=total, page=page, limit=limit)


def empty_page(page: int, limit: int) -> Page:
    return Page(items=[], total=0, page=page, limit=limit)


def get_article(db: Session, article_id: int) -> Article:
    article = db.get(Article, article_id)
    if not article:
        raise NotFoundError("Article")
    return article


def get_by_slug(db: Session, slug: str) -> Optional[Article]:
    return db.execute(select(Article).where(Article.slug == slug)).scalar_one_or_none()


def get_public_article(db: Session, slug: str, viewed: ViewedSlugs) -> Article:
    """
    Published article by slug. The first view inside the de-dup window bumps
    view_count by one; the returned row is re-read after the update so the
    response carries the stored value.
    """
    article = get_by_slug(db, slug)
    if not article or article.status != ArticleStatus.PUBLISHED:
        raise NotFoundError("Article")

    if not viewed.seen(slug):
        db.execute(
            update(Article)
            .where(Article.id == article.id)
            .values(view_count=Article.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(article)
        viewed.mark(slug)
        logger.debug("View counted for %s (now %s)", slug, article.view_count)

    return article


def related_articles(db: Session, slug: str, limit: int = RELATED_LIMIT) -> list[Article]:
    article = get_by_slug(db, slug)
    if not article:
        raise NotFoundError("Article")

    stmt = newest_first(
        select(Article).where(
            Article.status == ArticleStatus.PUBLISHED,
            Article.category_id == article.category_id,
            Article.id != article.id,
        )
    ).limit(limit)
    return list(db.execute(stmt).scalars())


def lead_article(db: Session) -> Optional[Article]:
    """Featured published article, else the newest published one."""
    published = Article.status == ArticleStatus.PUBLISHED

    featured = db.execute(
        newest_first(select(Article).where(published, Article.is_featured.is_(True))).limit(1)
    ).scalar_one_or_none()
    if featured:
        return featured

    return db.execute(newest_first(select(Article).where(published)).limit(1)).scalar_one_or_none()


def hero(db: Session, side: int = HERO_SIDE_COUNT) -> tuple[Optional[Article], list[Article]]:
    """Lead article plus the `side` newest published articles other than it."""
    lead = lead_article(db)
    exclude = (lead.id,) if lead else ()
    rest = list_articles(db, 1, side, ArticleFilters.public(exclude_ids=exclude))
    return lead, rest.items


def featured_grid(db: Session, size: int = FEATURED_GRID_SIZE) -> tuple[Optional[Article], list[Article]]:
    """Same lead as `hero`, with a larger grid of the newest others."""
    return hero(db, side=size)
