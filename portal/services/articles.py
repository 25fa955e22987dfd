# portal/services/articles.py
"""Admin-side article mutations that change what later listings return."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.orm import Session

from portal.exceptions import InvalidInputError, NotFoundError
from portal.models.article import Article
from portal.models.category import Category
from portal.services.listing import get_article
from portal.services.storage import ObjectStore
from portal.utils.text import to_int_or_none

logger = logging.getLogger(__name__)


def stats_summary(db: Session) -> dict:
    total, with_cover = db.execute(
        select(func.count(Article.id), func.count(Article.cover_image_url))
    ).one()
    return {
        "total": total,
        "withCover": with_cover,
        "withoutCover": total - with_cover,
        "coverPercentage": round(with_cover / total * 100) if total else 0,
    }


def change_category(db: Session, article_id: int, category_id) -> Article:
    if category_id in (None, ""):
        raise InvalidInputError("categoryId is required")

    cid = to_int_or_none(category_id)
    category = db.get(Category, cid) if cid is not None else None
    if not category:
        raise NotFoundError("Category")

    article = get_article(db, article_id)
    article.category_id = category.id
    db.commit()
    db.refresh(article)
    logger.info("Article %s moved to category %s", article.id, category.slug)
    return article


def set_cover(
    db: Session,
    article_id: int,
    cover_url: Optional[str],
    thumbnail_url: Optional[str],
    storage: Optional[ObjectStore] = None,
) -> Article:
    """
    Point the article at a new cover pair (None clears it). The previous
    objects are removed from storage once the row is committed.
    """
    article = get_article(db, article_id)
    old = (article.cover_image_url, article.thumbnail_url)

    article.cover_image_url = cover_url or None
    article.thumbnail_url = thumbnail_url or None
    db.commit()
    db.refresh(article)

    stale = [url for url in old if url and url not in (article.cover_image_url, article.thumbnail_url)]
    if stale and storage is not None:
        storage.discard_urls(*stale)
    return article


def set_featured(db: Session, article_id: int, featured: bool) -> Article:
    """
    Setting the flag clears it everywhere else in the same UPDATE, so no
    reader ever sees two featured articles (or none, mid-switch).
    """
    if not isinstance(featured, bool):
        raise InvalidInputError("isFeatured must be a boolean")

    article = get_article(db, article_id)

    if featured:
        stmt = (
            update(Article)
            .where(or_(Article.is_featured.is_(True), Article.id == article.id))
            .values(is_featured=case((Article.id == article.id, True), else_=False))
        )
    else:
        stmt = update(Article).where(Article.id == article.id).values(is_featured=False)

    db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    db.refresh(article)
    logger.info("Article %s featured=%s", article.id, featured)
    return article


def delete_article(db: Session, article_id: int, storage: Optional[ObjectStore] = None) -> None:
    article = get_article(db, article_id)
    urls = (article.cover_image_url, article.thumbnail_url)

    result = db.execute(
        delete(Article)
        .where(Article.id == article.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Article")
    db.commit()
    logger.info("Article %s deleted", article_id)

    if storage is not None:
        storage.discard_urls(*urls)
