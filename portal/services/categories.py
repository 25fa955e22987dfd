# portal/services/categories.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.exceptions import ConflictError, InvalidInputError, NotFoundError
from portal.models.article import Article, ArticleStatus
from portal.models.category import UNCATEGORIZED_NAME, UNCATEGORIZED_SLUG, Category
from portal.utils.text import slugify

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Category with this name already exists"


def _counts(published_only: bool):
    stmt = select(Article.category_id, func.count(Article.id).label("n")).group_by(Article.category_id)
    if published_only:
        stmt = stmt.where(Article.status == ArticleStatus.PUBLISHED)
    return stmt.subquery()


def list_categories(db: Session, *, published_only: bool = False) -> list[tuple[Category, int]]:
    """Categories by name with their article count."""
    counts = _counts(published_only)
    rows = db.execute(
        select(Category, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.category_id == Category.id)
        .order_by(Category.name.asc())
    ).all()
    return [(category, n) for category, n in rows]


def article_count(db: Session, category_id: int) -> int:
    return db.execute(
        select(func.count(Article.id)).where(Article.category_id == category_id)
    ).scalar_one()


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category")
    return category


def _clean(name: Optional[str], description: Optional[str]) -> tuple[str, str, Optional[str]]:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Category name is required")
    slug = slugify(name)
    if not slug:
        raise InvalidInputError("Could not generate a slug from the category name")
    return name, slug, (description or "").strip() or None


def _ensure_unique(db: Session, name: str, slug: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Category.id).where(or_(Category.name == name, Category.slug == slug))
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.execute(stmt.limit(1)).first():
        raise ConflictError(DUPLICATE_MESSAGE)


def _commit_unique(db: Session) -> None:
    # A concurrent insert can still win the race past _ensure_unique
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE) from e


def create_category(db: Session, name: Optional[str], description: Optional[str] = None) -> Category:
    name, slug, description = _clean(name, description)
    _ensure_unique(db, name, slug)

    category = Category(name=name, slug=slug, description=description)
    db.add(category)
    _commit_unique(db)
    db.refresh(category)
    logger.info("Category created: %s", slug)
    return category


def update_category(
    db: Session,
    category_id: int,
    name: Optional[str],
    description: Optional[str] = None,
) -> Category:
    name, slug, description = _clean(name, description)
    category = get_category(db, category_id)
    _ensure_unique(db, name, slug, exclude_id=category.id)

    category.name = name
    category.slug = slug
    category.description = description
    _commit_unique(db)
    db.refresh(category)
    return category


def get_or_create_uncategorized(db: Session) -> Category:
    sentinel = db.execute(
        select(Category).where(Category.slug == UNCATEGORIZED_SLUG)
    ).scalar_one_or_none()
    if sentinel:
        return sentinel

    sentinel = Category(
        name=UNCATEGORIZED_NAME,
        slug=UNCATEGORIZED_SLUG,
        description="Articles without a category",
    )
    db.add(sentinel)
    db.flush()
    logger.info("Created sentinel category %s", UNCATEGORIZED_SLUG)
    return sentinel


def delete_category(db: Session, category_id: int, force: bool = False) -> int:
    """
    Delete a category. Articles still using it block the delete unless
    `force`, in which case they move to "Uncategorized" first.

    Returns the number of articles moved.
    """
    category = get_category(db, category_id)
    count = article_count(db, category.id)

    if count and not force:
        raise InvalidInputError(
            f"Cannot delete category: {count} article(s) still use this category",
            extra={"articleCount": count, "canForceDelete": True},
        )

    moved = 0
    if count:
        if category.slug == UNCATEGORIZED_SLUG:
            raise InvalidInputError(
                "Cannot force-delete the Uncategorized category while it has articles",
                extra={"articleCount": count, "canForceDelete": False},
            )
        sentinel = get_or_create_uncategorized(db)
        result = db.execute(
            update(Article)
            .where(Article.category_id == category.id)
            .values(category_id=sentinel.id)
            .execution_options(synchronize_session=False)
        )
        moved = result.rowcount

    db.delete(category)
    db.commit()
    logger.info("Category %s deleted, %d article(s) moved", category.slug, moved)
    return moved
