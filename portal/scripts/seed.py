# portal/scripts/seed.py
"""
Seed an empty database: admin user, default categories, sample articles.

    python -m portal.scripts.seed

Safe to re-run; existing rows (matched by email/slug) are left alone.
"""
import logging
import os
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

import portal.models  # noqa: F401  (registers tables on Base.metadata)
from portal.db.base import Base
from portal.db.session import SessionLocal, engine
from portal.logging_config import setup_logging
from portal.models.article import Article, ArticleStatus
from portal.models.category import UNCATEGORIZED_NAME, Category
from portal.models.user import User
from portal.utils.security import hash_password
from portal.utils.text import slugify

logger = logging.getLogger(__name__)

ADMIN_EMAIL = (os.getenv("SEED_ADMIN_EMAIL") or "admin@portal.dev").strip().lower()
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD") or "admin123"

CATEGORIES = ("Technology", "Business", "Lifestyle", UNCATEGORIZED_NAME)

ARTICLES = (
    {
        "title": "Getting Started with Web Development",
        "excerpt": "Learn the basics of web development with this beginner-friendly guide.",
        "content": "This is a comprehensive guide to getting started with web development...",
        "category": "technology",
        "status": ArticleStatus.PUBLISHED,
    },
    {
        "title": "Understanding Modern Business Strategies",
        "excerpt": "Explore modern business strategies for the digital economy.",
        "content": "Business strategies have evolved significantly in the digital age...",
        "category": "business",
        "status": ArticleStatus.PUBLISHED,
    },
    {
        "title": "Healthy Living Tips for Busy Professionals",
        "excerpt": "Tips and tricks for staying healthy with a busy schedule.",
        "content": "Maintaining a healthy lifestyle while managing a busy career...",
        "category": "lifestyle",
        "status": ArticleStatus.PUBLISHED,
    },
    {
        "title": "Draft: Upcoming Features",
        "excerpt": "A sneak peek at what is coming next.",
        "content": "This article is still being written.",
        "category": "technology",
        "status": ArticleStatus.DRAFT,
    },
)


def seed(db: Session) -> dict:
    if not db.execute(select(User).where(User.email == ADMIN_EMAIL)).scalar_one_or_none():
        db.add(User(email=ADMIN_EMAIL, name="Admin", password_hash=hash_password(ADMIN_PASSWORD), role="admin"))
        logger.info("Admin user created: %s", ADMIN_EMAIL)

    by_slug = {}
    for name in CATEGORIES:
        slug = slugify(name)
        category = db.execute(select(Category).where(Category.slug == slug)).scalar_one_or_none()
        if not category:
            category = Category(name=name, slug=slug)
            db.add(category)
            db.flush()
            logger.info("Category created: %s", slug)
        by_slug[slug] = category

    now = datetime.now(timezone.utc)
    for item in ARTICLES:
        slug = slugify(item["title"])
        if db.execute(select(Article.id).where(Article.slug == slug)).first():
            logger.info("Skipping (exists): %s", slug)
            continue
        db.add(
            Article(
                title=item["title"],
                slug=slug,
                excerpt=item["excerpt"],
                content=item["content"],
                author="Admin",
                status=item["status"],
                published_at=now if item["status"] == ArticleStatus.PUBLISHED else None,
                category_id=by_slug[item["category"]].id,
            )
        )
        logger.info("Article created: %s", slug)

    db.commit()

    counts = {
        "users": db.execute(select(func.count(User.id))).scalar_one(),
        "categories": db.execute(select(func.count(Category.id))).scalar_one(),
        "articles": db.execute(select(func.count(Article.id))).scalar_one(),
    }
    logger.info("Seed complete: %s", counts)
    return counts


def main() -> None:
    setup_logging()
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed(db)


if __name__ == "__main__":
    main()
