# portal/models/article.py
import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.orm import relationship

from portal.db.base import Base


class ArticleStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(200), unique=True, index=True, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)

    cover_image_url = Column(String(1024), nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)

    author = Column(String(200), nullable=False, default="Redaksi")
    author_email = Column(String(255), nullable=True)

    status = Column(
        Enum(ArticleStatus, name="article_status"),
        nullable=False,
        default=ArticleStatus.DRAFT,
        index=True,
    )
    # At most one row is true; enforced by services.articles.set_featured
    is_featured = Column(Boolean, nullable=False, default=False, server_default=false())
    view_count = Column(Integer, nullable=False, default=0, server_default="0")

    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    category = relationship("Category", back_populates="articles", lazy="joined")

    __table_args__ = (
        Index("ix_articles_status_published_at", "status", "published_at"),
    )
