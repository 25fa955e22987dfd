# portal/schemas.py
from datetime import datetime
from typing import Optional

import markdown2
from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

from portal.models.article import ArticleStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,  # SQLAlchemy -> Pydantic
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CategoryRef(CamelModel):
    id: int
    name: str
    slug: str


class CategoryOut(CategoryRef):
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    article_count: int = 0


class ArticleSummary(CamelModel):
    """Listing payload: everything but the body."""

    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    cover_image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    author: str
    status: ArticleStatus
    is_featured: bool = False
    view_count: int = 0
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category_id: int
    category: Optional[CategoryRef] = None


class ArticleFull(ArticleSummary):
    content: str
    author_email: Optional[str] = None

    @computed_field
    @property
    def content_html(self) -> str:
        """Markdown body -> HTML (raw HTML passes through)."""
        if not self.content:
            return ""
        return markdown2.markdown(self.content, extras=["fenced-code-blocks", "tables", "strike", "smarty"])


class UserOut(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str


# ---- dict helpers used by the routers ----

def _dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def summary(article) -> Optional[dict]:
    if article is None:
        return None
    return _dump(ArticleSummary.model_validate(article))


def summaries(articles) -> list[dict]:
    return [summary(a) for a in articles]


def full(article) -> dict:
    return _dump(ArticleFull.model_validate(article))


def category_out(category, article_count: int = 0) -> dict:
    out = CategoryOut.model_validate(category)
    out.article_count = article_count
    return _dump(out)


def user_out(user) -> dict:
    return _dump(UserOut.model_validate(user))


def page_out(page) -> dict:
    """{"articles": [...], "pagination": {...}} for a listing.Page."""
    return {"articles": summaries(page.items), "pagination": page.pagination()}
