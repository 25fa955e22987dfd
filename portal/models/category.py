# portal/models/category.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from sqlalchemy.orm import relationship

from portal.db.base import Base

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_SLUG = "uncategorized"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # No cascade: a category with articles must be emptied before deletion
    articles = relationship("Article", back_populates="category", passive_deletes="all")
