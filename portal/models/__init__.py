# Import every model so Base.metadata sees all tables (Alembic, create_all)
from portal.models.article import Article, ArticleStatus  # noqa: F401
from portal.models.category import Category  # noqa: F401
from portal.models.user import User  # noqa: F401
