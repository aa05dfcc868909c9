"""ORM models. Importing this package registers every table on Base.metadata."""

from conduit.models.article import Article, ArticleTag, Favorite
from conduit.models.user import Follow, User

__all__ = ["Article", "ArticleTag", "Favorite", "Follow", "User"]
