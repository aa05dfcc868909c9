"""
Conduit Articles Backend — Article Service
===========================================

What:  Business logic for article listing, feeds, CRUD and favorites.
How:   Each method looks up the facts it needs, asserts them through
       `article_check`, performs the write, and builds a response DTO
       personalized for the viewer.
Who:   Called by the article route handlers, one method per request.

Flow (DELETE /articles/{slug}):
    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────────┐
    │ find slug  │──▶│ is_exist     │──▶│ is_author    │──▶│ delete rows  │
    └────────────┘   └──────────────┘   └──────────────┘   └──────┬───────┘
                                                                  ▼
                                                      ┌───────────────────┐
                                                      │ is_deleted(still  │
                                                      │ exists?)          │
                                                      └───────────────────┘

Error handling:
    Check failures raise BadRequestError / ForbiddenError and propagate
    unchanged. A unique-constraint conflict on flush (a concurrent insert of
    the same slug or favorite) becomes the matching check failure. Other
    SQLAlchemy failures are logged and re-raised as DatabaseError
    so no SQL detail reaches the client. The session dependency rolls the
    transaction back in both cases.
"""

import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from conduit.exceptions import DatabaseError
from conduit.models import Article, ArticleTag, Favorite, Follow, User
from conduit.schemas.article import (
    ArticleBuildResponse,
    ArticleCreate,
    ArticleFeedResponse,
    ArticleQueryParams,
    ArticleResponse,
    ArticleUpdate,
    AuthorProfile,
)
from conduit.services.article_check import CheckResult, article_check

logger = logging.getLogger(__name__)


def slugify(title: str) -> str:
    """
    Derive a URL slug from an article title.

    >>> slugify("How to Train Your Dragon!")
    'how-to-train-your-dragon'
    >>> slugify("Привет мир")
    'привет-мир'
    """
    slug = re.sub(r"[^\w]+", "-", title.lower()).strip("-_")
    return slug or "article"


@contextmanager
def _conflict_as(failure: CheckResult, operation: str) -> Iterator[None]:
    """
    Turns a unique-constraint violation into the given check failure.

    A concurrent request can insert the same slug or favorite between the
    existence check and the flush; the loser then gets the same 400 as if
    the check had caught it.
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning("Constraint conflict during %s: %s", operation, str(e))
        failure.unwrap()
        raise


@contextmanager
def _database_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e


def _article_query() -> Select:
    return (
        select(Article)
        .options(selectinload(Article.author), selectinload(Article.tags))
        .execution_options(populate_existing=True)
    )


def _filters(params: ArticleQueryParams) -> List[Any]:
    clauses: List[Any] = []
    if params.tag:
        clauses.append(
            Article.id.in_(select(ArticleTag.article_id).where(ArticleTag.name == params.tag))
        )
    if params.author:
        clauses.append(
            Article.author_id.in_(select(User.id).where(User.username == params.author))
        )
    if params.favorited:
        clauses.append(
            Article.id.in_(
                select(Favorite.article_id)
                .join(User, User.id == Favorite.user_id)
                .where(User.username == params.favorited)
            )
        )
    return clauses


class ArticleService:
    """
    Business logic layer for article operations.

    Stateless: every method receives the request's AsyncSession and the
    viewer (the User resolved from the token, or None when anonymous).
    """

    # ══════════════════════════════════════════════════════════════════════
    # Listings
    # ══════════════════════════════════════════════════════════════════════

    async def list_articles(
        self,
        db: AsyncSession,
        params: ArticleQueryParams,
        viewer: Optional[User] = None,
    ) -> ArticleFeedResponse:
        """Global listing, newest first, filtered by tag / author / favorited."""
        with _database_errors("list_articles"):
            return await self._list(db, _filters(params), params, viewer)

    async def feed_articles(
        self,
        db: AsyncSession,
        params: ArticleQueryParams,
        viewer: User,
    ) -> ArticleFeedResponse:
        """Articles written by authors the viewer follows."""
        with _database_errors("feed_articles", user_id=str(viewer.id)):
            followed = select(Follow.followee_id).where(Follow.follower_id == viewer.id)
            clauses = _filters(params) + [Article.author_id.in_(followed)]
            return await self._list(db, clauses, params, viewer)

    async def _list(
        self,
        db: AsyncSession,
        clauses: List[Any],
        params: ArticleQueryParams,
        viewer: Optional[User],
    ) -> ArticleFeedResponse:
        page_query = _article_query()
        count_query = select(func.count(Article.id))
        for clause in clauses:
            page_query = page_query.where(clause)
            count_query = count_query.where(clause)

        page_query = (
            page_query.order_by(Article.created_at.desc(), Article.slug)
            .limit(params.limit)
            .offset(params.offset)
        )
        result = await db.execute(page_query)
        articles = list(result.scalars().all())

        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        return ArticleFeedResponse(
            articles=await self._build_many(db, articles, viewer),
            articles_count=total,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Single article CRUD
    # ══════════════════════════════════════════════════════════════════════

    async def get_article(
        self,
        db: AsyncSession,
        slug: str,
        viewer: Optional[User] = None,
    ) -> ArticleBuildResponse:
        """
        Fetch one article by slug.

        Raises:
            BadRequestError: No article with this slug.
        """
        with _database_errors("get_article", slug=slug):
            article = await self._find_article(db, slug)
            article_check.is_exist(article is not None).unwrap()
            return ArticleBuildResponse(article=await self._build_one(db, article, viewer))

    async def create_article(
        self,
        db: AsyncSession,
        payload: ArticleCreate,
        viewer: User,
    ) -> ArticleBuildResponse:
        """
        Publish a new article authored by the viewer.

        Raises:
            BadRequestError: The derived slug is already taken, or the row
                             could not be read back after insert.
        """
        with _database_errors("create_article", user_id=str(viewer.id)):
            slug = slugify(payload.title)
            article_check.is_not_exist(await self._slug_taken(db, slug)).unwrap()

            article = Article(
                slug=slug,
                title=payload.title,
                description=payload.description,
                body=payload.body,
                author=viewer,
                tags=[ArticleTag(name=name) for name in payload.tag_list],
            )
            db.add(article)
            with _conflict_as(article_check.is_not_exist(True), "create_article"):
                await db.flush()

            article_check.is_created(await self._slug_taken(db, slug)).unwrap()
            logger.info("Article created: %s by %s", slug, viewer.username)

            created = await self._find_article(db, slug)
            return ArticleBuildResponse(article=await self._build_one(db, created, viewer))

    async def update_article(
        self,
        db: AsyncSession,
        slug: str,
        payload: ArticleUpdate,
        viewer: User,
    ) -> ArticleBuildResponse:
        """
        Apply a partial update. A changed title regenerates the slug.

        Raises:
            BadRequestError: Unknown slug, new slug already taken, or the
                             update could not be read back.
            ForbiddenError:  The viewer is not the author.
        """
        with _database_errors("update_article", slug=slug):
            article = await self._find_article(db, slug)
            article_check.is_exist(article is not None).unwrap()
            article_check.is_author(article.author_id == viewer.id).unwrap()

            if payload.title is not None and payload.title != article.title:
                new_slug = slugify(payload.title)
                if new_slug != article.slug:
                    taken = await self._slug_taken(db, new_slug, exclude_id=article.id)
                    article_check.is_not_exist(taken).unwrap()
                    article.slug = new_slug
                article.title = payload.title
            if payload.description is not None:
                article.description = payload.description
            if payload.body is not None:
                article.body = payload.body
            if payload.tag_list is not None:
                article.tags = [ArticleTag(name=name) for name in payload.tag_list]
            article.updated_at = datetime.now(timezone.utc)

            with _conflict_as(article_check.is_not_exist(True), "update_article"):
                await db.flush()
            article_check.is_updated(await self._slug_taken(db, article.slug)).unwrap()
            logger.info("Article updated: %s -> %s", slug, article.slug)

            updated = await self._find_article(db, article.slug)
            return ArticleBuildResponse(article=await self._build_one(db, updated, viewer))

    async def delete_article(
        self,
        db: AsyncSession,
        slug: str,
        viewer: User,
    ) -> None:
        """
        Delete an article with its tags and favorites.

        Raises:
            BadRequestError: Unknown slug, or the article still exists afterwards.
            ForbiddenError:  The viewer is not the author.
        """
        with _database_errors("delete_article", slug=slug):
            article = await self._find_article(db, slug)
            article_check.is_exist(article is not None).unwrap()
            article_check.is_author(article.author_id == viewer.id).unwrap()

            article_id = article.id
            for statement in (
                delete(Favorite).where(Favorite.article_id == article_id),
                delete(ArticleTag).where(ArticleTag.article_id == article_id),
                delete(Article).where(Article.id == article_id),
            ):
                await db.execute(statement.execution_options(synchronize_session=False))
            db.expunge(article)

            article_check.is_deleted(await self._slug_taken(db, slug)).unwrap()
            logger.info("Article deleted: %s by %s", slug, viewer.username)

    # ══════════════════════════════════════════════════════════════════════
    # Favorites
    # ══════════════════════════════════════════════════════════════════════

    async def favorite_article(
        self,
        db: AsyncSession,
        slug: str,
        viewer: User,
    ) -> ArticleBuildResponse:
        """
        Add the article to the viewer's favorites.

        Raises:
            BadRequestError: Unknown slug, or already favorited.
        """
        with _database_errors("favorite_article", slug=slug):
            article = await self._find_article(db, slug)
            article_check.is_exist(article is not None).unwrap()
            already = await self._is_favorited(db, viewer.id, article.id)
            article_check.is_in_favorites(already).unwrap()

            db.add(Favorite(user_id=viewer.id, article_id=article.id))
            with _conflict_as(article_check.is_in_favorites(True), "favorite_article"):
                await db.flush()
            logger.info("Article favorited: %s by %s", slug, viewer.username)

            return ArticleBuildResponse(article=await self._build_one(db, article, viewer))

    async def unfavorite_article(
        self,
        db: AsyncSession,
        slug: str,
        viewer: User,
    ) -> ArticleBuildResponse:
        """
        Remove the article from the viewer's favorites.

        Raises:
            BadRequestError: Unknown slug, or not currently favorited.
        """
        with _database_errors("unfavorite_article", slug=slug):
            article = await self._find_article(db, slug)
            article_check.is_exist(article is not None).unwrap()
            already = await self._is_favorited(db, viewer.id, article.id)
            article_check.is_not_in_favorites(already).unwrap()

            await db.execute(
                delete(Favorite)
                .where(Favorite.user_id == viewer.id, Favorite.article_id == article.id)
                .execution_options(synchronize_session=False)
            )
            logger.info("Article unfavorited: %s by %s", slug, viewer.username)

            return ArticleBuildResponse(article=await self._build_one(db, article, viewer))

    # ══════════════════════════════════════════════════════════════════════
    # Lookups
    # ══════════════════════════════════════════════════════════════════════

    async def _find_article(self, db: AsyncSession, slug: str) -> Optional[Article]:
        result = await db.execute(_article_query().where(Article.slug == slug))
        return result.scalar_one_or_none()

    async def _slug_taken(
        self,
        db: AsyncSession,
        slug: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        query = select(Article.id).where(Article.slug == slug)
        if exclude_id is not None:
            query = query.where(Article.id != exclude_id)
        result = await db.execute(query)
        return result.scalar_one_or_none() is not None

    async def _is_favorited(self, db: AsyncSession, user_id: UUID, article_id: UUID) -> bool:
        result = await db.execute(
            select(Favorite.article_id).where(
                Favorite.user_id == user_id,
                Favorite.article_id == article_id,
            )
        )
        return result.scalar_one_or_none() is not None

    # ══════════════════════════════════════════════════════════════════════
    # Response building
    # ══════════════════════════════════════════════════════════════════════

    async def _build_one(
        self,
        db: AsyncSession,
        article: Article,
        viewer: Optional[User],
    ) -> ArticleResponse:
        built = await self._build_many(db, [article], viewer)
        return built[0]

    async def _build_many(
        self,
        db: AsyncSession,
        articles: Sequence[Article],
        viewer: Optional[User],
    ) -> List[ArticleResponse]:
        """Personalizes a page of articles with three batched queries at most."""
        if not articles:
            return []

        article_ids = [a.id for a in articles]
        counts: Dict[UUID, int] = {}
        count_rows = await db.execute(
            select(Favorite.article_id, func.count())
            .where(Favorite.article_id.in_(article_ids))
            .group_by(Favorite.article_id)
        )
        for article_id, count in count_rows.all():
            counts[article_id] = count

        favorited: Set[UUID] = set()
        following: Set[UUID] = set()
        if viewer is not None:
            fav_rows = await db.execute(
                select(Favorite.article_id).where(
                    Favorite.user_id == viewer.id,
                    Favorite.article_id.in_(article_ids),
                )
            )
            favorited = set(fav_rows.scalars().all())

            author_ids = {a.author_id for a in articles}
            follow_rows = await db.execute(
                select(Follow.followee_id).where(
                    Follow.follower_id == viewer.id,
                    Follow.followee_id.in_(author_ids),
                )
            )
            following = set(follow_rows.scalars().all())

        return [
            ArticleResponse(
                slug=a.slug,
                title=a.title,
                description=a.description,
                body=a.body,
                tag_list=a.tag_list,
                created_at=a.created_at,
                updated_at=a.updated_at,
                favorited=a.id in favorited,
                favorites_count=counts.get(a.id, 0),
                author=AuthorProfile(
                    username=a.author.username,
                    bio=a.author.bio,
                    image=a.author.image,
                    following=a.author_id in following,
                ),
            )
            for a in articles
        ]


article_service = ArticleService()
