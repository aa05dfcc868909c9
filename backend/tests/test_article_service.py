"""
Conduit Articles Backend — Article Service Unit Tests
======================================================

What:  ArticleService against a real (in-memory SQLite) session, plus mock
       sessions for the error-translation paths.

What we test:
    ✅ create → slug derivation, tags, duplicate slug rejected
    ✅ update → author only, slug regenerated on title change
    ✅ delete → author only, tags and favorites removed
    ✅ favorites → add, duplicate rejected, remove, remove-missing rejected
    ✅ listings → filters, pagination count, feed scoped to followed authors
    ✅ missing slug and SQLAlchemy failures via mock sessions
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from unittest.mock import AsyncMock, MagicMock

from conduit.exceptions import BadRequestError, DatabaseError, ForbiddenError
from conduit.models import ArticleTag, Favorite, User
from conduit.schemas.article import ArticleCreate, ArticleQueryParams, ArticleUpdate
from conduit.services.article_service import ArticleService, slugify


async def _load(db_session, user: User) -> User:
    return await db_session.get(User, user.id)


class TestSlugify:

    def test_lowercases_and_joins_words(self):
        assert slugify("How to Train Your Dragon!") == "how-to-train-your-dragon"

    def test_collapses_punctuation_runs(self):
        assert slugify("  Python -- 3.12: what's new?  ") == "python-3-12-what-s-new"

    def test_symbol_only_title_gets_fallback(self):
        assert slugify("!!!") == "article"

    def test_keeps_non_ascii_letters(self):
        assert slugify("Привет мир") == "привет-мир"
        assert slugify("Новая статья!") == "новая-статья"
        assert slugify("Café au lait") == "café-au-lait"


class TestCreateAndUpdate:

    def setup_method(self):
        self.service = ArticleService()

    @pytest.mark.asyncio
    async def test_create_article(self, db_session, users):
        alice = await _load(db_session, users["alice"])

        result = await self.service.create_article(
            db_session,
            ArticleCreate(title="Hello World", description="d", body="b", tag_list=["intro", "python"]),
            alice,
        )

        assert result.article.slug == "hello-world"
        assert result.article.tag_list == ["intro", "python"]
        assert result.article.author.username == "alice"
        assert result.article.favorited is False
        assert result.article.favorites_count == 0

    @pytest.mark.asyncio
    async def test_create_duplicate_slug_rejected(self, db_session, users, create_article):
        await create_article(users["bob"], "Hello World")
        alice = await _load(db_session, users["alice"])

        with pytest.raises(BadRequestError, match="Article with this slug already exist"):
            await self.service.create_article(
                db_session,
                ArticleCreate(title="hello world", description="d", body="b"),
                alice,
            )

    @pytest.mark.asyncio
    async def test_update_regenerates_slug(self, db_session, users, create_article):
        await create_article(users["alice"], "Old Title", tags=["a"])
        alice = await _load(db_session, users["alice"])

        result = await self.service.update_article(
            db_session,
            "old-title",
            ArticleUpdate(title="New Title", tag_list=["b", "c"]),
            alice,
        )

        assert result.article.slug == "new-title"
        assert result.article.title == "New Title"
        assert result.article.description == "About Old Title"
        assert result.article.tag_list == ["b", "c"]

    @pytest.mark.asyncio
    async def test_update_by_non_author_forbidden(self, db_session, users, create_article):
        await create_article(users["alice"], "Mine")
        bob = await _load(db_session, users["bob"])

        with pytest.raises(ForbiddenError, match="You are not the author of this article"):
            await self.service.update_article(db_session, "mine", ArticleUpdate(body="x"), bob)

    @pytest.mark.asyncio
    async def test_update_into_taken_slug_rejected(self, db_session, users, create_article):
        await create_article(users["alice"], "First")
        await create_article(users["alice"], "Second")
        alice = await _load(db_session, users["alice"])

        with pytest.raises(BadRequestError, match="already exist"):
            await self.service.update_article(db_session, "second", ArticleUpdate(title="First"), alice)

    @pytest.mark.asyncio
    async def test_create_two_cyrillic_titles(self, db_session, users):
        alice = await _load(db_session, users["alice"])

        first = await self.service.create_article(
            db_session, ArticleCreate(title="Привет мир", description="d", body="b"), alice
        )
        second = await self.service.create_article(
            db_session, ArticleCreate(title="Новая статья", description="d", body="b"), alice
        )

        assert first.article.slug == "привет-мир"
        assert second.article.slug == "новая-статья"

    @pytest.mark.asyncio
    async def test_create_slug_conflict_at_insert_is_bad_request(self, db_session, users, create_article):
        # Another request inserted the slug after the existence check ran.
        await create_article(users["bob"], "Hello World")
        alice = await _load(db_session, users["alice"])
        self.service._slug_taken = AsyncMock(return_value=False)

        with pytest.raises(BadRequestError, match="Article with this slug already exist"):
            await self.service.create_article(
                db_session, ArticleCreate(title="Hello World", description="d", body="b"), alice
            )

    @pytest.mark.asyncio
    async def test_update_slug_conflict_at_flush_is_bad_request(self, db_session, users, create_article):
        await create_article(users["alice"], "First")
        await create_article(users["alice"], "Second")
        alice = await _load(db_session, users["alice"])
        self.service._slug_taken = AsyncMock(return_value=False)

        with pytest.raises(BadRequestError, match="Article with this slug already exist"):
            await self.service.update_article(db_session, "second", ArticleUpdate(title="First"), alice)


class TestDelete:

    def setup_method(self):
        self.service = ArticleService()

    @pytest.mark.asyncio
    async def test_delete_removes_tags_and_favorites(self, db_session, users, create_article):
        article = await create_article(
            users["alice"], "Doomed", tags=["x", "y"], favorited_by=[users["bob"]]
        )
        alice = await _load(db_session, users["alice"])

        await self.service.delete_article(db_session, "doomed", alice)

        tags = await db_session.execute(
            select(func.count(ArticleTag.id)).where(ArticleTag.article_id == article.id)
        )
        favorites = await db_session.execute(
            select(func.count()).select_from(Favorite).where(Favorite.article_id == article.id)
        )
        assert tags.scalar() == 0
        assert favorites.scalar() == 0
        with pytest.raises(BadRequestError, match="not found"):
            await self.service.get_article(db_session, "doomed")

    @pytest.mark.asyncio
    async def test_delete_by_non_author_keeps_article(self, db_session, users, create_article):
        await create_article(users["alice"], "Kept")
        bob = await _load(db_session, users["bob"])

        with pytest.raises(ForbiddenError):
            await self.service.delete_article(db_session, "kept", bob)

        result = await self.service.get_article(db_session, "kept")
        assert result.article.slug == "kept"


class TestFavorites:

    def setup_method(self):
        self.service = ArticleService()

    @pytest.mark.asyncio
    async def test_favorite_then_unfavorite(self, db_session, users, create_article):
        await create_article(users["alice"], "Liked")
        bob = await _load(db_session, users["bob"])

        added = await self.service.favorite_article(db_session, "liked", bob)
        assert added.article.favorited is True
        assert added.article.favorites_count == 1

        removed = await self.service.unfavorite_article(db_session, "liked", bob)
        assert removed.article.favorited is False
        assert removed.article.favorites_count == 0

    @pytest.mark.asyncio
    async def test_favorite_twice_rejected(self, db_session, users, create_article):
        await create_article(users["alice"], "Liked", favorited_by=[users["bob"]])
        bob = await _load(db_session, users["bob"])

        with pytest.raises(BadRequestError, match="This article is already in favorites"):
            await self.service.favorite_article(db_session, "liked", bob)

    @pytest.mark.asyncio
    async def test_favorite_conflict_at_insert_is_bad_request(self, db_session, users, create_article):
        # The favorite row lands between the lookup and the flush.
        await create_article(users["alice"], "Liked", favorited_by=[users["bob"]])
        bob = await _load(db_session, users["bob"])
        self.service._is_favorited = AsyncMock(return_value=False)

        with pytest.raises(BadRequestError, match="This article is already in favorites"):
            await self.service.favorite_article(db_session, "liked", bob)

    @pytest.mark.asyncio
    async def test_unfavorite_when_not_favorited_rejected(self, db_session, users, create_article):
        await create_article(users["alice"], "Meh")
        bob = await _load(db_session, users["bob"])

        with pytest.raises(BadRequestError, match="This article is not in favorites"):
            await self.service.unfavorite_article(db_session, "meh", bob)


class TestListings:

    def setup_method(self):
        self.service = ArticleService()

    @pytest.mark.asyncio
    async def test_list_newest_first_with_total_count(self, db_session, users, create_article):
        for title in ("One", "Two", "Three"):
            await create_article(users["alice"], title)

        result = await self.service.list_articles(db_session, ArticleQueryParams(limit=2, offset=0))

        assert [a.slug for a in result.articles] == ["three", "two"]
        assert result.articles_count == 3

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session, users, create_article):
        await create_article(users["alice"], "Tagged", tags=["python"])
        await create_article(users["bob"], "By Bob", favorited_by=[users["carol"]])
        await create_article(users["carol"], "Other")

        by_tag = await self.service.list_articles(db_session, ArticleQueryParams(tag="python"))
        by_author = await self.service.list_articles(db_session, ArticleQueryParams(author="bob"))
        by_fav = await self.service.list_articles(db_session, ArticleQueryParams(favorited="carol"))

        assert [a.slug for a in by_tag.articles] == ["tagged"]
        assert [a.slug for a in by_author.articles] == ["by-bob"]
        assert [a.slug for a in by_fav.articles] == ["by-bob"]
        assert by_fav.articles[0].favorites_count == 1

    @pytest.mark.asyncio
    async def test_feed_only_followed_authors(self, db_session, users, create_article):
        await create_article(users["bob"], "Followed")
        await create_article(users["carol"], "Not Followed")
        alice = await _load(db_session, users["alice"])

        result = await self.service.feed_articles(db_session, ArticleQueryParams(), alice)

        assert [a.slug for a in result.articles] == ["followed"]
        assert result.articles_count == 1
        assert result.articles[0].author.following is True


class TestErrorPaths:
    """Mock-session tests: no database involved."""

    def setup_method(self):
        self.service = ArticleService()

    @pytest.mark.asyncio
    async def test_get_missing_slug(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(BadRequestError) as exc_info:
            await self.service.get_article(mock_db_session, "nope")
        assert exc_info.value.message == "Article with this slug not found"

    @pytest.mark.asyncio
    async def test_sqlalchemy_failure_becomes_database_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=SQLAlchemyError("connection lost"))

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.get_article(mock_db_session, "any")
        assert exc_info.value.context["operation"] == "get_article"
        assert exc_info.value.context["error_type"] == "SQLAlchemyError"
