"""
Conduit Articles Backend — Article Routes
==========================================

What:  The HTTP surface for article resources.
How:   Handlers are plain async functions. ARTICLE_ROUTES lists every
       (method, path, guard chain, handler) tuple, and build_article_router()
       registers them once at startup. Guards run, in order, before the
       handler; body validation happens before the handler through the
       request models.

Route table:
    GET     /articles                  optional auth   list_articles
    GET     /articles/feed             auth_guard      feed_articles
    POST    /articles                  auth_guard      create_article
    GET     /articles/{slug}           optional auth   get_article
    DELETE  /articles/{slug}           auth_guard      delete_article
    PUT     /articles/{slug}           auth_guard      update_article
    POST    /articles/{slug}/favorite  auth_guard      favorite_article
    DELETE  /articles/{slug}/favorite  auth_guard      unfavorite_article

/articles/feed is registered before /articles/{slug} so "feed" is never
read as a slug.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.models import User
from conduit.routes.guards import auth_guard, resolve_viewer
from conduit.schemas.article import (
    ArticleBuildResponse,
    ArticleCreateRequest,
    ArticleFeedResponse,
    ArticleUpdateRequest,
)
from conduit.schemas.common import ErrorResponse
from conduit.services.article_service import article_service
from conduit.services.query_params import parse_query_params

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Handlers
# ══════════════════════════════════════════════════════════════════════════


async def list_articles(
    request: Request,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleFeedResponse:
    params = parse_query_params(request.query_params)
    return await article_service.list_articles(db, params, viewer)


async def feed_articles(
    request: Request,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleFeedResponse:
    params = parse_query_params(request.query_params)
    return await article_service.feed_articles(db, params, viewer)


async def create_article(
    payload: ArticleCreateRequest,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleBuildResponse:
    return await article_service.create_article(db, payload.article, viewer)


async def get_article(
    slug: str,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleBuildResponse:
    return await article_service.get_article(db, slug, viewer)


async def delete_article(
    slug: str,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await article_service.delete_article(db, slug, viewer)


async def update_article(
    slug: str,
    payload: ArticleUpdateRequest,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleBuildResponse:
    return await article_service.update_article(db, slug, payload.article, viewer)


async def favorite_article(
    slug: str,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleBuildResponse:
    return await article_service.favorite_article(db, slug, viewer)


async def unfavorite_article(
    slug: str,
    viewer: Optional[User] = Depends(resolve_viewer),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleBuildResponse:
    return await article_service.unfavorite_article(db, slug, viewer)


# ══════════════════════════════════════════════════════════════════════════
# Route table
# ══════════════════════════════════════════════════════════════════════════

_CHECK_ERRORS: Dict[int, Dict[str, Any]] = {
    400: {"description": "Article precondition failed", "model": ErrorResponse},
}
_GUARDED_ERRORS: Dict[int, Dict[str, Any]] = {
    **_CHECK_ERRORS,
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}
_AUTHOR_ERRORS: Dict[int, Dict[str, Any]] = {
    **_GUARDED_ERRORS,
    403: {"description": "Requester is not the author", "model": ErrorResponse},
}


@dataclass(frozen=True)
class ArticleRoute:
    """One registered route: method, path, guard chain and handler."""

    method: str
    path: str
    handler: Callable[..., Awaitable[Any]]
    guards: Tuple[Callable[..., Any], ...] = ()
    status_code: int = 200
    response_model: Optional[type] = None
    summary: str = ""
    responses: Dict[int, Dict[str, Any]] = field(default_factory=dict)


ARTICLE_ROUTES: Tuple[ArticleRoute, ...] = (
    ArticleRoute(
        "GET", "", list_articles,
        response_model=ArticleFeedResponse,
        summary="List articles (global feed)",
    ),
    ArticleRoute(
        "GET", "/feed", feed_articles,
        guards=(auth_guard,),
        response_model=ArticleFeedResponse,
        summary="List articles by followed authors",
        responses=_GUARDED_ERRORS,
    ),
    ArticleRoute(
        "POST", "", create_article,
        guards=(auth_guard,),
        status_code=201,
        response_model=ArticleBuildResponse,
        summary="Create an article",
        responses=_GUARDED_ERRORS,
    ),
    ArticleRoute(
        "GET", "/{slug}", get_article,
        response_model=ArticleBuildResponse,
        summary="Get an article by slug",
        responses=_CHECK_ERRORS,
    ),
    ArticleRoute(
        "DELETE", "/{slug}", delete_article,
        guards=(auth_guard,),
        status_code=204,
        summary="Delete an article (author only)",
        responses=_AUTHOR_ERRORS,
    ),
    ArticleRoute(
        "PUT", "/{slug}", update_article,
        guards=(auth_guard,),
        response_model=ArticleBuildResponse,
        summary="Update an article (author only)",
        responses=_AUTHOR_ERRORS,
    ),
    ArticleRoute(
        "POST", "/{slug}/favorite", favorite_article,
        guards=(auth_guard,),
        status_code=201,
        response_model=ArticleBuildResponse,
        summary="Add an article to favorites",
        responses=_GUARDED_ERRORS,
    ),
    ArticleRoute(
        "DELETE", "/{slug}/favorite", unfavorite_article,
        guards=(auth_guard,),
        response_model=ArticleBuildResponse,
        summary="Remove an article from favorites",
        responses=_GUARDED_ERRORS,
    ),
)


def build_article_router(routes: Tuple[ArticleRoute, ...] = ARTICLE_ROUTES) -> APIRouter:
    """Registers every ArticleRoute, in table order, on a fresh /articles router."""
    router = APIRouter(prefix="/articles", tags=["Articles"])
    for route in routes:
        router.add_api_route(
            route.path,
            route.handler,
            methods=[route.method],
            dependencies=[Depends(guard) for guard in route.guards],
            status_code=route.status_code,
            response_model=route.response_model,
            summary=route.summary,
            responses=route.responses,
        )
        logger.debug("Registered %s /articles%s", route.method, route.path)
    return router
