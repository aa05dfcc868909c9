"""
Conduit Articles Backend — Article Request/Response Schemas
============================================================

What:  Pydantic models defining the article API contract.
How:   FastAPI validates request bodies against the request models before
       the handler runs (failures → 422) and serializes responses through
       the response models. Wire names are camelCase (`tagList`,
       `favoritesCount`, `createdAt`), Python names are snake_case.

Wire format:
    Request:   {"article": {"title": ..., "description": ..., "body": ..., "tagList": [...]}}
    Single:    {"article": {...}}
    Listing:   {"articles": [{...}, ...], "articlesCount": 42}
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

_camel_config = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)

# Matches the article_tags.name column width.
MAX_TAG_LENGTH = 64

TagName = Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_TAG_LENGTH)]


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strips tags, drops blanks and duplicates, keeps first-seen order."""
    if tags is None:
        return None
    seen: List[str] = []
    for tag in tags:
        name = tag.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ArticleCreate(BaseModel):
    """Fields required to publish a new article."""

    model_config = _camel_config

    title: str = Field(min_length=1, max_length=255, description="Article title; the slug is derived from it")
    description: str = Field(min_length=1, description="Short summary shown in listings")
    body: str = Field(min_length=1, description="Article body (markdown)")
    tag_list: List[TagName] = Field(default_factory=list, description="Tags, in display order")

    @field_validator("title", "description", "body")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("tag_list")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v) or []


class ArticleUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = _camel_config

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    body: Optional[str] = Field(default=None, min_length=1)
    tag_list: Optional[List[TagName]] = Field(default=None)

    @field_validator("title", "description", "body")
    @classmethod
    def reject_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("tag_list")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class ArticleCreateRequest(BaseModel):
    """Envelope for POST /articles."""

    article: ArticleCreate


class ArticleUpdateRequest(BaseModel):
    """Envelope for PUT /articles/{slug}."""

    article: ArticleUpdate


# ══════════════════════════════════════════════════════════════════════════
# Query Parameters
# ══════════════════════════════════════════════════════════════════════════


class ArticleQueryParams(BaseModel):
    """
    Canonical listing options produced by parse_query_params().

    tag:        only articles carrying this tag
    author:     only articles written by this username
    favorited:  only articles favorited by this username
    """

    model_config = ConfigDict(frozen=True)

    tag: Optional[str] = None
    author: Optional[str] = None
    favorited: Optional[str] = None
    limit: int = 20
    offset: int = 0


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorProfile(BaseModel):
    """Public profile of an article's author, personalized for the viewer."""

    model_config = _camel_config

    username: str
    bio: Optional[str] = None
    image: Optional[str] = None
    following: bool = Field(default=False, description="Whether the viewer follows the author")


class ArticleResponse(BaseModel):
    """
    One article as seen by a particular viewer.

    `favorited` and `author.following` are False for anonymous viewers.
    """

    model_config = _camel_config

    slug: str
    title: str
    description: str
    body: str
    tag_list: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    favorited: bool = False
    favorites_count: int = 0
    author: AuthorProfile


class ArticleBuildResponse(BaseModel):
    """Envelope for single-article responses."""

    article: ArticleResponse


class ArticleFeedResponse(BaseModel):
    """Envelope for article listings and feeds."""

    model_config = _camel_config

    articles: List[ArticleResponse]
    articles_count: int = Field(description="Total matches, ignoring limit/offset")
