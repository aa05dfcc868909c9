"""
Conduit Articles Backend — Listing Query Parameter Parsing
===========================================================

What:  Turns the raw query string of GET /articles and GET /articles/feed
       into a canonical ArticleQueryParams.
How:   Pure function; unknown keys are ignored and malformed numbers fall
       back to their defaults. Nothing here raises.

Normalization:
    tag / author / favorited   stripped; blank → None
    limit                      int, default settings.default_page_limit,
                               clamped to [1, settings.max_page_limit]
    offset                     int, default 0, never negative
"""

from typing import Mapping, Optional

from conduit.config import settings
from conduit.schemas.article import ArticleQueryParams


def _text(raw: Mapping[str, str], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _integer(raw: Mapping[str, str], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_query_params(raw: Mapping[str, str]) -> ArticleQueryParams:
    """
    Normalize listing query parameters.

    Args:
        raw: Any string mapping (request.query_params, a dict in tests).

    Returns:
        ArticleQueryParams with filters and clamped pagination.

    Example:
        >>> parse_query_params({"tag": " python ", "limit": "500"})
        ArticleQueryParams(tag='python', author=None, favorited=None, limit=100, offset=0)
    """
    limit = _integer(raw, "limit", settings.default_page_limit)
    limit = max(1, min(limit, settings.max_page_limit))
    offset = max(0, _integer(raw, "offset", 0))

    return ArticleQueryParams(
        tag=_text(raw, "tag"),
        author=_text(raw, "author"),
        favorited=_text(raw, "favorited"),
        limit=limit,
        offset=offset,
    )
