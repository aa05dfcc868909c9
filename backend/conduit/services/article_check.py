"""
Conduit Articles Backend — Article Precondition Checks
=======================================================

What:  The catalogue of article preconditions, each pairing one boolean
       domain fact with one user-facing error (message + HTTP status).
How:   Every check is a pure function of a single fact and returns a
       CheckResult: CheckOk (value True) or CheckErr(kind). Callers decide
       when to turn a failure into an exception with `.unwrap()`, which
       raises BadRequestError or ForbiddenError for the HTTP layer.
Who:   ArticleService, once per business rule.

Polarity:
    Check                 fails when the fact is
    ────────────────────  ──────────────────────
    is_created            False
    is_updated            False
    is_deleted            True   (fact = "article still exists after delete")
    is_not_exist          True   (fact = "slug is taken")
    is_exist              False / None
    is_in_favorites       True   (fact = "already favorited")
    is_not_in_favorites   False  (fact = "already favorited")
    is_author             False

Optional facts (None = "lookup found nothing") are normalized to False by
`_present()` before the polarity is applied.

Example:
    article_check.is_exist(article is not None).unwrap()
    article_check.is_author(article.author_id == viewer.id).unwrap()
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from conduit.exceptions import BadRequestError, ConduitError, ForbiddenError


class ArticleErrorKind(Enum):
    """Every failure an article check can report, with its message and status."""

    NOT_CREATED = ("Article not created", 400)
    NOT_UPDATED = ("Article not updated", 400)
    NOT_DELETED = ("Article not deleted", 400)
    SLUG_TAKEN = ("Article with this slug already exist", 400)
    SLUG_NOT_FOUND = ("Article with this slug not found", 400)
    ALREADY_FAVORITED = ("This article is already in favorites", 400)
    NOT_FAVORITED = ("This article is not in favorites", 400)
    NOT_AUTHOR = ("You are not the author of this article", 403)

    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code

    def to_exception(self) -> ConduitError:
        if self.status_code == 403:
            return ForbiddenError(message=self.message, context={"check": self.name})
        return BadRequestError(message=self.message, context={"check": self.name})


@dataclass(frozen=True)
class CheckOk:
    """A passed check. `value` is always True."""

    value: bool = True

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> bool:
        return self.value


@dataclass(frozen=True)
class CheckErr:
    """A failed check carrying the kind of failure."""

    kind: ArticleErrorKind

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> bool:
        raise self.kind.to_exception()


CheckResult = Union[CheckOk, CheckErr]

_OK = CheckOk()


def _present(fact: Optional[bool]) -> bool:
    return False if fact is None else bool(fact)


def _fail_when(fact: Optional[bool], failing_value: bool, kind: ArticleErrorKind) -> CheckResult:
    if _present(fact) is failing_value:
        return CheckErr(kind)
    return _OK


class ArticleCheck:
    """Stateless article preconditions. Use the module-level `article_check`."""

    def is_created(self, created: Optional[bool]) -> CheckResult:
        return _fail_when(created, False, ArticleErrorKind.NOT_CREATED)

    def is_updated(self, updated: Optional[bool]) -> CheckResult:
        return _fail_when(updated, False, ArticleErrorKind.NOT_UPDATED)

    def is_deleted(self, still_exists: Optional[bool]) -> CheckResult:
        return _fail_when(still_exists, True, ArticleErrorKind.NOT_DELETED)

    def is_not_exist(self, slug_taken: Optional[bool]) -> CheckResult:
        return _fail_when(slug_taken, True, ArticleErrorKind.SLUG_TAKEN)

    def is_exist(self, found: Optional[bool]) -> CheckResult:
        return _fail_when(found, False, ArticleErrorKind.SLUG_NOT_FOUND)

    def is_in_favorites(self, favorited: Optional[bool]) -> CheckResult:
        return _fail_when(favorited, True, ArticleErrorKind.ALREADY_FAVORITED)

    def is_not_in_favorites(self, favorited: Optional[bool]) -> CheckResult:
        return _fail_when(favorited, False, ArticleErrorKind.NOT_FAVORITED)

    def is_author(self, is_author: Optional[bool]) -> CheckResult:
        return _fail_when(is_author, False, ArticleErrorKind.NOT_AUTHOR)


article_check = ArticleCheck()
