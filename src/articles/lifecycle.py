"""Content lifecycle engine.

Applies moderation and edit transitions to a locked ``Article`` row. Callers
authorize first; the engine trusts them and only enforces transition rules,
side effects, and the ``updated_at`` stamp. Every function here expects to run
inside the caller's ``transaction.atomic()`` block so that the state, its
timestamps and any content change commit together.
"""

import logging
from typing import Any, Mapping

from django.utils import timezone

from core.errors import NotFoundError, ValidationError
from .models import Article, Category
from .states import Trigger, next_state

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "summary", "body", "drive_link", "category")


def lock_article(article_id) -> Article:
    """Fetch ``article_id`` with a row lock, raising ``NotFoundError`` if absent.

    Concurrent moderation actions and edits on the same article serialize on
    this lock; whichever commits last wins.
    """
    try:
        return Article.objects.select_for_update().get(pk=article_id)
    except (Article.DoesNotExist, ValueError, TypeError):
        raise NotFoundError()


def resolve_category(value: Any) -> Category:
    """Return the referenced category or raise ``ValidationError``."""
    if isinstance(value, Category):
        value = value.pk
    try:
        return Category.objects.get(pk=value)
    except (Category.DoesNotExist, ValueError, TypeError):
        raise ValidationError("Invalid category.")


def _transition(article: Article, trigger: Trigger, reason: str | None = None) -> Article:
    now = timezone.now()
    previous = article.status
    article.apply_state(next_state(article.state, trigger, now=now, reason=reason))
    article.updated_at = now
    logger.info(
        "Article %s %s: %s -> %s",
        article.pk,
        trigger.value,
        previous,
        article.status,
    )
    return article


def approve(article: Article) -> Article:
    """Publish ``article``: stamp ``approved_at`` and drop any rejection reason."""
    _transition(article, Trigger.APPROVE)
    article.save(update_fields=["status", "approved_at", "reject_reason", "updated_at"])
    return article


def reject(article: Article, reason: str | None) -> Article:
    """Reject ``article`` with a non-empty reason.

    The reason is validated before anything is written, so a blank reason
    leaves the article exactly as it was.
    """
    _transition(article, Trigger.REJECT, reason=reason)
    article.save(update_fields=["status", "approved_at", "reject_reason", "updated_at"])
    return article


def edit(article: Article, changes: Mapping[str, Any]) -> Article:
    """Apply content ``changes`` and re-submit the article for moderation.

    Any edit, whatever fields it touches, returns an Approved or Rejected
    article to Pending.
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}.")

    for field, value in changes.items():
        if field == "category":
            value = resolve_category(value)
        setattr(article, field, value)

    _transition(article, Trigger.EDIT)
    article.save()
    return article


def create(author_id, *, title: str, summary: str, category: Any, body: str | None = None,
           drive_link: str | None = None) -> Article:
    """Create a new article in the initial Pending state."""
    article = Article(
        title=title,
        summary=summary,
        body=body,
        drive_link=drive_link,
        category=resolve_category(category),
        author_id=author_id,
    )
    article.save()
    logger.info("Article %s created by %s (pending)", article.pk, author_id)
    return article


__all__ = ["lock_article", "resolve_category", "approve", "reject", "edit", "create", "EDITABLE_FIELDS"]
