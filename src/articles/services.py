"""Article operations exposed to the API layer.

Each operation takes the caller's ``Identity``, authorizes it against the
target's current owner and status through ``access_control.policy``, and only
then hands over to the lifecycle engine or the view ledger. Mutations run in
one transaction each.
"""

import logging
from typing import Any, Mapping

from django.db import transaction

from access_control.policy import Operation, authorize
from core.errors import NotFoundError, ValidationError
from core.identity import Identity
from . import ledger, lifecycle
from .models import Article, Comment

logger = logging.getLogger(__name__)


def _get(article_id) -> Article:
    try:
        return Article.objects.select_related("category", "author").get(pk=article_id)
    except (Article.DoesNotExist, ValueError, TypeError):
        # Default message on purpose: concealed denials render the same text.
        raise NotFoundError()


def create_article(actor: Identity, **data: Any) -> Article:
    """Submit a new article; it starts Pending."""
    authorize(actor, Operation.CREATE_ARTICLE)
    with transaction.atomic():
        return lifecycle.create(actor.id, **data)


def get_article(actor: Identity, article_id) -> Article:
    """Return the article if the caller may read it.

    Non-approved articles are readable only by their author and by
    Administrators; anyone else gets a concealed denial.
    """
    article = _get(article_id)
    authorize(actor, Operation.READ_ARTICLE, owner_id=article.author_id, state=article.status)
    return article


def edit_article(actor: Identity, article_id, changes: Mapping[str, Any]) -> Article:
    """Author edit; sends Approved or Rejected articles back to Pending."""
    with transaction.atomic():
        article = lifecycle.lock_article(article_id)
        authorize(actor, Operation.EDIT_ARTICLE, owner_id=article.author_id, state=article.status)
        lifecycle.edit(article, changes)
    return _get(article.pk)


def delete_article(actor: Identity, article_id) -> None:
    with transaction.atomic():
        article = lifecycle.lock_article(article_id)
        authorize(actor, Operation.DELETE_ARTICLE, owner_id=article.author_id, state=article.status)
        article.delete()
    logger.info("Article %s deleted by %s", article_id, actor.id)


def approve_article(actor: Identity, article_id) -> Article:
    authorize(actor, Operation.APPROVE_ARTICLE)
    with transaction.atomic():
        article = lifecycle.lock_article(article_id)
        lifecycle.approve(article)
    logger.info("Article %s approved by %s", article_id, actor.id)
    return _get(article.pk)


def reject_article(actor: Identity, article_id, reason: str | None) -> Article:
    authorize(actor, Operation.REJECT_ARTICLE)
    with transaction.atomic():
        article = lifecycle.lock_article(article_id)
        lifecycle.reject(article, reason)
    logger.info("Article %s rejected by %s", article_id, actor.id)
    return _get(article.pk)


def record_view(actor: Identity, article_id) -> int:
    """Record one view by the caller and return the new view count."""
    article = _get(article_id)
    authorize(actor, Operation.RECORD_VIEW, owner_id=article.author_id, state=article.status)
    return ledger.record_view(article.pk, actor.id)


def create_comment(actor: Identity, article_id, text: str | None) -> Comment:
    """Comment on an article that is Approved at the time of the call.

    The article row stays locked until the comment is written, so it cannot
    be unapproved in between.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Comment text is required.")

    with transaction.atomic():
        article = lifecycle.lock_article(article_id)
        authorize(actor, Operation.CREATE_COMMENT, owner_id=article.author_id, state=article.status)
        comment = Comment.objects.create(article=article, author_id=actor.id, text=text.strip())
    logger.info("Comment %s added to article %s by %s", comment.pk, article_id, actor.id)
    return comment


def list_comments(actor: Identity, article_id):
    """Comments on a readable article, newest first.

    Comments stay listed if the article is later unapproved; only readers of
    the article can see them.
    """
    article = _get(article_id)
    authorize(actor, Operation.LIST_COMMENTS, owner_id=article.author_id, state=article.status)
    return article.comments.select_related("author").order_by("-created_at", "-id")


__all__ = [
    "create_article",
    "get_article",
    "edit_article",
    "delete_article",
    "approve_article",
    "reject_article",
    "record_view",
    "create_comment",
    "list_comments",
]
