"""View ledger and ranking orders.

Each recorded view appends an ``ArticleView`` and bumps the article's
denormalized ``view_count`` in one transaction. The bump is an
``UPDATE ... SET view_count = view_count + 1`` issued by the database, so
concurrent views of the same article never overwrite each other.
"""

import logging
from enum import Enum

from django.db import transaction
from django.db.models import F, QuerySet

from core.errors import NotFoundError
from .models import Article, ArticleView

logger = logging.getLogger(__name__)


class Ranking(str, Enum):
    """Orderings available to article listings."""

    RECENT = "recent"
    POPULAR = "views"
    CREATED = "created"


# Articles never approved sort after approved ones on every backend.
_APPROVED_DESC = F("approved_at").desc(nulls_last=True)

# A trailing ``-id`` makes every order total.
ORDERINGS: dict[Ranking, tuple] = {
    Ranking.RECENT: (_APPROVED_DESC, "-created_at", "-id"),
    Ranking.POPULAR: ("-view_count", _APPROVED_DESC, "-id"),
    Ranking.CREATED: ("-created_at", "-id"),
}


def rank(queryset: QuerySet, ranking: Ranking) -> QuerySet:
    return queryset.order_by(*ORDERINGS[ranking])


def record_view(article_id, actor_id=None) -> int:
    """Append a view event and increment ``view_count`` by exactly one.

    Returns the counter value after the increment. No deduplication is done:
    every call is a new view. Visibility is checked by the caller.
    """
    with transaction.atomic():
        updated = Article.objects.filter(pk=article_id).update(view_count=F("view_count") + 1)
        if not updated:
            raise NotFoundError()
        ArticleView.objects.create(article_id=article_id, actor_id=actor_id)
        count = Article.objects.filter(pk=article_id).values_list("view_count", flat=True).get()

    logger.debug("View recorded on article %s by %s (count=%s)", article_id, actor_id, count)
    return count


__all__ = ["Ranking", "ORDERINGS", "rank", "record_view"]
