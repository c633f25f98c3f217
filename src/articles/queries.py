"""Read-side queries scoped by caller visibility.

Consumer and Contributor listings only ever see Approved articles, except the
Contributor's own-content view where ownership replaces the approval filter.
Administrator queues and searches are not filtered by status.
"""

from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Q, QuerySet

from access_control.policy import Operation, authorize
from access_control.roles import Role
from core.identity import Identity
from .ledger import Ranking, rank
from .models import Article
from .states import ArticleStatus

User = get_user_model()

TOP_FIELDS = ("id", "title", "status", "category_id", "view_count")


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    page_size: int
    total: int


def paginate(queryset: QuerySet, page: int = 1, page_size: Optional[int] = None) -> Page:
    """Slice ``queryset`` by offset/limit; page 1 holds the first ``page_size`` rows."""
    page_size = page_size or settings.PORTAL_DEFAULT_PAGE_SIZE
    offset = (page - 1) * page_size
    total = queryset.count()
    items = list(queryset[offset:offset + page_size])
    return Page(items=items, page=page, page_size=page_size, total=total)


def _filter_text_and_category(queryset: QuerySet, q: Optional[str], category: Optional[int]) -> QuerySet:
    # The term is matched as typed; whitespace-only input means no text filter.
    if q and q.strip():
        queryset = queryset.filter(Q(title__icontains=q) | Q(summary__icontains=q))
    if category is not None:
        queryset = queryset.filter(category_id=category)
    return queryset


def _base() -> QuerySet:
    return Article.objects.select_related("category", "author")


def browse(
    actor: Identity,
    *,
    q: Optional[str] = None,
    category: Optional[int] = None,
    sort: Ranking = Ranking.RECENT,
    page: int = 1,
    page_size: Optional[int] = None,
) -> Page:
    """Search Approved articles by text and category, ranked and paginated."""
    authorize(actor, Operation.BROWSE_ARTICLES)
    queryset = _base().filter(status=ArticleStatus.APPROVED)
    queryset = _filter_text_and_category(queryset, q, category)
    return paginate(rank(queryset, sort), page, page_size)


def admin_search(
    actor: Identity,
    *,
    q: Optional[str] = None,
    category: Optional[int] = None,
    status: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> Page:
    """Administrator search across every status, newest first."""
    authorize(actor, Operation.ADMIN_SEARCH)
    queryset = _filter_text_and_category(_base(), q, category)
    if status:
        queryset = queryset.filter(status=status)
    return paginate(rank(queryset, Ranking.CREATED), page, page_size)


def pending_queue(actor: Identity) -> QuerySet:
    """Articles awaiting moderation, newest submission first."""
    authorize(actor, Operation.PENDING_QUEUE)
    return rank(_base().filter(status=ArticleStatus.PENDING), Ranking.CREATED)


def own_articles(actor: Identity) -> QuerySet:
    """Every article authored by the caller, whatever its status."""
    authorize(actor, Operation.OWN_ARTICLES)
    return rank(_base().filter(author_id=actor.id), Ranking.CREATED)


def _status_counts(queryset: QuerySet) -> dict[str, int]:
    return queryset.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=ArticleStatus.PENDING)),
        approved=Count("id", filter=Q(status=ArticleStatus.APPROVED)),
        rejected=Count("id", filter=Q(status=ArticleStatus.REJECTED)),
    )


def _top(queryset: QuerySet, ranking: Ranking, limit: int) -> list[dict]:
    return list(rank(queryset, ranking).values(*TOP_FIELDS)[:limit])


def dashboard(actor: Identity) -> dict[str, Any]:
    """Aggregate counts and top lists for the caller's scope.

    - Administrator: the whole corpus, plus account totals.
    - Contributor: the caller's own articles.
    - Consumer: the Approved set, with most-viewed and most-recent lists.
    """
    authorize(actor, Operation.DASHBOARD)
    top_n = settings.PORTAL_DASHBOARD_TOP_N

    if actor.role == Role.ADMINISTRATOR:
        queryset = Article.objects.all()
        return {
            "scope": "all",
            "counts": _status_counts(queryset),
            "top_viewed": _top(queryset, Ranking.POPULAR, top_n),
            "users": User.objects.count(),
            "contributors": User.objects.filter(role=Role.CONTRIBUTOR).count(),
        }

    if actor.role == Role.CONTRIBUTOR:
        queryset = Article.objects.filter(author_id=actor.id)
        return {
            "scope": "mine",
            "counts": _status_counts(queryset),
            "top_viewed": _top(queryset, Ranking.POPULAR, settings.PORTAL_CONTRIBUTOR_TOP_N),
        }

    queryset = Article.objects.filter(status=ArticleStatus.APPROVED)
    return {
        "scope": "approved",
        "counts": _status_counts(queryset),
        "top_viewed": _top(queryset, Ranking.POPULAR, top_n),
        "recent": _top(queryset, Ranking.RECENT, top_n),
    }


__all__ = [
    "Page",
    "paginate",
    "browse",
    "admin_search",
    "pending_queue",
    "own_articles",
    "dashboard",
]
