"""Knowledge base models: categories, moderated articles, views, and comments."""

from django.conf import settings
from django.db import models
from django.db.models import Q

from .states import Approved, ArticleState, ArticleStatus, Pending, Rejected


class Category(models.Model):
    """Grouping referenced by articles; managed by Administrators."""

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Article(models.Model):
    """Contributor-authored article moving through moderation.

    ``status``, ``reject_reason`` and ``approved_at`` are only written together
    through ``apply_state``; the check constraints reject any row where they
    disagree.
    """

    title = models.CharField(max_length=255)
    summary = models.TextField()
    body = models.TextField(blank=True, null=True)
    drive_link = models.URLField(max_length=500, blank=True, null=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="articles")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="articles")
    status = models.CharField(max_length=20, choices=ArticleStatus.choices, default=ArticleStatus.PENDING)
    reject_reason = models.TextField(blank=True, null=True)
    approved_at = models.DateTimeField(blank=True, null=True)
    view_count = models.PositiveBigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "-approved_at"], name="article_recent_idx"),
            models.Index(fields=["status", "-view_count"], name="article_popular_idx"),
            models.Index(fields=["author", "-created_at"], name="article_author_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status=ArticleStatus.APPROVED, approved_at__isnull=False)
                    | (~Q(status=ArticleStatus.APPROVED) & Q(approved_at__isnull=True))
                ),
                name="article_approved_at_iff_approved",
            ),
            models.CheckConstraint(
                condition=(
                    Q(status=ArticleStatus.REJECTED, reject_reason__isnull=False)
                    | (~Q(status=ArticleStatus.REJECTED) & Q(reject_reason__isnull=True))
                ),
                name="article_reject_reason_iff_rejected",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @property
    def state(self) -> ArticleState:
        """Return the status as a tagged variant carrying its own fields."""
        if self.status == ArticleStatus.APPROVED:
            return Approved(at=self.approved_at)
        if self.status == ArticleStatus.REJECTED:
            return Rejected(reason=self.reject_reason)
        return Pending()

    def apply_state(self, state: ArticleState) -> None:
        """Write ``status``, ``approved_at`` and ``reject_reason`` from one variant."""
        self.status = state.status
        self.approved_at = state.at if isinstance(state, Approved) else None
        self.reject_reason = state.reason if isinstance(state, Rejected) else None


class ArticleView(models.Model):
    """Append-only view event backing ``Article.view_count``."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="views")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="article_views",
    )
    viewed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-viewed_at", "-id"]


class Comment(models.Model):
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="comments")
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Comment {self.pk} on {self.article_id}"


__all__ = ["Category", "ArticleStatus", "Article", "ArticleView", "Comment"]
