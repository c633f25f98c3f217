"""Serializers for articles, categories, and comments."""

from django.conf import settings
from rest_framework import serializers

from .ledger import Ranking
from .models import Article, Category, Comment
from .states import ArticleStatus


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        """Slug uniqueness is checked by the service layer and reported as a conflict."""
        model = Category
        fields = ["id", "name", "slug", "description"]
        read_only_fields = ["id"]
        extra_kwargs = {
            "slug": {"validators": []},
            "description": {"required": False, "allow_blank": True},
        }


class ArticleSerializer(serializers.ModelSerializer):
    """Full article payload including moderation state."""

    category_name = serializers.CharField(source="category.name", read_only=True)
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        """Status, moderation fields, counters and ownership are never client-writable."""
        model = Article
        fields = [
            "id",
            "title",
            "summary",
            "body",
            "drive_link",
            "category",
            "category_name",
            "author",
            "author_name",
            "status",
            "reject_reason",
            "approved_at",
            "view_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "author",
            "status",
            "reject_reason",
            "approved_at",
            "view_count",
            "created_at",
            "updated_at",
        ]


class ArticleWriteSerializer(serializers.Serializer):
    """Input for article create and edit.

    ``category`` is passed through as an id; the lifecycle engine reports a
    missing category as a validation error.
    """

    title = serializers.CharField(max_length=255)
    summary = serializers.CharField()
    body = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    drive_link = serializers.URLField(max_length=500, required=False, allow_blank=True, allow_null=True)
    category = serializers.IntegerField()


class ArticleSummarySerializer(serializers.ModelSerializer):
    """Listing payload without the body."""

    category_name = serializers.CharField(source="category.name", read_only=True)
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        model = Article
        fields = [
            "id",
            "title",
            "summary",
            "category",
            "category_name",
            "author",
            "author_name",
            "status",
            "reject_reason",
            "approved_at",
            "view_count",
            "created_at",
        ]
        read_only_fields = fields


class RejectSerializer(serializers.Serializer):
    # Blank reasons pass here so the lifecycle engine reports them uniformly.
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)


class CommentSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "article", "author", "author_name", "text", "created_at"]
        read_only_fields = ["id", "article", "author", "author_name", "created_at"]


class PageSerializer(serializers.Serializer):
    """Offset pagination wrapper around a list of summaries."""

    items = ArticleSummarySerializer(many=True)
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total = serializers.IntegerField()


class ArticleSearchQuerySerializer(serializers.Serializer):
    """Query string shared by the browse and admin search listings."""

    q = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    category = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate_page_size(self, value):
        # Read per request so the bound follows the active settings.
        if value is not None and value > settings.PORTAL_MAX_PAGE_SIZE:
            raise serializers.ValidationError(
                f"Ensure this value is less than or equal to {settings.PORTAL_MAX_PAGE_SIZE}."
            )
        return value


class BrowseQuerySerializer(ArticleSearchQuerySerializer):
    sort = serializers.ChoiceField(
        choices=[Ranking.RECENT.value, Ranking.POPULAR.value],
        required=False,
        default=Ranking.RECENT.value,
    )

    def validate_sort(self, value):
        return Ranking(value)


class AdminSearchQuerySerializer(ArticleSearchQuerySerializer):
    status = serializers.ChoiceField(choices=ArticleStatus.choices, required=False)


__all__ = [
    "CategorySerializer",
    "ArticleSerializer",
    "ArticleWriteSerializer",
    "ArticleSummarySerializer",
    "RejectSerializer",
    "CommentSerializer",
    "PageSerializer",
    "BrowseQuerySerializer",
    "AdminSearchQuerySerializer",
]
