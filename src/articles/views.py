"""Article, category, and dashboard endpoints guarded by the portal policy."""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from access_control.permissions import RolePermission
from access_control.policy import Operation
from core.identity import Identity
from core.response import BaseAPIView, BaseServiceViewSet
from . import categories, queries, services
from .serializers import (
    AdminSearchQuerySerializer,
    ArticleSerializer,
    ArticleSummarySerializer,
    ArticleWriteSerializer,
    BrowseQuerySerializer,
    CategorySerializer,
    CommentSerializer,
    PageSerializer,
    RejectSerializer,
)


class ArticleViewSet(BaseServiceViewSet):
    """Article lifecycle, browsing, views, and comments.

    ``RolePermission`` applies the role gate per action; ownership and status
    rules are enforced inside ``articles.services`` once the article is loaded.
    """

    permission_classes = [RolePermission]
    lookup_value_regex = r"\d+"
    operations = {
        "list": Operation.BROWSE_ARTICLES,
        "create": Operation.CREATE_ARTICLE,
        "retrieve": Operation.READ_ARTICLE,
        "update": Operation.EDIT_ARTICLE,
        "partial_update": Operation.EDIT_ARTICLE,
        "destroy": Operation.DELETE_ARTICLE,
        "approve": Operation.APPROVE_ARTICLE,
        "reject": Operation.REJECT_ARTICLE,
        "record_view": Operation.RECORD_VIEW,
        "comments": Operation.LIST_COMMENTS,
        "pending": Operation.PENDING_QUEUE,
        "mine": Operation.OWN_ARTICLES,
        "admin_search": Operation.ADMIN_SEARCH,
    }

    def get_permissions(self):
        # POST on the comments route creates a comment, which has its own rule.
        if self.action == "comments" and self.request.method == "POST":
            self.operations = {**self.operations, "comments": Operation.CREATE_COMMENT}
        return super().get_permissions()

    @extend_schema(
        parameters=[BrowseQuerySerializer],
        responses=PageSerializer,
    )
    def list(self, request):
        """Browse Approved articles."""
        params = BrowseQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        page = queries.browse(Identity.of(request.user), **params.validated_data)
        return Response(PageSerializer(page).data)

    @extend_schema(request=ArticleWriteSerializer, responses=ArticleSerializer)
    def create(self, request):
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = services.create_article(Identity.of(request.user), **serializer.validated_data)
        return Response(ArticleSerializer(article).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses=ArticleSerializer)
    def retrieve(self, request, pk=None):
        article = services.get_article(Identity.of(request.user), pk)
        return Response(ArticleSerializer(article).data)

    @extend_schema(request=ArticleWriteSerializer, responses=ArticleSerializer)
    def update(self, request, pk=None, partial=False):
        serializer = ArticleWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        article = services.edit_article(Identity.of(request.user), pk, serializer.validated_data)
        return Response(ArticleSerializer(article).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        services.delete_article(Identity.of(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses=ArticleSerializer)
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        article = services.approve_article(Identity.of(request.user), pk)
        return Response(ArticleSerializer(article).data)

    @extend_schema(request=RejectSerializer, responses=ArticleSerializer)
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = services.reject_article(
            Identity.of(request.user), pk, serializer.validated_data.get("reason")
        )
        return Response(ArticleSerializer(article).data)

    @extend_schema(request=None)
    @action(detail=True, methods=["post"], url_path="view")
    def record_view(self, request, pk=None):
        """Record a view of the article."""
        count = services.record_view(Identity.of(request.user), pk)
        return Response({"id": int(pk), "view_count": count})

    @extend_schema(request=CommentSerializer, responses=CommentSerializer(many=True))
    @action(detail=True, methods=["get", "post"])
    def comments(self, request, pk=None):
        actor = Identity.of(request.user)
        if request.method == "POST":
            comment = services.create_comment(actor, pk, request.data.get("text"))
            return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)
        return Response(CommentSerializer(services.list_comments(actor, pk), many=True).data)

    @extend_schema(responses=ArticleSummarySerializer(many=True))
    @action(detail=False, methods=["get"])
    def pending(self, request):
        """Moderation queue, newest submission first."""
        articles = queries.pending_queue(Identity.of(request.user))
        return Response(ArticleSummarySerializer(articles, many=True).data)

    @extend_schema(responses=ArticleSummarySerializer(many=True))
    @action(detail=False, methods=["get"])
    def mine(self, request):
        """Caller's own articles in every status."""
        articles = queries.own_articles(Identity.of(request.user))
        return Response(ArticleSummarySerializer(articles, many=True).data)

    @extend_schema(
        parameters=[AdminSearchQuerySerializer],
        responses=PageSerializer,
    )
    @action(detail=False, methods=["get"], url_path="admin-search")
    def admin_search(self, request):
        params = AdminSearchQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        page = queries.admin_search(Identity.of(request.user), **params.validated_data)
        return Response(PageSerializer(page).data)


class CategoryViewSet(BaseServiceViewSet):
    permission_classes = [RolePermission]
    lookup_value_regex = r"\d+"
    operations = {
        "list": Operation.LIST_CATEGORIES,
        "retrieve": Operation.LIST_CATEGORIES,
        "create": Operation.MANAGE_CATEGORIES,
        "update": Operation.MANAGE_CATEGORIES,
        "partial_update": Operation.MANAGE_CATEGORIES,
        "destroy": Operation.MANAGE_CATEGORIES,
    }

    @extend_schema(responses=CategorySerializer(many=True))
    def list(self, request):
        return Response(CategorySerializer(categories.list_categories(Identity.of(request.user)), many=True).data)

    @extend_schema(responses=CategorySerializer)
    def retrieve(self, request, pk=None):
        return Response(CategorySerializer(categories.get_category(Identity.of(request.user), pk)).data)

    @extend_schema(request=CategorySerializer, responses=CategorySerializer)
    def create(self, request):
        serializer = CategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = categories.create_category(Identity.of(request.user), **serializer.validated_data)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CategorySerializer, responses=CategorySerializer)
    def update(self, request, pk=None, partial=False):
        serializer = CategorySerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        category = categories.update_category(Identity.of(request.user), pk, **serializer.validated_data)
        return Response(CategorySerializer(category).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        categories.delete_category(Identity.of(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DashboardView(BaseAPIView):
    """Role-scoped counts and top lists."""

    permission_classes = [RolePermission]
    operations = {"get": Operation.DASHBOARD}

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return Response(queries.dashboard(Identity.of(request.user)))


__all__ = ["ArticleViewSet", "CategoryViewSet", "DashboardView"]
