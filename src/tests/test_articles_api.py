"""Article endpoints: lifecycle over HTTP, visibility, listings, views and comments."""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from access_control.roles import Role
from articles.models import Article, Comment
from articles.states import ArticleStatus
from tests.utils import (
    FakeRedisMixin,
    approved,
    client_for,
    create_article,
    create_category,
    create_user,
    rejected,
)


class ArticleApiTestCase(FakeRedisMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_user("admin@example.com", Role.ADMINISTRATOR)
        cls.author = create_user("author@example.com", Role.CONTRIBUTOR)
        cls.other_author = create_user("other@example.com", Role.CONTRIBUTOR)
        cls.consumer = create_user("consumer@example.com", Role.CONSUMER)
        cls.category = create_category()

    def setUp(self):
        self.admin_client = client_for(self.admin)
        self.author_client = client_for(self.author)
        self.other_client = client_for(self.other_author)
        self.consumer_client = client_for(self.consumer)


class ArticleLifecycleApiTests(ArticleApiTestCase):
    def test_full_moderation_round_trip(self):
        """Create, reject, edit, approve, then browse and view three times."""
        created = self.author_client.post(
            "/articles/",
            {"title": "Expense policy", "summary": "How to file expenses", "category": self.category.pk},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        article = created.json()["data"]
        self.assertEqual(article["status"], ArticleStatus.PENDING)
        url = f"/articles/{article['id']}/"

        rejected_resp = self.admin_client.post(f"{url}reject/", {"reason": "needs citations"}, format="json")
        self.assertEqual(rejected_resp.status_code, 200)
        self.assertEqual(rejected_resp.json()["data"]["status"], ArticleStatus.REJECTED)
        self.assertEqual(rejected_resp.json()["data"]["reject_reason"], "needs citations")

        edited = self.author_client.patch(url, {"body": "Now with citations."}, format="json")
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["data"]["status"], ArticleStatus.PENDING)
        self.assertIsNone(edited.json()["data"]["reject_reason"])

        approved_resp = self.admin_client.post(f"{url}approve/")
        data = approved_resp.json()["data"]
        self.assertEqual(approved_resp.status_code, 200)
        self.assertEqual(data["status"], ArticleStatus.APPROVED)
        self.assertIsNotNone(data["approved_at"])
        self.assertIsNone(data["reject_reason"])

        browse = self.consumer_client.get("/articles/", {"q": "expense"})
        self.assertEqual([item["id"] for item in browse.json()["data"]["items"]], [article["id"]])

        for _ in range(3):
            self.assertEqual(self.consumer_client.post(f"{url}view/").status_code, 200)
        self.assertEqual(Article.objects.get(pk=article["id"]).view_count, 3)
        self.assertEqual(self.consumer_client.get(url).json()["data"]["view_count"], 3)

    def test_create_ignores_client_supplied_moderation_fields(self):
        response = self.author_client.post(
            "/articles/",
            {
                "title": "Sneaky",
                "summary": "s",
                "category": self.category.pk,
                "status": ArticleStatus.APPROVED,
                "view_count": 999,
            },
            format="json",
        )
        data = response.json()["data"]
        self.assertEqual(data["status"], ArticleStatus.PENDING)
        self.assertEqual(data["view_count"], 0)

    def test_create_with_unknown_category_is_400(self):
        response = self.author_client.post(
            "/articles/", {"title": "T", "summary": "S", "category": 424242}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"], ["Invalid category."])

    def test_only_contributors_create(self):
        payload = {"title": "T", "summary": "S", "category": self.category.pk}
        self.assertEqual(self.consumer_client.post("/articles/", payload, format="json").status_code, 403)
        self.assertEqual(self.admin_client.post("/articles/", payload, format="json").status_code, 403)

    def test_reject_with_blank_reason_is_400_and_unchanged(self):
        article = create_article(self.author, self.category, approved())

        response = self.admin_client.post(f"/articles/{article.pk}/reject/", {"reason": "  "}, format="json")

        self.assertEqual(response.status_code, 400)
        article.refresh_from_db()
        self.assertEqual(article.status, ArticleStatus.APPROVED)
        self.assertIsNotNone(article.approved_at)

    def test_non_admin_cannot_moderate(self):
        article = create_article(self.author, self.category)
        for client in (self.author_client, self.consumer_client):
            self.assertEqual(client.post(f"/articles/{article.pk}/approve/").status_code, 403)
        article.refresh_from_db()
        self.assertEqual(article.status, ArticleStatus.PENDING)

    def test_approve_missing_article_is_404(self):
        self.assertEqual(self.admin_client.post("/articles/999999/approve/").status_code, 404)

    def test_author_deletes_own_article(self):
        article = create_article(self.author, self.category, approved())

        self.assertEqual(self.other_client.delete(f"/articles/{article.pk}/").status_code, 403)
        self.assertEqual(self.author_client.delete(f"/articles/{article.pk}/").status_code, 204)
        self.assertFalse(Article.objects.filter(pk=article.pk).exists())

    def test_administrator_cannot_edit_others_article(self):
        article = create_article(self.author, self.category)
        response = self.admin_client.patch(f"/articles/{article.pk}/", {"title": "Admin"}, format="json")
        self.assertEqual(response.status_code, 403)


class VisibilityApiTests(ArticleApiTestCase):
    def test_consumer_cannot_read_pending_article(self):
        article = create_article(self.author, self.category, body="secret body")

        response = self.consumer_client.get(f"/articles/{article.pk}/")
        missing = self.consumer_client.get("/articles/999999/")

        self.assertEqual(response.status_code, 404)
        self.assertNotIn("secret body", response.content.decode())
        self.assertEqual(response.json(), missing.json())

    def test_hidden_article_readable_by_author_and_admin(self):
        article = create_article(self.author, self.category, rejected())

        self.assertEqual(self.author_client.get(f"/articles/{article.pk}/").status_code, 200)
        self.assertEqual(self.admin_client.get(f"/articles/{article.pk}/").status_code, 200)
        self.assertEqual(self.other_client.get(f"/articles/{article.pk}/").status_code, 404)

    def test_browse_shows_only_approved(self):
        visible = create_article(self.author, self.category, approved(), title="Visible")
        create_article(self.author, self.category, title="Waiting")
        create_article(self.author, self.category, rejected(), title="Bounced")

        for client in (self.consumer_client, self.author_client, self.admin_client):
            items = client.get("/articles/").json()["data"]["items"]
            self.assertEqual([item["id"] for item in items], [visible.pk])

    def test_view_of_hidden_article_is_concealed_and_not_counted(self):
        article = create_article(self.author, self.category)

        response = self.consumer_client.post(f"/articles/{article.pk}/view/")

        self.assertEqual(response.status_code, 404)
        article.refresh_from_db()
        self.assertEqual(article.view_count, 0)

    def test_editing_hidden_article_of_someone_else_is_concealed(self):
        article = create_article(self.author, self.category)
        response = self.other_client.patch(f"/articles/{article.pk}/", {"title": "Mine now"}, format="json")
        self.assertEqual(response.status_code, 404)


class ListingApiTests(ArticleApiTestCase):
    def test_browse_sorting_and_pagination(self):
        now = timezone.now()
        old = create_article(self.author, self.category, approved(now - timedelta(days=3)), view_count=10)
        mid = create_article(self.author, self.category, approved(now - timedelta(days=2)), view_count=1)
        new = create_article(self.author, self.category, approved(now - timedelta(days=1)), view_count=5)

        recent = self.consumer_client.get("/articles/").json()["data"]
        self.assertEqual([i["id"] for i in recent["items"]], [new.pk, mid.pk, old.pk])
        self.assertEqual(recent["total"], 3)

        popular = self.consumer_client.get("/articles/", {"sort": "views"}).json()["data"]
        self.assertEqual([i["id"] for i in popular["items"]], [old.pk, new.pk, mid.pk])

        second = self.consumer_client.get("/articles/", {"page": 2, "page_size": 2}).json()["data"]
        self.assertEqual([i["id"] for i in second["items"]], [old.pk])
        self.assertEqual((second["page"], second["page_size"], second["total"]), (2, 2, 3))

    def test_browse_filters_by_category(self):
        it = create_category("IT", "it")
        in_it = create_article(self.author, it, approved())
        create_article(self.author, self.category, approved())

        items = self.consumer_client.get("/articles/", {"category": it.pk}).json()["data"]["items"]
        self.assertEqual([i["id"] for i in items], [in_it.pk])

    def test_browse_rejects_bad_parameters(self):
        for params in ({"sort": "random"}, {"page": 0}, {"page_size": 1000}, {"category": "x"}, {"category": 0}):
            with self.subTest(params=params):
                self.assertEqual(self.consumer_client.get("/articles/", params).status_code, 400)

    @override_settings(PORTAL_MAX_PAGE_SIZE=5)
    def test_page_size_bound_follows_settings(self):
        self.assertEqual(self.consumer_client.get("/articles/", {"page_size": 6}).status_code, 400)
        response = self.consumer_client.get("/articles/", {"page_size": 5})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["page_size"], 5)

    def test_blank_optional_parameters_are_ignored(self):
        create_article(self.author, self.category, approved())

        response = self.consumer_client.get("/articles/", {"q": "", "category": "", "page_size": ""})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["total"], 1)

    def test_search_term_is_matched_as_typed(self):
        policy = create_article(self.author, self.category, approved(), title="Expense policy")

        def total(q):
            return self.consumer_client.get("/articles/", {"q": q}).json()["data"]["total"]

        self.assertEqual(total("policy"), 1)
        self.assertEqual(total("policy "), 0)
        self.assertEqual(total("   "), 1)
        items = self.consumer_client.get("/articles/", {"q": "PoLiCy"}).json()["data"]["items"]
        self.assertEqual([i["id"] for i in items], [policy.pk])

    def test_mine_lists_every_status_for_the_author_only(self):
        own = [
            create_article(self.author, self.category),
            create_article(self.author, self.category, approved()),
            create_article(self.author, self.category, rejected()),
        ]
        create_article(self.other_author, self.category)

        response = self.author_client.get("/articles/mine/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual({i["id"] for i in response.json()["data"]}, {a.pk for a in own})
        self.assertEqual(self.consumer_client.get("/articles/mine/").status_code, 403)

    def test_pending_queue_is_admin_only(self):
        waiting = create_article(self.author, self.category)
        create_article(self.author, self.category, approved())

        response = self.admin_client.get("/articles/pending/")

        self.assertEqual([i["id"] for i in response.json()["data"]], [waiting.pk])
        self.assertEqual(self.author_client.get("/articles/pending/").status_code, 403)

    def test_admin_search_sees_every_status(self):
        create_article(self.author, self.category, title="Docker basics")
        bounced = create_article(self.author, self.category, rejected(), title="Docker advanced")
        create_article(self.author, self.category, approved(), title="Unrelated")

        everything = self.admin_client.get("/articles/admin-search/", {"q": "docker"}).json()["data"]
        self.assertEqual(everything["total"], 2)

        only_rejected = self.admin_client.get(
            "/articles/admin-search/", {"q": "docker", "status": "rejected"}
        ).json()["data"]
        self.assertEqual([i["id"] for i in only_rejected["items"]], [bounced.pk])

        self.assertEqual(self.consumer_client.get("/articles/admin-search/").status_code, 403)

    def test_admin_search_rejects_bad_parameters(self):
        for params in ({"status": "archived"}, {"page": "first"}, {"page_size": 0}):
            with self.subTest(params=params):
                self.assertEqual(self.admin_client.get("/articles/admin-search/", params).status_code, 400)


class CommentApiTests(ArticleApiTestCase):
    def test_comment_on_approved_article(self):
        article = create_article(self.author, self.category, approved())

        response = self.consumer_client.post(
            f"/articles/{article.pk}/comments/", {"text": "  Helpful, thanks  "}, format="json"
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["text"], "Helpful, thanks")
        listed = self.author_client.get(f"/articles/{article.pk}/comments/").json()["data"]
        self.assertEqual([c["text"] for c in listed], ["Helpful, thanks"])

    def test_author_cannot_comment_on_own_pending_article(self):
        article = create_article(self.author, self.category)

        response = self.author_client.post(f"/articles/{article.pk}/comments/", {"text": "hi"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["errors"], ["Comments are only accepted on approved articles."])
        self.assertFalse(Comment.objects.exists())

    def test_comment_on_hidden_article_is_concealed(self):
        article = create_article(self.author, self.category, rejected())
        response = self.consumer_client.post(f"/articles/{article.pk}/comments/", {"text": "hi"}, format="json")
        self.assertEqual(response.status_code, 404)

    def test_blank_comment_is_400(self):
        article = create_article(self.author, self.category, approved())
        response = self.consumer_client.post(f"/articles/{article.pk}/comments/", {"text": "   "}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_comments_newest_first(self):
        article = create_article(self.author, self.category, approved())
        for text in ("first", "second"):
            self.consumer_client.post(f"/articles/{article.pk}/comments/", {"text": text}, format="json")

        listed = self.consumer_client.get(f"/articles/{article.pk}/comments/").json()["data"]
        self.assertEqual([c["text"] for c in listed], ["second", "first"])
