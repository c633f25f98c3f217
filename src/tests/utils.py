"""Shared helpers for tests: fake Redis, account and article factories."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from access_control.roles import Role
from articles.models import Article, Category
from articles.states import Approved, Pending, Rejected
from authentication.services import TokenService

User = get_user_model()

PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; the TTL is ignored."""
        self._store[key] = value

    def get(self, key: str):
        return self._store.get(key)


class FakeRedisMixin:
    """Patch both Redis lookups with one in-memory ``FakeRedis`` per test class."""

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()


def create_user(email: str, role: Role = Role.CONSUMER, password: str = PASSWORD, **extra):
    """Create an account directly, bypassing the administrator-role guard."""
    extra.setdefault("name", email.split("@")[0].title())
    if role == Role.ADMINISTRATOR:
        return User.objects.create_superuser(email, password, **extra)
    return User.objects.create_user(email, password, role=role, **extra)


def create_category(name: str = "Development", slug: str = "dev") -> Category:
    category, _ = Category.objects.get_or_create(slug=slug, defaults={"name": name})
    return category


def create_article(author, category=None, state=None, **fields) -> Article:
    """Insert an article in ``state`` (Pending by default) without the API."""
    fields.setdefault("title", "Article")
    fields.setdefault("summary", "Summary")
    article = Article(author=author, category=category or create_category(), **fields)
    article.apply_state(state or Pending())
    article.save()
    return article


def approved(at=None) -> Approved:
    return Approved(at=at or timezone.now())


def rejected(reason: str = "Needs work") -> Rejected:
    return Rejected(reason=reason)


def client_for(user) -> APIClient:
    """APIClient carrying a fresh access token for ``user``."""
    access, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return client
