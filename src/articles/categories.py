"""Category management. Listing is open to every role; changes need an Administrator."""

import logging

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from access_control.policy import Operation, authorize
from core.errors import ConflictError, NotFoundError
from core.identity import Identity
from .models import Category

logger = logging.getLogger(__name__)


def _get(category_id) -> Category:
    try:
        return Category.objects.get(pk=category_id)
    except (Category.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Category not found.")


def _check_slug_free(slug: str, exclude_pk=None) -> None:
    qs = Category.objects.filter(slug=slug)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ConflictError("Slug already exists.")


def list_categories(actor: Identity):
    authorize(actor, Operation.LIST_CATEGORIES)
    return Category.objects.order_by("name")


def get_category(actor: Identity, category_id) -> Category:
    authorize(actor, Operation.LIST_CATEGORIES)
    return _get(category_id)


def create_category(actor: Identity, *, name: str, slug: str, description: str = "") -> Category:
    authorize(actor, Operation.MANAGE_CATEGORIES)
    try:
        with transaction.atomic():
            _check_slug_free(slug)
            category = Category.objects.create(name=name, slug=slug, description=description or "")
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same slug.
        raise ConflictError("Slug already exists.") from exc
    logger.info("Category %s (%s) created by %s", category.pk, slug, actor.id)
    return category


def update_category(actor: Identity, category_id, **changes) -> Category:
    authorize(actor, Operation.MANAGE_CATEGORIES)
    try:
        with transaction.atomic():
            category = _get(category_id)
            if "slug" in changes:
                _check_slug_free(changes["slug"], exclude_pk=category.pk)
            for field, value in changes.items():
                setattr(category, field, value)
            category.save()
    except IntegrityError as exc:
        raise ConflictError("Slug already exists.") from exc
    logger.info("Category %s updated by %s", category.pk, actor.id)
    return category


def delete_category(actor: Identity, category_id) -> None:
    authorize(actor, Operation.MANAGE_CATEGORIES)
    category = _get(category_id)
    try:
        with transaction.atomic():
            category.delete()
    except ProtectedError as exc:
        raise ConflictError("Category is still referenced by articles.") from exc
    logger.info("Category %s deleted by %s", category_id, actor.id)


__all__ = [
    "list_categories",
    "get_category",
    "create_category",
    "update_category",
    "delete_category",
]
