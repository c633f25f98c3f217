"""Article moderation states and the transition table.

The status is modelled as a tagged variant: ``Approved`` carries its
approval time and ``Rejected`` its reason, so the two can never be set at
the same time. ``Article.apply_state`` is the only writer of the
corresponding columns.

Transitions::

    Pending  --approve-->  Approved        Approved --edit--> Pending
    Pending  --reject-->   Rejected        Rejected --edit--> Pending
    Approved --reject-->   Rejected        Pending  --edit--> Pending
    Rejected --approve-->  Approved

Re-approving an approved article restamps the approval time and re-rejecting
a rejected article replaces the reason. No state is terminal.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Union

from django.db import models

from core.errors import ValidationError


class ArticleStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


@dataclass(frozen=True)
class Pending:
    status: ClassVar[str] = ArticleStatus.PENDING


@dataclass(frozen=True)
class Approved:
    at: datetime
    status: ClassVar[str] = ArticleStatus.APPROVED


@dataclass(frozen=True)
class Rejected:
    reason: str
    status: ClassVar[str] = ArticleStatus.REJECTED


ArticleState = Union[Pending, Approved, Rejected]


class Trigger(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"


TRANSITIONS: dict[tuple[str, Trigger], str] = {
    (ArticleStatus.PENDING, Trigger.APPROVE): ArticleStatus.APPROVED,
    (ArticleStatus.PENDING, Trigger.REJECT): ArticleStatus.REJECTED,
    (ArticleStatus.PENDING, Trigger.EDIT): ArticleStatus.PENDING,
    (ArticleStatus.APPROVED, Trigger.APPROVE): ArticleStatus.APPROVED,
    (ArticleStatus.APPROVED, Trigger.REJECT): ArticleStatus.REJECTED,
    (ArticleStatus.APPROVED, Trigger.EDIT): ArticleStatus.PENDING,
    (ArticleStatus.REJECTED, Trigger.APPROVE): ArticleStatus.APPROVED,
    (ArticleStatus.REJECTED, Trigger.REJECT): ArticleStatus.REJECTED,
    (ArticleStatus.REJECTED, Trigger.EDIT): ArticleStatus.PENDING,
}


def clean_reason(reason: Optional[str]) -> str:
    """Return the stripped rejection reason or raise ``ValidationError``."""
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("Rejection reason is required.")
    return reason.strip()


def next_state(
    current: ArticleState,
    trigger: Trigger,
    *,
    now: datetime,
    reason: Optional[str] = None,
) -> ArticleState:
    """Compute the state reached from ``current`` by ``trigger``.

    Pure: nothing is written. Raises ``ValidationError`` for a rejection
    without a usable reason or a transition missing from the table.
    """

    target = TRANSITIONS.get((current.status, trigger))
    if target is None:
        raise ValidationError(f"Cannot {trigger.value} an article in status {current.status}.")

    if target == ArticleStatus.APPROVED:
        return Approved(at=now)
    if target == ArticleStatus.REJECTED:
        return Rejected(reason=clean_reason(reason))
    return Pending()


__all__ = [
    "ArticleStatus",
    "ArticleState",
    "Pending",
    "Approved",
    "Rejected",
    "Trigger",
    "TRANSITIONS",
    "clean_reason",
    "next_state",
]
