"""Authorization policy table for portal operations.

Every decision is a pure function of ``(role, operation, is_owner, state)``.
Each ``Rule`` has two parts:

- ``roles``: the role gate, checkable before the target resource is loaded.
  ``RolePermission`` applies it at the view layer.
- ``condition``: an optional predicate over ownership and article status,
  evaluated once the resource is known.

Ownership is evaluated before role wherever both apply: an Administrator is
never treated as the owner of somebody else's article.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from access_control.roles import Role
from core.errors import AuthorizationError

logger = logging.getLogger(__name__)

ALL_ROLES = frozenset(Role)


class Operation(str, Enum):
    """Operations subject to authorization."""

    CREATE_ARTICLE = "create_article"
    EDIT_ARTICLE = "edit_article"
    DELETE_ARTICLE = "delete_article"
    APPROVE_ARTICLE = "approve_article"
    REJECT_ARTICLE = "reject_article"
    READ_ARTICLE = "read_article"
    BROWSE_ARTICLES = "browse_articles"
    RECORD_VIEW = "record_view"
    PENDING_QUEUE = "pending_queue"
    ADMIN_SEARCH = "admin_search"
    OWN_ARTICLES = "own_articles"
    DASHBOARD = "dashboard"
    CREATE_COMMENT = "create_comment"
    LIST_COMMENTS = "list_comments"
    MANAGE_ACCOUNTS = "manage_accounts"
    MANAGE_CATEGORIES = "manage_categories"
    LIST_CATEGORIES = "list_categories"


Condition = Callable[[Role, bool, Optional[str]], bool]


def _owner_only(role: Role, is_owner: bool, state: Optional[str]) -> bool:
    return is_owner


def _visible(role: Role, is_owner: bool, state: Optional[str]) -> bool:
    if state == "approved":
        return True
    return is_owner or role == Role.ADMINISTRATOR


def _approved_only(role: Role, is_owner: bool, state: Optional[str]) -> bool:
    return state == "approved"


@dataclass(frozen=True)
class Rule:
    roles: frozenset
    condition: Optional[Condition] = None


ADMIN_ONLY = frozenset({Role.ADMINISTRATOR})

POLICY: dict[Operation, Rule] = {
    Operation.CREATE_ARTICLE: Rule(frozenset({Role.CONTRIBUTOR})),
    Operation.EDIT_ARTICLE: Rule(ALL_ROLES, _owner_only),
    Operation.DELETE_ARTICLE: Rule(ALL_ROLES, _owner_only),
    Operation.APPROVE_ARTICLE: Rule(ADMIN_ONLY),
    Operation.REJECT_ARTICLE: Rule(ADMIN_ONLY),
    Operation.READ_ARTICLE: Rule(ALL_ROLES, _visible),
    Operation.BROWSE_ARTICLES: Rule(ALL_ROLES),
    Operation.RECORD_VIEW: Rule(ALL_ROLES, _visible),
    Operation.PENDING_QUEUE: Rule(ADMIN_ONLY),
    Operation.ADMIN_SEARCH: Rule(ADMIN_ONLY),
    Operation.OWN_ARTICLES: Rule(frozenset({Role.CONTRIBUTOR})),
    Operation.DASHBOARD: Rule(ALL_ROLES),
    Operation.CREATE_COMMENT: Rule(ALL_ROLES, _approved_only),
    Operation.LIST_COMMENTS: Rule(ALL_ROLES, _visible),
    Operation.MANAGE_ACCOUNTS: Rule(ADMIN_ONLY),
    Operation.MANAGE_CATEGORIES: Rule(ADMIN_ONLY),
    Operation.LIST_CATEGORIES: Rule(ALL_ROLES),
}

# Operations whose denial must not reveal that the target exists.
CONCEALED = frozenset(
    {Operation.READ_ARTICLE, Operation.RECORD_VIEW, Operation.LIST_COMMENTS}
)


def role_permits(role: Role, operation: Operation) -> bool:
    """Return True if ``role`` passes the role gate for ``operation``."""

    rule = POLICY.get(operation)
    return bool(rule and role in rule.roles)


def allow(
    role: Role,
    operation: Operation,
    is_owner: bool = False,
    state: Optional[str] = None,
) -> bool:
    """Decide whether ``role`` may perform ``operation`` on a resource.

    ``state`` is the article status value (``"pending"``, ``"approved"``,
    ``"rejected"``) or None for operations without a target article.
    """

    rule = POLICY.get(operation)
    if rule is None or role not in rule.roles:
        return False
    if rule.condition is None:
        return True
    return rule.condition(role, is_owner, state)


def authorize(identity, operation: Operation, owner_id=None, state: Optional[str] = None) -> None:
    """Raise ``AuthorizationError`` unless ``identity`` may perform ``operation``.

    Denials of read-style operations are raised with ``conceal=True``, and so
    is any denial on an article the caller is not allowed to read: editing,
    deleting or commenting on a hidden article looks exactly like addressing
    one that does not exist.
    """

    is_owner = owner_id is not None and owner_id == identity.id
    if allow(identity.role, operation, is_owner=is_owner, state=state):
        return

    conceal = operation in CONCEALED or (
        state is not None
        and not allow(identity.role, Operation.READ_ARTICLE, is_owner=is_owner, state=state)
    )

    logger.info(
        "Denied %s for %s %s (owner=%s, state=%s)",
        operation.value,
        identity.role,
        identity.id,
        is_owner,
        state,
    )
    if operation == Operation.CREATE_COMMENT and not conceal:
        raise AuthorizationError("Comments are only accepted on approved articles.")
    raise AuthorizationError(conceal=conceal)


__all__ = ["Operation", "Rule", "POLICY", "allow", "authorize", "role_permits"]
