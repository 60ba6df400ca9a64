"""
Role-based access rules for action items.

The caller's identity arrives as an explicit ``Actor`` value on every
service call (the JWT middleware builds one per request). Nothing in the
service layer reads roles from ``flask.g`` or any other ambient state.

Roles:
    admin    full access across every organization
    manager  may toggle USER items of its own organization complete / not complete
    viewer   read-only access to its own organization (any unknown role maps here)

ALLORO items are read-only for every non-admin actor.

Usage:
    from taskhub.services.permission import Actor, check_can_toggle

    actor = Actor(user_id=7, role="manager", organization_id=3)
    check_can_toggle(actor, item)   # raises AuthorizationError
"""

from __future__ import annotations

from dataclasses import dataclass

from taskhub.core.exceptions import AuthorizationError, NotFoundError
from taskhub.models.action_item import CATEGORY_USER

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_VIEWER = "viewer"

EDIT_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER})


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a service operation."""

    user_id: int | str | None
    role: str
    organization_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def can_edit(self) -> bool:
        return self.role in EDIT_ROLES


def check_admin(actor: Actor | None, action: str) -> None:
    """Raise AuthorizationError unless the actor is an administrator."""
    if actor is None or not actor.is_admin:
        raise AuthorizationError(actor.role if actor else None, action, "administrator role required")


def check_visible(actor: Actor | None, item) -> None:
    """Assert the item lies within the actor's organization.

    Items of other organizations are reported as missing so a non-admin
    caller cannot probe which IDs exist.
    """
    if actor is None:
        raise AuthorizationError(None, "read action items")
    if actor.is_admin:
        return
    if actor.organization_id is None or item.organization_id != actor.organization_id:
        raise NotFoundError("ActionItem", item.id)


def check_can_toggle(actor: Actor | None, item) -> None:
    """Assert the actor may change the completion status of ``item``.

    Admins always may. Other roles need edit privilege, and the item must
    be a USER item of their own organization.
    """
    check_visible(actor, item)
    if actor.is_admin:
        return
    if not actor.can_edit:
        raise AuthorizationError(actor.role, "change action item status", "edit privilege required")
    if item.category != CATEGORY_USER:
        raise AuthorizationError(
            actor.role, "change action item status", f"{item.category} items are managed by administrators",
        )
