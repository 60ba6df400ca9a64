"""
Action item status lifecycle.

Manages status transitions with:
  - Status validation against the enum
  - The single forbidden shortcut (archived → in_progress / complete)
  - completed_at bookkeeping (set iff status == complete)
  - Role checks for non-admin callers

Transition table (target reachable from source):
    pending      → in_progress, complete, archived
    in_progress  → pending, complete, archived
    complete     → pending, in_progress, archived
    archived     → pending                       (unarchive)

Re-applying the current status is a successful no-op. For ``complete``
that means completed_at is kept unless the caller passes ``force=True``.

Usage:
    from taskhub.services.task_lifecycle import set_status, complete_task

    item = set_status(task_id=12, new_status="in_progress", actor=actor)
    item = complete_task(task_id=12, actor=actor)
"""

import logging
from datetime import datetime, timezone

from taskhub.core.exceptions import AuthorizationError, InvalidStatusError, InvalidTransitionError
from taskhub.models.action_item import (
    STATUS_ARCHIVED,
    STATUS_COMPLETE,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    TASK_STATUSES,
    ActionItem,
)
from taskhub.services import task_store
from taskhub.services.permission import Actor, check_admin, check_can_toggle, check_visible

logger = logging.getLogger(__name__)


STATUS_TRANSITIONS = {
    STATUS_PENDING: [STATUS_IN_PROGRESS, STATUS_COMPLETE, STATUS_ARCHIVED],
    STATUS_IN_PROGRESS: [STATUS_PENDING, STATUS_COMPLETE, STATUS_ARCHIVED],
    STATUS_COMPLETE: [STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_ARCHIVED],
    STATUS_ARCHIVED: [STATUS_PENDING],
}

# Statuses a non-admin editor may move a USER item between.
TOGGLE_STATUSES = frozenset({STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETE})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_status(value) -> str:
    """Return ``value`` if it is a known status, else raise InvalidStatusError."""
    if value not in TASK_STATUSES:
        raise InvalidStatusError(value)
    return value


def validate_transition(current: str, target: str) -> bool:
    """Return True if ``target`` is reachable from ``current`` in one step.

    Staying in the same status is always allowed (no-op).
    """
    if current == target:
        return True
    return target in STATUS_TRANSITIONS.get(current, [])


def apply_status(item: ActionItem, new_status: str, *, now: datetime | None = None, force: bool = False) -> bool:
    """Apply a status change to an in-memory item without persisting it.

    Returns:
        True if any column changed.

    Raises:
        InvalidStatusError, InvalidTransitionError
    """
    validate_status(new_status)
    current = item.status
    if not validate_transition(current, new_status):
        raise InvalidTransitionError(item.id, current, new_status)

    now = now or _utcnow()
    changed = False
    if current != new_status:
        item.status = new_status
        changed = True

    if new_status == STATUS_COMPLETE:
        if item.completed_at is None or force:
            item.completed_at = now
            changed = True
    elif item.completed_at is not None:
        item.completed_at = None
        changed = True
    return changed


def check_status_change(actor: Actor | None, item: ActionItem, new_status: str) -> None:
    """Role check for moving ``item`` to ``new_status``.

    Admins may apply any transition. Editors may only toggle non-archived
    USER items of their own organization between the working statuses.
    """
    check_visible(actor, item)
    if actor.is_admin:
        return
    check_can_toggle(actor, item)
    if item.status == STATUS_ARCHIVED or new_status not in TOGGLE_STATUSES:
        raise AuthorizationError(
            actor.role, f"move action item {item.id} to '{new_status}'", "archive and unarchive are reserved for administrators",
        )


def set_status(task_id: int, new_status: str, actor: Actor | None, *, force: bool = False) -> ActionItem:
    """
    Move one action item to ``new_status`` and persist it.

    Args:
        task_id: Action item PK.
        new_status: One of TASK_STATUSES.
        actor: Calling identity, used for the role check.
        force: Refresh completed_at even when the item is already complete.

    Returns:
        The updated (or unchanged) ActionItem.

    Raises:
        NotFoundError, InvalidStatusError, InvalidTransitionError,
        AuthorizationError, StoreError
    """
    validate_status(new_status)
    item = task_store.get_task(task_id)
    check_status_change(actor, item, new_status)

    previous = item.status
    if not apply_status(item, new_status, force=force):
        logger.debug("Action item %s already %s", item.id, new_status)
        return item

    task_store.save(item)
    logger.info(
        "Action item %s status %s -> %s by %s",
        item.id, previous, new_status, actor.role,
        extra={"task_id": item.id, "organization_id": item.organization_id, "role": actor.role},
    )
    return item


def complete_task(task_id: int, actor: Actor | None) -> ActionItem:
    """Mark an action item complete. The path staff editors use for USER items."""
    return set_status(task_id, STATUS_COMPLETE, actor)


def archive_task(task_id: int, actor: Actor | None) -> ActionItem:
    """Soft-delete an action item. Category, approval and metadata are kept."""
    return set_status(task_id, STATUS_ARCHIVED, actor)


def unarchive_task(task_id: int, actor: Actor | None) -> ActionItem:
    """Restore an archived item to pending; other items are left as they are."""
    check_admin(actor, "unarchive action items")
    item = task_store.get_task(task_id)
    if item.status != STATUS_ARCHIVED:
        return item
    return set_status(task_id, STATUS_PENDING, actor)
