"""
Approval gate: administrative sign-off on an action item.

``is_approved`` is a plain boolean, independent of status and category.
There is no state machine: either value may follow the other, and
writing the current value again is a successful no-op.
"""

import logging

from taskhub.models.action_item import ActionItem
from taskhub.services import task_store
from taskhub.services.permission import Actor, check_admin

logger = logging.getLogger(__name__)


def apply_approval(item: ActionItem, approved: bool) -> bool:
    """Set ``is_approved`` in memory. Returns True if the value changed."""
    approved = bool(approved)
    if bool(item.is_approved) == approved:
        return False
    item.is_approved = approved
    return True


def set_approval(task_id: int, approved: bool, actor: Actor | None) -> ActionItem:
    """Overwrite the approval flag of one item. Administrators only.

    Raises:
        AuthorizationError, NotFoundError, StoreError
    """
    check_admin(actor, "change action item approval")
    item = task_store.get_task(task_id)
    if not apply_approval(item, approved):
        return item

    task_store.save(item)
    logger.info(
        "Action item %s approval set to %s",
        item.id, item.is_approved,
        extra={"task_id": item.id, "organization_id": item.organization_id, "role": actor.role},
    )
    return item
