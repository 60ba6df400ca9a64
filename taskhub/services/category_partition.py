"""
Category partition: ALLORO (system managed) versus USER (staff managed).

``partition`` is a pure grouping used for display lanes and for the USER
completion counts. ``recategorize`` is the only operation in the service
that may change an item's category.
"""

import logging

from taskhub.core.exceptions import InvalidCategoryError
from taskhub.models.action_item import (
    CATEGORY_ALLORO,
    CATEGORY_USER,
    STATUS_ARCHIVED,
    STATUS_COMPLETE,
    TASK_CATEGORIES,
    ActionItem,
)
from taskhub.services import task_store
from taskhub.services.permission import Actor, check_admin

logger = logging.getLogger(__name__)


def validate_category(value) -> str:
    if value not in TASK_CATEGORIES:
        raise InvalidCategoryError(value)
    return value


def partition(items) -> dict[str, list]:
    """Group items by category, keeping input order inside each group.

    Both keys are always present. Works on ActionItem rows and on their
    serialized dicts alike.
    """
    grouped = {CATEGORY_ALLORO: [], CATEGORY_USER: []}
    for item in items:
        category = item["category"] if isinstance(item, dict) else item.category
        grouped[category].append(item)
    return grouped


def completion_summary(grouped: dict[str, list]) -> dict:
    """Progress counts over USER items only ("N of M tasks remaining").

    Archived items do not count towards either side.
    """
    def _status(item):
        return item["status"] if isinstance(item, dict) else item.status

    user_items = [i for i in grouped.get(CATEGORY_USER, []) if _status(i) != STATUS_ARCHIVED]
    total = len(user_items)
    done = sum(1 for i in user_items if _status(i) == STATUS_COMPLETE)
    return {
        "total": total,
        "complete": done,
        "remaining": total - done,
        "completion_pct": round(done * 100 / total) if total else 0,
    }


def recategorize(task_id: int, new_category: str, actor: Actor | None) -> ActionItem:
    """Move one item to another category. Administrators only.

    Only ``category`` changes; status, approval and completed_at stay.

    Raises:
        InvalidCategoryError, AuthorizationError, NotFoundError, StoreError
    """
    validate_category(new_category)
    check_admin(actor, "recategorize action items")
    item = task_store.get_task(task_id)
    if item.category == new_category:
        return item

    previous = item.category
    item.category = new_category
    task_store.save(item)
    logger.info(
        "Action item %s recategorized %s -> %s",
        item.id, previous, new_category,
        extra={"task_id": item.id, "organization_id": item.organization_id, "role": actor.role},
    )
    return item
