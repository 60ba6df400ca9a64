"""
Action item service facade: create, read, generic update, client options.

Status, approval and category changes are delegated to the lifecycle,
approval-gate and partition modules so their rules live in one place.
The generic update validates and authorizes every requested change
before touching the row, then commits once: a PATCH either applies fully
or not at all.

Rules:
  - the acting ``Actor`` is always an explicit parameter (never from g)
  - commits happen only through task_store
"""

from __future__ import annotations

import logging

from taskhub.core.exceptions import ValidationError
from taskhub.models.action_item import (
    AGENT_TYPES,
    CATEGORY_USER,
    MANUAL_AGENT_TYPE,
    STATUS_PENDING,
    TITLE_MAX_LENGTH,
    ActionItem,
)
from taskhub.models.task_metadata import storable_payload
from taskhub.services import approval_gate, task_lifecycle, task_store
from taskhub.services.category_partition import validate_category
from taskhub.services.permission import Actor, check_admin, check_visible
from taskhub.utils.helpers import parse_bool_input, parse_datetime_input, parse_int_input

logger = logging.getLogger(__name__)

# Fields the generic update accepts; anything else in the body is ignored.
UPDATABLE_FIELDS = ("title", "description", "status", "is_approved", "due_date", "metadata")
_ADMIN_ONLY_FIELDS = ("title", "description", "is_approved", "due_date", "metadata")


def _clean_title(value) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError("title must be a string", details={"title": "invalid"})
    title = (value or "").strip()
    if not title:
        raise ValidationError("title is required", details={"title": "required"})
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"title must be ≤ {TITLE_MAX_LENGTH} characters", details={"title": "too_long"},
        )
    return title


def _clean_agent_type(value):
    if value in (None, ""):
        return None
    if value not in AGENT_TYPES:
        raise ValidationError(
            f"agent_type must be one of: {', '.join(AGENT_TYPES)}", details={"agent_type": "invalid"},
        )
    return value


def _clean_description(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("description must be a string", details={"description": "invalid"})
    return value


# ── Create ───────────────────────────────────────────────────────────────────


def create_task(data: dict, actor: Actor | None, *, created_by_admin: bool = True) -> ActionItem:
    """
    Create one action item.

    Manual creation goes through the admin API (``created_by_admin=True``,
    agent_type defaults to MANUAL). Agent pipelines call this with
    ``created_by_admin=False`` and their own agent_type.

    Args:
        data: organization_id (required), title (required), description,
              category (default USER), status (default pending),
              is_approved (default false), location_id, agent_type,
              due_date, metadata.
        actor: Calling identity; must be an administrator.

    Raises:
        AuthorizationError, ValidationError, InvalidCategoryError,
        InvalidStatusError, NotFoundError (organization / location), StoreError
    """
    check_admin(actor, "create action items")

    organization_id = parse_int_input(data.get("organization_id"), "organization_id")
    if organization_id is None:
        raise ValidationError("organization_id is required", details={"organization_id": "required"})
    title = _clean_title(data.get("title"))
    category = validate_category(data.get("category") or CATEGORY_USER)
    status = task_lifecycle.validate_status(data.get("status") or STATUS_PENDING)
    is_approved = parse_bool_input(data.get("is_approved"), "is_approved") or False
    location_id = parse_int_input(data.get("location_id"), "location_id")
    metadata = storable_payload(data.get("metadata"))
    due_date = parse_datetime_input(data.get("due_date"), "due_date")
    agent_type = _clean_agent_type(data.get("agent_type"))
    if agent_type is None and created_by_admin:
        agent_type = MANUAL_AGENT_TYPE

    task_store.get_organization(organization_id)
    if location_id is not None:
        location = task_store.get_location(location_id)
        if location.organization_id != organization_id:
            raise ValidationError(
                "location_id does not belong to the organization", details={"location_id": "invalid"},
            )

    item = ActionItem(
        organization_id=organization_id,
        location_id=location_id,
        title=title,
        description=_clean_description(data.get("description")),
        category=category,
        status=STATUS_PENDING,
        is_approved=is_approved,
        created_by_admin=created_by_admin,
        agent_type=agent_type,
        metadata_json=metadata,
        due_date=due_date,
    )
    if status != STATUS_PENDING:
        task_lifecycle.apply_status(item, status)

    task_store.add(item)
    logger.info(
        "Action item %s created (%s/%s) organization_id=%s",
        item.id, item.category, item.status, organization_id,
        extra={"task_id": item.id, "organization_id": organization_id, "role": actor.role},
    )
    return item


# ── Read ─────────────────────────────────────────────────────────────────────


def get_task(task_id: int, actor: Actor | None) -> ActionItem:
    """Fetch one item visible to ``actor``."""
    item = task_store.get_task(task_id)
    check_visible(actor, item)
    return item


def list_client_options(actor: Actor | None) -> list[dict]:
    """Organizations an administrator can assign tasks to."""
    check_admin(actor, "list client organizations")
    return [org.to_option() for org in task_store.list_organizations()]


# ── Generic update ───────────────────────────────────────────────────────────


def update_task(task_id: int, data: dict, actor: Actor | None) -> ActionItem:
    """
    Apply a partial update to one action item in a single commit.

    Accepts any of UPDATABLE_FIELDS. ``status`` follows the lifecycle
    rules (and is how archived items are restored: ``{"status": "pending"}``);
    ``is_approved`` follows the approval gate. Category changes are not
    accepted here; use ``category_partition.recategorize``.

    Raises:
        NotFoundError, ValidationError, InvalidStatusError,
        InvalidTransitionError, AuthorizationError, StoreError
    """
    if "category" in data:
        raise ValidationError(
            "category cannot be changed by a generic update; use the category endpoint",
            details={"category": "read_only"},
        )
    changes = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
    if not changes:
        raise ValidationError(
            f"Nothing to update. Supported fields: {', '.join(UPDATABLE_FIELDS)}",
        )

    # 1. Validate values
    if "title" in changes:
        changes["title"] = _clean_title(changes["title"])
    if "description" in changes:
        changes["description"] = _clean_description(changes["description"])
    if "status" in changes:
        task_lifecycle.validate_status(changes["status"])
    if "is_approved" in changes:
        changes["is_approved"] = parse_bool_input(changes["is_approved"], "is_approved")
        if changes["is_approved"] is None:
            raise ValidationError("is_approved must be true or false", details={"is_approved": "invalid"})
    if "due_date" in changes:
        changes["due_date"] = parse_datetime_input(changes["due_date"], "due_date")
    if "metadata" in changes:
        changes["metadata"] = storable_payload(changes["metadata"])

    # 2. Authorize
    item = task_store.get_task(task_id)
    check_visible(actor, item)
    if any(f in changes for f in _ADMIN_ONLY_FIELDS):
        check_admin(actor, "edit action item fields")
    if "status" in changes:
        task_lifecycle.check_status_change(actor, item, changes["status"])

    # 3. Apply (status first: it is the only step that can still refuse)
    changed = False
    if "status" in changes:
        changed |= task_lifecycle.apply_status(item, changes["status"])
    if "is_approved" in changes:
        changed |= approval_gate.apply_approval(item, changes["is_approved"])
    for field, column in (("title", "title"), ("description", "description"),
                          ("due_date", "due_date"), ("metadata", "metadata_json")):
        if field in changes and getattr(item, column) != changes[field]:
            setattr(item, column, changes[field])
            changed = True

    if not changed:
        return item
    task_store.save(item)
    logger.info(
        "Action item %s updated fields=%s",
        item.id, ",".join(sorted(changes)),
        extra={"task_id": item.id, "organization_id": item.organization_id, "role": actor.role},
    )
    return item
