"""
Action item query engine.

Translates a filter specification into a store query with pagination and
a stable ordering (newest first), and serves the two read paths:

  - admin "all tasks":   flat, filtered, paginated list + total count
  - client "my tasks":   the caller's own organization, archived items
                         hidden, grouped into ALLORO / USER lanes

Every filter field is optional; supplied fields combine with AND.

Usage:
    from taskhub.services.task_query import TaskFilter, list_admin_tasks

    flt = TaskFilter.from_args(request.args)
    page = list_admin_tasks(flt, actor)
    page.items, page.total
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from taskhub.core.exceptions import AuthorizationError, ValidationError
from taskhub.models.action_item import AGENT_TYPES, STATUS_ARCHIVED, ActionItem
from taskhub.services import task_store
from taskhub.services.category_partition import completion_summary, partition, validate_category
from taskhub.services.permission import Actor, check_admin
from taskhub.services.task_lifecycle import validate_status
from taskhub.utils.helpers import parse_bool_input, parse_datetime_input, parse_int_input

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

ORDERING = (ActionItem.created_at.desc(), ActionItem.id.desc())

# Query-string aliases accepted in addition to the snake_case names.
_ARG_ALIASES = {
    "organization_id": ("organization_id", "organizationId"),
    "location_id": ("location_id", "locationId"),
    "category": ("category",),
    "status": ("status",),
    "is_approved": ("is_approved", "isApproved"),
    "agent_type": ("agent_type", "agentType"),
    "date_from": ("date_from", "dateFrom"),
    "date_to": ("date_to", "dateTo"),
    "limit": ("limit",),
    "offset": ("offset",),
}


@dataclass(frozen=True)
class TaskFilter:
    """Filter specification for action item queries."""

    organization_id: int | None = None
    location_id: int | None = None
    category: str | None = None
    status: str | None = None
    is_approved: bool | None = None
    agent_type: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        if self.category is not None:
            validate_category(self.category)
        if self.status is not None:
            validate_status(self.status)
        if self.agent_type is not None and self.agent_type not in AGENT_TYPES:
            raise ValidationError(
                f"agent_type must be one of: {', '.join(AGENT_TYPES)}", details={"agent_type": "invalid"},
            )
        if self.limit < 1:
            raise ValidationError("limit must be a positive integer", details={"limit": "invalid"})
        if self.offset < 0:
            raise ValidationError("offset must not be negative", details={"offset": "invalid"})

    @classmethod
    def from_args(cls, args, *, default_limit: int = DEFAULT_PAGE_SIZE, max_limit: int = MAX_PAGE_SIZE) -> "TaskFilter":
        """Build a filter from a query-string mapping (e.g. ``request.args``).

        Empty values are treated as absent. ``limit`` is capped at
        ``max_limit``.
        """
        raw = {}
        for name, aliases in _ARG_ALIASES.items():
            for alias in aliases:
                value = args.get(alias)
                if value not in (None, ""):
                    raw[name] = value
                    break

        limit = parse_int_input(raw.get("limit"), "limit")
        return cls(
            organization_id=parse_int_input(raw.get("organization_id"), "organization_id"),
            location_id=parse_int_input(raw.get("location_id"), "location_id"),
            category=raw.get("category"),
            status=raw.get("status"),
            is_approved=parse_bool_input(raw.get("is_approved"), "is_approved"),
            agent_type=raw.get("agent_type"),
            date_from=parse_datetime_input(raw.get("date_from"), "date_from"),
            date_to=parse_datetime_input(raw.get("date_to"), "date_to", end_of_day=True),
            limit=min(limit, max_limit) if limit is not None else default_limit,
            offset=parse_int_input(raw.get("offset"), "offset") or 0,
        )


@dataclass(frozen=True)
class TaskPage:
    items: list
    total: int


# ── Query building ───────────────────────────────────────────────────────────


def build_statement(flt: TaskFilter):
    """Return an unordered ``select(ActionItem)`` with every filter applied."""
    stmt = select(ActionItem)
    if flt.organization_id is not None:
        stmt = stmt.where(ActionItem.organization_id == flt.organization_id)
    if flt.location_id is not None:
        stmt = stmt.where(ActionItem.location_id == flt.location_id)
    if flt.category is not None:
        stmt = stmt.where(ActionItem.category == flt.category)
    if flt.status is not None:
        stmt = stmt.where(ActionItem.status == flt.status)
    if flt.is_approved is not None:
        stmt = stmt.where(ActionItem.is_approved == flt.is_approved)
    if flt.agent_type is not None:
        stmt = stmt.where(ActionItem.agent_type == flt.agent_type)
    if flt.date_from is not None:
        stmt = stmt.where(ActionItem.created_at >= flt.date_from)
    if flt.date_to is not None:
        stmt = stmt.where(ActionItem.created_at <= flt.date_to)
    return stmt


def find_tasks(flt: TaskFilter) -> TaskPage:
    """Run a filter and return one page plus the total number of matches."""
    items, total = task_store.query_page(
        build_statement(flt), order_by=ORDERING, limit=flt.limit, offset=flt.offset,
    )
    return TaskPage(items=items, total=total)


def list_admin_tasks(flt: TaskFilter, actor: Actor | None) -> TaskPage:
    """Admin hub listing across all organizations."""
    check_admin(actor, "list all action items")
    page = find_tasks(flt)
    logger.debug("Admin task query matched %d rows (page of %d)", page.total, len(page.items))
    return page


def list_client_tasks(actor: Actor | None, *, location_id: int | None = None) -> dict:
    """Grouped tasks for the caller's own organization.

    Returns:
        {"tasks": {"ALLORO": [...], "USER": [...]}, "total": int, "summary": {...}}
        with ActionItem rows in the lanes.
    """
    if actor is None:
        raise AuthorizationError(None, "read action items")
    if actor.organization_id is None:
        raise ValidationError("No organization is associated with the current user")

    stmt = build_statement(TaskFilter(organization_id=actor.organization_id, location_id=location_id))
    stmt = stmt.where(ActionItem.status != STATUS_ARCHIVED)
    items, total = task_store.query_page(stmt, order_by=ORDERING, limit=None, offset=0)
    grouped = partition(items)
    return {"tasks": grouped, "total": total, "summary": completion_summary(grouped)}
