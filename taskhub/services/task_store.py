"""
Action item store: the only module that touches the database session.

Every mutation is committed as a single-row unit of work. A failed commit
is rolled back and re-raised as StoreError, so callers never see a
half-written row and the session stays usable for the next row (bulk
operations depend on that).

There are no multi-row transactions here: concurrent writers to the same
row follow last-write-wins.

Usage:
    from taskhub.services import task_store

    item = task_store.get_task(42)          # NotFoundError if missing
    item.status = "pending"
    task_store.save(item)                   # StoreError on DB failure
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from taskhub.core.exceptions import NotFoundError, StoreError
from taskhub.models import db
from taskhub.models.action_item import ActionItem
from taskhub.models.organization import Location, Organization

logger = logging.getLogger(__name__)


def get_task(task_id: int) -> ActionItem:
    """Fetch one action item by PK.

    Raises:
        NotFoundError: No row with that id.
        StoreError: The lookup itself failed.
    """
    try:
        item = db.session.get(ActionItem, task_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Action item lookup failed task_id=%s", task_id)
        raise StoreError(f"Could not load action item {task_id}") from exc
    if item is None:
        raise NotFoundError("ActionItem", task_id)
    return item


def get_organization(organization_id: int) -> Organization:
    org = db.session.get(Organization, organization_id)
    if org is None:
        raise NotFoundError("Organization", organization_id)
    return org


def get_location(location_id: int) -> Location:
    loc = db.session.get(Location, location_id)
    if loc is None:
        raise NotFoundError("Location", location_id)
    return loc


def list_organizations() -> list[Organization]:
    return list(db.session.execute(select(Organization).order_by(Organization.name, Organization.id)).scalars())


def add(item: ActionItem) -> ActionItem:
    """Insert a new action item and commit it."""
    db.session.add(item)
    _commit(f"create action item in organization {item.organization_id}")
    return item


def save(item: ActionItem) -> ActionItem:
    """Commit pending changes on an already loaded action item."""
    _commit(f"update action item {item.id}")
    return item


def query_page(stmt, *, order_by, limit: int, offset: int) -> tuple[list[ActionItem], int]:
    """Run a filtered select and return ``(page_items, total_matching)``.

    ``stmt`` is a ``select(ActionItem)`` with filters applied and no
    ordering; the total is counted over the unpaginated statement.
    """
    try:
        total = db.session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
        items = list(
            db.session.execute(stmt.order_by(*order_by).limit(limit).offset(offset)).scalars().unique()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Action item query failed")
        raise StoreError("Could not query action items") from exc
    return items, total


def _commit(description: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Database commit failed: %s", description)
        raise StoreError(f"Could not {description}") from exc
