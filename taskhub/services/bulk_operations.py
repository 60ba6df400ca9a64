"""
Bulk operations over many action items.

One logical command (archive, unarchive, set_approval, set_status) is
applied to a list of IDs by repeating the single-item operation once per
ID. Each item is committed on its own:

  - a failing ID is recorded as ``{"id", "reason"}`` and the next ID is
    processed anyway;
  - rows committed before a later failure stay committed. There is no
    rollback of the batch, and callers needing all-or-nothing semantics
    must not use this module.

Running the same command twice is safe: items already in the target
state are left alone and still counted as successes.

Usage:
    from taskhub.services.bulk_operations import apply_bulk

    result = apply_bulk("set_approval", [1, 2, 99], actor, approved=True)
    result.count      # 2
    result.failures   # [{"id": 99, "reason": "NotFoundError"}]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from taskhub.core.exceptions import TaskhubError, ValidationError
from taskhub.services import approval_gate, task_lifecycle
from taskhub.services.permission import Actor, check_admin

logger = logging.getLogger(__name__)

OP_ARCHIVE = "archive"
OP_UNARCHIVE = "unarchive"
OP_SET_APPROVAL = "set_approval"
OP_SET_STATUS = "set_status"
BULK_OPERATIONS = (OP_ARCHIVE, OP_UNARCHIVE, OP_SET_APPROVAL, OP_SET_STATUS)

# Operations only administrators may issue at all; set_status is checked per item.
_ADMIN_OPERATIONS = {
    OP_ARCHIVE: "archive action items",
    OP_UNARCHIVE: "unarchive action items",
    OP_SET_APPROVAL: "change action item approval",
}


@dataclass
class BulkResult:
    """Aggregate outcome of a bulk command."""

    count: int = 0
    failures: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"count": self.count, "failures": list(self.failures)}


def _dedupe(task_ids) -> list:
    seen = set()
    ordered = []
    for tid in task_ids:
        if tid not in seen:
            seen.add(tid)
            ordered.append(tid)
    return ordered


def _validate_command(operation: str, task_ids, status, approved) -> None:
    if operation not in BULK_OPERATIONS:
        raise ValidationError(
            f"Unknown bulk operation '{operation}'. Must be one of: {', '.join(BULK_OPERATIONS)}",
            details={"operation": "invalid"},
        )
    if not task_ids:
        raise ValidationError("taskIds must be a non-empty list", details={"taskIds": "required"})
    if operation == OP_SET_STATUS:
        if status is None:
            raise ValidationError("status is required", details={"status": "required"})
        task_lifecycle.validate_status(status)
    if operation == OP_SET_APPROVAL and not isinstance(approved, bool):
        raise ValidationError("is_approved must be true or false", details={"is_approved": "invalid"})


def _apply_one(operation: str, task_id, actor: Actor, status, approved) -> None:
    if operation == OP_ARCHIVE:
        task_lifecycle.archive_task(task_id, actor)
    elif operation == OP_UNARCHIVE:
        task_lifecycle.unarchive_task(task_id, actor)
    elif operation == OP_SET_APPROVAL:
        approval_gate.set_approval(task_id, approved, actor)
    else:
        task_lifecycle.set_status(task_id, status, actor)


def apply_bulk(
    operation: str,
    task_ids,
    actor: Actor | None,
    *,
    status: str | None = None,
    approved: bool | None = None,
) -> BulkResult:
    """
    Apply ``operation`` to every ID in ``task_ids`` independently.

    Args:
        operation: One of BULK_OPERATIONS.
        task_ids: Non-empty list of action item IDs. Duplicates are
            processed once.
        actor: Calling identity.
        status: Target status for ``set_status``.
        approved: Target flag for ``set_approval``.

    Returns:
        BulkResult with the success count and per-ID failures.

    Raises:
        ValidationError / InvalidStatusError: malformed command (nothing applied).
        AuthorizationError: the actor may not issue this operation at all.
    """
    _validate_command(operation, task_ids, status, approved)
    if operation in _ADMIN_OPERATIONS:
        check_admin(actor, _ADMIN_OPERATIONS[operation])

    result = BulkResult()
    for task_id in _dedupe(task_ids):
        try:
            _apply_one(operation, task_id, actor, status, approved)
        except TaskhubError as exc:
            logger.warning(
                "Bulk %s skipped action item %s: %s", operation, task_id, exc,
                extra={"task_id": task_id, "role": actor.role if actor else None},
            )
            result.failures.append({"id": task_id, "reason": exc.kind})
            continue
        result.count += 1

    logger.info(
        "Bulk %s applied to %d of %d action items",
        operation, result.count, result.count + len(result.failures),
        extra={"role": actor.role if actor else None},
    )
    return result
