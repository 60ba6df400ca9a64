"""
Service-wide exception hierarchy.

Every service in taskhub raises these types; the task blueprint registers
one error handler per type and gets consistent HTTP status codes.

Bulk operations also rely on these classes: a per-item failure is reported
by the class name of the exception (``NotFoundError``, ``StoreError``, ...),
so renaming a class here is an API change.

Usage:
    from taskhub.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="ActionItem", resource_id=42)
    raise ValidationError("title is required", details={"title": "required"})
"""


class TaskhubError(Exception):
    """Base class for all domain errors raised by the service layer."""

    @property
    def kind(self) -> str:
        """Error kind name used in bulk failure reports."""
        return type(self).__name__


class NotFoundError(TaskhubError):
    """Raised when a requested resource does not exist within the caller's scope.

    Used for BOTH genuinely missing rows AND items owned by another
    organization. A 403 would confirm the item exists; a 404 does not.

    Args:
        resource: Human-readable entity name (e.g. "ActionItem").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(TaskhubError):
    """Raised when input is well-formed but violates a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidStatusError(ValidationError):
    """Raised when a status value is outside the action item status enum."""

    def __init__(self, value) -> None:
        from taskhub.models.action_item import TASK_STATUSES

        self.value = value
        super().__init__(
            f"Invalid status '{value}'. Must be one of: {', '.join(TASK_STATUSES)}",
            details={"status": "invalid"},
        )


class InvalidCategoryError(ValidationError):
    """Raised when a category value is outside the ALLORO/USER enum."""

    def __init__(self, value) -> None:
        from taskhub.models.action_item import TASK_CATEGORIES

        self.value = value
        super().__init__(
            f"Invalid category '{value}'. Must be one of: {', '.join(TASK_CATEGORIES)}",
            details={"category": "invalid"},
        )


class InvalidTransitionError(TaskhubError):
    """Raised when a status change is not allowed in a single step.

    The only such change is leaving ``archived`` for anything but
    ``pending``: archived items are unarchived first.
    """

    def __init__(self, task_id: int, current: str, target: str) -> None:
        self.task_id = task_id
        self.current_status = current
        self.target_status = target
        super().__init__(
            f"Cannot move action item {task_id} from '{current}' to '{target}'; "
            f"unarchive it to 'pending' first"
        )


class AuthorizationError(TaskhubError):
    """Raised when the acting role lacks the capability for an operation.

    Args:
        role: Role of the acting caller (None when no caller context exists).
        action: Operation that was attempted (e.g. "set_approval").
        reason: Optional extra explanation shown to the caller.
    """

    def __init__(self, role: str | None, action: str, reason: str | None = None) -> None:
        self.role = role
        self.action = action
        msg = f"Role '{role or 'anonymous'}' is not allowed to {action}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StoreError(TaskhubError):
    """Raised when the underlying persistence layer fails.

    The session has already been rolled back when this is raised; callers
    may retry the whole operation.
    """
