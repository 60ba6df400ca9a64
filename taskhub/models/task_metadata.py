"""
Action item metadata.

Producers (agents, admins) attach a free-form metadata object to an action
item. The service relies on exactly one known field, ``urgency``; every
other key is carried through untouched.

Usage:
    from taskhub.models.task_metadata import TaskMetadata

    meta = TaskMetadata.parse('{"urgency": "High", "source": "gbp"}')
    meta.urgency          # "High"
    meta.is_high_priority # True
    meta.to_dict()        # {"urgency": "High", "source": "gbp"}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from taskhub.core.exceptions import ValidationError

URGENCY_LEVELS = ("Immediate", "High", "Normal", "Low")
DEFAULT_URGENCY = "Normal"
HIGH_PRIORITY_URGENCIES = frozenset({"Immediate", "High"})


def _load(raw):
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValidationError(
                "metadata must be a JSON object", details={"metadata": str(exc)},
            ) from exc
    if not isinstance(raw, dict):
        raise ValidationError("metadata must be a JSON object", details={"metadata": "not an object"})
    return raw


def storable_payload(raw) -> dict | None:
    """Validate a producer payload and return the object to persist as sent.

    Keys are kept verbatim, including an explicit ``"urgency": null``.
    Absent or empty input yields None.
    """
    data = _load(raw)
    if data is not None:
        TaskMetadata.parse(data)
    return data


@dataclass(frozen=True)
class TaskMetadata:
    """Validated view over an action item's metadata payload."""

    urgency: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def parse(cls, raw) -> "TaskMetadata":
        """Build from a dict, a JSON string, or None.

        Raises:
            ValidationError: payload is not an object, is not valid JSON,
                or carries an unknown urgency.
        """
        raw = _load(raw)
        if raw is None:
            return cls()

        extra = {k: v for k, v in raw.items() if k != "urgency"}
        urgency = raw.get("urgency")
        if urgency is not None and urgency not in URGENCY_LEVELS:
            raise ValidationError(
                f"metadata.urgency must be one of: {', '.join(URGENCY_LEVELS)}",
                details={"metadata.urgency": "invalid"},
            )
        return cls(urgency=urgency, extra=extra)

    @classmethod
    def from_stored(cls, stored) -> "TaskMetadata":
        """Lenient read of an already persisted payload.

        Rows written before validation existed may hold anything; those
        fall back to default urgency instead of failing the read.
        """
        try:
            return cls.parse(stored)
        except ValidationError:
            return cls(extra=stored if isinstance(stored, dict) else {})

    @property
    def effective_urgency(self) -> str:
        return self.urgency or DEFAULT_URGENCY

    @property
    def is_high_priority(self) -> bool:
        return self.effective_urgency in HIGH_PRIORITY_URGENCIES

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.urgency is not None:
            data["urgency"] = self.urgency
        return data
