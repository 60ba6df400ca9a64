"""
Action Item Lifecycle Service
Action item domain model.

An action item is one unit of work tracked for a client organization.

    Organization ──1:N──▶ ActionItem ──N:1──▶ Location (optional)

Categories:
    ALLORO  system / agent authored, read-only to non-admin staff
    USER    staff assigned, editable by roles with edit privilege

Lifecycle states (every state reachable from every other, except that an
archived item must be unarchived to pending before anything else):
    pending ⇄ in_progress ⇄ complete
    any ──▶ archived ──▶ pending

Row invariant: completed_at is set if and only if status == "complete".
"""

from datetime import datetime, timezone

from taskhub.models import db
from taskhub.models.task_metadata import TaskMetadata


# ── Constants ────────────────────────────────────────────────────────────────

CATEGORY_ALLORO = "ALLORO"
CATEGORY_USER = "USER"
TASK_CATEGORIES = (CATEGORY_ALLORO, CATEGORY_USER)

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETE = "complete"
STATUS_ARCHIVED = "archived"
TASK_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETE, STATUS_ARCHIVED)

AGENT_TYPES = (
    "GBP_OPTIMIZATION",
    "OPPORTUNITY",
    "CRO_OPTIMIZER",
    "REFERRAL_ENGINE_ANALYSIS",
    "RANKING",
    "MANUAL",
)
MANUAL_AGENT_TYPE = "MANUAL"

TITLE_MAX_LENGTH = 300


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class ActionItem(db.Model):
    """A task owned by an organization, moved through the status lifecycle."""

    __tablename__ = "action_items"
    __table_args__ = (
        db.Index("ix_action_items_org_status", "organization_id", "status"),
        db.Index("ix_action_items_org_category", "organization_id", "category"),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    location_id = db.Column(
        db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True,
    )

    title = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description = db.Column(db.Text, default="")
    category = db.Column(db.String(10), nullable=False, default=CATEGORY_USER, index=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    created_by_admin = db.Column(db.Boolean, nullable=False, default=False)
    agent_type = db.Column(db.String(40), nullable=True, index=True)
    # "metadata" is reserved on declarative classes; the column keeps its name.
    metadata_json = db.Column("metadata", db.JSON, nullable=True)

    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    location = db.relationship("Location", lazy="joined")

    @property
    def task_metadata(self) -> TaskMetadata:
        return TaskMetadata.from_stored(self.metadata_json)

    @property
    def is_complete(self) -> bool:
        return self.status == STATUS_COMPLETE

    @property
    def is_archived(self) -> bool:
        return self.status == STATUS_ARCHIVED

    def to_dict(self):
        meta = self.task_metadata
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "location_id": self.location_id,
            "location_name": self.location.name if self.location else None,
            "title": self.title,
            "description": self.description or "",
            "category": self.category,
            "status": self.status,
            "is_approved": bool(self.is_approved),
            "created_by_admin": bool(self.created_by_admin),
            "agent_type": self.agent_type,
            "metadata": self.metadata_json,
            "urgency": meta.effective_urgency,
            "is_high_priority": meta.is_high_priority,
            "due_date": _iso(self.due_date),
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<ActionItem {self.id} [{self.category}/{self.status}]>"
