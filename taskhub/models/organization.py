"""
Action Item Lifecycle Service
Tenant scope models.

Models:
    - Organization: a client practice that owns action items
    - Location:     an optional physical location of an organization

Both tables are written by the tenant-management side of the platform;
the task service only reads them (client options list, location names,
create-time scope checks).
"""

from datetime import datetime, timezone

from taskhub.models import db


class Organization(db.Model):
    """A client organization (tenant) that action items belong to."""

    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    domain = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    locations = db.relationship(
        "Location", backref="organization", lazy="select", cascade="all, delete-orphan",
    )

    def to_option(self):
        """Shape used by the admin hub client picker."""
        return {"id": self.id, "name": self.name, "domain": self.domain}

    def __repr__(self):
        return f"<Organization {self.id}: {self.name}>"


class Location(db.Model):
    """A location of an organization; action items may be scoped to one."""

    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)

    def __repr__(self):
        return f"<Location {self.id}: {self.name}>"
