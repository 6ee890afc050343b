"""
Plan Model

A plan is the entitlement template licenses are generated from.
Licenses copy the plan's limits at generation time, so editing a plan
never changes licenses that were already issued.
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, JSON
from tenancy.database import Base, utcnow
import uuid


class Plan(Base):
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    max_members = Column(Integer, nullable=False, default=100)
    max_admins = Column(Integer, nullable=False, default=3)
    feature_flags = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Plan {self.name}>"

    def limits(self) -> dict:
        """Entitlement snapshot stored on licenses."""
        return {
            "maxMembers": self.max_members,
            "maxAdmins": self.max_admins,
            "featureFlags": dict(self.feature_flags or {}),
        }
