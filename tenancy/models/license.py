"""
License Model

License keys grant the right to create exactly one tenant (single-use)
or several tenants (multi-use). Status transitions:

    ACTIVE -> CLAIMED     (single-use claim)
    ACTIVE -> EXPIRED     (lazily, the first time it is read past expires_at)
    *      -> SUSPENDED   (administrator action)

SECURITY: claimed_at is the single-use guard. A single-use license with
claimed_at set is never claimable again, whatever its status says.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from tenancy.database import Base, utcnow
import uuid
import enum


class LicenseStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    CLAIMED = "CLAIMED"


def canonicalize_key(key: str) -> str:
    return (key or "").strip().upper()


class License(Base):
    __tablename__ = "licenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    key = Column(String(64), unique=True, nullable=False, index=True)

    # Deleting a plan orphans its licenses; claiming one then fails PlanNotFound
    plan_id = Column(
        String(36),
        ForeignKey("plans.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    status = Column(
        SQLEnum(LicenseStatus),
        default=LicenseStatus.ACTIVE,
        nullable=False,
        index=True
    )
    single_use = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    # Claim linkage
    claimed_at = Column(DateTime, nullable=True)
    claimed_by_user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    claimed_tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Copied from the plan at generation, refreshed at claim
    limits_snapshot = Column(JSON, nullable=False, default=dict)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    plan = relationship("Plan")

    __table_args__ = (
        Index('idx_license_status_expires', 'status', 'expires_at'),
    )

    def __repr__(self):
        return f"<License {self.key} ({self.status.value})>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at is not None and self.expires_at < (now or utcnow())

    @property
    def is_spent(self) -> bool:
        """True once a single-use license has been claimed."""
        return self.single_use and self.claimed_at is not None
