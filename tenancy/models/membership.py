"""
Membership Model

A membership binds one user to one tenant with a role and a status.
It is the authorization substrate for everything tenant-scoped.

CRITICAL: (tenant_id, user_id) is unique. Joins are written with a
single INSERT ... ON CONFLICT statement so concurrent joins can never
produce two rows for the same pair.

Status lifecycle:
    PENDING -> ACTIVE -> SUSPENDED / BANNED
BANNED blocks every re-join path until an administrator changes it.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from tenancy.database import Base, utcnow
import uuid
import enum


class TenantRole(str, enum.Enum):
    """
    Tenant-scoped roles, highest first.

    OWNER: created the tenant (admin create or license claim)
    ADMIN: manages members, invitations and settings
    MODERATOR: manages tenant content
    MEMBER: regular participant
    """
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    MEMBER = "MEMBER"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "TenantRole") -> bool:
        return self.rank >= other.rank


_ROLE_RANK = {
    TenantRole.MEMBER: 1,
    TenantRole.MODERATOR: 2,
    TenantRole.ADMIN: 3,
    TenantRole.OWNER: 4,
}


class MembershipStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BANNED = "BANNED"


class Membership(Base):
    __tablename__ = "memberships"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    role = Column(SQLEnum(TenantRole), default=TenantRole.MEMBER, nullable=False)
    status = Column(
        SQLEnum(MembershipStatus),
        default=MembershipStatus.ACTIVE,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'user_id', name='uq_membership_tenant_user'),
    )

    def __repr__(self):
        return f"<Membership user={self.user_id} tenant={self.tenant_id} {self.role.value}/{self.status.value}>"


class MemberProfile(Base):
    """Per-tenant profile captured when a user joins."""
    __tablename__ = "member_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    full_name = Column(String(255), nullable=False, default="")
    phone = Column(String(40), nullable=False, default="")
    custom_fields = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'user_id', name='uq_member_profile_tenant_user'),
    )

    def __repr__(self):
        return f"<MemberProfile user={self.user_id} tenant={self.tenant_id}>"
