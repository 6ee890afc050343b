"""
User Model

Users are global identities. Access to a tenant is granted through a
Membership row, never through a column on the user itself.

IMPORTANT: email is stored lowercased and trimmed. Every lookup must
normalize the same way (see normalize_email).
"""
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from tenancy.database import Base, utcnow
import uuid
import enum


class GlobalRole(str, enum.Enum):
    """
    Platform-wide role.

    SUPER_ADMIN: manages plans, licenses and tenants across the platform
    USER: everyone else; tenant rights come from memberships
    """
    USER = "USER"
    SUPER_ADMIN = "SUPER_ADMIN"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Unique across the platform (case-insensitive via normalization)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    full_name = Column(String(255), nullable=False, default="")
    phone = Column(String(40), nullable=False, default="")
    avatar_url = Column(String(512), nullable=False, default="")

    # Only changed by administrative promotion
    global_role = Column(
        SQLEnum(GlobalRole),
        default=GlobalRole.USER,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="user")

    def __repr__(self):
        return f"<User {self.email} ({self.global_role.value})>"
