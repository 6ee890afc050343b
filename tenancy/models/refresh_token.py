"""
Refresh Token Model

Long-lived session credentials. Only the sha256 hash of a raw token is
stored. Rotation revokes the presented row and links it forward to its
replacement, so a session's history forms a hash chain:

    t1 (revoked, replaced_by=h(t2)) -> t2 (revoked, replaced_by=h(t3)) -> t3
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from tenancy.database import Base, utcnow
import uuid


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, nullable=True)
    replaced_by_token_hash = Column(String(64), nullable=True)

    created_by_ip = Column(String(64), nullable=False, default="")
    user_agent = Column(String(512), nullable=False, default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_refresh_token_user_revoked', 'user_id', 'revoked_at'),
    )

    def __repr__(self):
        state = "revoked" if self.revoked_at else "live"
        return f"<RefreshToken user={self.user_id} {state}>"
