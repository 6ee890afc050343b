"""
Refresh Token Ledger

Issue, rotate and revoke long-lived refresh tokens.

SECURITY:
- Raw tokens are 48 random bytes (hex) and are returned exactly once
- Only sha256(raw) is persisted
- Rotation is single-use: the presented row is revoked by one
  conditional UPDATE (revoked_at IS NULL AND not expired). Two
  concurrent rotations of the same token cannot both match that row.
- Replaying a rotated token fails. The chain is NOT revoked on replay;
  the attempt is logged as a security event.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import secrets

from sqlalchemy.orm import Session

from tenancy.config import get_settings
from tenancy.database import utcnow
from tenancy.models.refresh_token import RefreshToken
from tenancy.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class IssuedRefreshToken:
    raw: str
    token_hash: str
    expires_at: datetime


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_raw_token() -> str:
    return secrets.token_hex(48)


def _new_row(
    user_id: str,
    ip: str = "",
    user_agent: str = "",
    ttl: Optional[timedelta] = None,
) -> tuple[RefreshToken, IssuedRefreshToken]:
    raw = generate_raw_token()
    token_hash = hash_token(raw)
    expires_at = utcnow() + (ttl or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    row = RefreshToken(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        created_by_ip=ip or "",
        user_agent=(user_agent or "")[:512],
    )
    return row, IssuedRefreshToken(raw=raw, token_hash=token_hash, expires_at=expires_at)


def issue(
    db: Session,
    user_id: str,
    ip: str = "",
    user_agent: str = "",
    ttl: Optional[timedelta] = None,
) -> IssuedRefreshToken:
    """Create and persist a new refresh token. The raw value is not retrievable later."""
    row, issued = _new_row(user_id, ip, user_agent, ttl)
    db.add(row)
    db.commit()
    return issued


def rotate(
    db: Session,
    raw_token: str,
    user_id: str,
    ip: str = "",
    user_agent: str = "",
) -> Optional[IssuedRefreshToken]:
    """
    Exchange a live refresh token for a new one.

    Returns None when the presented token is unknown for this user,
    already revoked (including already rotated), or expired. The caller
    must reject the request in that case.
    """
    old_hash = hash_token(raw_token)
    now = utcnow()
    new_row, issued = _new_row(user_id, ip, user_agent)

    # Claim the old row: only one caller can flip revoked_at from NULL
    claimed = db.query(RefreshToken).filter(
        RefreshToken.token_hash == old_hash,
        RefreshToken.user_id == user_id,
        RefreshToken.revoked_at.is_(None),
        RefreshToken.expires_at > now,
    ).update(
        {
            RefreshToken.revoked_at: now,
            RefreshToken.replaced_by_token_hash: issued.token_hash,
        },
        synchronize_session=False
    )

    if claimed != 1:
        db.rollback()
        _log_rejection(db, old_hash, user_id)
        return None

    db.add(new_row)
    db.commit()
    logger.debug(f"Refresh token rotated for user {user_id}")
    return issued


def revoke(db: Session, raw_token: str, user_id: str) -> None:
    """Revoke a live refresh token. No-op when absent or already revoked."""
    db.query(RefreshToken).filter(
        RefreshToken.token_hash == hash_token(raw_token),
        RefreshToken.user_id == user_id,
        RefreshToken.revoked_at.is_(None),
    ).update({RefreshToken.revoked_at: utcnow()}, synchronize_session=False)
    db.commit()


def _log_rejection(db: Session, token_hash: str, user_id: str) -> None:
    existing = db.query(RefreshToken).populate_existing().filter(
        RefreshToken.token_hash == token_hash,
        RefreshToken.user_id == user_id,
    ).first()

    if existing is not None and existing.replaced_by_token_hash:
        event = "refresh_token_replay"
    else:
        event = "refresh_token_rejected"
    log_security_event(event, {"user_id": user_id}, logger)
