"""
Security Module

Handles password hashing and access-token signing.
Uses industry-standard libraries (passlib with bcrypt, python-jose).

SECURITY NOTES:
- Passwords are hashed with bcrypt, cost factor from settings (>= 12)
- Access tokens are stateless and carry sub, email and globalRole
- decode_unverified_claims() is only for reading claims out of an
  already-presented token during refresh; never use it for trust decisions
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from tenancy.config import get_settings

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS
)

# Claims every access token must carry
REQUIRED_CLAIMS = ("sub", "email", "globalRole")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow (100ms+ at 12 rounds).
    Don't call this in hot paths or tight loops.
    """
    return pwd_context.hash(password)


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Token payload:
    - sub: user id
    - email
    - globalRole
    - exp / iat
    """
    to_encode = dict(claims)
    now = datetime.now(timezone.utc)

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": now + expires_delta,
        "iat": now
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired/tampered.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def decode_unverified_claims(token: str) -> Optional[Dict[str, Any]]:
    """
    Read claims without checking signature or expiry.

    Used by session refresh only: the refresh token is the authority,
    the access token just supplies subject/email/role to re-sign.
    Returns None when the token is not structurally a JWT.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


def identity_claims(user_id: str, email: str, global_role: str) -> Dict[str, Any]:
    return {"sub": user_id, "email": email, "globalRole": global_role}


def has_required_claims(payload: Optional[Dict[str, Any]]) -> bool:
    if not payload:
        return False
    return all(payload.get(claim) for claim in REQUIRED_CLAIMS)
