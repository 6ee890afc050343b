"""Password hashing and access-token signing."""

from datetime import timedelta

from jose import jwt

from tenancy.config import get_settings
from tenancy.core.security import (
    create_access_token,
    decode_access_token,
    decode_unverified_claims,
    get_password_hash,
    has_required_claims,
    identity_claims,
    verify_password,
)


def test_password_hash_round_trip_and_cost():
    digest = get_password_hash("s3cret-password")
    assert digest != "s3cret-password"
    assert verify_password("s3cret-password", digest)
    assert not verify_password("wrong-password", digest)
    assert int(digest.split("$")[2]) >= 12


def test_access_token_carries_identity_claims():
    token = create_access_token(identity_claims("u1", "a@example.com", "USER"))
    payload = decode_access_token(token)
    assert payload["sub"] == "u1"
    assert payload["email"] == "a@example.com"
    assert payload["globalRole"] == "USER"
    assert payload["exp"] > payload["iat"]


def test_default_expiry_is_seven_days():
    payload = decode_access_token(create_access_token(identity_claims("u1", "a@example.com", "USER")))
    assert payload["exp"] - payload["iat"] == get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert get_settings().ACCESS_TOKEN_EXPIRE_MINUTES == 7 * 24 * 60


def test_expired_token_fails_verification_but_claims_remain_readable():
    token = create_access_token(
        identity_claims("u1", "a@example.com", "USER"),
        expires_delta=timedelta(seconds=-30)
    )
    assert decode_access_token(token) is None
    claims = decode_unverified_claims(token)
    assert claims["sub"] == "u1"
    assert has_required_claims(claims)


def test_tampered_signature_is_rejected():
    token = jwt.encode(identity_claims("u1", "a@example.com", "SUPER_ADMIN"), "other-key", algorithm="HS256")
    assert decode_access_token(token) is None


def test_garbage_token_has_no_claims():
    assert decode_unverified_claims("not-a-jwt") is None
    assert not has_required_claims(None)


def test_missing_claim_is_detected():
    assert not has_required_claims({"sub": "u1", "email": "a@example.com"})
    assert not has_required_claims({"sub": "u1", "email": "", "globalRole": "USER"})
