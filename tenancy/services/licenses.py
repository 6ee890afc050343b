"""
License Registry & Claim Flow

generate -> verify -> claim, plus suspend and listing.

Key format: <PREFIX>-XXXXX-XXXXX-XXXXX-XXXXX (20 hex chars = 80 bits).

Expiry is lazy and persisted: the first read of an ACTIVE license past
expires_at writes EXPIRED with a conditional UPDATE, then fails. There is
no background sweeper.

CLAIM ORDERING (one transaction):
1. validate claim-state, status and expiry
2. insert tenant (unique slug decides; SlugExists on collision)
3. insert OWNER/ACTIVE membership
4. conditional UPDATE of the license (still ACTIVE, unexpired, and for
   single-use still unclaimed). Row count 0 means another claim won:
   roll everything back and report why.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import secrets

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tenancy.config import get_settings
from tenancy.core.exceptions import (
    ConflictError,
    LicenseClaimedError,
    LicenseExpiredError,
    LicenseInvalidError,
    NotFoundError,
    PlanNotFoundError,
)
from tenancy.database import to_naive_utc, utcnow
from tenancy.models.license import License, LicenseStatus, canonicalize_key
from tenancy.models.plan import Plan
from tenancy.models.tenant import Tenant
from tenancy.services import audit
from tenancy.services.plans import get_plan
from tenancy.services.tenants import TenantDraft, insert_tenant_with_owner
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

KEY_GENERATION_ATTEMPTS = 3


@dataclass
class VerifiedLicense:
    license: License
    plan: Optional[Plan]
    limits: Dict[str, Any]


def generate_license_key(prefix: Optional[str] = None) -> str:
    token = secrets.token_hex(10).upper()
    groups = [token[i:i + 5] for i in range(0, 20, 5)]
    return "-".join([prefix or settings.LICENSE_KEY_PREFIX, *groups])


def _is_key_collision(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: licenses.key"; postgres: "Key (key)=(...) already exists"
    message = str(exc.orig)
    return "licenses.key" in message or "(key)=" in message


def _find_by_key(db: Session, key: str) -> License:
    license = db.query(License).populate_existing().filter(License.key == canonicalize_key(key)).first()
    if not license:
        raise NotFoundError("License not found")
    return license


def _expire_if_due(db: Session, license: License) -> None:
    """
    Persist ACTIVE -> EXPIRED for a license read past its expiry, then fail.
    """
    if license.status == LicenseStatus.ACTIVE and license.is_expired():
        db.query(License).filter(
            License.id == license.id,
            License.status == LicenseStatus.ACTIVE,
        ).update({License.status: LicenseStatus.EXPIRED}, synchronize_session=False)
        db.commit()
        license.status = LicenseStatus.EXPIRED
        logger.info(f"License {license.id} expired on read")
        raise LicenseExpiredError()


def _ensure_usable(db: Session, license: License) -> None:
    if license.status == LicenseStatus.EXPIRED:
        raise LicenseExpiredError()
    if license.status != LicenseStatus.ACTIVE:
        raise LicenseInvalidError()
    _expire_if_due(db, license)


def generate(
    db: Session,
    actor_user_id: str,
    plan_id: str,
    single_use: bool = True,
    expires_at: Optional[datetime] = None,
) -> License:
    """Issue a new ACTIVE license carrying the plan's current limits."""
    plan = get_plan(db, plan_id)
    if not plan:
        raise PlanNotFoundError()

    for attempt in range(KEY_GENERATION_ATTEMPTS):
        license = License(
            key=generate_license_key(),
            plan_id=plan.id,
            status=LicenseStatus.ACTIVE,
            single_use=single_use,
            expires_at=to_naive_utc(expires_at) if expires_at else None,
            limits_snapshot=plan.limits(),
            created_by=actor_user_id,
        )
        db.add(license)
        try:
            db.commit()
            break
        except IntegrityError as exc:
            db.rollback()
            if not _is_key_collision(exc):
                raise
            logger.warning(f"License key collision, retrying (attempt {attempt + 1})")
    else:
        raise ConflictError("Could not generate a unique license key")

    audit.record(db, "LICENSE_GENERATE", actor_user_id=actor_user_id,
                 metadata={"license_id": license.id, "plan_id": plan.id})
    return license


def list_licenses(db: Session) -> List[License]:
    return db.query(License).order_by(License.created_at.desc()).all()


def verify(db: Session, key: str) -> VerifiedLicense:
    """
    Check that a key is claimable and return its plan and limits.

    Read-only except for the lazy EXPIRED write.
    """
    license = _find_by_key(db, key)
    _ensure_usable(db, license)
    return VerifiedLicense(
        license=license,
        plan=get_plan(db, license.plan_id),
        limits=dict(license.limits_snapshot or {}),
    )


def suspend(db: Session, actor_user_id: str, license_id: str) -> License:
    updated = db.query(License).filter(License.id == license_id).update(
        {License.status: LicenseStatus.SUSPENDED, License.updated_at: utcnow()},
        synchronize_session=False
    )
    if not updated:
        db.rollback()
        raise NotFoundError("License not found")
    db.commit()

    license = db.query(License).populate_existing().filter(License.id == license_id).one()
    audit.record(db, "LICENSE_SUSPEND", actor_user_id=actor_user_id,
                 tenant_id=license.claimed_tenant_id, metadata={"license_id": license.id})
    return license


def claim(db: Session, key: str, user_id: str, draft: TenantDraft) -> Tenant:
    """
    Turn a license into a tenant owned by user_id.

    Raises NotFound, LicenseClaimed, LicenseInvalid, LicenseExpired,
    PlanNotFound, SlugExists or ValidationError.
    """
    license = _find_by_key(db, key)
    if license.is_spent:
        raise LicenseClaimedError()
    _ensure_usable(db, license)

    plan = get_plan(db, license.plan_id)
    if not plan:
        raise PlanNotFoundError("Linked plan not found")

    tenant = insert_tenant_with_owner(db, draft, user_id)

    now = utcnow()
    criteria = [
        License.id == license.id,
        License.status == LicenseStatus.ACTIVE,
        or_(License.expires_at.is_(None), License.expires_at > now),
    ]
    if license.single_use:
        criteria.append(License.claimed_at.is_(None))

    claimed = db.query(License).filter(*criteria).update(
        {
            License.status: LicenseStatus.CLAIMED if license.single_use else LicenseStatus.ACTIVE,
            License.claimed_at: now,
            License.claimed_by_user_id: user_id,
            License.claimed_tenant_id: tenant.id,
            License.limits_snapshot: plan.limits(),
            License.updated_at: now,
        },
        synchronize_session=False
    )
    if claimed != 1:
        db.rollback()
        raise _lost_claim_error(db, license.id)

    db.commit()

    logger.info(f"License {license.id} claimed by {user_id} for tenant {tenant.slug}")
    audit.record(db, "ONBOARDING_CLAIM_LICENSE", actor_user_id=user_id, tenant_id=tenant.id,
                 metadata={"license_id": license.id, "tenant_slug": tenant.slug})
    return tenant


def _lost_claim_error(db: Session, license_id: str) -> Exception:
    """Explain why the conditional claim update matched nothing."""
    current = db.query(License).populate_existing().filter(License.id == license_id).first()
    if current is None:
        return NotFoundError("License not found")
    if current.is_spent:
        return LicenseClaimedError()
    if current.status == LicenseStatus.EXPIRED or current.is_expired():
        return LicenseExpiredError()
    return LicenseInvalidError()
