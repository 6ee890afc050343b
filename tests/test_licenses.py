"""License registry and the claim flow."""

import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from tenancy.core.exceptions import (
    ConflictError,
    LicenseClaimedError,
    LicenseExpiredError,
    LicenseInvalidError,
    NotFoundError,
    PlanNotFoundError,
    SlugExistsError,
    ValidationError,
)
from tenancy.database import utcnow
from tenancy.models.license import License, LicenseStatus
from tenancy.models.membership import Membership, MembershipStatus, TenantRole
from tenancy.models.tenant import Tenant
from tenancy.services import licenses, plans
from tenancy.services.tenants import TenantDraft

KEY_PATTERN = re.compile(r"^CH(-[0-9A-F]{5}){4}$")


def reload(db, license_id):
    return db.query(License).populate_existing().filter(License.id == license_id).one()


def test_generate_key_format_and_snapshot(db, admin, plan):
    license = licenses.generate(db, admin.id, plan.id)

    assert KEY_PATTERN.match(license.key)
    assert license.status == LicenseStatus.ACTIVE
    assert license.single_use is True
    assert license.limits_snapshot == {"maxMembers": 25, "maxAdmins": 2, "featureFlags": {"events": True}}


def test_generated_keys_are_unique(db, admin, plan):
    keys = {licenses.generate(db, admin.id, plan.id).key for _ in range(5)}
    assert len(keys) == 5


def test_generate_with_unknown_plan_fails(db, admin):
    with pytest.raises(PlanNotFoundError):
        licenses.generate(db, admin.id, "missing-plan")


def test_generate_accepts_timezone_aware_expiry(db, admin, plan):
    expires = datetime.now(timezone.utc) + timedelta(days=3)
    license = licenses.generate(db, admin.id, plan.id, expires_at=expires)
    assert license.expires_at.tzinfo is None
    assert license.expires_at == expires.astimezone(timezone.utc).replace(tzinfo=None)


def test_verify_canonicalizes_key(db, admin, plan):
    license = licenses.generate(db, admin.id, plan.id)

    verified = licenses.verify(db, f"  {license.key.lower()}  ")

    assert verified.license.id == license.id
    assert verified.plan.id == plan.id
    assert verified.limits["maxMembers"] == 25


def test_verify_unknown_key(db):
    with pytest.raises(NotFoundError):
        licenses.verify(db, "CH-00000-00000-00000-00000")


def test_verify_persists_lazy_expiry(db, admin, plan):
    license = licenses.generate(db, admin.id, plan.id, expires_at=utcnow() - timedelta(minutes=1))

    with pytest.raises(LicenseExpiredError):
        licenses.verify(db, license.key)

    assert reload(db, license.id).status == LicenseStatus.EXPIRED
    with pytest.raises(LicenseExpiredError):
        licenses.verify(db, license.key)


def test_verify_suspended_license_is_invalid(db, admin, plan):
    license = licenses.generate(db, admin.id, plan.id)
    licenses.suspend(db, admin.id, license.id)

    with pytest.raises(LicenseInvalidError):
        licenses.verify(db, license.key)


def test_suspend_unknown_license(db, admin):
    with pytest.raises(NotFoundError):
        licenses.suspend(db, admin.id, "missing")


def test_claim_end_to_end(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id)
    assert licenses.verify(db, license.key).limits["maxMembers"] == 25

    tenant = licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="acme"))

    assert tenant.slug == "acme"
    membership = db.query(Membership).filter(
        Membership.tenant_id == tenant.id, Membership.user_id == owner.id
    ).one()
    assert membership.role == TenantRole.OWNER
    assert membership.status == MembershipStatus.ACTIVE

    claimed = reload(db, license.id)
    assert claimed.status == LicenseStatus.CLAIMED
    assert claimed.claimed_by_user_id == owner.id
    assert claimed.claimed_tenant_id == tenant.id
    assert claimed.claimed_at is not None

    with pytest.raises(LicenseClaimedError):
        licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme Two", slug="acme-two"))


def test_claim_refreshes_limits_from_current_plan(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id)
    plans.update_plan(db, admin.id, plan.id, {"max_members": 50})

    assert reload(db, license.id).limits_snapshot["maxMembers"] == 25
    licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="acme"))
    assert reload(db, license.id).limits_snapshot["maxMembers"] == 50


def test_spent_license_rejected_even_if_status_drifts(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id)
    licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="acme"))

    db.query(License).filter(License.id == license.id).update(
        {License.status: LicenseStatus.ACTIVE}, synchronize_session=False
    )
    db.commit()

    with pytest.raises(LicenseClaimedError):
        licenses.claim(db, license.key, owner.id, TenantDraft(name="Other", slug="other"))


def test_multi_use_license_stays_active(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id, single_use=False)

    licenses.claim(db, license.key, owner.id, TenantDraft(name="One", slug="one"))
    second = licenses.claim(db, license.key, owner.id, TenantDraft(name="Two", slug="two"))

    current = reload(db, license.id)
    assert current.status == LicenseStatus.ACTIVE
    assert current.claimed_tenant_id == second.id


def test_slug_collision_rolls_back_claim(db, admin, plan, make_user):
    first_owner = make_user("first@example.com")
    second_owner = make_user("second@example.com")
    first = licenses.generate(db, admin.id, plan.id)
    second = licenses.generate(db, admin.id, plan.id)
    licenses.claim(db, first.key, first_owner.id, TenantDraft(name="Acme", slug="acme"))

    with pytest.raises(SlugExistsError):
        licenses.claim(db, second.key, second_owner.id, TenantDraft(name="Acme Again", slug="ACME"))

    untouched = reload(db, second.id)
    assert untouched.status == LicenseStatus.ACTIVE
    assert untouched.claimed_at is None
    assert db.query(Tenant).count() == 1
    assert db.query(Membership).filter(Membership.user_id == second_owner.id).count() == 0


def test_claim_with_invalid_slug(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id)

    with pytest.raises(ValidationError):
        licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="not a slug!"))
    assert reload(db, license.id).claimed_at is None


def test_claim_expired_license(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id, expires_at=utcnow() - timedelta(seconds=1))

    with pytest.raises(LicenseExpiredError):
        licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="acme"))
    assert reload(db, license.id).status == LicenseStatus.EXPIRED
    assert db.query(Tenant).count() == 0


def test_claim_after_plan_deleted(db, admin, plan, make_user):
    owner = make_user("owner@example.com")
    license = licenses.generate(db, admin.id, plan.id)
    plans.delete_plan(db, admin.id, plan.id)

    with pytest.raises(PlanNotFoundError):
        licenses.claim(db, license.key, owner.id, TenantDraft(name="Acme", slug="acme"))


def test_key_collisions_are_retried_then_reported(db, admin, plan, monkeypatch):
    taken = licenses.generate(db, admin.id, plan.id)
    attempts = []

    def same_key(prefix=None):
        attempts.append(1)
        return taken.key

    monkeypatch.setattr(licenses, "generate_license_key", same_key)

    with pytest.raises(ConflictError):
        licenses.generate(db, admin.id, plan.id)
    assert len(attempts) == licenses.KEY_GENERATION_ATTEMPTS
    assert db.query(License).count() == 1


def test_other_integrity_errors_are_not_retried(db, plan, monkeypatch):
    attempts = []
    original = licenses.generate_license_key

    def counted(prefix=None):
        attempts.append(1)
        return original(prefix)

    monkeypatch.setattr(licenses, "generate_license_key", counted)

    with pytest.raises(IntegrityError):
        licenses.generate(db, "no-such-user", plan.id)
    assert len(attempts) == 1
