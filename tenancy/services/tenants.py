"""
Tenant Registry

Tenant creation (shared by super-admin create and license claim),
super-admin management, the public directory, tenant context, and
per-tenant settings.

NOTE: slug uniqueness is never pre-checked. The tenant row is flushed
and the unique index decides; IntegrityError becomes SlugExists. Two
concurrent creators of the same slug therefore get exactly one tenant.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import re
import uuid

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tenancy.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    SlugExistsError,
    ValidationError,
)
from tenancy.core.permissions import Action, Actor, can_perform
from tenancy.database import insert_for, utcnow
from tenancy.models.invitation import Invitation
from tenancy.models.license import License
from tenancy.models.membership import MemberProfile, Membership, MembershipStatus, TenantRole
from tenancy.models.tenant import Tenant, TenantSettings, TenantStatus
from tenancy.services import audit
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,98}[a-z0-9])?$")

SETTINGS_FIELDS = tuple(TenantSettings.DEFAULTS)


@dataclass
class TenantDraft:
    """Caller-supplied fields for a new tenant."""
    name: str
    slug: str
    description: str = ""
    logo_url: str = ""
    category: str = ""
    location: str = ""
    status: TenantStatus = TenantStatus.ACTIVE


def normalize_slug(slug: str) -> str:
    """Lowercase + trim, then validate. Raises ValidationError."""
    value = (slug or "").strip().lower()
    if len(value) < 2 or not SLUG_PATTERN.match(value):
        raise ValidationError(
            "Slug must be 2-100 characters of lowercase letters, digits and hyphens"
        )
    return value


def insert_tenant_with_owner(db: Session, draft: TenantDraft, owner_user_id: str) -> Tenant:
    """
    Add a tenant and its OWNER/ACTIVE membership to the current transaction.

    Flushes but does not commit. On slug collision the transaction is
    rolled back and SlugExists is raised.
    """
    name = (draft.name or "").strip()
    if len(name) < 2:
        raise ValidationError("Tenant name must be at least 2 characters")
    slug = normalize_slug(draft.slug)

    tenant = Tenant(
        id=str(uuid.uuid4()),
        name=name,
        slug=slug,
        description=draft.description or "",
        logo_url=draft.logo_url or "",
        category=draft.category or "",
        location=draft.location or "",
        status=draft.status,
        created_by=owner_user_id,
    )
    db.add(tenant)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if "slug" in str(exc.orig).lower():
            raise SlugExistsError()
        raise

    db.add(Membership(
        tenant_id=tenant.id,
        user_id=owner_user_id,
        role=TenantRole.OWNER,
        status=MembershipStatus.ACTIVE,
    ))
    db.flush()
    return tenant


# ----------------------------------------------------------------------------
# Super admin
# ----------------------------------------------------------------------------

def create_tenant(db: Session, actor_user_id: str, draft: TenantDraft) -> Tenant:
    tenant = insert_tenant_with_owner(db, draft, actor_user_id)
    db.commit()

    logger.info(f"Tenant created: {tenant.slug} by {actor_user_id}")
    audit.record(db, "ADMIN_CREATE_TENANT", actor_user_id=actor_user_id, tenant_id=tenant.id,
                 metadata={"name": tenant.name, "slug": tenant.slug})
    return tenant


def list_tenants(db: Session) -> List[Tenant]:
    return db.query(Tenant).order_by(Tenant.created_at.desc()).all()


def get_tenant(db: Session, tenant_id: str) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise NotFoundError("Tenant not found")
    return tenant


def get_tenant_by_slug(db: Session, slug: str) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.slug == (slug or "").strip().lower()).first()
    if not tenant:
        raise NotFoundError("Tenant not found")
    return tenant


def update_tenant_status(db: Session, actor_user_id: str, tenant_id: str, status) -> Tenant:
    try:
        status = TenantStatus(status)
    except ValueError:
        raise ValidationError("status must be ACTIVE or SUSPENDED")

    tenant = get_tenant(db, tenant_id)
    tenant.status = status
    db.commit()

    audit.record(db, "ADMIN_UPDATE_TENANT_STATUS", actor_user_id=actor_user_id, tenant_id=tenant.id,
                 metadata={"status": status.value})
    return tenant


def delete_tenant(db: Session, actor_user_id: str, tenant_id: str) -> None:
    """Hard delete of a tenant and everything scoped to it."""
    tenant = get_tenant(db, tenant_id)

    db.query(Invitation).filter(Invitation.tenant_id == tenant_id).delete(synchronize_session=False)
    db.query(MemberProfile).filter(MemberProfile.tenant_id == tenant_id).delete(synchronize_session=False)
    db.query(License).filter(License.claimed_tenant_id == tenant_id).update(
        {License.claimed_tenant_id: None}, synchronize_session=False
    )
    db.delete(tenant)
    db.commit()

    audit.record(db, "ADMIN_DELETE_TENANT", actor_user_id=actor_user_id, tenant_id=tenant_id)


# ----------------------------------------------------------------------------
# Directory and context
# ----------------------------------------------------------------------------

def list_public_tenants(db: Session, query: Optional[str] = None, limit: int = 100) -> List[Tenant]:
    q = db.query(Tenant).filter(Tenant.status == TenantStatus.ACTIVE)
    term = (query or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(or_(Tenant.name.ilike(pattern), Tenant.slug.ilike(pattern)))
    return q.order_by(Tenant.created_at.desc()).limit(limit).all()


def get_tenant_for_actor(db: Session, tenant_id: str, actor: Actor) -> Tenant:
    """Tenant by id, visible to its ACTIVE members and super admins."""
    tenant = get_tenant(db, tenant_id)
    if not can_perform(actor, Action.VIEW_TENANT, tenant.id):
        raise ForbiddenError()
    return tenant


@dataclass
class TenantContext:
    tenant: Tenant
    license: Optional[License]
    settings: Dict[str, bool]
    membership: Optional[Membership]


def tenant_context(db: Session, slug: str, user_id: Optional[str] = None) -> TenantContext:
    tenant = get_tenant_by_slug(db, slug)
    license = db.query(License).filter(License.claimed_tenant_id == tenant.id).first()
    membership = None
    if user_id:
        membership = db.query(Membership).filter(
            Membership.tenant_id == tenant.id,
            Membership.user_id == user_id,
        ).first()
    return TenantContext(
        tenant=tenant,
        license=license,
        settings=effective_settings(db, tenant.id),
        membership=membership,
    )


# ----------------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------------

def effective_settings(db: Session, tenant_id: str) -> Dict[str, bool]:
    """Settings with defaults applied; does not create a row."""
    row = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
    if row is None:
        return dict(TenantSettings.DEFAULTS)
    return {name: getattr(row, name) for name in SETTINGS_FIELDS}


def get_settings_row(db: Session, tenant_id: str) -> TenantSettings:
    """Settings row, created with defaults when absent."""
    get_tenant(db, tenant_id)
    stmt = insert_for(db, TenantSettings).values(
        id=str(uuid.uuid4()), tenant_id=tenant_id, **TenantSettings.DEFAULTS
    ).on_conflict_do_nothing(index_elements=["tenant_id"])
    db.execute(stmt)
    db.commit()
    return db.query(TenantSettings).populate_existing().filter(
        TenantSettings.tenant_id == tenant_id
    ).one()


def update_settings(db: Session, actor_user_id: str, tenant_id: str, changes: Dict[str, Any]) -> TenantSettings:
    """Atomic upsert of the supplied flags; unspecified flags keep their value."""
    changes = {k: v for k, v in changes.items() if k in SETTINGS_FIELDS and v is not None}
    get_tenant(db, tenant_id)

    values = dict(TenantSettings.DEFAULTS)
    values.update(changes)
    stmt = insert_for(db, TenantSettings).values(
        id=str(uuid.uuid4()), tenant_id=tenant_id, **values
    )
    if changes:
        stmt = stmt.on_conflict_do_update(index_elements=["tenant_id"], set_={**changes, "updated_at": utcnow()})
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id"])
    db.execute(stmt)
    db.commit()

    audit.record(db, "TENANT_SETTINGS_UPDATE", actor_user_id=actor_user_id, tenant_id=tenant_id,
                 metadata=changes)
    return db.query(TenantSettings).populate_existing().filter(
        TenantSettings.tenant_id == tenant_id
    ).one()
