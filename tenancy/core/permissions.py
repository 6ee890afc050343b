"""
Permission System (RBAC)

Authorization is a pure predicate:

    can_perform(actor, action, tenant_id) -> bool

The actor is a snapshot of the caller (global role plus memberships),
built once per request. Nothing here touches the database or request
state, so every rule is unit-testable without a transport.

Rules:
- SUPER_ADMIN may do anything, on any tenant
- Platform actions (plans, licenses, tenant admin) are SUPER_ADMIN only
- Tenant actions require an ACTIVE membership in that tenant whose
  role is at least the action's minimum role
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple
import enum

from tenancy.models.user import GlobalRole
from tenancy.models.membership import TenantRole, MembershipStatus


class Action(str, enum.Enum):
    # Platform
    MANAGE_PLANS = "manage_plans"
    MANAGE_LICENSES = "manage_licenses"
    MANAGE_TENANTS = "manage_tenants"
    VIEW_AUDIT = "view_audit"

    # Tenant-scoped
    VIEW_TENANT = "view_tenant"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_INVITATIONS = "manage_invitations"
    MANAGE_SETTINGS = "manage_settings"


PLATFORM_ACTIONS = frozenset({
    Action.MANAGE_PLANS,
    Action.MANAGE_LICENSES,
    Action.MANAGE_TENANTS,
    Action.VIEW_AUDIT,
})

# Minimum tenant role per tenant-scoped action
MINIMUM_ROLE: Dict[Action, TenantRole] = {
    Action.VIEW_TENANT: TenantRole.MEMBER,
    Action.MANAGE_MEMBERS: TenantRole.ADMIN,
    Action.MANAGE_INVITATIONS: TenantRole.ADMIN,
    Action.MANAGE_SETTINGS: TenantRole.ADMIN,
}


@dataclass(frozen=True)
class Actor:
    """Who is asking. memberships maps tenant_id -> (role, status)."""
    user_id: str
    global_role: GlobalRole
    memberships: Dict[str, Tuple[TenantRole, MembershipStatus]] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, user_id: str, global_role: GlobalRole, rows: Iterable) -> "Actor":
        return cls(
            user_id=user_id,
            global_role=global_role,
            memberships={row.tenant_id: (row.role, row.status) for row in rows}
        )

    @property
    def is_super_admin(self) -> bool:
        return self.global_role == GlobalRole.SUPER_ADMIN

    def active_role(self, tenant_id: str) -> Optional[TenantRole]:
        entry = self.memberships.get(tenant_id)
        if entry is None:
            return None
        role, status = entry
        return role if status == MembershipStatus.ACTIVE else None


def can_perform(actor: Actor, action: Action, tenant_id: Optional[str] = None) -> bool:
    """
    Decide whether actor may perform action on tenant_id.

    Tenant-scoped actions without a tenant_id are always denied
    for non super admins.
    """
    if actor.is_super_admin:
        return True

    if action in PLATFORM_ACTIONS:
        return False

    if not tenant_id:
        return False

    role = actor.active_role(tenant_id)
    if role is None:
        return False
    return role.at_least(MINIMUM_ROLE[action])
