"""can_perform is a pure function of the actor snapshot."""

import pytest

from tenancy.core.permissions import MINIMUM_ROLE, PLATFORM_ACTIONS, Action, Actor, can_perform
from tenancy.models.membership import MembershipStatus, TenantRole
from tenancy.models.user import GlobalRole


def actor_with(role=None, status=MembershipStatus.ACTIVE, tenant_id="t1", global_role=GlobalRole.USER):
    memberships = {} if role is None else {tenant_id: (role, status)}
    return Actor(user_id="u1", global_role=global_role, memberships=memberships)


@pytest.mark.parametrize("action", list(Action))
def test_super_admin_may_do_anything(action):
    actor = actor_with(global_role=GlobalRole.SUPER_ADMIN)
    assert can_perform(actor, action, "any-tenant")


@pytest.mark.parametrize("action", sorted(PLATFORM_ACTIONS))
def test_platform_actions_denied_to_tenant_owner(action):
    assert not can_perform(actor_with(TenantRole.OWNER), action, "t1")


@pytest.mark.parametrize("role,action,allowed", [
    (TenantRole.MEMBER, Action.VIEW_TENANT, True),
    (TenantRole.MEMBER, Action.MANAGE_MEMBERS, False),
    (TenantRole.MODERATOR, Action.VIEW_TENANT, True),
    (TenantRole.MODERATOR, Action.MANAGE_MEMBERS, False),
    (TenantRole.ADMIN, Action.MANAGE_INVITATIONS, True),
    (TenantRole.ADMIN, Action.MANAGE_SETTINGS, True),
    (TenantRole.OWNER, Action.MANAGE_MEMBERS, True),
])
def test_role_hierarchy(role, action, allowed):
    assert can_perform(actor_with(role), action, "t1") is allowed


@pytest.mark.parametrize("status", [
    MembershipStatus.PENDING,
    MembershipStatus.SUSPENDED,
    MembershipStatus.BANNED,
])
def test_inactive_membership_grants_nothing(status):
    actor = actor_with(TenantRole.OWNER, status=status)
    assert not can_perform(actor, Action.VIEW_TENANT, "t1")


def test_membership_does_not_leak_across_tenants():
    actor = actor_with(TenantRole.OWNER, tenant_id="t1")
    assert not can_perform(actor, Action.VIEW_TENANT, "t2")


def test_tenant_action_without_tenant_is_denied():
    assert not can_perform(actor_with(TenantRole.OWNER), Action.VIEW_TENANT, None)


def test_every_tenant_action_has_a_minimum_role():
    assert set(MINIMUM_ROLE) == set(Action) - PLATFORM_ACTIONS
