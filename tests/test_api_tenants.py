"""End-to-end flows over HTTP: plans, licenses, claim, join, invitations, admin."""

import pytest

from conftest import auth_header, promote, register_via_api

API = "/api/v1"


def login_headers(client, email):
    session = register_via_api(client, email)
    return auth_header(session["accessToken"])


@pytest.fixture
def admin_headers(client):
    register_via_api(client, "root@example.com")
    promote("root@example.com")
    response = client.post(f"{API}/auth/login", json={"email": "root@example.com", "password": "correct-horse-battery"})
    return auth_header(response.json()["accessToken"])


@pytest.fixture
def plan_id(client, admin_headers):
    response = client.post(
        f"{API}/plans",
        json={"name": "Community", "maxMembers": 25, "maxAdmins": 2},
        headers=admin_headers
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def license_key(client, admin_headers, plan_id):
    response = client.post(f"{API}/licenses/generate", json={"planId": plan_id}, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["key"]


@pytest.fixture
def acme(client, license_key):
    """Tenant "acme" claimed by owner@example.com. Returns (tenant, owner headers)."""
    owner = login_headers(client, "owner@example.com")
    response = client.post(
        f"{API}/onboarding/claim",
        json={"licenseKey": license_key, "tenant": {"name": "Acme", "slug": "acme"}},
        headers=owner
    )
    assert response.status_code == 201, response.text
    return response.json()["tenant"], owner


def test_platform_routes_require_super_admin(client):
    headers = login_headers(client, "ann@example.com")

    for method, path in [
        ("get", "/plans"),
        ("get", "/licenses"),
        ("get", "/admin/overview"),
        ("get", "/admin/audit-logs"),
    ]:
        response = getattr(client, method)(f"{API}{path}", headers=headers)
        assert response.status_code == 403, path
        assert response.json()["code"] == "FORBIDDEN"


def test_license_claim_flow(client, license_key):
    verify = client.post(f"{API}/licenses/verify", json={"licenseKey": license_key.lower()})
    assert verify.status_code == 200
    assert verify.json()["limits"]["maxMembers"] == 25

    owner = login_headers(client, "owner@example.com")
    claim = client.post(
        f"{API}/onboarding/claim",
        json={"licenseKey": license_key, "tenant": {"name": "Acme", "slug": "acme"}},
        headers=owner
    )
    assert claim.status_code == 201
    body = claim.json()
    assert body["tenant"]["slug"] == "acme"
    assert body["membership"]["role"] == "OWNER"
    assert body["membership"]["status"] == "ACTIVE"

    again = client.post(
        f"{API}/onboarding/claim",
        json={"licenseKey": license_key, "tenant": {"name": "Acme 2", "slug": "acme-2"}},
        headers=owner
    )
    assert again.status_code == 400
    assert again.json()["code"] == "LICENSE_CLAIMED"

    me = client.get(f"{API}/auth/me", headers=owner).json()
    assert [m["role"] for m in me["memberships"]] == ["OWNER"]


def test_claim_requires_authentication(client, license_key):
    response = client.post(
        f"{API}/onboarding/claim",
        json={"licenseKey": license_key, "tenant": {"name": "Acme", "slug": "acme"}}
    )
    assert response.status_code == 401


def test_suspended_license_cannot_be_verified(client, admin_headers, plan_id):
    license = client.post(f"{API}/licenses/generate", json={"planId": plan_id}, headers=admin_headers).json()

    suspended = client.put(f"{API}/licenses/{license['id']}/suspend", headers=admin_headers)
    assert suspended.json()["status"] == "SUSPENDED"

    verify = client.post(f"{API}/licenses/verify", json={"licenseKey": license["key"]})
    assert verify.status_code == 400
    assert verify.json()["code"] == "LICENSE_INVALID"


def test_tenant_context_and_directory(client, acme):
    tenant, owner = acme

    listed = client.get(f"{API}/tenants/public", params={"q": "ac"}).json()
    assert [t["slug"] for t in listed] == ["acme"]

    anonymous = client.get(f"{API}/tenants/acme/context").json()
    assert anonymous["membership"] is None
    assert anonymous["settings"]["publicSignup"] is True
    assert anonymous["plan"]["maxMembers"] == 25

    mine = client.get(f"{API}/tenants/acme/context", headers=owner).json()
    assert mine["membership"]["role"] == "OWNER"

    by_id = client.get(f"{API}/tenants/id/{tenant['id']}", headers=owner)
    assert by_id.status_code == 200
    stranger = login_headers(client, "stranger@example.com")
    assert client.get(f"{API}/tenants/id/{tenant['id']}", headers=stranger).status_code == 403


def test_join_with_approval_then_admin_approves(client, acme):
    tenant, owner = acme
    settings = client.put(f"{API}/tenants/{tenant['id']}/settings", json={"approvalRequired": True}, headers=owner)
    assert settings.json() == {"publicSignup": True, "approvalRequired": True, "registrationFieldsEnabled": True}

    pat = login_headers(client, "pat@example.com")
    joined = client.post(f"{API}/tenants/acme/join", json={"fullName": "Pat", "phone": "+15550100"}, headers=pat)
    assert joined.status_code == 200
    assert joined.json()["pendingApproval"] is True

    assert client.get(f"{API}/tenants/id/{tenant['id']}", headers=pat).status_code == 403

    members = client.get(f"{API}/tenants/{tenant['id']}/members", headers=owner).json()
    pending = next(m for m in members if m["user"]["email"] == "pat@example.com")
    assert pending["profile"]["fullName"] == "Pat"

    approved = client.put(
        f"{API}/tenants/{tenant['id']}/members/{pending['user']['id']}",
        json={"role": "MEMBER"},
        headers=owner
    )
    assert approved.json()["status"] == "ACTIVE"
    assert client.get(f"{API}/tenants/id/{tenant['id']}", headers=pat).status_code == 200


def test_direct_join_requires_contact_details(client, acme):
    pat = login_headers(client, "pat@example.com")
    response = client.post(f"{API}/tenants/acme/join", json={"fullName": "Pat"}, headers=pat)
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_member_cannot_manage_invitations(client, acme):
    tenant, _ = acme
    pat = login_headers(client, "pat@example.com")
    client.post(f"{API}/tenants/acme/join", json={"fullName": "Pat", "phone": "+15550100"}, headers=pat)

    response = client.post(f"{API}/tenants/{tenant['id']}/invitations", json={"email": "x@example.com"}, headers=pat)
    assert response.status_code == 403


def test_invitation_flow(client, acme):
    tenant, owner = acme
    client.put(
        f"{API}/tenants/{tenant['id']}/settings",
        json={"approvalRequired": True, "publicSignup": False},
        headers=owner
    )

    created = client.post(
        f"{API}/tenants/{tenant['id']}/invitations",
        json={"email": "bob@x.com", "role": "ADMIN", "expiresInDays": 7},
        headers=owner
    )
    assert created.status_code == 201
    invitation = created.json()
    assert invitation["status"] == "SENT"

    duplicate = client.post(
        f"{API}/tenants/{tenant['id']}/invitations", json={"email": "BOB@x.com"}, headers=owner
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "INVITATION_EXISTS"

    info = client.get(f"{API}/tenants/acme/join-info", params={"inviteToken": invitation["token"]}).json()
    assert info["allowJoin"] is True
    assert info["invitation"]["valid"] is True
    assert info["invitation"]["role"] == "ADMIN"

    bob = login_headers(client, "bob@x.com")
    joined = client.post(f"{API}/tenants/acme/join", json={"inviteToken": invitation["token"]}, headers=bob)
    assert joined.status_code == 200
    assert joined.json()["membership"]["role"] == "ADMIN"
    assert joined.json()["membership"]["status"] == "ACTIVE"
    assert joined.json()["pendingApproval"] is False

    replay = client.post(f"{API}/tenants/acme/join", json={"inviteToken": invitation["token"]}, headers=bob)
    assert replay.status_code == 400
    assert replay.json()["code"] == "INVALID_STATE"

    listed = client.get(f"{API}/tenants/{tenant['id']}/invitations", headers=owner).json()
    assert [i["status"] for i in listed] == ["ACCEPTED"]

    revoke = client.put(f"{API}/tenants/{tenant['id']}/invitations/{invitation['id']}/revoke", headers=owner)
    assert revoke.status_code == 403
    resend = client.put(f"{API}/tenants/{tenant['id']}/invitations/{invitation['id']}/resend", headers=owner)
    assert resend.status_code == 400

    # The new admin can now manage invitations
    assert client.get(f"{API}/tenants/{tenant['id']}/invitations", headers=bob).status_code == 200


def test_join_without_signup_is_forbidden(client, acme):
    tenant, owner = acme
    client.put(f"{API}/tenants/{tenant['id']}/settings", json={"publicSignup": False}, headers=owner)

    pat = login_headers(client, "pat@example.com")
    response = client.post(f"{API}/tenants/acme/join", json={"fullName": "Pat", "phone": "1"}, headers=pat)
    assert response.status_code == 403

    info = client.get(f"{API}/tenants/acme/join-info").json()
    assert info["allowJoin"] is False
    assert info["invitation"] is None


def test_admin_console(client, admin_headers, acme):
    tenant, _ = acme

    overview = client.get(f"{API}/admin/overview", headers=admin_headers).json()
    assert overview["tenants"] == 1
    assert overview["users"] == 2
    actions = {log["action"] for log in overview["recentAuditLogs"]}
    assert "ONBOARDING_CLAIM_LICENSE" in actions

    created = client.post(f"{API}/admin/tenants", json={"name": "Beta", "slug": "beta"}, headers=admin_headers)
    assert created.status_code == 201
    clash = client.post(f"{API}/admin/tenants", json={"name": "Beta", "slug": "beta"}, headers=admin_headers)
    assert clash.status_code == 409
    assert clash.json()["code"] == "SLUG_EXISTS"

    bad_status = client.put(
        f"{API}/admin/tenants/{tenant['id']}/status", json={"status": "ARCHIVED"}, headers=admin_headers
    )
    assert bad_status.status_code == 422
    suspended = client.put(
        f"{API}/admin/tenants/{tenant['id']}/status", json={"status": "SUSPENDED"}, headers=admin_headers
    )
    assert suspended.json()["status"] == "SUSPENDED"
    assert client.get(f"{API}/tenants/public").json()[0]["slug"] == "beta"

    deleted = client.delete(f"{API}/admin/tenants/{tenant['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    assert client.get(f"{API}/tenants/acme").status_code == 404

    logs = client.get(f"{API}/admin/audit-logs", params={"tenantId": tenant["id"]}, headers=admin_headers).json()
    assert "ADMIN_DELETE_TENANT" in {log["action"] for log in logs}
    assert all("metadata" in log for log in logs)


def test_public_context_does_not_expose_the_license_key(client, admin_headers, plan_id):
    license = client.post(
        f"{API}/licenses/generate", json={"planId": plan_id, "singleUse": False}, headers=admin_headers
    ).json()
    owner = login_headers(client, "owner@example.com")
    client.post(
        f"{API}/onboarding/claim",
        json={"licenseKey": license["key"], "tenant": {"name": "Acme", "slug": "acme"}},
        headers=owner
    )

    context = client.get(f"{API}/tenants/acme/context").json()

    assert context["license"]["id"] == license["id"]
    assert context["license"]["singleUse"] is False
    assert context["license"]["limitsSnapshot"]["maxMembers"] == 25
    for field in ("key", "claimedByUserId", "claimedTenantId", "createdBy"):
        assert field not in context["license"]
    assert license["key"] not in str(context)
