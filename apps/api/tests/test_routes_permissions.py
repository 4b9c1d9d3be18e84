"""
Tests for permission table management endpoints.
"""

import pytest
from httpx import AsyncClient

from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.models.enums import Action, ResourceType, Role

from conftest import audit_rows, auth_headers, principal_for


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient):
    response = await client.get("/api/permissions")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.COMPANY_ADMIN, Role.ADMIN, Role.MEMBER])
async def test_requires_super_admin(client: AsyncClient, role):
    headers = auth_headers(Principal(id="p1", role=role, tenant_id="T1"))

    response = await client.post(
        "/api/permissions",
        headers=headers,
        json={"action": "READ", "resource_type": "CLIENT", "role": "MEMBER"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_add_grant_is_idempotent(client: AsyncClient, db, super_admin_headers):
    body = {"action": "READ", "resource_type": "PROJECT", "role": "EMPLOYEE"}

    first = await client.post("/api/permissions", headers=super_admin_headers, json=body)
    second = await client.post("/api/permissions", headers=super_admin_headers, json=body)

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    listed = await client.get("/api/permissions", headers=super_admin_headers)
    assert len(listed.json()) == 1

    # Only the creation is audited
    rows = await audit_rows(db, resource_type="PERMISSION_GRANT")
    assert len(rows) == 1
    assert rows[0].principal_id == "root"
    assert rows[0].detail == body


@pytest.mark.asyncio
async def test_legacy_verb_is_stored_normalised(client: AsyncClient, super_admin_headers):
    response = await client.post(
        "/api/permissions",
        headers=super_admin_headers,
        json={"action": "list", "resource_type": "LEAD", "role": "MEMBER"},
    )

    assert response.status_code == 201
    assert response.json()["action"] == "READ"


@pytest.mark.asyncio
async def test_super_admin_grant_is_rejected(client: AsyncClient, super_admin_headers):
    response = await client.post(
        "/api/permissions",
        headers=super_admin_headers,
        json={"action": "READ", "resource_type": "CLIENT", "role": "SUPER_ADMIN"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, factory, super_admin_headers):
    await factory.grant(Action.READ, ResourceType.CLIENT, Role.EMPLOYEE)
    await factory.grant(Action.UPDATE, ResourceType.CLIENT, Role.MANAGER)

    response = await client.get(
        "/api/permissions",
        headers=super_admin_headers,
        params={"role": "MANAGER"},
    )

    assert [(g["action"], g["role"]) for g in response.json()] == [("UPDATE", "MANAGER")]


@pytest.mark.asyncio
async def test_remove_grant(client: AsyncClient, db, super_admin_headers):
    body = {"action": "DELETE", "resource_type": "INVOICE", "role": "COMPANY_ADMIN"}
    await client.post("/api/permissions", headers=super_admin_headers, json=body)

    removed = await client.request("DELETE", "/api/permissions", headers=super_admin_headers, json=body)
    again = await client.request("DELETE", "/api/permissions", headers=super_admin_headers, json=body)

    assert removed.status_code == 204
    assert again.status_code == 404
    actions = [r.action for r in await audit_rows(db, resource_type="PERMISSION_GRANT")]
    assert sorted(actions) == ["CREATE", "DELETE"]


@pytest.mark.asyncio
async def test_check_is_a_dry_run(client: AsyncClient, db, factory, company_a):
    member = principal_for(await factory.user(company_a, Role.MEMBER))
    project = await factory.project(company_a)

    response = await client.post(
        "/api/permissions/check",
        headers=auth_headers(member),
        json={"action": "READ", "resource_type": "PROJECT", "resource_id": project.id},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is False
    assert data["outcome"] == "DENY"
    assert data["status_code"] == 403
    assert await audit_rows(db) == []


@pytest.mark.asyncio
async def test_check_reports_allow_and_not_found(client: AsyncClient, factory, company_a):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    headers = auth_headers(admin)

    allowed = await client.post(
        "/api/permissions/check",
        headers=headers,
        json={"action": "CREATE", "resource_type": "USER"},
    )
    missing = await client.post(
        "/api/permissions/check",
        headers=headers,
        json={"action": "READ", "resource_type": "CLIENT", "resource_id": "ghost"},
    )

    assert allowed.json()["via"] == "hierarchy"
    assert allowed.json()["status_code"] == 200
    assert missing.json()["outcome"] == "NOT_FOUND"
    assert missing.json()["status_code"] == 404


@pytest.mark.asyncio
async def test_check_rejects_unknown_verb(client: AsyncClient, super_admin_headers):
    response = await client.post(
        "/api/permissions/check",
        headers=super_admin_headers,
        json={"action": "APPROVE", "resource_type": "CLIENT"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_check_for_another_user(client: AsyncClient, db, factory, company_a, super_admin_headers):
    employee = await factory.user(company_a, Role.EMPLOYEE)
    await factory.grant(Action.READ, ResourceType.CLIENT, Role.EMPLOYEE)
    body = {"action": "READ", "resource_type": "CLIENT", "user_id": employee.id}

    as_root = await client.post("/api/permissions/check", headers=super_admin_headers, json=body)
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    as_admin = await client.post("/api/permissions/check", headers=auth_headers(admin), json=body)

    for response in (as_root, as_admin):
        assert response.status_code == 200
        assert response.json()["principal_id"] == employee.id
        assert response.json()["via"] == "grant"
    assert await audit_rows(db) == []


@pytest.mark.asyncio
async def test_check_for_another_user_uses_stored_role(client: AsyncClient, factory, company_a, super_admin_headers):
    member = await factory.user(company_a, Role.MEMBER)

    response = await client.post(
        "/api/permissions/check",
        headers=super_admin_headers,
        json={"action": "CREATE", "resource_type": "USER", "user_id": member.id},
    )

    assert response.json()["principal_id"] == member.id
    assert response.json()["allowed"] is False


@pytest.mark.asyncio
async def test_check_for_missing_user_is_404(client: AsyncClient, super_admin_headers):
    response = await client.post(
        "/api/permissions/check",
        headers=super_admin_headers,
        json={"action": "READ", "resource_type": "CLIENT", "user_id": "ghost"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_naming_another_user_requires_admin(client: AsyncClient, factory, company_a, company_b):
    member = principal_for(await factory.user(company_a, Role.MEMBER))
    colleague = await factory.user(company_a, Role.EMPLOYEE)
    outsider = await factory.user(company_b, Role.EMPLOYEE)
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))

    by_member = await client.post(
        "/api/permissions/check",
        headers=auth_headers(member),
        json={"action": "READ", "resource_type": "CLIENT", "user_id": colleague.id},
    )
    across_tenants = await client.post(
        "/api/permissions/check",
        headers=auth_headers(admin),
        json={"action": "READ", "resource_type": "CLIENT", "user_id": outsider.id},
    )
    own_id = await client.post(
        "/api/permissions/check",
        headers=auth_headers(member),
        json={"action": "READ", "resource_type": "CLIENT", "user_id": member.id},
    )

    assert by_member.status_code == 403
    assert across_tenants.status_code == 403
    assert own_id.status_code == 200
    assert own_id.json()["principal_id"] == member.id
