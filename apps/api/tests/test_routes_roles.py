"""
Tests for the role-centric grant endpoints.
"""

import pytest
from httpx import AsyncClient

from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.models.enums import Action, ResourceType, Role

from conftest import auth_headers


@pytest.mark.asyncio
async def test_list_roles(client: AsyncClient, factory, super_admin_headers):
    await factory.grant(Action.READ, ResourceType.CLIENT, Role.MANAGER)

    response = await client.get("/api/roles", headers=super_admin_headers)

    assert response.status_code == 200
    roles = {item["role"]: item["grants"] for item in response.json()}
    assert "SUPER_ADMIN" not in roles
    assert roles["MANAGER"] == [{"action": "READ", "resource_type": "CLIENT"}]
    assert roles["EMPLOYEE"] == []


@pytest.mark.asyncio
async def test_add_and_remove_role_grant(client: AsyncClient, super_admin_headers):
    body = {"action": "update", "resource_type": "TASK"}

    created = await client.post("/api/roles/EMPLOYEE/grants", headers=super_admin_headers, json=body)
    existing = await client.post("/api/roles/EMPLOYEE/grants", headers=super_admin_headers, json=body)
    listed = await client.get("/api/roles/EMPLOYEE/grants", headers=super_admin_headers)

    assert created.status_code == 201
    assert existing.status_code == 200
    assert listed.json() == [{"action": "UPDATE", "resource_type": "TASK"}]

    removed = await client.request("DELETE", "/api/roles/EMPLOYEE/grants", headers=super_admin_headers, json=body)
    assert removed.status_code == 204

    listed = await client.get("/api/roles/EMPLOYEE/grants", headers=super_admin_headers)
    assert listed.json() == []


@pytest.mark.asyncio
async def test_super_admin_role_is_not_editable(client: AsyncClient, super_admin_headers):
    response = await client.post(
        "/api/roles/SUPER_ADMIN/grants",
        headers=super_admin_headers,
        json={"action": "READ", "resource_type": "CLIENT"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_role(client: AsyncClient, super_admin_headers):
    response = await client.get("/api/roles/JANITOR/grants", headers=super_admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_company_admin_cannot_manage_roles(client: AsyncClient):
    headers = auth_headers(Principal(id="ca", role=Role.COMPANY_ADMIN, tenant_id="T1"))

    response = await client.get("/api/roles", headers=headers)

    assert response.status_code == 403
