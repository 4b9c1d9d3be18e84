"""
Tests for audit log endpoints.
"""

import csv
import io
import json

import pytest
import pytest_asyncio
from httpx import AsyncClient

from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.models.enums import Action, ResourceType, Role

from conftest import auth_headers, principal_for


@pytest_asyncio.fixture
async def trail(audit, factory, company_a, company_b) -> dict[str, Principal]:
    """A few records across two tenants."""
    admin_a = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    member_a = principal_for(await factory.user(company_a, Role.MEMBER))
    member_b = principal_for(await factory.user(company_b, Role.MEMBER))

    await audit.log_action(admin_a, Action.UPDATE, ResourceType.CLIENT, "c1", detail={"fields": ["name"]})
    await audit.log_action(member_a, Action.READ, ResourceType.PROJECT, "p1")
    await audit.record_denial(member_a, Action.DELETE, ResourceType.PROJECT, "p1", detail={"reason": "insufficient permissions"})
    await audit.log_action(member_b, Action.CREATE, ResourceType.LEAD, "l1")

    return {"admin_a": admin_a, "member_a": member_a, "member_b": member_b}


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient):
    response = await client.get("/api/audit-logs")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_super_admin_sees_everything(client: AsyncClient, trail, super_admin_headers):
    response = await client.get("/api/audit-logs", headers=super_admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    # Newest first
    assert data["items"][0]["resource_type"] == "LEAD"


@pytest.mark.asyncio
async def test_super_admin_tenant_filter(client: AsyncClient, trail, company_b, super_admin_headers):
    response = await client.get(
        "/api/audit-logs",
        headers=super_admin_headers,
        params={"tenant_id": company_b.id},
    )

    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_company_admin_sees_own_tenant_only(client: AsyncClient, trail, company_b):
    headers = auth_headers(trail["admin_a"])

    own = await client.get("/api/audit-logs", headers=headers)
    # The tenant filter cannot widen visibility
    other = await client.get("/api/audit-logs", headers=headers, params={"tenant_id": company_b.id})

    assert own.json()["total"] == 3
    assert other.json()["total"] == 3


@pytest.mark.asyncio
async def test_member_sees_own_records_only(client: AsyncClient, trail):
    member = trail["member_a"]

    response = await client.get("/api/audit-logs", headers=auth_headers(member))

    items = response.json()["items"]
    assert len(items) == 2
    assert {item["principal_id"] for item in items} == {member.id}


@pytest.mark.asyncio
async def test_filters(client: AsyncClient, trail, super_admin_headers):
    denied = await client.get("/api/audit-logs", headers=super_admin_headers, params={"outcome": "DENIED"})
    projects = await client.get("/api/audit-logs", headers=super_admin_headers, params={"resource_type": "project"})

    assert denied.json()["total"] == 1
    assert denied.json()["items"][0]["detail"] == {"reason": "insufficient permissions"}
    assert projects.json()["total"] == 2


@pytest.mark.asyncio
async def test_pagination(client: AsyncClient, trail, super_admin_headers):
    response = await client.get("/api/audit-logs", headers=super_admin_headers, params={"page": 2, "per_page": 3})

    data = response.json()
    assert len(data["items"]) == 1
    assert data["pages"] == 2
    assert data["has_prev"] is True
    assert data["has_next"] is False


@pytest.mark.asyncio
async def test_count(client: AsyncClient, trail):
    response = await client.get("/api/audit-logs/count", headers=auth_headers(trail["admin_a"]))

    assert response.json() == {"count": 3}


@pytest.mark.asyncio
async def test_csv_export(client: AsyncClient, trail, super_admin_headers):
    response = await client.get("/api/audit-logs/export", headers=super_admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert len(rows) == 4
    # Oldest first, nested detail written as JSON
    assert rows[0]["resource_type"] == "CLIENT"
    assert json.loads(rows[0]["detail"]) == {"fields": ["name"]}


@pytest.mark.asyncio
async def test_csv_export_writes_header_when_empty(client: AsyncClient, super_admin_headers):
    response = await client.get("/api/audit-logs/export", headers=super_admin_headers)

    assert response.text.strip().split(",")[0] == "id"


@pytest.mark.asyncio
async def test_jsonl_export(client: AsyncClient, trail):
    response = await client.get(
        "/api/audit-logs/export",
        headers=auth_headers(trail["member_b"]),
        params={"format": "jsonl"},
    )

    lines = [json.loads(line) for line in response.text.splitlines()]
    assert len(lines) == 1
    assert lines[0]["action"] == "CREATE"


@pytest.mark.asyncio
async def test_get_single_record_respects_visibility(client: AsyncClient, trail, super_admin_headers):
    listed = await client.get(
        "/api/audit-logs",
        headers=super_admin_headers,
        params={"principal_id": trail["member_b"].id},
    )
    log_id = listed.json()["items"][0]["id"]

    visible = await client.get(f"/api/audit-logs/{log_id}", headers=auth_headers(trail["member_b"]))
    hidden = await client.get(f"/api/audit-logs/{log_id}", headers=auth_headers(trail["admin_a"]))

    assert visible.status_code == 200
    assert visible.json()["outcome"] == "SUCCESS"
    assert hidden.status_code == 404
