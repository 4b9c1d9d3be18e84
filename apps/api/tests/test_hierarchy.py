"""
Tests for the role hierarchy fast-path.
"""

import pytest

from gatekeeper.core.auth.hierarchy import RoleHierarchy
from gatekeeper.core.auth.interfaces import AllowedVia, Principal, ResourceContext
from gatekeeper.core.auth.scope import TenantScopeChecker
from gatekeeper.models.enums import Action, ResourceType, Role

from conftest import principal_for


@pytest.mark.asyncio
async def test_super_admin_allowed_without_reads(db, super_admin):
    checker = TenantScopeChecker(db)

    decision = await RoleHierarchy().evaluate(
        super_admin, Action.DELETE, ResourceType.INVOICE, ResourceContext(resource_id="anything"), checker,
    )

    assert decision.allowed
    assert decision.via == AllowedVia.SUPER_ADMIN
    assert checker.reads == 0


@pytest.mark.asyncio
async def test_company_admin_may_create_users(db, factory, company_a):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))

    decision = await RoleHierarchy().evaluate(
        admin, Action.CREATE, ResourceType.USER, ResourceContext(), TenantScopeChecker(db),
    )

    assert decision.allowed
    assert decision.via == AllowedVia.HIERARCHY


@pytest.mark.asyncio
@pytest.mark.parametrize("action", [Action.READ, Action.UPDATE, Action.DELETE])
async def test_company_admin_same_tenant_user(db, factory, company_a, action):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    staff = await factory.user(company_a, Role.EMPLOYEE)

    decision = await RoleHierarchy().evaluate(
        admin, action, ResourceType.USER, ResourceContext(resource_id=staff.id), TenantScopeChecker(db),
    )

    assert decision is not None and decision.allowed


@pytest.mark.asyncio
async def test_company_admin_cross_tenant_user_defers(db, factory, company_a, company_b):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    outsider = await factory.user(company_b, Role.EMPLOYEE)

    decision = await RoleHierarchy().evaluate(
        admin, Action.UPDATE, ResourceType.USER, ResourceContext(resource_id=outsider.id), TenantScopeChecker(db),
    )

    assert decision is None


@pytest.mark.asyncio
async def test_company_admin_missing_user_defers(db, factory, company_a):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))

    decision = await RoleHierarchy().evaluate(
        admin, Action.READ, ResourceType.USER, ResourceContext(resource_id="missing"), TenantScopeChecker(db),
    )

    assert decision is None


@pytest.mark.asyncio
async def test_company_admin_without_tenant_gets_no_fast_path(db):
    admin = Principal(id="orphan", role=Role.COMPANY_ADMIN, tenant_id=None)
    checker = TenantScopeChecker(db)

    decision = await RoleHierarchy().evaluate(
        admin, Action.CREATE, ResourceType.USER, ResourceContext(), checker,
    )

    assert decision is None
    assert checker.reads == 0


@pytest.mark.asyncio
async def test_hierarchy_only_covers_users(db, factory, company_a):
    admin = principal_for(await factory.user(company_a, Role.COMPANY_ADMIN))
    client = await factory.client(company_a)

    decision = await RoleHierarchy().evaluate(
        admin, Action.READ, ResourceType.CLIENT, ResourceContext(resource_id=client.id), TenantScopeChecker(db),
    )

    assert decision is None


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER, Role.EMPLOYEE, Role.MEMBER, Role.USER])
async def test_peer_roles_get_nothing(db, role):
    principal = Principal(id="p", role=role, tenant_id="T1")

    decision = await RoleHierarchy().evaluate(
        principal, Action.CREATE, ResourceType.USER, ResourceContext(), TenantScopeChecker(db),
    )

    assert decision is None
