"""
Tests for health checks.
"""

import pytest

from gatekeeper.utils.health import ComponentHealth, HealthChecker, HealthStatus, check_database


@pytest.mark.asyncio
async def test_database_check(db):
    result = await check_database(db)

    assert result.name == "database"
    assert result.status in (HealthStatus.HEALTHY, HealthStatus.DEGRADED)


@pytest.mark.asyncio
async def test_failing_check_makes_system_unhealthy():
    checker = HealthChecker(version="0.1.0", environment="testing")

    async def ok():
        return ComponentHealth(name="database", status=HealthStatus.HEALTHY)

    async def broken():
        raise ConnectionError("broker unreachable")

    checker.add_check("database", ok)
    checker.add_check("broker", broken)

    health = (await checker.run()).to_dict()

    assert health["status"] == "unhealthy"
    assert health["components"]["database"]["status"] == "healthy"
    assert health["components"]["broker"]["message"] == "broker unreachable"
