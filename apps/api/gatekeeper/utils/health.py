"""
Health checks for the stores the engine depends on.

The database holds grants, tenant columns and (with the database sink) the
audit trail; the broker only matters when audit records go through the
queue.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None


@dataclass
class SystemHealth:
    status: HealthStatus
    version: str
    environment: str
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "components": {
                c.name: {
                    "status": c.status.value,
                    "latency_ms": c.latency_ms,
                    "message": c.message,
                }
                for c in self.components
            },
        }


def _timed(name: str, started: float, slow_ms: float) -> ComponentHealth:
    latency = (time.perf_counter() - started) * 1000
    slow = latency >= slow_ms
    return ComponentHealth(
        name=name,
        status=HealthStatus.DEGRADED if slow else HealthStatus.HEALTHY,
        latency_ms=round(latency, 2),
        message="Slow response" if slow else "Connected",
    )


async def check_database(db: AsyncSession) -> ComponentHealth:
    """Check database connectivity and latency."""
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return ComponentHealth(name="database", status=HealthStatus.UNHEALTHY, message=str(e)[:100])
    return _timed("database", started, slow_ms=100)


async def check_broker(broker_url: str) -> ComponentHealth:
    """Check the Redis broker used by the audit queue."""
    started = time.perf_counter()
    client = aioredis.from_url(broker_url)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error("Broker health check failed", error=str(e))
        return ComponentHealth(name="broker", status=HealthStatus.UNHEALTHY, message=str(e)[:100])
    finally:
        await client.aclose()
    return _timed("broker", started, slow_ms=50)


class HealthChecker:
    """
    Runs named checks concurrently and folds them into one status.

    Usage:
        checker = HealthChecker(version="1.0.0", environment="production")
        checker.add_check("database", db_check)
        health = await checker.run()
    """

    def __init__(self, version: str, environment: str):
        self.version = version
        self.environment = environment
        self.checks: dict[str, Callable[[], Awaitable[ComponentHealth]]] = {}

    def add_check(self, name: str, check_fn: Callable[[], Awaitable[ComponentHealth]]) -> None:
        self.checks[name] = check_fn

    async def run(self) -> SystemHealth:
        results = await asyncio.gather(
            *[check() for check in self.checks.values()],
            return_exceptions=True,
        )

        components = []
        for name, result in zip(self.checks.keys(), results):
            if isinstance(result, Exception):
                components.append(ComponentHealth(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=str(result)[:100],
                ))
            else:
                components.append(result)

        statuses = {c.status for c in components}
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return SystemHealth(
            status=overall,
            version=self.version,
            environment=self.environment,
            components=components,
        )
