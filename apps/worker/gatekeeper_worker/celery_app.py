"""
Celery application configuration.
"""

from celery import Celery
from gatekeeper_worker.config import settings

app = Celery(
    "gatekeeper-worker",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=[
        "gatekeeper_worker.tasks.audit",
    ],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_routes={
        "gatekeeper_worker.tasks.audit.*": {"queue": settings.audit_queue},
    },

    # At-least-once: acknowledge after the insert, redeliver if the worker dies
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Audit results are not read back
    task_ignore_result=True,

    worker_prefetch_multiplier=1,
    worker_concurrency=4,
)


if __name__ == "__main__":
    app.start()
