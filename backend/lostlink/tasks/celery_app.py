import os
from celery import Celery


def make_celery() -> Celery:
    """Celery app for side jobs that must never hold up a request (alert e-mails)."""
    broker = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    app = Celery("lostlink", broker=broker, backend=os.getenv("CELERY_RESULT_BACKEND", broker), include=[
        "lostlink.tasks.jobs.alerts",
    ])
    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        # Acked after the send; a worker crash redelivers
        task_acks_late=True,
        task_routes={"lostlink.tasks.jobs.alerts.*": {"queue": os.getenv("ALERT_QUEUE", "alerts")}},
    )
    return app


celery_app = make_celery()
