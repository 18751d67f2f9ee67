"""Celery application configuration."""

from celery import Celery

from authcore.config import Settings

SEND_EMAIL_TASK = "authcore.workers.tasks.send_email"


def create_celery_app(settings: Settings) -> Celery:
    """
    Create the Celery app for the given settings.

    The web process builds one of these in its context only to enqueue
    tasks; the worker builds its own in ``authcore.workers.worker``.
    """
    app = Celery(
        "authcore",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["authcore.workers.tasks"],
    )

    app.conf.update(
        # Task settings
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,

        # Task routing
        task_routes={
            SEND_EMAIL_TASK: {"queue": "emails"},
        },

        # Task execution settings
        task_acks_late=True,  # Acknowledge after task completion
        task_reject_on_worker_lost=True,  # Requeue if worker dies

        # Email results are not read back
        task_ignore_result=True,

        # Worker settings
        worker_prefetch_multiplier=1,
    )
    return app
