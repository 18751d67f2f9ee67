"""
Worker entry point.

Run with ``celery -A authcore.workers.worker worker -Q emails``. Only the
worker process imports this module, so settings are read from the worker's
own environment.
"""

from authcore.config import load_settings
from authcore.logging_config import configure_logging
from authcore.workers.celery_app import create_celery_app

worker_settings = load_settings()
configure_logging(worker_settings)
celery_app = create_celery_app(worker_settings)
