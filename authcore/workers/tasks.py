"""Celery tasks for outbound email."""

import logging

from botocore.exceptions import BotoCoreError, ClientError
from celery import shared_task

from authcore.config import Settings, load_settings
from authcore.services.email_service import SESEmailSender
from authcore.workers.celery_app import SEND_EMAIL_TASK

logger = logging.getLogger(__name__)


def build_ses_sender(settings: Settings) -> SESEmailSender:
    """Create the SES sender from worker settings."""
    return SESEmailSender(
        frontend_url=settings.FRONTEND_URL,
        sender=settings.EMAIL_SENDER,
        region=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


@shared_task(
    bind=True,
    name=SEND_EMAIL_TASK,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(ClientError, BotoCoreError),
)
def send_email(self, to: str, subject: str, body: str) -> dict:
    """
    Send one email through SES.

    Args:
        to: Recipient address
        subject: Subject line
        body: Plain-text body

    Returns:
        Result metadata
    """
    logger.info(f"Sending email '{subject}' (attempt {self.request.retries + 1})")
    build_ses_sender(load_settings()).send_email(to, subject, body)
    return {"status": "sent", "subject": subject}
