"""Outbound email abstraction with SES and Celery-backed implementations."""

import logging
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlencode

import boto3
from botocore.exceptions import ClientError
from celery import Celery

from authcore.workers.celery_app import SEND_EMAIL_TASK

logger = logging.getLogger(__name__)


class EmailSender(ABC):
    """
    Abstract interface for sending account emails.

    Subclasses only implement ``send_email``; message composition lives here.
    """

    def __init__(self, frontend_url: str):
        self.frontend_url = frontend_url.rstrip("/")

    @abstractmethod
    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Deliver a plain-text email.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body
        """
        pass

    def send_reset_password_email(self, to: str, token: str) -> None:
        """Send a password reset link."""
        link = f"{self.frontend_url}/reset-password?{urlencode({'token': token})}"
        body = (
            "Hello,\n\n"
            "To reset your password, click on this link: "
            f"{link}\n\n"
            "If you did not request any password resets, please ignore this email."
        )
        self.send_email(to, "Reset password", body)

    def send_verification_email(self, to: str, name: Optional[str], token: str) -> None:
        """Send an email verification link."""
        link = f"{self.frontend_url}/verify-email?{urlencode({'token': token})}"
        body = (
            f"Hello {name or ''},\n\n"
            "To verify your email, click on this link: "
            f"{link}\n\n"
            "If you did not create an account, please ignore this email."
        )
        self.send_email(to, "Email Verification", body)


class SESEmailSender(EmailSender):
    """Amazon SES implementation."""

    def __init__(
        self,
        frontend_url: str,
        sender: str,
        region: str,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
    ):
        """
        Initialize the SES client.

        Args:
            frontend_url: Base URL used in links
            sender: Verified SES source address
            region: AWS region
            aws_access_key_id: AWS access key (falls back to IAM role)
            aws_secret_access_key: AWS secret key (falls back to IAM role)
        """
        super().__init__(frontend_url)
        self.sender = sender

        client_kwargs = {"region_name": region}
        if aws_access_key_id:
            client_kwargs["aws_access_key_id"] = aws_access_key_id
            client_kwargs["aws_secret_access_key"] = aws_secret_access_key

        self.ses_client = boto3.client("ses", **client_kwargs)

    def send_email(self, to: str, subject: str, body: str) -> None:
        """Send an email through SES."""
        try:
            response = self.ses_client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
                },
            )
            logger.info(f"Sent email '{subject}' (message id {response.get('MessageId')})")
        except ClientError as e:
            logger.error(f"Failed to send email via SES: {e}")
            raise


class CeleryEmailSender(EmailSender):
    """Hands emails to the worker queue so requests never wait on SES."""

    def __init__(self, frontend_url: str, celery_app: Celery):
        """
        Initialize the sender.

        Args:
            frontend_url: Base URL used in links
            celery_app: Celery app connected to the worker broker
        """
        super().__init__(frontend_url)
        self.celery_app = celery_app

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.celery_app.send_task(SEND_EMAIL_TASK, args=[to, subject, body])
        logger.info(f"Enqueued email '{subject}'")
