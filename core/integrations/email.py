"""Email integration for account verification mail."""

import html
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from urllib.parse import urlencode
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        """
        Initialize email service. Unset arguments fall back to settings.

        Args:
            smtp_host: SMTP server host
            smtp_port: SMTP server port
            smtp_user: SMTP username
            smtp_password: SMTP password
            from_email: Default sender email
            from_name: Default sender name
        """
        self.smtp_host = smtp_host or settings.smtp_host
        self.smtp_port = smtp_port or settings.smtp_port
        self.smtp_user = smtp_user or settings.smtp_user
        self.smtp_password = smtp_password or settings.smtp_password
        self.from_email = from_email or settings.smtp_from_email
        self.from_name = from_name or settings.smtp_from_name

    def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html: bool = False,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            body: Email body
            html: Whether body is HTML

        Returns:
            True if email sent successfully. Failures are logged, never raised.
        """
        msg = MIMEMultipart()
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'html' if html else 'plain'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg, from_addr=self.from_email, to_addrs=[to_email])
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email '{subject}': {e}")
            return False

        logger.info(f"Email '{subject}' sent")
        return True

    def send_verification_email(
        self,
        name: str,
        email: str,
        verification_token: str,
        origin: str,
    ) -> bool:
        """
        Send the account verification link.

        Args:
            name: Recipient display name
            email: Recipient address (also embedded in the link)
            verification_token: Token to embed in the link
            origin: Frontend origin the link points at
        """
        template = EmailTemplates.verification_email(
            name, build_verification_url(origin, verification_token, email)
        )
        return self.send_email(email, template['subject'], template['body'], html=template['html'])


def build_verification_url(origin: str, verification_token: str, email: str) -> str:
    query = urlencode({"token": verification_token, "email": email})
    return f"{origin.rstrip('/')}/user/verify-email?{query}"


class EmailTemplates:
    """Pre-configured email templates."""

    @staticmethod
    def verification_email(user_name: str, verify_url: str) -> dict:
        """Email verification template."""
        return {
            'subject': 'Email Verification',
            'body': f"""
                <html>
                <body>
                    <h4>Hello {html.escape(user_name)}</h4>
                    <p>Please confirm your email by clicking the following link:</p>
                    <a href="{html.escape(verify_url)}">Verify Email</a>
                    <p>If you did not create this account, please ignore this email.</p>
                </body>
                </html>
            """,
            'html': True
        }
