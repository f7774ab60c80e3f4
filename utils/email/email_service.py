"""
Email Service for sending emails via SMTP.

Supports Gmail, Office365, and other SMTP providers. With the ``console``
backend (the default) messages are only logged.
"""

import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from urllib.parse import urlencode

from config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending emails."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize email service with settings."""
        settings = settings or default_settings
        self.enabled = settings.email_enabled
        self.backend = settings.email_backend
        self.host = settings.email_host
        self.port = settings.email_port
        self.use_tls = settings.email_use_tls
        self.use_ssl = settings.email_use_ssl
        self.timeout = settings.email_timeout
        self.username = settings.email_host_user
        self.password = settings.email_host_password
        self.from_address = settings.email_from_address
        self.from_name = settings.email_from_name
        self.reset_url = settings.reset_url
        self.frontend_url = settings.frontend_url
        self.reset_expire_hours = settings.password_reset_token_expire_hours

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email content
            text_content: Plain text fallback content

        Returns:
            True if email sent (or logged by the console backend), False otherwise
        """
        if not self.enabled or self.backend == "console":
            logger.info(f"📧 Would send email to {to_email}: {subject}")
            logger.debug(f"📧 Content: {(text_content or html_content)[:200]}...")
            return True

        if not self.username or not self.password:
            logger.error("❌ Email credentials not configured")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_address}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

            try:
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, [to_email], msg.as_string())
            finally:
                server.quit()

            logger.info(f"✅ Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Failed to send email to {to_email}: {e}")
            return False

    def build_reset_link(self, reset_token: str) -> str:
        """Frontend URL the user follows to choose a new password."""
        return f"{self.reset_url}?{urlencode({'token': reset_token})}"

    def send_password_reset_email(
        self,
        to_email: str,
        name: str,
        reset_token: str
    ) -> bool:
        """
        Send password reset email with reset link.

        Args:
            to_email: Recipient email address
            name: User's display name
            reset_token: Password reset token

        Returns:
            True if email sent successfully
        """
        reset_url = self.build_reset_link(reset_token)
        subject = "Reset your password @Trench"

        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Password reset request</h2>
                <p>Hi {name},</p>
                <p>We received a request to reset the password for your Trench account.</p>
                <p><a href="{reset_url}">Reset my password</a></p>
                <p>Or copy and paste this link into your browser:</p>
                <p style="word-break: break-all;">{reset_url}</p>
                <p><strong>This link will expire in {self.reset_expire_hours} hour(s).</strong></p>
                <p>If you didn't request this, you can safely ignore this email.</p>
                <p>The Trench Team</p>
            </div>
        </body>
        </html>
        """

        text_content = (
            f"Hi {name},\n\n"
            "We received a request to reset the password for your Trench account.\n\n"
            f"Reset your password here: {reset_url}\n\n"
            f"This link will expire in {self.reset_expire_hours} hour(s).\n\n"
            "If you didn't request this, you can safely ignore this email.\n\n"
            "The Trench Team\n"
        )

        return self.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=text_content
        )

    def send_welcome_email(self, to_email: str, name: str) -> bool:
        """
        Send welcome email to a newly registered user.

        Returns:
            True if email sent successfully
        """
        subject = "Welcome to Trench!"

        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Welcome to Trench, {name}!</h2>
                <p>Your account has been created. You can sign in at
                   <a href="{self.frontend_url}">{self.frontend_url}</a>.</p>
                <p>The Trench Team</p>
            </div>
        </body>
        </html>
        """

        text_content = (
            f"Welcome to Trench, {name}!\n\n"
            f"Your account has been created. You can sign in at {self.frontend_url}.\n\n"
            "The Trench Team\n"
        )

        return self.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=text_content
        )


__all__ = ['EmailService']
