import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from app.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, subtype: str = "html") -> bool:
    """Send one message over SMTP. Returns False instead of raising on failure."""
    if not settings.MAIL_ENABLED:
        logger.info(f"Mail disabled, not sending '{subject}' to {to_email}")
        return False
    try:
        msg = MIMEMultipart()
        msg['From'] = f'"BlogVerse" <{settings.MAIL_FROM}>'
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(body, subtype))

        smtp_class = smtplib.SMTP_SSL if settings.MAIL_SSL else smtplib.SMTP
        # The context manager quits the connection even when login or sendmail fails
        with smtp_class(settings.MAIL_SERVER, settings.MAIL_PORT, timeout=10) as server:
            if not settings.MAIL_SSL:
                server.starttls()
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
            server.sendmail(settings.MAIL_FROM, to_email, msg.as_string())
        logger.info(f"Email '{subject}' sent to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def send_reset_password_email(to_email: str, token: str) -> bool:
    reset_url = f"{settings.CLIENT_URL}/reset-password/{token}"
    body = f"""
    <h1>You have requested to reset your password</h1>
    <p>Please click the link below to reset your password:</p>
    <a href="{reset_url}" style="
        display: inline-block;
        padding: 12px 24px;
        background-color: #0FA4AF;
        color: white;
        text-decoration: none;
        border-radius: 8px;
        margin: 16px 0;
    ">Reset Password</a>
    <p>If you did not request this, please ignore this email and your password will remain unchanged.</p>
    <p>This link will expire in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
    """
    return send_email(to_email, "Password Reset Request", body)


def send_notification_email(to_email: str, subject: str, text: str) -> bool:
    return send_email(to_email, subject, text, subtype="plain")
