import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional
from app.core.config import settings
from app.core.logger import logger


def send_email(
    to_emails: List[str],
    subject: str,
    html: str,
    text: Optional[str] = None,
) -> None:
    """Send one message to every recipient over SMTP (SSL).

    Raises whatever ``smtplib`` raises; callers that must not fail wrap this.
    """
    if not to_emails:
        return

    if not settings.EMAILS_ENABLED:
        logger.info(f"[Email disabled] '{subject}' -> {', '.join(to_emails)}")
        return

    sender_email = settings.SMTP_USER
    message = MIMEMultipart("alternative")
    message["From"] = formataddr((settings.APP_NAME, sender_email))
    message["To"] = ", ".join(to_emails)
    message["Subject"] = subject

    if text:
        message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.login(sender_email, settings.SMTP_PASSWORD)
        server.sendmail(sender_email, to_emails, message.as_string())
    logger.info(f"[Email] '{subject}' sent to {len(to_emails)} recipient(s)")
