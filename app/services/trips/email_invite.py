"""Invitation emails.

Every public ``send_*`` function is safe to hand to ``BackgroundTasks``: it
logs delivery failures and never raises.
"""
from datetime import date
from functools import wraps
from html import escape
from typing import List, Optional
from app.core.config import settings
from app.core.logger import logger
from app.services import email_service


def best_effort(func):
    @wraps(func)
    def wrapper(*args, **kwargs) -> bool:
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"[Notifier] {func.__name__} failed: {e}")
            return False
        return True
    return wrapper


def invitations_link() -> str:
    return f"{settings.FRONTEND_BASE_URL}/invitations"


def trip_link(trip_id: int) -> str:
    return f"{settings.FRONTEND_BASE_URL}/trips/{trip_id}"


def format_date(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def header_safe(value: str) -> str:
    """Collapse runs of whitespace, newlines included, into single spaces."""
    return " ".join(str(value).split())


def _button(link: str, label: str) -> str:
    return (
        f'<a href="{link}" style="padding: 10px 20px; background-color: #0984e3; '
        f'color: white; text-decoration: none; border-radius: 5px;">{label}</a>'
    )


@best_effort
def send_invitation(
    email: str,
    inviter_name: str,
    trip_name: str,
    start_date: date,
    end_date: date,
) -> None:
    link = invitations_link()
    dates = f"{format_date(start_date)} - {format_date(end_date)}"
    subject = f"{header_safe(inviter_name)} invited you to join {header_safe(trip_name)} on {settings.APP_NAME}"
    html = f"""
    <html>
      <body>
        <p>Hey there,<br><br>
           <strong>{escape(inviter_name)}</strong> has invited you to join the trip
           <b>{escape(trip_name)}</b> ({dates}).<br><br>
           {_button(link, "View invitation")}
           <br><br>
           Or paste this link into your browser:<br>
           <code>{link}</code>
           <br><br>
           Happy planning!
        </p>
      </body>
    </html>
    """
    text = (
        f"{inviter_name} has invited you to join the trip {trip_name} ({dates}).\n"
        f"Visit: {link}"
    )
    email_service.send_email([email], subject, html, text)


@best_effort
def send_accepted(
    recipient_emails: List[str],
    new_participant_name: str,
    trip_name: str,
    trip_id: int,
) -> None:
    link = trip_link(trip_id)
    subject = f"{header_safe(new_participant_name)} joined {header_safe(trip_name)}"
    html = f"""
    <html>
      <body>
        <p><strong>{escape(new_participant_name)}</strong> accepted the invitation and is now part of
           <b>{escape(trip_name)}</b>.<br><br>
           {_button(link, "Open trip")}
        </p>
      </body>
    </html>
    """
    text = f"{new_participant_name} joined {trip_name}.\nVisit: {link}"
    email_service.send_email(recipient_emails, subject, html, text)


@best_effort
def send_declined(
    recipient_emails: List[str],
    decliner_name: str,
    trip_name: str,
    trip_id: int,
    reason: Optional[str] = None,
) -> None:
    link = trip_link(trip_id)
    subject = f"{header_safe(decliner_name)} declined the invitation to {header_safe(trip_name)}"
    reason_html = f"<br><br>Reason: <em>{escape(reason)}</em>" if reason else ""
    html = f"""
    <html>
      <body>
        <p><strong>{escape(decliner_name)}</strong> declined the invitation to
           <b>{escape(trip_name)}</b>.{reason_html}<br><br>
           {_button(link, "Open trip")}
        </p>
      </body>
    </html>
    """
    text = f"{decliner_name} declined the invitation to {trip_name}."
    if reason:
        text += f"\nReason: {reason}"
    text += f"\nVisit: {link}"
    email_service.send_email(recipient_emails, subject, html, text)
