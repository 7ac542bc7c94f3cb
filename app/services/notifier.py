"""
Service mail - envoi des notifications (setup du mot de passe, assignation, rappels)
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Protocol, Tuple

from app.core.errors import NotifierError

logger = logging.getLogger(__name__)

SIGNATURE = "Best regards,\nTask Management Team"


class Notifier(Protocol):
    def send(self, to: str, subject: str, text: str) -> None: ...


class SmtpNotifier:
    """Envoi SMTP over SSL (ex: Gmail avec mot de passe d'application)"""

    def __init__(self, host: str, port: int, user: str, password: str, sender: str, timeout: int = 30):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, text: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)

        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
                if self.user:
                    smtp.login(self.user, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotifierError(f"Could not send mail to {to}: {e}") from e

        logger.info(f"Mail sent to {to}: {subject}")


class LogNotifier:
    """Pas de serveur mail configuré: on logge le message"""

    def send(self, to: str, subject: str, text: str) -> None:
        logger.info(f"Mail to {to} (not sent, no MAIL_HOST): {subject}\n{text}")


def build_notifier(settings) -> Notifier:
    if not settings.MAIL_HOST:
        logger.warning("MAIL_HOST not set, notifications will only be logged")
        return LogNotifier()
    return SmtpNotifier(
        host=settings.MAIL_HOST,
        port=settings.MAIL_PORT,
        user=settings.MAIL_USER,
        password=settings.MAIL_PASSWORD,
        sender=settings.MAIL_FROM,
    )


# ============ MESSAGES ============

def format_deadline(deadline: datetime) -> str:
    # ex: Monday, October 19, 2026 at 05:30 PM UTC
    return deadline.strftime("%A, %B %d, %Y at %I:%M %p UTC")


def setup_password_message(name: str, setup_link: str, valid_hours: int) -> Tuple[str, str]:
    subject = "Set up your account password"
    text = (
        f"Hello {name},\n\n"
        "An account has been created for you.\n\n"
        f"Click the link below to set your password (valid for {valid_hours} hours):\n\n"
        f"{setup_link}\n\n"
        "If you didn't expect this email, you can ignore it."
    )
    return subject, text


def assignment_message(name: str, title: str, deadline: datetime) -> Tuple[str, str]:
    subject = "Task Assignment"
    text = (
        f"Hello {name},\n\n"
        "You have been assigned a new task:\n\n"
        f"Title: {title}\n"
        f"Deadline: {format_deadline(deadline)}\n\n"
        "Please log in to your dashboard to view and manage the task.\n\n"
        f"{SIGNATURE}"
    )
    return subject, text


def deadline_reminder_message(name: str, title: str, description: str, status: str,
                              deadline: datetime, hours_remaining: int) -> Tuple[str, str]:
    subject = f'REMINDER: Task "{title}" due in {hours_remaining} hours'
    text = (
        f"Hello {name},\n\n"
        f"REMINDER: You have a task due in approximately {hours_remaining} hours.\n\n"
        "Task Details:\n"
        f"- Title: {title}\n"
        f"- Description: {description or 'No description provided'}\n"
        f"- Deadline: {format_deadline(deadline)}\n"
        f"- Current Status: {status}\n\n"
        "Please log in to your dashboard to update the task status "
        "or contact your administrator if you need assistance.\n\n"
        f"{SIGNATURE}"
    )
    return subject, text
