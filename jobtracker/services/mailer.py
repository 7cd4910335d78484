"""
Outgoing email over the user's own SMTP server.

Results are returned, never raised: the outreach route records a failed
send on the Email row instead of leaving it in limbo. Malformed headers and
credentials smtplib cannot encode are failed sends too.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from bs4 import BeautifulSoup

from jobtracker.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SmtpSettings:
    """Connection details, taken from an SmtpConfig row or a test request."""
    host: str
    port: int
    secure: bool
    username: str
    password: str
    from_name: Optional[str] = None


@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def html_to_text(html: str) -> str:
    """Plain-text alternative for mail clients that don't render HTML."""
    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
    if paragraphs:
        return "\n\n".join(p for p in paragraphs if p)
    return soup.get_text("\n", strip=True)


def _connect(config: SmtpSettings) -> smtplib.SMTP:
    # secure=True means implicit TLS (usually 465); otherwise upgrade with STARTTLS
    if config.secure:
        server = smtplib.SMTP_SSL(config.host, config.port, timeout=settings.SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(config.host, config.port, timeout=settings.SMTP_TIMEOUT)
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls()
            server.ehlo()
    server.login(config.username, config.password)
    return server


def build_message(config: SmtpSettings, to: str, subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr((config.from_name, config.username)) if config.from_name else config.username
    message["To"] = to
    message["Subject"] = subject
    message["Message-ID"] = make_msgid()
    message.set_content(html_to_text(html))
    message.add_alternative(html, subtype="html")
    return message


def send_email(config: SmtpSettings, to: str, subject: str, html: str) -> SendResult:
    try:
        message = build_message(config, to, subject, html)
        server = _connect(config)
        try:
            server.send_message(message)
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        logger.warning("SMTP send via %s:%s failed: %s", config.host, config.port, exc)
        return SendResult(success=False, error=str(exc) or "Failed to send email")

    logger.info("Sent email %s to %s", message["Message-ID"], to)
    return SendResult(success=True, message_id=message["Message-ID"])


def verify_connection(config: SmtpSettings) -> SendResult:
    """Connect and log in without sending anything."""
    try:
        server = _connect(config)
        server.quit()
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        logger.info("SMTP verify for %s:%s failed: %s", config.host, config.port, exc)
        return SendResult(success=False, error=str(exc) or "Connection failed")
    return SendResult(success=True)
