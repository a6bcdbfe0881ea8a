"""
SMTP relay used by the contact and admin mail forms.

Composes a multipart/alternative message (plain text + branded HTML), adds
any uploaded attachments and hands it to the configured SMTP server.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from email import encoders
from email.errors import MessageError
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import Any, Dict, List, Optional, Sequence

import aiosmtplib

from opessocius.core.email_template import is_full_document, render_email

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]*>")


class MailerError(RuntimeError):
    """Raised when the SMTP server cannot be reached or refuses the message."""


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class SendResult:
    message_id: str
    accepted: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"messageId": self.message_id, "accepted": self.accepted, "rejected": self.rejected}


def prepare_bodies(subject: str, text: Optional[str], html: Optional[str], contact: str):
    """Return (text, html) for the message.

    Plain content (or HTML fragments) gets wrapped in the branded layout;
    complete HTML documents are sent untouched.
    """
    if not html or not is_full_document(html):
        content = text or html or ""
        return content, render_email(content, subject, contact=contact)
    return text or TAG_RE.sub("", html), html


class Mailer:
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "relations@opessocius.support",
        from_name: str = "Opessocius",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "Mailer":
        return cls(
            host=config["SMTP_HOST"],
            port=config["SMTP_PORT"],
            username=config["SMTP_USER"],
            password=config["SMTP_PASS"],
            from_email=config["SMTP_FROM_EMAIL"],
            from_name=config["SMTP_FROM_NAME"],
            timeout=config["SMTP_TIMEOUT"],
        )

    def build_message(
        self,
        recipients: Sequence[str],
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> MIMEMultipart:
        sender_email = from_email or self.from_email
        sender_name = from_name or self.from_name
        plain, rich = prepare_bodies(subject, text, html, contact=self.from_email)

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(plain, "plain", "utf-8"))
        body.attach(MIMEText(rich, "html", "utf-8"))

        if attachments:
            message = MIMEMultipart("mixed")
            message.attach(body)
            for attachment in attachments:
                message.attach(_attachment_part(attachment))
        else:
            message = body

        message["From"] = formataddr((sender_name, sender_email))
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid(domain=sender_email.rpartition("@")[2] or None)
        return message

    def send(
        self,
        to,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> SendResult:
        recipients = [to] if isinstance(to, str) else list(to)

        try:
            message = self.build_message(
                recipients,
                subject,
                text=text,
                html=html,
                attachments=attachments,
                from_email=from_email,
                from_name=from_name,
            )
            refused, _ = asyncio.run(
                aiosmtplib.send(message, recipients=recipients, **self._client_options())
            )
        except (aiosmtplib.SMTPException, OSError, MessageError) as exc:
            logger.error("SMTP delivery to %s failed: %s", recipients, exc)
            raise MailerError(str(exc) or exc.__class__.__name__) from exc

        result = SendResult(
            message_id=message["Message-ID"],
            accepted=[r for r in recipients if r not in refused],
            rejected=sorted(refused),
        )
        logger.info("Email sent: id=%s to=%s subject=%r", result.message_id, recipients, subject)
        return result

    def verify(self) -> bool:
        """Open a session and NOOP; True when the relay answers."""
        try:
            code = asyncio.run(self._noop())
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP connection error: %s", exc)
            return False
        logger.info("SMTP server %s:%s is ready (code %s)", self.host, self.port, code)
        return code == 250

    async def _noop(self) -> int:
        async with aiosmtplib.SMTP(**self._client_options()) as smtp:
            response = await smtp.noop()
        return response.code

    def _client_options(self) -> Dict[str, Any]:
        # relay certificates are not verified
        options: Dict[str, Any] = {
            "hostname": self.host,
            "port": self.port,
            "timeout": self.timeout,
            "validate_certs": False,
        }
        if self.port == 465:
            options.update(use_tls=True, start_tls=False)
        if self.username:
            options.update(username=self.username, password=self.password)
        return options


def _attachment_part(attachment: Attachment) -> MIMEBase:
    maintype, _, subtype = (attachment.content_type or "application/octet-stream").partition("/")
    part = MIMEBase(maintype or "application", subtype or "octet-stream")
    part.set_payload(attachment.content)
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
    return part
