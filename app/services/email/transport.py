import base64
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import requests

from app.core.config import Settings
from app.core.errors import TransportError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

# provider -> (host, port); credentials are resolved per provider in build_transport
SMTP_RELAYS = {
    "sendgrid": ("smtp.sendgrid.net", 587),
    "mailgun": ("smtp.mailgun.org", 587),
}


@dataclass
class Envelope:
    from_name: str
    from_address: str
    to: list[str]
    subject: str
    html: str
    text: str = ""
    reply_to: str | None = None
    attachments: list[tuple[str, bytes, str]] = field(default_factory=list)  # (filename, content, mime)

    @property
    def sender(self) -> str:
        return formataddr((self.from_name, self.from_address)) if self.from_name else self.from_address


class EmailTransport:
    name = "base"

    def send(self, envelope: Envelope) -> str:
        """Deliver one message and return the provider message id."""
        raise NotImplementedError


class SmtpTransport(EmailTransport):
    name = "smtp"

    def __init__(self, host: str, port: int, username: str, password: str, secure: bool = False, timeout: int = 20):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = secure
        self.timeout = timeout

    def build_message(self, envelope: Envelope) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = envelope.sender
        msg["To"] = ", ".join(envelope.to)
        msg["Subject"] = envelope.subject
        if envelope.reply_to:
            msg["Reply-To"] = envelope.reply_to
        domain = envelope.from_address.split("@")[-1] or None
        msg["Message-ID"] = make_msgid(domain=domain)
        msg.set_content(envelope.text or "")
        msg.add_alternative(envelope.html, subtype="html")

        for filename, content, mime in envelope.attachments:
            maintype, subtype = (mime.split("/", 1) + ["octet-stream"])[:2]
            msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)
        return msg

    def send(self, envelope: Envelope) -> str:
        msg = self.build_message(envelope)
        try:
            if self.secure:
                smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with smtp:
                if not self.secure:
                    smtp.ehlo()
                    if smtp.has_extn("starttls"):
                        smtp.starttls()
                        smtp.ehlo()
                smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP error ({self.host}:{self.port}): {e}") from e
        return msg["Message-ID"]


class ResendTransport(EmailTransport):
    """Resend HTTP API; usable where outbound SMTP ports are blocked."""

    name = "resend"

    def __init__(self, api_key: str, timeout: int = 20):
        self.api_key = api_key
        self.timeout = timeout

    def build_payload(self, envelope: Envelope) -> dict:
        payload = {
            "from": envelope.sender,
            "to": list(envelope.to),
            "subject": envelope.subject,
            "html": envelope.html,
        }
        if envelope.text:
            payload["text"] = envelope.text
        if envelope.reply_to:
            payload["reply_to"] = envelope.reply_to
        if envelope.attachments:
            payload["attachments"] = [
                {
                    "filename": filename,
                    "content": base64.b64encode(content).decode("utf-8"),
                    "content_type": mime,
                }
                for filename, content, mime in envelope.attachments
            ]
        return payload

    def send(self, envelope: Envelope) -> str:
        try:
            r = requests.post(
                RESEND_API_URL,
                json=self.build_payload(envelope),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Resend unreachable: {e}") from e
        if r.status_code >= 400:
            raise TransportError(f"Resend error {r.status_code}: {r.text}")
        return (r.json() or {}).get("id") or "resend-sent"


def build_transport(settings: Settings) -> EmailTransport | None:
    """Pick the transport for EMAIL_PROVIDER. Missing credentials yield None, not an error."""
    provider = (settings.EMAIL_PROVIDER or "smtp").lower()

    if provider == "resend":
        if not settings.RESEND_API_KEY:
            logger.warning("RESEND_API_KEY missing: email delivery disabled")
            return None
        return ResendTransport(settings.RESEND_API_KEY)

    if provider == "sendgrid":
        username, password = "apikey", settings.SENDGRID_API_KEY
    elif provider == "mailgun":
        username, password = settings.MAILGUN_SMTP_LOGIN, settings.MAILGUN_SMTP_PASSWORD
    else:
        username, password = settings.SMTP_USER, settings.SMTP_PASS

    if not username or not password:
        logger.warning("SMTP credentials missing for provider %r: email delivery disabled", provider)
        return None

    if provider in SMTP_RELAYS:
        host, port = SMTP_RELAYS[provider]
        return SmtpTransport(host, port, username, password)
    secure = settings.SMTP_SECURE if provider == "smtp" else False
    return SmtpTransport(settings.SMTP_HOST, settings.SMTP_PORT, username, password, secure=secure)
