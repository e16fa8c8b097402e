"""Mail-merge for transactional emails.

An active row in `email_templates` overrides the built-in copy for its key, so
wording can change without a deploy. Templates are Jinja2 strings; the HTML
body is autoescaped, subject and text are not.
"""
import logging
from dataclasses import dataclass

from jinja2 import Environment, TemplateError, select_autoescape
from markupsafe import Markup, escape
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.email_template import EmailTemplate

logger = logging.getLogger(__name__)


def _nl2br(value) -> Markup:
    return escape(value if value is not None else "").replace("\n", Markup("<br>"))


def _blank_none(value):
    return "" if value is None else value


_html_env = Environment(autoescape=select_autoescape(default_for_string=True), finalize=_blank_none)
_html_env.filters["nl2br"] = _nl2br
_text_env = Environment(autoescape=False, keep_trailing_newline=True, finalize=_blank_none)


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


DEFAULT_TEMPLATES = {
    "welcome": {
        "name": "Welcome email",
        "subject": "Welcome to {{app_name}}",
        "html": "<p>Hello {{firstname}},</p><p>Your account is ready. Welcome aboard!</p>",
        "text": "Hello {{firstname}},\n\nYour account is ready. Welcome aboard!",
    },
    "reservation_created": {
        "name": "Reservation created",
        "subject": "Your appointment on {{reservation_date}} is registered",
        "html": (
            "<p>Hello {{firstname}},</p>"
            "<p>We received your {{meeting_type}} consultation request for "
            "<strong>{{reservation_date}} at {{reservation_time}}</strong>.</p>"
            "<p>We will confirm it shortly.</p>"
        ),
        "text": (
            "Hello {{firstname}},\n\nWe received your {{meeting_type}} consultation request for "
            "{{reservation_date}} at {{reservation_time}}.\nWe will confirm it shortly."
        ),
    },
    "reservation_confirmed": {
        "name": "Reservation confirmed",
        "subject": "Your appointment on {{reservation_date}} is confirmed",
        "html": (
            "<p>Hello {{firstname}},</p>"
            "<p>Your consultation on <strong>{{reservation_date}} at {{reservation_time}}</strong> is confirmed.</p>"
        ),
        "text": "Hello {{firstname}},\n\nYour consultation on {{reservation_date}} at {{reservation_time}} is confirmed.",
    },
    "reservation_cancelled": {
        "name": "Reservation cancelled",
        "subject": "Your appointment on {{reservation_date}} was cancelled",
        "html": (
            "<p>Hello {{firstname}},</p>"
            "<p>Your consultation on <strong>{{reservation_date}} at {{reservation_time}}</strong> has been cancelled.</p>"
            "<p>You can book a new slot at any time.</p>"
        ),
        "text": (
            "Hello {{firstname}},\n\nYour consultation on {{reservation_date}} at {{reservation_time}} "
            "has been cancelled.\nYou can book a new slot at any time."
        ),
    },
    "contact_reply": {
        "name": "Contact message reply",
        "subject": "Re: {{subject}}",
        "html": (
            "<p>Hello {{name}},</p>"
            "<p>{{ reply_text|nl2br }}</p>"
            "<p>{{admin_name}}</p>"
            "<hr><p><em>Your message:</em><br>{{ original_message|nl2br }}</p>"
        ),
        "text": "Hello {{name}},\n\n{{reply_text}}\n\n{{admin_name}}\n\n---\nYour message:\n{{original_message}}",
    },
}


def merge(template: str, variables: dict, html: bool = False) -> str:
    env = _html_env if html else _text_env
    return env.from_string(template or "").render(variables)


def render_email(db: Session, template_key: str, variables: dict) -> RenderedEmail:
    row = _active_row(db, template_key)
    if row:
        try:
            return _render(row.subject, row.html_body, row.text_body or "", variables)
        except TemplateError as e:
            logger.warning("email template %s is broken, using built-in: %s", template_key, e)
    default = DEFAULT_TEMPLATES.get(template_key)
    if default is None:
        raise KeyError(f"unknown email template {template_key!r}")
    return _render(default["subject"], default["html"], default["text"], variables)


def _render(subject: str, html: str, text: str, variables: dict) -> RenderedEmail:
    return RenderedEmail(
        subject=merge(subject, variables).strip(),
        html=merge(html, variables, html=True),
        text=merge(text, variables),
    )


def _active_row(db: Session, template_key: str) -> EmailTemplate | None:
    try:
        return (
            db.query(EmailTemplate)
            .filter(EmailTemplate.template_key == template_key, EmailTemplate.is_active == True)
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("email template lookup failed for %s, using built-in: %s", template_key, e)
        return None
