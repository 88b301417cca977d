# nexus/services/email_service.py
import logging

from flask import current_app, render_template
from flask_mail import Message

from ..extensions import mail

log = logging.getLogger(__name__)


def _sender() -> str | None:
    cfg = current_app.config
    return cfg.get("MAIL_DEFAULT_SENDER") or cfg.get("MAIL_USERNAME")


def send_email(*, to, subject, template, **ctx) -> bool:
    """Render ``email/<template>`` and send it. Never raises; returns success."""
    recipients = [to] if isinstance(to, str) else list(to or [])
    recipients = [r for r in recipients if r]
    if not recipients:
        log.warning("send_email: no recipient for %r", subject)
        return False

    sender = _sender()
    if not sender:
        log.error("send_email: no sender configured")
        return False

    try:
        msg = Message(
            subject=subject,
            recipients=recipients,
            sender=sender,
            html=render_template(f"email/{template}", **ctx),
        )
        if current_app.config.get("MAIL_SUPPRESS_SEND"):
            log.info("[MAIL_SUPPRESS_SEND=1] would send %s to %s | %s", template, recipients, subject)
            return True
        mail.send(msg)
    except Exception as e:
        log.exception("send_email(%s) failed: %s", template, e)
        return False

    log.info("Email sent to %s | subject=%s", recipients, subject)
    return True
