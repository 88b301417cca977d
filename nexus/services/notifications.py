# nexus/services/notifications.py
import logging
from flask import current_app
from ..extensions import db
from ..models.user import Notification

log = logging.getLogger(__name__)


def notify(user, message: str, type: str = "info", link: str | None = None) -> Notification:
    """Persist an in-app notification and trim the user's history."""
    n = Notification(user_id=user.id, message=message, type=type, link=link)
    db.session.add(n)
    db.session.flush()

    keep = current_app.config.get("NOTIFICATIONS_KEEP", 20)
    stale = (
        Notification.query
        .filter_by(user_id=user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(keep)
        .all()
    )
    for old in stale:
        db.session.delete(old)
    if stale:
        log.debug("Trimmed %d notification(s) for user %s", len(stale), user.id)
    return n
