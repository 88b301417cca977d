from ..extensions import db
from ..models.audit import AuditLog


def record_admin_action(actor_id: int, action: str, resource_type: str, resource_id: int,
                        details: dict | None = None) -> AuditLog:
    """Add an audit row to the current session; the caller commits."""
    entry = AuditLog(
        user_id=actor_id,
        action_type=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
    )
    db.session.add(entry)
    return entry
