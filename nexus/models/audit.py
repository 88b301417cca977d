from datetime import datetime
from ..extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True)
    # admin who performed the action
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    action_type = db.Column(db.String(50), nullable=False, index=True)  # e.g. SUBMISSION_APPROVED
    resource_type = db.Column(db.String(50), nullable=False)            # Submission|User|Project|PayoutRequest
    resource_id = db.Column(db.Integer, nullable=False)
    details = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    actor = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user": {"id": self.actor.id, "username": self.actor.username} if self.actor else None,
            "actionType": self.action_type,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "details": self.details or {},
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
