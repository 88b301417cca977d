# nexus/models/submission.py
from datetime import datetime
from ..extensions import db


PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"
# Approved earnings already rolled into a payout request
REQUESTED = "Requested"

TERMINAL_STATUSES = (APPROVED, REJECTED, REQUESTED)
APPROVED_STATUSES = (APPROVED, REQUESTED)

# AI triage verdicts
TRIAGE_PENDING = "PENDING"
TRIAGE_APPROVED = "APPROVED"
TRIAGE_REJECTED = "REJECTED"


class Submission(db.Model):
    __tablename__ = "submission"
    __table_args__ = (
        db.Index("ix_submission_user_status", "user_id", "status"),
        db.Index("ix_submission_project_status", "project_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    task_pool_entry_id = db.Column(db.Integer, db.ForeignKey("task_pool_entry.id"))
    payout_request_id = db.Column(db.Integer, db.ForeignKey("payout_request.id"), index=True)

    content = db.Column(db.Text, nullable=False)
    payment_amount = db.Column(db.Float, nullable=False, default=0.0)
    time_spent_minutes = db.Column(db.Integer)  # HOURLY projects only

    # Pending|Approved|Rejected|Requested
    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    # PENDING|APPROVED|REJECTED
    triage_status = db.Column(db.String(10), nullable=False, default=TRIAGE_PENDING)
    ai_score = db.Column(db.Integer)  # None when triage was skipped
    ai_feedback = db.Column(db.Text)
    ai_verdict = db.Column(db.String(10))  # model signal, advisory only
    consistency_warning = db.Column(db.Boolean, nullable=False, default=False)

    admin_feedback = db.Column(db.Text)
    reviewed_by = db.Column(db.Integer, db.ForeignKey("user.id"))
    review_timestamp = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = db.relationship("Project", back_populates="submissions")
    user = db.relationship(
        "User",
        foreign_keys=[user_id],
        backref=db.backref("submissions", lazy="dynamic"),
    )
    reviewer = db.relationship("User", foreign_keys=[reviewed_by])
    pool_entry = db.relationship("TaskPoolEntry")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self, with_refs: bool = False) -> dict:
        data = {
            "id": self.id,
            "projectId": self.project_id,
            "userId": self.user_id,
            "taskIndex": self.pool_entry.position if self.pool_entry else None,
            "content": self.content,
            "paymentAmount": self.payment_amount,
            "timeSpentMinutes": self.time_spent_minutes,
            "status": self.status,
            "triageStatus": self.triage_status,
            "aiScore": self.ai_score,
            "aiFeedback": self.ai_feedback,
            "aiVerdict": self.ai_verdict,
            "consistencyWarning": self.consistency_warning,
            "adminFeedback": self.admin_feedback,
            "reviewedBy": self.reviewed_by,
            "reviewTimestamp": self.review_timestamp.isoformat() if self.review_timestamp else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if with_refs:
            data["project"] = {"id": self.project.id, "title": self.project.title, "payRate": self.project.pay_rate}
            data["user"] = {"id": self.user.id, "username": self.user.username, "email": self.user.email}
        return data
