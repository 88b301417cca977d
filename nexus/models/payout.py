from datetime import datetime
from ..extensions import db


class PayoutRequest(db.Model):
    __tablename__ = "payout_request"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    # Pending|Completed|Rejected
    status = db.Column(db.String(20), nullable=False, default="Pending", index=True)
    admin_feedback = db.Column(db.Text)
    payment_details = db.Column(db.String(255))
    reviewed_by = db.Column(db.Integer, db.ForeignKey("user.id"))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship(
        "User",
        foreign_keys=[user_id],
        backref=db.backref("payout_requests", lazy="dynamic"),
    )

    def to_dict(self, with_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "amount": round(self.amount, 2),
            "status": self.status,
            "adminFeedback": self.admin_feedback,
            "paymentDetails": self.payment_details,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if with_user:
            data["user"] = {
                "id": self.user.id,
                "username": self.user.username,
                "email": self.user.email,
                "paymentMethod": self.user.payment_method,
                "paymentIdentifier": self.user.payment_identifier,
            }
        return data
