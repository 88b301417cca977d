# nexus/models/user.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db


ROLES = ("Applicant", "Freelancer", "Admin")
STATUSES = ("New", "Pending", "Accepted", "Rejected")
DOMAINS = ("Programming", "Business", "Law", "Health", "General")
TIERS = ("Bronze", "Silver", "Gold", "Elite")
PAYMENT_METHODS = ("Not Set", "PayPal", "Vodafone Cash", "Bank Transfer")


# ------- Core Models -------

class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone_number = db.Column(db.String(50))
    address = db.Column(db.String(255))
    date_of_birth = db.Column(db.Date)
    linkedin_url = db.Column(db.String(255), default="")

    password_hash = db.Column(db.String(255))

    # Applicant|Freelancer|Admin
    role = db.Column(db.String(20), nullable=False, default="Applicant", index=True)
    # New|Pending|Accepted|Rejected
    status = db.Column(db.String(20), nullable=False, default="New", index=True)
    skill_domain = db.Column(db.String(20))

    # Performance metrics, recomputed on every final review
    tier = db.Column(db.String(10), nullable=False, default="Bronze")
    approved_submissions_count = db.Column(db.Integer, nullable=False, default=0)
    total_submissions_count = db.Column(db.Integer, nullable=False, default=0)
    approval_rate = db.Column(db.Float, nullable=False, default=0.0)

    # Wallet
    wallet_available = db.Column(db.Float, nullable=False, default=0.0)
    wallet_pending_review = db.Column(db.Float, nullable=False, default=0.0)
    payment_method = db.Column(db.String(30), nullable=False, default="Not Set")
    payment_identifier = db.Column(db.String(255), default="")

    # Application
    bio = db.Column(db.Text, default="")
    test_answer = db.Column(db.Text, default="")
    application_ai_score = db.Column(db.Integer, default=0)
    application_date = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    notifications = db.relationship(
        "Notification",
        backref="user",
        lazy="dynamic",
        order_by="Notification.created_at.desc()",
        cascade="all, delete-orphan",
    )

    # --- Auth helpers ---
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    # --- Convenience flags ---
    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"

    @property
    def is_freelancer(self) -> bool:
        return self.role == "Freelancer"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self, private: bool = False) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "skillDomain": self.skill_domain,
            "tier": self.tier,
            "approvalRate": round(self.approval_rate or 0.0, 2),
            "approvedSubmissionsCount": self.approved_submissions_count,
            "totalSubmissionsCount": self.total_submissions_count,
        }
        if private:
            data.update({
                "phoneNumber": self.phone_number,
                "address": self.address,
                "linkedInURL": self.linkedin_url,
                "walletAvailable": round(self.wallet_available or 0.0, 2),
                "walletPendingReview": round(self.wallet_pending_review or 0.0, 2),
                "paymentMethod": self.payment_method,
                "paymentIdentifier": self.payment_identifier,
                "bio": self.bio,
                "applicationDate": self.application_date.isoformat() if self.application_date else None,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
            })
        return data


class Notification(db.Model):
    __tablename__ = "notification"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    # success|error|info|warning
    type = db.Column(db.String(10), nullable=False, default="info")
    link = db.Column(db.String(255))
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "type": self.type,
            "link": self.link,
            "isRead": self.is_read,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
