# nexus/models/qualification.py
from datetime import datetime
from ..extensions import db


class QualificationTest(db.Model):
    __tablename__ = "qualification_test"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    project_domain = db.Column(db.String(20), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    # Active tests are shown to users, Draft are hidden
    status = db.Column(db.String(10), nullable=False, default="Active", index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tasks = db.relationship(
        "QualificationTask",
        backref="test",
        order_by="QualificationTask.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    submissions = db.relationship(
        "QualificationSubmission",
        back_populates="test",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_tasks: bool = False) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "projectDomain": self.project_domain,
            "description": self.description,
            "status": self.status,
        }
        if include_tasks:
            data["tasks"] = [{"content": t.content, "imageUrl": t.image_url} for t in self.tasks]
        return data


class QualificationTask(db.Model):
    __tablename__ = "qualification_task"

    id = db.Column(db.Integer, primary_key=True)
    test_id = db.Column(db.Integer, db.ForeignKey("qualification_test.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    content = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(500))


class QualificationSubmission(db.Model):
    __tablename__ = "qualification_submission"
    # one attempt per user per test
    __table_args__ = (db.UniqueConstraint("test_id", "user_id", name="uq_qualification_test_user"),)

    id = db.Column(db.Integer, primary_key=True)
    test_id = db.Column(db.Integer, db.ForeignKey("qualification_test.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    submission_content = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(10), nullable=False, default="Pending", index=True)  # Pending|Approved|Rejected
    admin_feedback = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    test = db.relationship("QualificationTest", back_populates="submissions")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "test": self.test.to_dict() if self.test else None,
            "user": {"id": self.user.id, "username": self.user.username, "email": self.user.email} if self.user else None,
            "submissionContent": self.submission_content,
            "status": self.status,
            "adminFeedback": self.admin_feedback,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
