# nexus/models/project.py
from datetime import datetime
from ..extensions import db


TASK_TYPES = (
    "Chat_Sentiment",
    "Code_Evaluation",
    "Text_Classification",
    "Image_Annotation",
    "Model_Comparison",
)
PAYMENT_TYPES = ("PER_TASK", "HOURLY")
PROJECT_STATUSES = ("Available", "In Progress", "Completed")


class Project(db.Model):
    __tablename__ = "project"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    detailed_instructions = db.Column(db.Text)

    pay_rate = db.Column(db.Float, nullable=False)
    payment_type = db.Column(db.String(10), nullable=False, default="PER_TASK")  # PER_TASK|HOURLY
    project_domain = db.Column(db.String(20), nullable=False, default="General", index=True)
    task_type = db.Column(db.String(30), nullable=False, default="Chat_Sentiment")

    # Legacy single-task fields, ignored once the pool has entries
    task_content = db.Column(db.Text, default="User: This is a test chat. AI: I understand.")
    task_image_url = db.Column(db.String(500))

    status = db.Column(db.String(20), nullable=False, default="Available", index=True)
    is_repeatable = db.Column(db.Boolean, nullable=False, default=True)
    max_total_submissions = db.Column(db.Integer)  # None = no cap

    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = db.relationship("User", foreign_keys=[created_by])

    task_pool = db.relationship(
        "TaskPoolEntry",
        back_populates="project",
        order_by="TaskPoolEntry.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    submissions = db.relationship(
        "Submission",
        back_populates="project",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def has_pool(self) -> bool:
        return bool(self.task_pool)

    def to_dict(self, include_pool: bool = False) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "detailedInstructions": self.detailed_instructions,
            "payRate": self.pay_rate,
            "paymentType": self.payment_type,
            "projectDomain": self.project_domain,
            "taskType": self.task_type,
            "status": self.status,
            "isRepeatable": self.is_repeatable,
            "maxTotalSubmissions": self.max_total_submissions,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_pool:
            data["taskContent"] = self.task_content
            data["taskImageUrl"] = self.task_image_url
            data["taskPool"] = [e.to_dict() for e in self.task_pool]
        return data


class TaskPoolEntry(db.Model):
    __tablename__ = "task_pool_entry"
    __table_args__ = (
        db.UniqueConstraint("project_id", "position", name="uq_pool_project_position"),
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    content = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(500))

    # Set once by the assignment resolver; only an admin pool edit clears it
    is_assigned = db.Column(db.Boolean, nullable=False, default=False, index=True)
    assigned_to_id = db.Column(db.Integer, db.ForeignKey("user.id"), index=True)
    assigned_at = db.Column(db.DateTime)

    project = db.relationship("Project", back_populates="task_pool")
    assignee = db.relationship("User", foreign_keys=[assigned_to_id])

    def to_dict(self) -> dict:
        return {
            "index": self.position,
            "content": self.content,
            "imageUrl": self.image_url,
            "isAssigned": self.is_assigned,
        }
