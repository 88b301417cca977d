from .user import User, Notification
from .project import Project, TaskPoolEntry
from .submission import Submission
from .payout import PayoutRequest
from .audit import AuditLog
from .qualification import QualificationTest, QualificationTask, QualificationSubmission
