# nexus/services/qualification.py
"""Qualification tests: one attempt per user, admin approval unlocks a domain."""
import logging

from sqlalchemy.exc import IntegrityError

from ..exceptions import AlreadyReviewedError, NotFoundError, ValidationError
from ..extensions import db
from ..models.qualification import QualificationSubmission, QualificationTask, QualificationTest
from .audit import record_admin_action
from .email_service import send_email
from .notifications import notify

log = logging.getLogger(__name__)

DECISIONS = ("Approved", "Rejected")


def available_tests(user) -> list[QualificationTest]:
    taken = db.session.query(QualificationSubmission.test_id).filter(QualificationSubmission.user_id == user.id)
    return (
        QualificationTest.query
        .filter(QualificationTest.status == "Active", QualificationTest.id.notin_(taken))
        .order_by(QualificationTest.created_at.desc())
        .all()
    )


def active_test(test_id) -> QualificationTest:
    test = db.session.get(QualificationTest, test_id)
    if test is None or test.status != "Active":
        raise NotFoundError("Test not found or not active")
    return test


def set_tasks(test: QualificationTest, tasks) -> None:
    if not isinstance(tasks, list):
        raise ValidationError("tasks must be an array.")
    test.tasks.clear()
    for position, item in enumerate(tasks):
        content = item.get("content") if isinstance(item, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ValidationError('Each task must have a "content" field (string).')
        test.tasks.append(QualificationTask(
            position=position,
            content=content,
            image_url=item.get("imageUrl") or None,
        ))


def submit_test(user, test_id, content: str) -> QualificationSubmission:
    if not test_id or not content or not str(content).strip():
        raise ValidationError("testId and submissionContent are required")
    test = active_test(test_id)
    if QualificationSubmission.query.filter_by(test_id=test.id, user_id=user.id).first():
        raise ValidationError("You have already submitted this test.")

    sub = QualificationSubmission(test_id=test.id, user_id=user.id, submission_content=str(content))
    db.session.add(sub)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race against the unique (test, user) constraint
        db.session.rollback()
        raise ValidationError("You have already submitted this test.")
    log.info("User %s submitted qualification test %s", user.id, test.id)
    return sub


def review_qualification(sub: QualificationSubmission, status: str, admin, feedback=None) -> QualificationSubmission:
    if status not in DECISIONS:
        raise ValidationError('Invalid status. Must be "Approved" or "Rejected".')
    if sub.status != "Pending":
        raise AlreadyReviewedError(f"Qualification submission has already been {sub.status.lower()}.")

    sub.status = status
    if feedback is not None:
        sub.admin_feedback = feedback

    user, test = sub.user, sub.test
    if status == "Approved":
        if user.status in ("Pending", "New"):
            user.status = "Accepted"
        user.skill_domain = test.project_domain
        if user.role == "Applicant":
            user.role = "Freelancer"
        notify(user, f"You passed '{test.title}' and unlocked {test.project_domain} projects.",
               type="success", link="/qualification")
    else:
        notify(user, f"Your qualification test '{test.title}' was not approved.", type="error",
               link="/qualification")

    record_admin_action(admin.id, f"QUALIFICATION_{status.upper()}", "QualificationSubmission", sub.id,
                        {"userId": user.id, "testId": test.id, "projectDomain": test.project_domain})
    db.session.commit()

    if status == "Approved":
        subject = f"Qualification Test Approved: Welcome to {test.project_domain}!"
    else:
        subject = f"Qualification Test Rejected: {test.title}"
    send_email(to=user.email, subject=subject, template="qualification_reviewed.html",
               user=user, test=test, submission=sub)
    return sub
