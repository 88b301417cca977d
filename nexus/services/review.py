# nexus/services/review.py
"""
Submission review state machine.

    PENDING_TRIAGE -> AUTO_APPROVED | NEEDS_REVIEW -> Approved | Rejected

Approved and Rejected are terminal. The move out of ``Pending`` is a
compare-and-set on the status column, so wallet and tier side effects run
at most once per submission even when two admins click at the same time.
"""
import logging
from datetime import datetime
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update

from ..exceptions import AlreadyReviewedError, NexusError, ValidationError
from ..extensions import db
from ..models.submission import (
    Submission,
    PENDING,
    APPROVED,
    REJECTED,
    TRIAGE_APPROVED,
    TRIAGE_PENDING,
)
from . import wallet
from .audit import record_admin_action
from .email_service import send_email
from .notifications import notify

log = logging.getLogger(__name__)

AUTO_APPROVED = "AUTO_APPROVED"
NEEDS_REVIEW = "NEEDS_REVIEW"

DECISIONS = (APPROVED, REJECTED)


@dataclass(frozen=True)
class BulkReviewResult:
    processed_count: int
    failed_count: int
    errors: list

    def to_dict(self) -> dict:
        return {
            "processedCount": self.processed_count,
            "failedCount": self.failed_count,
            "errors": self.errors,
        }


def _transition(submission: Submission, status: str, reviewer_id=None, feedback=None) -> None:
    values = {"status": status}
    if reviewer_id is not None:
        values.update(reviewed_by=reviewer_id, review_timestamp=datetime.utcnow())
    if feedback is not None:
        values["admin_feedback"] = feedback

    result = db.session.execute(
        update(Submission)
        .where(Submission.id == submission.id, Submission.status == PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.refresh(submission)
        raise AlreadyReviewedError(f"Submission {submission.id} has already been {submission.status.lower()}.")
    db.session.refresh(submission)

    if status == APPROVED:
        wallet.on_approved(submission)
        notify(
            submission.user,
            f"Your submission for '{submission.project.title}' was approved. "
            f"You've earned ${submission.payment_amount:.2f}.",
            type="success",
            link=f"/task/{submission.id}",
        )
    else:
        wallet.on_rejected(submission)
        notify(
            submission.user,
            f"Your submission for '{submission.project.title}' was rejected. Please review the feedback.",
            type="error",
            link=f"/task/{submission.id}",
        )


def _send_review_email(submission: Submission) -> None:
    if submission.status == APPROVED:
        subject = f"Submission Approved: You've earned ${submission.payment_amount:.2f}!"
    else:
        subject = f"Submission Rejected for project: {submission.project.title}"
    send_email(
        to=submission.user.email,
        subject=subject,
        template="submission_reviewed.html",
        user=submission.user,
        submission=submission,
        project=submission.project,
    )


def apply_triage(submission: Submission, result) -> str:
    """Record the AI verdict and auto-approve when the score allows it."""
    submission.ai_score = result.ai_score
    submission.ai_feedback = result.ai_feedback
    submission.ai_verdict = result.verdict
    submission.consistency_warning = bool(result.consistency_warning)

    threshold = current_app.config.get("AUTO_APPROVE_THRESHOLD", 98)
    if result.ai_score is not None and result.ai_score >= threshold and not result.consistency_warning:
        submission.triage_status = TRIAGE_APPROVED
        db.session.flush()
        try:
            _transition(submission, APPROVED)
        except AlreadyReviewedError:
            log.info("[AI-TRIAGE] Submission %s was reviewed before triage finished", submission.id)
            return NEEDS_REVIEW
        log.info("[AI-TRIAGE] Auto-approved submission %s with score %s", submission.id, result.ai_score)
        return AUTO_APPROVED

    submission.triage_status = TRIAGE_PENDING
    db.session.flush()
    log.info("[AI-TRIAGE] Submission %s needs review (score=%s, verdict=%s, warning=%s)",
             submission.id, result.ai_score, result.verdict, result.consistency_warning)
    return NEEDS_REVIEW


def review_submission(submission: Submission, status: str, admin, feedback: str | None = None) -> Submission:
    if status not in DECISIONS:
        raise ValidationError('status must be either "Approved" or "Rejected"')
    if submission.is_terminal:
        raise AlreadyReviewedError(f"Submission {submission.id} has already been {submission.status.lower()}.")

    original = submission.status
    try:
        _transition(submission, status, reviewer_id=admin.id, feedback=feedback)
    except AlreadyReviewedError:
        db.session.rollback()
        raise
    record_admin_action(
        admin.id,
        "SUBMISSION_APPROVED" if status == APPROVED else "SUBMISSION_REJECTED",
        "Submission",
        submission.id,
        {
            "oldStatus": original,
            "newStatus": status,
            "userTierUpdatedTo": submission.user.tier,
            "userApprovalRate": round(submission.user.approval_rate, 2),
            "userId": submission.user_id,
        },
    )
    db.session.commit()
    log.info("Submission %s reviewed by admin %s -> %s", submission.id, admin.id, status)

    _send_review_email(submission)
    return submission


def bulk_review(ids, status: str, admin, feedback: str | None = None) -> BulkReviewResult:
    """Apply one decision to many submissions; each item succeeds or fails on its own."""
    if status not in DECISIONS:
        raise ValidationError('status must be either "Approved" or "Rejected"')
    if not ids or not isinstance(ids, (list, tuple)):
        raise ValidationError("ids must be a non-empty array")

    processed, failed, errors, reviewed = 0, 0, [], []
    for raw_id in ids:
        try:
            sid = int(raw_id)
        except (TypeError, ValueError):
            failed += 1
            errors.append({"submissionId": raw_id, "error": "Invalid submission id"})
            continue

        submission = db.session.get(Submission, sid)
        if submission is None:
            failed += 1
            errors.append({"submissionId": sid, "error": "Submission not found"})
            continue
        if submission.is_terminal:
            failed += 1
            errors.append({"submissionId": sid, "error": f"Already {submission.status.lower()}"})
            continue

        original = submission.status
        try:
            with db.session.begin_nested():
                _transition(submission, status, reviewer_id=admin.id, feedback=feedback)
                record_admin_action(
                    admin.id,
                    "SUBMISSION_APPROVED" if status == APPROVED else "SUBMISSION_REJECTED",
                    "Submission",
                    submission.id,
                    {"oldStatus": original, "newStatus": status, "userId": submission.user_id,
                     "userTierUpdatedTo": submission.user.tier, "bulkOperation": True},
                )
        except NexusError as e:
            failed += 1
            errors.append({"submissionId": sid, "error": e.message})
            continue
        processed += 1
        reviewed.append(submission)

    db.session.commit()
    log.info("Bulk review by admin %s: %d processed, %d failed", admin.id, processed, failed)

    for submission in reviewed:
        _send_review_email(submission)
    return BulkReviewResult(processed, failed, errors)
