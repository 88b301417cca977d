# nexus/services/intake.py
"""
Submission intake: validate, price, persist, then triage before returning.
"""
import logging

from sqlalchemy import func

from ..exceptions import QuotaExceededError, RepeatSubmissionError, TriageError, ValidationError
from ..extensions import db
from ..models.project import Project, TaskPoolEntry
from ..models.submission import Submission, PENDING, REJECTED, TRIAGE_PENDING
from .content import parse_content
from .review import apply_triage
from .triage import TriageResult, get_triage
from .wallet import hold_pending, payment_for

log = logging.getLogger(__name__)

SKIPPED_FEEDBACK = "AI triage unavailable; queued for manual review."


def check_limits(project: Project, user) -> None:
    if not project.is_repeatable:
        already = Submission.query.filter_by(project_id=project.id, user_id=user.id).first()
        if already is not None:
            raise RepeatSubmissionError("You have already submitted to this project. It is not repeatable.")

    if project.max_total_submissions:
        taken = (
            db.session.query(func.count(Submission.id))
            .filter(Submission.project_id == project.id, Submission.status != REJECTED)
            .scalar()
        )
        if taken >= project.max_total_submissions:
            raise QuotaExceededError("This project has reached its maximum number of submissions.")


def can_submit(project: Project, user) -> bool:
    """Whether the user may take a task from this project right now."""
    if user.is_admin or project.status != "Available":
        return False
    try:
        check_limits(project, user)
    except (RepeatSubmissionError, QuotaExceededError):
        return False
    return True


def _resolve_entry(project: Project, user, task_index) -> TaskPoolEntry | None:
    if task_index is None or task_index == "":
        if project.has_pool:
            raise ValidationError("taskIndex is required for projects with a task pool.")
        return None
    try:
        position = int(task_index)
    except (TypeError, ValueError):
        raise ValidationError("taskIndex must be an integer.")

    entry = TaskPoolEntry.query.filter_by(project_id=project.id, position=position).first()
    if entry is None or entry.assigned_to_id != user.id:
        raise ValidationError("This task was not assigned to you.")
    if Submission.query.filter_by(task_pool_entry_id=entry.id).first() is not None:
        raise ValidationError("This task has already been submitted.")
    return entry


def _triage_context(project: Project, entry: TaskPoolEntry | None) -> dict:
    return {
        "title": project.title,
        "description": project.description,
        "detailedInstructions": project.detailed_instructions or "",
        "taskType": project.task_type,
        "taskContent": entry.content if entry else project.task_content,
    }


def submit(project: Project, user, content, task_index=None, time_spent_minutes=None) -> Submission:
    parsed = parse_content(project.task_type, content)

    minutes = None
    if project.payment_type == "HOURLY":
        try:
            minutes = int(time_spent_minutes)
        except (TypeError, ValueError):
            minutes = 0
        if minutes <= 0:
            raise ValidationError("Time spent (in minutes) is required for hourly projects.")

    amount = payment_for(project, minutes)
    if amount <= 0:
        raise ValidationError("Calculated payment amount must be positive.")

    check_limits(project, user)
    entry = _resolve_entry(project, user, task_index)

    text = parsed.canonical()
    submission = Submission(
        project_id=project.id,
        user_id=user.id,
        task_pool_entry_id=entry.id if entry else None,
        content=text,
        payment_amount=amount,
        time_spent_minutes=minutes,
        status=PENDING,
        triage_status=TRIAGE_PENDING,
    )
    db.session.add(submission)
    db.session.flush()
    hold_pending(submission)
    db.session.commit()

    try:
        result = get_triage().score(text, _triage_context(project, entry))
    except TriageError as e:
        log.warning("[AI-TRIAGE] Skipped for submission %s: %s", submission.id, e)
        result = TriageResult(ai_score=None, ai_feedback=SKIPPED_FEEDBACK, consistency_warning=False)
    except Exception as e:
        log.exception("[AI-TRIAGE] Adapter failed for submission %s: %s", submission.id, e)
        result = TriageResult(ai_score=None, ai_feedback=SKIPPED_FEEDBACK, consistency_warning=False)

    outcome = apply_triage(submission, result)
    db.session.commit()
    db.session.refresh(submission)
    log.info("Submission %s by user %s on project %s: %s", submission.id, user.id, project.id, outcome)
    return submission
