# nexus/services/projects.py
"""Project task pools and the freelancer-facing project list."""
import json
import logging

from sqlalchemy import func, or_

from ..exceptions import ValidationError
from ..extensions import db
from ..models.project import Project, TaskPoolEntry
from ..models.submission import Submission, REJECTED
from .assignment import release_task

log = logging.getLogger(__name__)


def parse_pool(raw) -> list[dict]:
    """Accept the admin's task pool payload (JSON text or a list) and normalize it."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ValidationError(f"Invalid JSON format for Task Pool: {e}")
    if not isinstance(raw, list):
        raise ValidationError("Invalid JSON format for Task Pool: must be an array.")

    pool = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("content"), str) or not item["content"]:
            raise ValidationError('Invalid task object: each task must have a "content" field (string).')
        image = item.get("imageUrl") or item.get("image_url")
        pool.append({"content": item["content"], "image_url": image or None})
    return pool


def apply_pool(project: Project, pool: list[dict]) -> None:
    """Replace a project's pool in place, keeping entries that were already worked on."""
    existing = {e.position: e for e in project.task_pool}

    for position, item in enumerate(pool):
        entry = existing.pop(position, None)
        if entry is None:
            project.task_pool.append(TaskPoolEntry(position=position, **item))
            continue
        if entry.content != item["content"] or entry.image_url != item["image_url"]:
            if Submission.query.filter_by(task_pool_entry_id=entry.id).first() is not None:
                raise ValidationError(f"Task {position} already has a submission and cannot be changed.")
            entry.content = item["content"]
            entry.image_url = item["image_url"]
            if entry.is_assigned:
                release_task(entry, commit=False)

    for position, entry in existing.items():
        if Submission.query.filter_by(task_pool_entry_id=entry.id).first() is not None:
            raise ValidationError(f"Task {position} already has a submission and cannot be removed.")
        log.info("Removing pool entry %s (index %s) from project %s", entry.id, position, project.id)
        project.task_pool.remove(entry)


def visible_projects(user) -> list[Project]:
    """Available projects in the user's domain that the user may still submit to."""
    domain = user.skill_domain
    if domain and domain not in ("General", "None"):
        domain_filter = or_(Project.project_domain == domain, Project.project_domain == "General")
    else:
        domain_filter = Project.project_domain == "General"

    live = Submission.status != REJECTED
    mine = (
        db.session.query(Submission.id)
        .filter(Submission.project_id == Project.id, Submission.user_id == user.id)
        .exists()
    )
    taken = (
        db.session.query(func.count(Submission.id))
        .filter(Submission.project_id == Project.id, live)
        .scalar_subquery()
    )

    return (
        Project.query
        .filter(Project.status == "Available", domain_filter)
        .filter(or_(Project.is_repeatable.is_(True), ~mine))
        .filter(or_(Project.max_total_submissions.is_(None), taken < Project.max_total_submissions))
        .order_by(Project.created_at.desc())
        .all()
    )


def can_view(project: Project, user) -> bool:
    if user.is_admin:
        return True
    if project.project_domain == "General":
        return True
    return bool(user.skill_domain) and user.skill_domain == project.project_domain

