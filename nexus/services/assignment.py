# nexus/services/assignment.py
"""Hands each freelancer the next free entry of a project's task pool."""
import logging
from datetime import datetime
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update

from ..exceptions import ExhaustedPoolError
from ..extensions import db
from ..models.project import Project, TaskPoolEntry
from ..models.submission import Submission

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignedTask:
    content: Optional[str]
    image_url: Optional[str]
    index: Optional[int]  # None for legacy single-task projects
    entry: Optional[TaskPoolEntry]

    def to_dict(self) -> dict:
        return {"taskContent": self.content, "taskImageUrl": self.image_url, "taskIndex": self.index}


def _open_entry_for(project: Project, user) -> Optional[TaskPoolEntry]:
    """An entry this user already holds but has not submitted yet."""
    submitted = (
        db.session.query(Submission.task_pool_entry_id)
        .filter(Submission.user_id == user.id, Submission.task_pool_entry_id.isnot(None))
    )
    return (
        TaskPoolEntry.query
        .filter(
            TaskPoolEntry.project_id == project.id,
            TaskPoolEntry.assigned_to_id == user.id,
            TaskPoolEntry.id.notin_(submitted),
        )
        .order_by(TaskPoolEntry.position)
        .first()
    )


def assign_next_task(project: Project, user) -> AssignedTask:
    if not project.has_pool:
        return AssignedTask(project.task_content, project.task_image_url, None, None)

    held = _open_entry_for(project, user)
    if held:
        return AssignedTask(held.content, held.image_url, held.position, held)

    candidates = (
        db.session.query(TaskPoolEntry.id)
        .filter(TaskPoolEntry.project_id == project.id, TaskPoolEntry.is_assigned.is_(False))
        .order_by(TaskPoolEntry.position)
        .all()
    )
    for (entry_id,) in candidates:
        # compare-and-set: only one caller can flip the flag
        result = db.session.execute(
            update(TaskPoolEntry)
            .where(TaskPoolEntry.id == entry_id, TaskPoolEntry.is_assigned.is_(False))
            .values(is_assigned=True, assigned_to_id=user.id, assigned_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            db.session.commit()
            entry = db.session.get(TaskPoolEntry, entry_id)
            db.session.refresh(entry)
            log.info("Assigned pool entry %s (index %s) of project %s to user %s",
                     entry.id, entry.position, project.id, user.id)
            return AssignedTask(entry.content, entry.image_url, entry.position, entry)
        log.info("Pool entry %s was taken concurrently, trying next", entry_id)

    db.session.rollback()
    log.warning("Task pool exhausted for project %s (user %s)", project.id, user.id)
    raise ExhaustedPoolError("All tasks in this project have already been assigned.")


def release_task(entry: TaskPoolEntry, commit: bool = True) -> None:
    """Return an entry to the pool. Admin action only; nothing calls it automatically."""
    log.info("Releasing pool entry %s (index %s) of project %s from user %s",
             entry.id, entry.position, entry.project_id, entry.assigned_to_id)
    entry.is_assigned = False
    entry.assigned_to_id = None
    entry.assigned_at = None
    if commit:
        db.session.commit()
