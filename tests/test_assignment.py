"""
Tests for task pool assignment.
"""
import pytest
from sqlalchemy import event, text

from nexus.exceptions import ExhaustedPoolError
from nexus.extensions import db
from nexus.models.project import TaskPoolEntry
from nexus.models.submission import Submission
from nexus.services.assignment import assign_next_task, release_task


def _submit_entry(entry, user):
    db.session.add(Submission(
        project_id=entry.project_id,
        user_id=user.id,
        task_pool_entry_id=entry.id,
        content="done",
        payment_amount=20.0,
    ))
    db.session.commit()


class TestLegacyProjects:
    """Projects without a pool hand out their single task."""

    def test_legacy_task_has_no_index(self, make_project, freelancer):
        project = make_project(task_content="User: hi. AI: hello.")

        task = assign_next_task(project, freelancer)

        assert task.index is None
        assert task.entry is None
        assert task.content == "User: hi. AI: hello."
        assert task.to_dict()["taskIndex"] is None


class TestPoolAssignment:
    """Tests for assign_next_task on pooled projects."""

    def test_two_users_get_distinct_entries(self, make_project, make_user):
        project = make_project(pool=["first", "second", "third"])
        alice, bob = make_user(), make_user()

        a = assign_next_task(project, alice)
        b = assign_next_task(project, bob)

        assert a.index == 0
        assert b.index == 1
        assert a.content == "first"
        assert b.content == "second"

    def test_same_user_keeps_unsubmitted_entry(self, make_project, freelancer):
        project = make_project(pool=["first", "second"])

        first = assign_next_task(project, freelancer)
        again = assign_next_task(project, freelancer)

        assert first.index == again.index == 0
        assigned = TaskPoolEntry.query.filter_by(project_id=project.id, is_assigned=True).count()
        assert assigned == 1

    def test_next_entry_after_submitting(self, make_project, freelancer):
        project = make_project(pool=["first", "second"])
        first = assign_next_task(project, freelancer)
        _submit_entry(first.entry, freelancer)

        second = assign_next_task(project, freelancer)

        assert second.index == 1

    def test_exhausted_pool_fails_closed(self, make_project, make_user):
        project = make_project(pool=["only"])
        assign_next_task(project, make_user())

        with pytest.raises(ExhaustedPoolError) as exc:
            assign_next_task(project, make_user())
        assert exc.value.status_code == 409

    def test_entry_taken_concurrently_moves_to_next(self, make_project, make_user):
        """A lost compare-and-set skips to the following entry."""
        project = make_project(pool=["first", "second"])
        rival, user = make_user(), make_user()
        rival_id, project_id = rival.id, project.id
        state = {"fired": False}

        def steal_first_entry(orm_execute_state):
            if orm_execute_state.is_update and not state["fired"]:
                state["fired"] = True
                orm_execute_state.session.connection().execute(
                    text("UPDATE task_pool_entry SET is_assigned = 1, assigned_to_id = :uid "
                         "WHERE project_id = :pid AND position = 0"),
                    {"uid": rival_id, "pid": project_id},
                )

        event.listen(db.session, "do_orm_execute", steal_first_entry)
        try:
            task = assign_next_task(project, user)
        finally:
            event.remove(db.session, "do_orm_execute", steal_first_entry)

        assert state["fired"]
        assert task.index == 1
        first = TaskPoolEntry.query.filter_by(project_id=project.id, position=0).one()
        db.session.refresh(first)
        assert first.assigned_to_id == rival_id


class TestRelease:
    """Tests for release_task."""

    def test_released_entry_goes_to_next_user(self, make_project, make_user):
        project = make_project(pool=["only"])
        task = assign_next_task(project, make_user())

        release_task(task.entry)

        entry = db.session.get(TaskPoolEntry, task.entry.id)
        assert entry.is_assigned is False
        assert entry.assigned_to_id is None
        assert assign_next_task(project, make_user()).index == 0
