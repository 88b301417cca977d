from flask import jsonify
from flask_login import login_required, current_user
from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional as Opt, AnyOf

from ...models.project import TASK_TYPES, TaskPoolEntry
from ...security import roles_required
from ...services.assignment import release_task
from ...services.audit import record_admin_action
from ...services.triage import get_triage
from ..utils import validated
from . import admin_bp


class InstructionsForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    taskType = StringField("Task type", default="Chat_Sentiment", validators=[Opt(), AnyOf(TASK_TYPES)])


@admin_bp.post('/projects/<int:project_id>/pool/<int:index>/release')
@login_required
@roles_required('Admin')
def pool_release(project_id, index):
    entry = (
        TaskPoolEntry.query
        .filter_by(project_id=project_id, position=index)
        .first_or_404(description="Task not found in this project's pool.")
    )
    previous = entry.assigned_to_id
    record_admin_action(current_user.id, "TASK_RELEASED", "Project", project_id,
                        {"taskIndex": index, "releasedFrom": previous})
    release_task(entry)
    return jsonify({"msg": "Task returned to the pool.", "task": entry.to_dict()})


@admin_bp.post('/ai/generate-instructions')
@login_required
@roles_required('Admin')
def generate_instructions():
    form = validated(InstructionsForm)
    data = get_triage().generate_instructions(form.title.data.strip(), form.taskType.data or "Chat_Sentiment")
    return jsonify(data)
