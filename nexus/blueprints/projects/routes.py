# nexus/blueprints/projects/routes.py
import logging

from flask import jsonify
from flask_login import login_required, current_user

from ...exceptions import NexusError, ValidationError
from ...extensions import db
from ...models.project import Project
from ...security import roles_required
from ...services import intake
from ...services.assignment import assign_next_task
from ...services.audit import record_admin_action
from ...services.projects import apply_pool, can_view, parse_pool, visible_projects
from ..utils import json_body, validated
from . import projects_bp
from .forms import ProjectForm, ProjectUpdateForm, SubmitWorkForm

log = logging.getLogger(__name__)

FIELDS = {
    "title": "title",
    "description": "description",
    "detailedInstructions": "detailed_instructions",
    "payRate": "pay_rate",
    "paymentType": "payment_type",
    "projectDomain": "project_domain",
    "taskType": "task_type",
    "taskContent": "task_content",
    "taskImageUrl": "task_image_url",
    "status": "status",
}


def _pool_payload(body: dict):
    # the admin UI posts a JSON string as taskPoolData; API clients may send taskPool as a list
    if "taskPoolData" in body:
        return parse_pool(body["taskPoolData"])
    if "taskPool" in body:
        return parse_pool(body["taskPool"])
    return None


# -----------------
# Listing
# -----------------

@projects_bp.get("/all")
@login_required
@roles_required("Admin")
def list_all():
    projects = Project.query.order_by(Project.created_at.desc()).all()
    return jsonify([p.to_dict(include_pool=True) for p in projects])


@projects_bp.get("")
@login_required
def list_available():
    return jsonify([p.to_dict() for p in visible_projects(current_user)])


# -----------------
# Admin CRUD
# -----------------

@projects_bp.post("")
@login_required
@roles_required("Admin")
def create_project():
    form = validated(ProjectForm)
    body = json_body()
    pool = _pool_payload(body) or []

    project = Project(created_by=current_user.id)
    for field, attr in FIELDS.items():
        value = getattr(form, field).data
        if value not in (None, ""):
            setattr(project, attr, value)
    project.is_repeatable = bool(body.get("isRepeatable", True))
    project.max_total_submissions = form.maxTotalSubmissions.data
    db.session.add(project)
    apply_pool(project, pool)
    db.session.flush()

    record_admin_action(current_user.id, "PROJECT_CREATED", "Project", project.id, {"title": project.title})
    db.session.commit()
    log.info("Project %s created by admin %s with %d pool entries", project.id, current_user.id, len(pool))
    return jsonify(project.to_dict(include_pool=True)), 201


@projects_bp.put("/<int:project_id>")
@login_required
@roles_required("Admin")
def update_project(project_id):
    project = db.get_or_404(Project, project_id, description="Project not found")
    form = validated(ProjectUpdateForm)
    body = json_body()

    old = project.to_dict()
    changed = []
    for field, attr in FIELDS.items():
        if body.get(field) is not None:
            setattr(project, attr, getattr(form, field).data)
            changed.append(field)
    if "isRepeatable" in body:
        project.is_repeatable = bool(body["isRepeatable"])
        changed.append("isRepeatable")
    if "maxTotalSubmissions" in body:
        project.max_total_submissions = form.maxTotalSubmissions.data
        changed.append("maxTotalSubmissions")

    pool = _pool_payload(body)
    if pool is not None:
        apply_pool(project, pool)
        changed.append("taskPool")

    record_admin_action(current_user.id, "PROJECT_UPDATED", "Project", project.id, {
        "oldData": {k: old[k] for k in ("title", "payRate", "taskType", "status", "isRepeatable", "maxTotalSubmissions")},
        "updatedFields": changed,
        "projectTitle": project.title,
    })
    db.session.commit()
    return jsonify({"msg": "Project updated successfully", "project": project.to_dict(include_pool=True)})


@projects_bp.delete("/<int:project_id>")
@login_required
@roles_required("Admin")
def delete_project(project_id):
    project = db.get_or_404(Project, project_id, description="Project not found")
    record_admin_action(current_user.id, "PROJECT_DELETED", "Project", project.id, {"title": project.title})
    db.session.delete(project)
    db.session.commit()
    return jsonify({"msg": "Project deleted successfully"})


# -----------------
# Freelancer work
# -----------------

@projects_bp.get("/<int:project_id>")
@login_required
def get_project(project_id):
    project = db.get_or_404(Project, project_id, description="Project not found")
    if not can_view(project, current_user):
        raise NexusError("This project is not available for your skill domain.", 403)

    if current_user.is_admin:
        data = project.to_dict(include_pool=True)
        data["taskIndex"] = None
        return jsonify(data)

    data = project.to_dict()
    if intake.can_submit(project, current_user):
        data.update(assign_next_task(project, current_user).to_dict())
    else:
        data.update(taskContent=None, taskImageUrl=None, taskIndex=None)
    return jsonify(data)


@projects_bp.post("/<int:project_id>/submit")
@login_required
def submit_work(project_id):
    project = db.get_or_404(Project, project_id, description="Project not found")
    if not can_view(project, current_user):
        raise NexusError("This project is not available for your skill domain.", 403)
    if project.status != "Available":
        raise ValidationError("This project is not accepting submissions.")

    form = validated(SubmitWorkForm)
    submission = intake.submit(
        project,
        current_user,
        json_body().get("content"),
        task_index=form.taskIndex.data,
        time_spent_minutes=form.timeSpentMinutes.data,
    )
    return jsonify({"msg": "Submission received.", "submission": submission.to_dict()}), 201
