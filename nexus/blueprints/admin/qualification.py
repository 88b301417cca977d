from flask import jsonify
from flask_login import login_required, current_user
from flask_wtf import FlaskForm
from sqlalchemy.orm import joinedload
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, AnyOf, Length, Optional as Opt

from ...extensions import db
from ...models.qualification import QualificationSubmission, QualificationTest
from ...models.user import DOMAINS
from ...security import roles_required
from ...services import qualification
from ...services.audit import record_admin_action
from ..utils import json_body, validated
from . import admin_bp


class QualificationTestForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    projectDomain = StringField("Domain", validators=[DataRequired(), AnyOf(DOMAINS)])
    description = TextAreaField("Description", validators=[DataRequired()])
    status = StringField("Status", default="Active", validators=[Opt(), AnyOf(("Active", "Draft"))])


class QualificationTestUpdateForm(QualificationTestForm):
    title = StringField("Title", validators=[Opt(), Length(max=200)])
    projectDomain = StringField("Domain", validators=[Opt(), AnyOf(DOMAINS)])
    description = TextAreaField("Description", validators=[Opt()])


class QualificationReviewForm(FlaskForm):
    newStatus = StringField("Status", validators=[DataRequired(), AnyOf(qualification.DECISIONS)])
    adminFeedback = TextAreaField("Feedback", validators=[Opt()])


FIELDS = {"title": "title", "projectDomain": "project_domain", "description": "description", "status": "status"}


@admin_bp.route('/qualification-tests', methods=['GET'])
@login_required
@roles_required('Admin')
def qualification_tests():
    tests = QualificationTest.query.order_by(QualificationTest.created_at.desc()).all()
    return jsonify([t.to_dict(include_tasks=True) for t in tests])


@admin_bp.post('/qualification-tests')
@login_required
@roles_required('Admin')
def qualification_test_create():
    form = validated(QualificationTestForm)
    test = QualificationTest(
        title=form.title.data.strip(),
        project_domain=form.projectDomain.data,
        description=form.description.data,
        status=form.status.data or "Active",
        created_by=current_user.id,
    )
    qualification.set_tasks(test, json_body().get("tasks") or [])
    db.session.add(test)
    db.session.flush()
    record_admin_action(current_user.id, "QUALIFICATION_TEST_CREATED", "QualificationTest", test.id,
                        {"title": test.title})
    db.session.commit()
    return jsonify(test.to_dict(include_tasks=True)), 201


@admin_bp.put('/qualification-tests/<int:test_id>')
@login_required
@roles_required('Admin')
def qualification_test_update(test_id):
    test = db.get_or_404(QualificationTest, test_id, description="Test not found")
    form = validated(QualificationTestUpdateForm)
    body = json_body()
    for field, attr in FIELDS.items():
        if body.get(field) is not None:
            setattr(test, attr, getattr(form, field).data)
    if "tasks" in body:
        qualification.set_tasks(test, body["tasks"])
    db.session.commit()
    return jsonify(test.to_dict(include_tasks=True))


@admin_bp.delete('/qualification-tests/<int:test_id>')
@login_required
@roles_required('Admin')
def qualification_test_delete(test_id):
    test = db.get_or_404(QualificationTest, test_id, description="Test not found")
    record_admin_action(current_user.id, "QUALIFICATION_TEST_DELETED", "QualificationTest", test.id,
                        {"title": test.title})
    db.session.delete(test)
    db.session.commit()
    return jsonify({"msg": "Test deleted successfully"})


@admin_bp.get('/qualification-submissions/pending')
@login_required
@roles_required('Admin')
def qualification_pending():
    rows = (
        QualificationSubmission.query
        .options(joinedload(QualificationSubmission.user), joinedload(QualificationSubmission.test))
        .filter_by(status="Pending")
        .order_by(QualificationSubmission.created_at.asc())
        .all()
    )
    return jsonify([s.to_dict() for s in rows])


@admin_bp.put('/qualification-submissions/review/<int:submission_id>')
@login_required
@roles_required('Admin')
def qualification_review(submission_id):
    form = validated(QualificationReviewForm)
    sub = db.get_or_404(QualificationSubmission, submission_id, description="Submission not found")
    qualification.review_qualification(sub, form.newStatus.data, current_user,
                                       feedback=form.adminFeedback.data or None)
    return jsonify(sub.to_dict())
