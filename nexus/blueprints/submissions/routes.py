# nexus/blueprints/submissions/routes.py
from flask import jsonify, request
from flask_login import login_required, current_user
from flask_wtf import FlaskForm
from sqlalchemy.orm import joinedload
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, AnyOf, Optional as Opt

from ...exceptions import NexusError
from ...extensions import db
from ...models.submission import Submission, APPROVED, PENDING, REJECTED
from ...security import roles_required
from ...services.review import bulk_review, review_submission
from ..utils import json_body, page_args, validated
from . import submissions_bp


class ReviewForm(FlaskForm):
    status = StringField("Status", validators=[DataRequired(), AnyOf((APPROVED, REJECTED))])
    feedback = TextAreaField("Feedback", validators=[Opt()])


def _with_refs(q):
    return q.options(joinedload(Submission.project), joinedload(Submission.user))


# -----------------
# Freelancer
# -----------------

@submissions_bp.get("/approved")
@login_required
def my_approved():
    rows = (
        Submission.query
        .filter_by(user_id=current_user.id, status=APPROVED)
        .order_by(Submission.created_at.desc())
        .all()
    )
    return jsonify([s.to_dict() for s in rows])


@submissions_bp.get("/mine")
@login_required
def my_submissions():
    page, limit = page_args()
    q = Submission.query.filter_by(user_id=current_user.id).order_by(Submission.created_at.desc())
    status = request.args.get("status")
    if status:
        q = q.filter(Submission.status == status)
    rows = q.offset((page - 1) * limit).limit(limit).all()
    return jsonify([s.to_dict(with_refs=True) for s in rows])


@submissions_bp.get("/<int:submission_id>")
@login_required
def get_submission(submission_id):
    s = db.get_or_404(Submission, submission_id, description="Submission not found")
    if s.user_id != current_user.id and not current_user.is_admin:
        raise NexusError("Not your submission.", 403)
    return jsonify(s.to_dict(with_refs=True))


# -----------------
# Admin review
# -----------------

@submissions_bp.get("/pending")
@login_required
@roles_required("Admin")
def pending():
    rows = _with_refs(Submission.query.filter_by(status=PENDING)).order_by(Submission.created_at.asc()).all()
    return jsonify([s.to_dict(with_refs=True) for s in rows])


@submissions_bp.get("/all")
@login_required
@roles_required("Admin")
def feed():
    rows = _with_refs(Submission.query).order_by(Submission.created_at.desc()).limit(50).all()
    return jsonify([s.to_dict(with_refs=True) for s in rows])


@submissions_bp.route("/<int:submission_id>/review", methods=["POST", "PUT"])
@login_required
@roles_required("Admin")
def review(submission_id):
    form = validated(ReviewForm)
    s = db.get_or_404(Submission, submission_id, description="Submission not found")
    review_submission(s, form.status.data, current_user, feedback=form.feedback.data or None)
    return jsonify({"msg": f"Submission {s.status.lower()}.", "submission": s.to_dict(with_refs=True)})


@submissions_bp.route("/bulk-review", methods=["POST", "PUT"])
@login_required
@roles_required("Admin")
def bulk():
    form = validated(ReviewForm)
    body = json_body()
    ids = body.get("ids") or body.get("submissionIds")
    result = bulk_review(ids, form.status.data, current_user, feedback=form.feedback.data or None)

    data = result.to_dict()
    data["totalRequested"] = len(ids)
    data["msg"] = f"Bulk review completed: {result.processed_count} processed, {result.failed_count} failed."
    return jsonify(data)
