from flask import jsonify
from flask_login import login_required, current_user

from ...services import qualification
from ..utils import json_body
from . import qualification_bp


@qualification_bp.get("/available")
@login_required
def available():
    return jsonify([t.to_dict() for t in qualification.available_tests(current_user)])


@qualification_bp.get("/<int:test_id>")
@login_required
def single_test(test_id):
    return jsonify(qualification.active_test(test_id).to_dict(include_tasks=True))


@qualification_bp.post("/submit")
@login_required
def submit():
    body = json_body()
    qualification.submit_test(current_user, body.get("testId"), body.get("submissionContent"))
    return jsonify({"msg": "Test submitted successfully. Awaiting review."}), 201
