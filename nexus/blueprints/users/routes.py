# nexus/blueprints/users/routes.py
import logging
from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy import or_

from ...exceptions import ValidationError
from ...extensions import db
from ...models.user import User, Notification
from ...security import roles_required
from ...services.audit import record_admin_action
from ...services.email_service import send_email
from ..utils import json_body, page_args, validated
from . import users_bp
from .forms import ApplicationForm, ApplicantReviewForm, PaymentSettingsForm, AdminUserUpdateForm

log = logging.getLogger(__name__)


def _score_application(answer: str) -> int:
    expected = current_app.config.get("APPLICATION_TEST_ANSWER", "")
    if len(answer) > 20:
        return 10
    return 95 if expected and answer.strip().lower() == expected.lower() else 30


# -----------------
# Application
# -----------------

@users_bp.put("/application")
@login_required
def submit_application():
    form = validated(ApplicationForm)
    current_user.bio = form.bio.data
    current_user.test_answer = form.testAnswer.data
    current_user.application_ai_score = _score_application(form.testAnswer.data)
    current_user.application_date = datetime.utcnow()
    current_user.status = "Pending"
    db.session.commit()
    return jsonify({"msg": "Application submitted for review.", "user": current_user.to_dict(private=True)})


@users_bp.get("/applicants")
@login_required
@roles_required("Admin")
def applicants():
    rows = (
        User.query
        .filter_by(role="Applicant", status="Pending")
        .order_by(User.application_date.asc())
        .all()
    )
    data = []
    for u in rows:
        d = u.to_dict(private=True)
        d.update(testAnswer=u.test_answer, aiScore=u.application_ai_score)
        data.append(d)
    return jsonify(data)


@users_bp.put("/review/<int:user_id>")
@login_required
@roles_required("Admin")
def review_applicant(user_id):
    form = validated(ApplicantReviewForm)
    user = db.get_or_404(User, user_id, description="Applicant not found.")

    user.status = form.status.data
    if user.status == "Accepted":
        user.role = "Freelancer"
        user.skill_domain = form.skillDomain.data or "General"
    else:
        user.role = "Applicant"

    record_admin_action(current_user.id, f"APPLICANT_{user.status.upper()}", "User", user.id,
                        {"skillDomain": user.skill_domain})
    db.session.commit()
    log.info("Applicant %s set to %s by admin %s", user.id, user.status, current_user.id)

    if user.status == "Accepted":
        send_email(
            to=user.email,
            subject="Welcome to Nexus AI!",
            template="welcome.html",
            user=user,
        )
    return jsonify({"msg": f"Applicant successfully set to {user.status}", "user": user.to_dict()})


# -----------------
# Payment settings
# -----------------

@users_bp.put("/update-payment")
@login_required
def update_payment():
    form = validated(PaymentSettingsForm)
    current_user.payment_method = form.paymentMethod.data
    current_user.payment_identifier = form.paymentIdentifier.data.strip()
    db.session.commit()
    return jsonify({"msg": "Payment details updated successfully!"})


# -----------------
# Notifications
# -----------------

@users_bp.get("/notifications")
@login_required
def notifications():
    rows = current_user.notifications.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return jsonify([n.to_dict() for n in rows])


@users_bp.put("/notifications/read")
@login_required
def mark_notifications_read():
    ids = json_body().get("ids")
    q = Notification.query.filter_by(user_id=current_user.id, is_read=False)
    if ids:
        q = q.filter(Notification.id.in_(ids))
    updated = q.update({Notification.is_read: True}, synchronize_session=False)
    db.session.commit()
    return jsonify({"updated": updated})


# -----------------
# Admin user management
# -----------------

@users_bp.get("/admin/all")
@login_required
@roles_required("Admin")
def admin_list_users():
    page, limit = page_args(default_limit=10)
    term = (request.args.get("searchTerm") or "").strip()

    q = User.query
    if term:
        like = f"%{term}%"
        q = q.filter(or_(User.email.ilike(like), User.first_name.ilike(like), User.last_name.ilike(like)))

    total = q.count()
    users = q.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify({
        "users": [u.to_dict(private=True) for u in users],
        "totalPages": (total + limit - 1) // limit,
        "currentPage": page,
        "totalUsers": total,
    })


@users_bp.put("/admin/update/<int:user_id>")
@login_required
@roles_required("Admin")
def admin_update_user(user_id):
    form = validated(AdminUserUpdateForm)
    user = db.get_or_404(User, user_id, description="User not found.")

    mapping = {
        "role": "role",
        "status": "status",
        "firstName": "first_name",
        "lastName": "last_name",
        "phoneNumber": "phone_number",
        "skillDomain": "skill_domain",
    }
    changed = {}
    for field, attr in mapping.items():
        value = getattr(form, field).data
        if value:
            changed[field] = value
            setattr(user, attr, value)
    if not changed:
        raise ValidationError("No valid fields provided for update.")

    record_admin_action(current_user.id, "USER_UPDATED", "User", user.id, changed)
    db.session.commit()
    return jsonify({"msg": "User updated successfully", "user": user.to_dict(private=True)})
