# nexus/blueprints/auth/routes.py
import logging

from flask import current_app, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from ...exceptions import NexusError, ValidationError
from ...extensions import db
from ...models.submission import Submission, APPROVED_STATUSES
from ...models.user import User
from ...security import issue_auth_token, issue_reset_token, verify_reset_token
from ...services.email_service import send_email
from ..utils import validated
from . import auth_bp
from .forms import (
    RegisterForm,
    LoginForm,
    ChangePasswordForm,
    ForgotPasswordForm,
    ResetPasswordForm,
    ProfileForm,
)

log = logging.getLogger(__name__)

RESET_SENT = "If an account with that email exists, a password reset link has been sent."


# -----------------
# Utilities
# -----------------

def _unique_username(email: str) -> str:
    base = email.split("@")[0][:70] or "user"
    candidate, n = base, 1
    while User.query.filter_by(username=candidate).first() is not None:
        n += 1
        candidate = f"{base}{n}"
    return candidate


def _token_response(user: User):
    return jsonify({
        "token": issue_auth_token(user.id),
        "userStatus": user.status,
        "userRole": user.role,
    })


def send_password_reset_email(user: User, link: str):
    send_email(
        to=user.email,
        subject="Reset your Nexus AI password",
        template="password_reset.html",
        user=user,
        link=link,
    )


# -----------------
# Register / Login
# -----------------

@auth_bp.post("/register")
def register():
    form = validated(RegisterForm)
    email = form.email.data.strip().lower()

    user = User(
        first_name=form.firstName.data.strip(),
        last_name=form.lastName.data.strip(),
        email=email,
        username=_unique_username(email),
        phone_number=form.phoneNumber.data.strip(),
        address=form.address.data.strip(),
        date_of_birth=form.dateOfBirth.data,
        linkedin_url=(form.linkedInURL.data or "").strip(),
        role="Applicant",
        status="New",
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()
    log.info("Registered user %s (%s)", user.id, email)
    return _token_response(user), 201


@auth_bp.post("/login")
def login():
    form = validated(LoginForm)
    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not user.check_password(form.password.data):
        raise ValidationError("Invalid credentials.")

    # applicants that never finished (or failed) the application go back to it
    if user.status in ("New", "Rejected") and not user.is_admin:
        raise NexusError("Your profile requires action. Please complete your application.", 403)

    login_user(user)
    return _token_response(user)


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"msg": "Logged out."})


# -----------------
# Profile
# -----------------

@auth_bp.get("/profile")
@login_required
def profile():
    approved = (
        Submission.query
        .filter(Submission.user_id == current_user.id, Submission.status.in_(APPROVED_STATUSES))
        .count()
    )
    return jsonify({"user": current_user.to_dict(private=True), "approvedSubmissions": approved})


@auth_bp.put("/profile")
@login_required
def update_profile():
    form = validated(ProfileForm)
    mapping = {
        "firstName": "first_name",
        "lastName": "last_name",
        "phoneNumber": "phone_number",
        "address": "address",
        "linkedInURL": "linkedin_url",
    }
    for field, attr in mapping.items():
        value = getattr(form, field).data
        if value:
            setattr(current_user, attr, value.strip())
    db.session.commit()
    return jsonify({"msg": "Profile updated successfully.", "user": current_user.to_dict(private=True)})


@auth_bp.put("/change-password")
@login_required
def change_password():
    form = validated(ChangePasswordForm)
    if not current_user.check_password(form.currentPassword.data):
        raise NexusError("Incorrect current password.", 401)
    current_user.set_password(form.newPassword.data)
    db.session.commit()
    return jsonify({"msg": "Password updated successfully."})


# -----------------
# Password reset
# -----------------

@auth_bp.post("/forgot-password")
def forgot_password():
    form = validated(ForgotPasswordForm)
    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    # same answer either way so the endpoint can't be used to probe accounts
    if user:
        token = issue_reset_token(user.id)
        base = current_app.config.get("EXTERNAL_BASE_URL", "").rstrip("/")
        send_password_reset_email(user, f"{base}/reset-password/{token}")
    return jsonify({"msg": RESET_SENT})


@auth_bp.put("/reset-password/<token>")
def reset_password(token):
    form = validated(ResetPasswordForm)
    uid = verify_reset_token(token)
    user = db.session.get(User, uid) if uid else None
    if not user:
        raise ValidationError("Invalid or expired reset token. Please request a new password reset.")
    user.set_password(form.newPassword.data)
    db.session.commit()
    log.info("Password reset for user %s", user.id)
    return jsonify({"msg": "Password has been reset successfully. You can now login with your new password."})
