# nexus/blueprints/auth/forms.py
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, DateField
from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    Optional as Opt,
    Regexp,
    ValidationError,
)

from ...models.user import User


# ---------------------
# Validators / Helpers
# ---------------------

PASSWORD_VALIDATORS = [
    DataRequired(),
    Length(min=6, message="Password must be at least 6 characters."),
]


def _email_exists(email: str) -> bool:
    return User.query.filter(User.email == email.lower().strip()).first() is not None


# -------------
# Auth Forms
# -------------

class RegisterForm(FlaskForm):
    firstName = StringField("First name", validators=[DataRequired(), Length(max=80)])
    lastName = StringField("Last name", validators=[DataRequired(), Length(max=80)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=PASSWORD_VALIDATORS)
    phoneNumber = StringField("Phone", validators=[DataRequired(), Length(max=50)])
    address = StringField("Address", validators=[DataRequired(), Length(max=255)])
    dateOfBirth = DateField("Date of birth", validators=[DataRequired()])
    linkedInURL = StringField("LinkedIn", validators=[Opt(), Length(max=255)])

    def validate_email(self, field):
        if _email_exists(field.data):
            raise ValidationError("User already exists.")


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired()])


class ChangePasswordForm(FlaskForm):
    currentPassword = PasswordField("Current password", validators=[DataRequired()])
    newPassword = PasswordField("New password", validators=PASSWORD_VALIDATORS)


class ForgotPasswordForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])


class ResetPasswordForm(FlaskForm):
    newPassword = PasswordField("New password", validators=PASSWORD_VALIDATORS)


class ProfileForm(FlaskForm):
    firstName = StringField("First name", validators=[Opt(), Length(max=80)])
    lastName = StringField("Last name", validators=[Opt(), Length(max=80)])
    phoneNumber = StringField("Phone", validators=[Opt(), Length(max=50)])
    address = StringField("Address", validators=[Opt(), Length(max=255)])
    linkedInURL = StringField(
        "LinkedIn",
        validators=[Opt(), Length(max=255), Regexp(r"^https?://", message="Must be a http(s) URL.")],
    )
