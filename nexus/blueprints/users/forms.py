from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional as Opt, AnyOf

from ...models.user import DOMAINS, PAYMENT_METHODS, ROLES, STATUSES


class ApplicationForm(FlaskForm):
    bio = TextAreaField("Bio", validators=[DataRequired(), Length(max=5000)])
    testAnswer = StringField("Test answer", validators=[DataRequired(), Length(max=500)])


class ApplicantReviewForm(FlaskForm):
    status = StringField("Status", validators=[DataRequired(), AnyOf(("Accepted", "Rejected"))])
    skillDomain = StringField("Skill domain", validators=[Opt(), AnyOf(DOMAINS)])


class PaymentSettingsForm(FlaskForm):
    paymentMethod = SelectField(
        "Payment method",
        choices=[(m, m) for m in PAYMENT_METHODS if m != "Not Set"],
        validators=[DataRequired()],
    )
    paymentIdentifier = StringField("Payment details", validators=[DataRequired(), Length(max=255)])


class AdminUserUpdateForm(FlaskForm):
    role = StringField("Role", validators=[Opt(), AnyOf(ROLES)])
    status = StringField("Status", validators=[Opt(), AnyOf(STATUSES)])
    firstName = StringField("First name", validators=[Opt(), Length(max=80)])
    lastName = StringField("Last name", validators=[Opt(), Length(max=80)])
    phoneNumber = StringField("Phone", validators=[Opt(), Length(max=50)])
    skillDomain = StringField("Skill domain", validators=[Opt(), AnyOf(DOMAINS)])
