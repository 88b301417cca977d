from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, FloatField, IntegerField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional as Opt, AnyOf

from ...models.project import TASK_TYPES, PAYMENT_TYPES, PROJECT_STATUSES
from ...models.user import DOMAINS


class ProjectForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[DataRequired()])
    detailedInstructions = TextAreaField("Detailed instructions", validators=[Opt()])
    payRate = FloatField("Pay rate", validators=[InputRequired(), NumberRange(min=0.01)])
    paymentType = StringField("Payment type", default="PER_TASK", validators=[Opt(), AnyOf(PAYMENT_TYPES)])
    projectDomain = StringField("Domain", default="General", validators=[Opt(), AnyOf(DOMAINS)])
    taskType = StringField("Task type", default="Chat_Sentiment", validators=[Opt(), AnyOf(TASK_TYPES)])
    taskContent = TextAreaField("Task content", validators=[Opt()])
    taskImageUrl = StringField("Task image", validators=[Opt(), Length(max=500)])
    status = StringField("Status", default="Available", validators=[Opt(), AnyOf(PROJECT_STATUSES)])
    maxTotalSubmissions = IntegerField(
        "Max total submissions",
        validators=[Opt(), NumberRange(min=1, message="maxTotalSubmissions must be a positive number or empty for no limit.")],
    )


class ProjectUpdateForm(ProjectForm):
    title = StringField("Title", validators=[Opt(), Length(max=200)])
    description = TextAreaField("Description", validators=[Opt()])
    payRate = FloatField("Pay rate", validators=[Opt(), NumberRange(min=0.01)])


class SubmitWorkForm(FlaskForm):
    timeSpentMinutes = IntegerField("Time spent (minutes)", validators=[Opt(), NumberRange(min=0)])
    taskIndex = IntegerField("Task index", validators=[Opt(), NumberRange(min=0)])
