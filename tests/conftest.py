"""
Shared fixtures: an in-memory app, a stand-in AI triage and model factories.
"""
import pytest
from flask import g
from flask.testing import FlaskClient

from nexus import create_app
from nexus.config import TestingConfig
from nexus.exceptions import TriageError
from nexus.extensions import db
from nexus.models.project import Project, TaskPoolEntry
from nexus.models.user import User
from nexus.security import issue_auth_token
from nexus.services.triage import TriageResult


class FakeTriage:
    """Answers like the Gemini adapter without touching the network."""

    def __init__(self):
        self.result = TriageResult(ai_score=80, ai_feedback="Looks fine.", consistency_warning=False, verdict="PENDING")
        self.error = None
        self.calls = []

    def score(self, content, context):
        self.calls.append((content, context))
        if self.error:
            raise self.error
        return self.result

    def set(self, score, warning=False, verdict="PENDING", feedback="AI says so."):
        self.result = TriageResult(ai_score=score, ai_feedback=feedback, consistency_warning=warning, verdict=verdict)

    def fail(self, message="Gemini request failed: timed out"):
        self.error = TriageError(message)

    def generate_instructions(self, title, task_type):
        return {"description": f"Work on {title}", "detailedInstructions": f"<p>{task_type}</p>"}


class ApiClient(FlaskClient):
    """Requests share the fixture's app context, so drop the cached login between calls."""

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.test_client_class = ApiClient
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def triage(app):
    fake = FakeTriage()
    app.extensions["nexus.triage"] = fake
    return fake


_seq = {"n": 0}


@pytest.fixture
def make_user(app):
    def _make(role="Freelancer", status="Accepted", domain="General", password="secret123", **kw):
        _seq["n"] += 1
        n = _seq["n"]
        user = User(
            first_name=kw.pop("first_name", f"User{n}"),
            last_name=kw.pop("last_name", "Test"),
            username=kw.pop("username", f"user{n}"),
            email=kw.pop("email", f"user{n}@example.com"),
            role=role,
            status=status,
            skill_domain=domain,
            **kw,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(role="Admin", email="admin@example.com", username="admin")


@pytest.fixture
def freelancer(make_user):
    return make_user()


@pytest.fixture
def make_project(app, admin):
    def _make(pool=None, **kw):
        project = Project(
            title=kw.pop("title", "Sentiment batch"),
            description=kw.pop("description", "Label the sentiment of each chat."),
            pay_rate=kw.pop("pay_rate", 20.0),
            payment_type=kw.pop("payment_type", "PER_TASK"),
            project_domain=kw.pop("project_domain", "General"),
            task_type=kw.pop("task_type", "Chat_Sentiment"),
            created_by=admin.id,
            **kw,
        )
        for i, content in enumerate(pool or []):
            project.task_pool.append(TaskPoolEntry(position=i, content=content))
        db.session.add(project)
        db.session.commit()
        return project
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_auth_token(user.id)}"}
    return _headers
