import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import click
from flask import Flask, jsonify, request
from .extensions import db, migrate, login_manager, mail
from .config import Config
from .models.user import User
from .security import verify_auth_token

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.auth import auth_bp
from .blueprints.users import users_bp
from .blueprints.projects import projects_bp
from .blueprints.submissions import submissions_bp
from .blueprints.wallet import wallet_bp
from .blueprints.qualification import qualification_bp
from .blueprints.admin import admin_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=os.getenv("ENV", "development"),
            release=app.config.get("APP_VERSION"),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")


def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    handlers = []
    if app.config.get("LOG_TO_FILE", True):
        log_dir = Path(app.config.get("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        # Rotating file handler (5MB x 5)
        file_handler = RotatingFileHandler(
            log_dir / app.config.get("LOG_FILENAME", "nexus.log"),
            maxBytes=5_000_000, backupCount=5, encoding="utf-8",
        )
        handlers.append(file_handler)

    # Stream to stdout as well (useful on dev/docker)
    handlers.append(logging.StreamHandler())

    # app.logger is the "nexus" logger, so service modules (nexus.*) land here too.
    # Replace rather than stack handlers when the factory runs more than once.
    app.logger.handlers.clear()
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(formatter)
        app.logger.addHandler(h)

    app.logger.info("Logging initialized.")


def _register_cli(app):
    @app.cli.command("create-admin")
    @click.option("--email", prompt=True)
    @click.option("--first-name", prompt=True, default="Admin")
    @click.option("--last-name", prompt=True, default="User")
    @click.password_option()
    def create_admin(email, first_name, last_name, password):
        """Create an Admin account, or promote an existing one."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(
                email=email,
                username=email.split("@")[0],
                first_name=first_name,
                last_name=last_name,
            )
            db.session.add(user)
        user.role = "Admin"
        user.status = "Accepted"
        user.set_password(password)
        db.session.commit()
        click.echo(f"Admin ready: {user.email} (id={user.id})")


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.config.from_pyfile("config.py", silent=True)
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    mail.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # API clients: "Authorization: Bearer <token>"
    @login_manager.request_loader
    def load_user_from_request(req):
        header = req.headers.get("Authorization", "")
        if not header.lower().startswith("bearer "):
            return None
        uid = verify_auth_token(header[7:].strip())
        return db.session.get(User, uid) if uid else None

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(projects_bp, url_prefix="/api/projects")
    app.register_blueprint(submissions_bp, url_prefix="/api/submissions")
    app.register_blueprint(wallet_bp, url_prefix="/api/wallet")
    app.register_blueprint(qualification_bp, url_prefix="/api/qualification")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    _register_cli(app)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok", "version": app.config.get("APP_VERSION")})

    @app.after_request
    def _log_request(resp):
        if resp.status_code >= 500:
            app.logger.error("%s %s -> %s", request.method, request.path, resp.status_code)
        return resp

    return app
