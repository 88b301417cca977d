# nexus/config.py
import os
from dotenv import load_dotenv

load_dotenv()

def _as_bool(val: str | None, default=False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

class Config:
    # --- Core ---
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    APP_VERSION = os.getenv("APP_VERSION")
    EXTERNAL_BASE_URL = os.getenv("EXTERNAL_BASE_URL", "http://localhost:3000")

    # DB
    SQLALCHEMY_DATABASE_URI = (
        os.getenv("SQLALCHEMY_DATABASE_URI")
        or os.getenv("DATABASE_URL")
        or "sqlite:///nexus.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Auth ---
    # API clients send a bearer token, so forms are validated without CSRF
    WTF_CSRF_ENABLED = False
    AUTH_TOKEN_MAX_AGE = int(os.getenv("AUTH_TOKEN_MAX_AGE", str(7 * 24 * 3600)))
    SECURITY_PASSWORD_SALT = os.getenv("SECURITY_PASSWORD_SALT", "pwd-reset")
    PASSWORD_RESET_MAX_AGE = int(os.getenv("PASSWORD_RESET_MAX_AGE", "3600"))

    # --- Review / triage ---
    AUTO_APPROVE_THRESHOLD = int(os.getenv("AUTO_APPROVE_THRESHOLD", "98"))
    CONSISTENCY_MIN_CHARS = int(os.getenv("CONSISTENCY_MIN_CHARS", "50"))
    CONSISTENCY_SCORE_FLOOR = int(os.getenv("CONSISTENCY_SCORE_FLOOR", "80"))

    # screening question on the freelancer application form
    APPLICATION_TEST_ANSWER = os.getenv("APPLICATION_TEST_ANSWER", "negative")

    # approval rate (%) needed for each tier, highest first; anything lower is Bronze
    TIER_THRESHOLDS = (
        ("Elite", float(os.getenv("TIER_ELITE_RATE", "95"))),
        ("Gold", float(os.getenv("TIER_GOLD_RATE", "85"))),
        ("Silver", float(os.getenv("TIER_SILVER_RATE", "70"))),
    )

    # --- AI (Gemini) ---
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    AI_TRIAGE_TIMEOUT = float(os.getenv("AI_TRIAGE_TIMEOUT", "15"))

    # --- Notifications ---
    NOTIFICATIONS_KEEP = int(os.getenv("NOTIFICATIONS_KEEP", "20"))

    # --- Mail ---
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _as_bool(os.getenv("MAIL_USE_TLS", "1"))
    MAIL_USE_SSL = _as_bool(os.getenv("MAIL_USE_SSL", "0"))  # don't enable together with TLS
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)
    MAIL_SUPPRESS_SEND = _as_bool(os.getenv("MAIL_SUPPRESS_SEND", "0"))
    MAIL_MAX_EMAILS = None
    MAIL_ASCII_ATTACHMENTS = False

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_FILENAME = os.getenv("LOG_FILENAME", "nexus.log")
    LOG_JSON = _as_bool(os.getenv("LOG_JSON", "0"))
    LOG_TO_FILE = _as_bool(os.getenv("LOG_TO_FILE", "1"))

    # --- Sentry ---
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")
    SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))

    # --- Security cookies (recommended for prod) ---
    SESSION_COOKIE_SECURE = _as_bool(os.getenv("SESSION_COOKIE_SECURE", "1"))
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    GEMINI_API_KEY = ""
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "noreply@nexus.test"
    SESSION_COOKIE_SECURE = False
    LOG_TO_FILE = False
