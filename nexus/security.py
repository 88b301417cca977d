# nexus/security.py
from functools import wraps
from typing import Optional

from flask import abort, current_app
from flask_login import current_user
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired


def _ts(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=current_app.config["SECRET_KEY"], salt=salt)


def issue_auth_token(user_id: int) -> str:
    return _ts("auth-token").dumps({"uid": user_id})


def verify_auth_token(token: str) -> Optional[int]:
    max_age = current_app.config.get("AUTH_TOKEN_MAX_AGE", 7 * 24 * 3600)
    try:
        data = _ts("auth-token").loads(token, max_age=max_age)
        return int(data.get("uid"))
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None


def issue_reset_token(user_id: int) -> str:
    salt = current_app.config.get("SECURITY_PASSWORD_SALT", "pwd-reset")
    return _ts(salt).dumps({"uid": user_id})


def verify_reset_token(token: str) -> Optional[int]:
    salt = current_app.config.get("SECURITY_PASSWORD_SALT", "pwd-reset")
    max_age = current_app.config.get("PASSWORD_RESET_MAX_AGE", 3600)
    try:
        data = _ts(salt).loads(token, max_age=max_age)
        return int(data.get("uid"))
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None


def roles_required(*roles):
    """Allow the view only for authenticated users holding one of ``roles``.

    Stack it under ``@login_required`` so anonymous callers get 401 first.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in roles:
                abort(403)
            return view(*args, **kwargs)
        return wrapped
    return decorator
