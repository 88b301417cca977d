from flask import Blueprint

qualification_bp = Blueprint('qualification', __name__)

from . import routes  # noqa: E402,F401
