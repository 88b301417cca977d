from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

# Import route modules to register their endpoints
from . import analytics       # noqa: E402,F401
from . import audit_logs      # noqa: E402,F401
from . import qualification   # noqa: E402,F401
from . import tasks           # noqa: E402,F401
