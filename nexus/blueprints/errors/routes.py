import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from ...exceptions import NexusError
from ...extensions import db
from . import errors_bp

log = logging.getLogger(__name__)


# Domain errors raised by the services layer
@errors_bp.app_errorhandler(NexusError)
def err_domain(e: NexusError):
    db.session.rollback()
    log.info("%s on %s %s: %s", type(e).__name__, request.method, request.path, e.message)
    return jsonify({"msg": e.message}), e.status_code


# 401 – Unauthorized
@errors_bp.app_errorhandler(401)
def err_401(e):
    return jsonify({"msg": "Authentication required."}), 401


# 403 – Forbidden
@errors_bp.app_errorhandler(403)
def err_403(e):
    return jsonify({"msg": "Access denied."}), 403


# 404 – Not Found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return jsonify({"msg": e.description or "Not found", "path": request.path}), 404


# Fallback for any other HTTPException (405, 413, ...)
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return jsonify({"msg": e.description, "name": e.name}), e.code


# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    db.session.rollback()
    log.exception("Unhandled error on %s %s", request.method, request.path)
    # Don't leak internals
    return jsonify({"msg": "Server Error"}), 500
