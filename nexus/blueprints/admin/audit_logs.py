from flask import jsonify, request
from flask_login import login_required

from ...models.audit import AuditLog
from ...security import roles_required
from ..utils import page_args
from . import admin_bp


@admin_bp.get('/audit-logs')
@login_required
@roles_required('Admin')
def audit_logs():
    page, limit = page_args(default_limit=50)
    q = AuditLog.query
    action = (request.args.get('actionType') or '').strip()
    if action:
        q = q.filter(AuditLog.action_type == action)
    resource = (request.args.get('resourceType') or '').strip()
    if resource:
        q = q.filter(AuditLog.resource_type == resource)

    total = q.count()
    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify({
        "logs": [r.to_dict() for r in rows],
        "currentPage": page,
        "totalPages": (total + limit - 1) // limit,
        "totalLogs": total,
    })
