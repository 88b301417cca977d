from flask import jsonify
from flask_login import login_required

from ...security import roles_required
from ...services import analytics
from . import admin_bp


@admin_bp.get('/analytics/dashboard-stats')
@login_required
@roles_required('Admin')
def dashboard_stats():
    return jsonify(analytics.dashboard_stats())


@admin_bp.get('/analytics/project-performance')
@login_required
@roles_required('Admin')
def project_performance():
    data = analytics.project_performance()
    return jsonify({"count": len(data), "data": data})


@admin_bp.get('/analytics/freelancer-performance')
@login_required
@roles_required('Admin')
def freelancer_performance():
    data = analytics.freelancer_performance()
    return jsonify({"count": len(data), "data": data})
