# nexus/services/analytics.py
"""Admin dashboard numbers, computed with grouped SQL aggregates."""
from sqlalchemy import case, func

from ..extensions import db
from ..models.payout import PayoutRequest
from ..models.project import Project
from ..models.submission import Submission, APPROVED_STATUSES, PENDING, REJECTED
from ..models.user import User


def _rate(approved, total) -> float:
    return round(approved / total * 100, 2) if total else 0.0


def dashboard_stats() -> dict:
    return {
        "totalProjects": db.session.query(func.count(Project.id)).scalar(),
        "pendingSubmissions": Submission.query.filter_by(status=PENDING).count(),
        "totalApplicants": User.query.filter_by(role="Applicant", status="Pending").count(),
        "pendingPayouts": PayoutRequest.query.filter_by(status="Pending").count(),
    }


def project_performance() -> list[dict]:
    approved = Submission.status.in_(APPROVED_STATUSES)
    rows = (
        db.session.query(
            Project,
            func.count(Submission.id).label("total"),
            func.coalesce(func.sum(case((approved, 1), else_=0)), 0).label("approved"),
            func.coalesce(func.sum(case((Submission.status == REJECTED, 1), else_=0)), 0).label("rejected"),
            func.coalesce(func.sum(case((Submission.status == PENDING, 1), else_=0)), 0).label("pending"),
            func.coalesce(func.sum(case((approved, Submission.payment_amount), else_=0.0)), 0.0).label("paid"),
        )
        .outerjoin(Submission, Submission.project_id == Project.id)
        .group_by(Project.id)
        .all()
    )

    data = []
    for project, total, n_approved, n_rejected, n_pending, paid in rows:
        data.append({
            "projectId": project.id,
            "title": project.title,
            "payRate": project.pay_rate,
            "paymentType": project.payment_type,
            "projectDomain": project.project_domain,
            "status": project.status,
            "totalSubmissions": total,
            "approvedSubmissions": int(n_approved),
            "rejectedSubmissions": int(n_rejected),
            "pendingSubmissions": int(n_pending),
            "totalPaid": round(float(paid), 2),
            "approvalRate": _rate(int(n_approved), total),
        })
    data.sort(key=lambda d: d["totalPaid"], reverse=True)
    return data


def freelancer_performance(limit: int = 10) -> list[dict]:
    """Top freelancers by earnings over reviewed submissions."""
    approved = Submission.status.in_(APPROVED_STATUSES)
    n_approved = func.sum(case((approved, 1), else_=0))
    n_rejected = func.sum(case((Submission.status == REJECTED, 1), else_=0))
    earnings = func.coalesce(func.sum(case((approved, Submission.payment_amount), else_=0.0)), 0.0)

    rows = (
        db.session.query(User, n_approved, n_rejected, earnings.label("earnings"))
        .join(Submission, Submission.user_id == User.id)
        .filter(Submission.status != PENDING)
        .group_by(User.id)
        .order_by(earnings.desc())
        .limit(limit)
        .all()
    )

    data = []
    for user, a, r, total in rows:
        a, r = int(a or 0), int(r or 0)
        data.append({
            "userId": user.id,
            "name": user.full_name,
            "email": user.email,
            "tier": user.tier or "Bronze",
            "approvedSubmissions": a,
            "rejectedSubmissions": r,
            "totalCompleted": a + r,
            "approvalRate": _rate(a, a + r),
            "totalEarnings": round(float(total), 2),
        })
    return data
