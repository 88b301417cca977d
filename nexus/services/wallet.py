# nexus/services/wallet.py
"""Earnings ledger: credits on approval, tier upkeep, payout requests."""
import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import func, update

from ..exceptions import AlreadyReviewedError, InsufficientBalanceError, NexusError, ValidationError
from ..extensions import db
from ..models.payout import PayoutRequest
from ..models.submission import Submission, APPROVED, REQUESTED
from ..models.user import User
from .audit import record_admin_action
from .email_service import send_email
from .notifications import notify

log = logging.getLogger(__name__)

PAYOUT_DECISIONS = ("Completed", "Rejected")


def payment_for(project, time_spent_minutes=None) -> float:
    if project.payment_type == "HOURLY":
        return round((project.pay_rate or 0) / 60 * int(time_spent_minutes or 0), 2)
    return round(project.pay_rate or 0, 2)


def compute_tier(approval_rate: float, thresholds=None) -> str:
    thresholds = thresholds or current_app.config["TIER_THRESHOLDS"]
    for tier, floor in thresholds:
        if approval_rate >= floor:
            return tier
    return "Bronze"


def record_outcome(user: User, approved: bool) -> None:
    user.total_submissions_count = (user.total_submissions_count or 0) + 1
    if approved:
        user.approved_submissions_count = (user.approved_submissions_count or 0) + 1
    user.approval_rate = user.approved_submissions_count / user.total_submissions_count * 100
    user.tier = compute_tier(user.approval_rate)


def hold_pending(submission: Submission) -> None:
    """Count a fresh submission's amount as pending review."""
    db.session.execute(
        update(User)
        .where(User.id == submission.user_id)
        .values(wallet_pending_review=User.wallet_pending_review + submission.payment_amount)
    )


def on_approved(submission: Submission) -> None:
    amount = submission.payment_amount or 0.0
    db.session.flush()
    db.session.execute(
        update(User)
        .where(User.id == submission.user_id)
        .values(
            wallet_available=User.wallet_available + amount,
            wallet_pending_review=User.wallet_pending_review - amount,
        )
    )
    db.session.refresh(submission.user)
    record_outcome(submission.user, approved=True)
    log.info("Credited %.2f to user %s for submission %s (tier=%s)",
             amount, submission.user_id, submission.id, submission.user.tier)


def on_rejected(submission: Submission) -> None:
    db.session.flush()
    db.session.execute(
        update(User)
        .where(User.id == submission.user_id)
        .values(wallet_pending_review=User.wallet_pending_review - (submission.payment_amount or 0.0))
    )
    db.session.refresh(submission.user)
    record_outcome(submission.user, approved=False)


def request_payout(user: User) -> PayoutRequest:
    db.session.refresh(user)
    seen = user.wallet_available or 0.0
    amount = round(seen, 2)
    if amount <= 0:
        raise InsufficientBalanceError("You have no available funds to withdraw")

    # zero the balance only if nobody moved it since we read it
    result = db.session.execute(
        update(User)
        .where(User.id == user.id, User.wallet_available == seen)
        .values(wallet_available=0.0)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise NexusError("Your balance changed while requesting the payout. Please retry.", 409)

    payout = PayoutRequest(
        user_id=user.id,
        amount=amount,
        status="Pending",
        payment_details=f"{user.payment_method}: {user.payment_identifier or ''}".strip(),
    )
    db.session.add(payout)
    db.session.flush()

    (Submission.query
        .filter_by(user_id=user.id, status=APPROVED)
        .update({Submission.status: REQUESTED, Submission.payout_request_id: payout.id},
                synchronize_session=False))
    db.session.commit()
    db.session.refresh(user)
    log.info("Payout request %s created for user %s (%.2f)", payout.id, user.id, amount)
    return payout


def review_payout(payout: PayoutRequest, status: str, admin: User, feedback: str | None = None) -> PayoutRequest:
    if status not in PAYOUT_DECISIONS:
        raise ValidationError('status must be either "Completed" or "Rejected"')

    values = {"status": status, "reviewed_by": admin.id, "reviewed_at": datetime.utcnow()}
    if feedback is not None:
        values["admin_feedback"] = feedback
    result = db.session.execute(
        update(PayoutRequest)
        .where(PayoutRequest.id == payout.id, PayoutRequest.status == "Pending")
        .values(**values)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise AlreadyReviewedError(f"Payout request has already been {payout.status.lower()}.")

    if status == "Rejected":
        # money goes back to the freelancer's available balance
        db.session.execute(
            update(User)
            .where(User.id == payout.user_id)
            .values(wallet_available=User.wallet_available + payout.amount)
        )
        (Submission.query
            .filter_by(payout_request_id=payout.id, status=REQUESTED)
            .update({Submission.status: APPROVED, Submission.payout_request_id: None},
                    synchronize_session=False))

    db.session.refresh(payout)
    record_admin_action(
        admin.id,
        "PAYOUT_COMPLETED" if status == "Completed" else "PAYOUT_REJECTED",
        "PayoutRequest",
        payout.id,
        {"amount": payout.amount, "userId": payout.user_id, "feedback": feedback},
    )
    if status == "Completed":
        notify(payout.user, f"Your payout request of ${payout.amount:.2f} has been processed and completed.",
               type="success", link="/wallet")
    else:
        notify(payout.user, f"Your payout request of ${payout.amount:.2f} has been rejected. "
                            f"The amount was returned to your available balance.",
               type="error", link="/wallet")
    db.session.commit()

    send_email(
        to=payout.user.email,
        subject=(f"Payout Processed: Your request for ${payout.amount:.2f} has been approved!"
                 if status == "Completed" else f"Payout Request Rejected for ${payout.amount:.2f}"),
        template="payout_reviewed.html",
        user=payout.user,
        payout=payout,
    )
    return payout


def wallet_summary(user: User) -> dict:
    pending_payouts = (
        db.session.query(func.coalesce(func.sum(PayoutRequest.amount), 0.0))
        .filter(PayoutRequest.user_id == user.id, PayoutRequest.status == "Pending")
        .scalar()
    )
    return {
        "available": round(user.wallet_available or 0.0, 2),
        "pendingReview": round(max(user.wallet_pending_review or 0.0, 0.0), 2),
        "pendingPayouts": round(float(pending_payouts or 0.0), 2),
        "paymentMethod": user.payment_method,
        "paymentIdentifier": user.payment_identifier,
    }
