# nexus/blueprints/wallet/routes.py
from flask import jsonify
from flask_login import login_required, current_user
from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, AnyOf, Optional as Opt

from ...extensions import db
from ...models.payout import PayoutRequest
from ...security import roles_required
from ...services import wallet
from ..utils import validated
from . import wallet_bp


class PayoutReviewForm(FlaskForm):
    status = StringField("Status", validators=[DataRequired(), AnyOf(wallet.PAYOUT_DECISIONS)])
    adminFeedback = TextAreaField("Feedback", validators=[Opt()])


@wallet_bp.get("")
@login_required
def summary():
    return jsonify(wallet.wallet_summary(current_user))


@wallet_bp.post("/payout")
@login_required
def request_payout():
    payout = wallet.request_payout(current_user)
    return jsonify({"msg": "Payout request submitted successfully.", "payoutRequest": payout.to_dict()}), 201


@wallet_bp.get("/payouts")
@login_required
def payout_history():
    rows = current_user.payout_requests.order_by(PayoutRequest.created_at.desc()).all()
    return jsonify([p.to_dict() for p in rows])


# -----------------
# Admin
# -----------------

@wallet_bp.get("/admin/pending")
@login_required
@roles_required("Admin")
def pending_payouts():
    rows = PayoutRequest.query.filter_by(status="Pending").order_by(PayoutRequest.created_at.asc()).all()
    return jsonify([p.to_dict(with_user=True) for p in rows])


@wallet_bp.route("/admin/review/<int:payout_id>", methods=["POST", "PUT"])
@login_required
@roles_required("Admin")
def review_payout(payout_id):
    form = validated(PayoutReviewForm)
    payout = db.get_or_404(PayoutRequest, payout_id, description="Payout request not found.")
    wallet.review_payout(payout, form.status.data, current_user, feedback=form.adminFeedback.data or None)
    return jsonify({"msg": f"Payout request {payout.status.lower()}.", "payoutRequest": payout.to_dict(with_user=True)})
