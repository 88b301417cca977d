"""
Tests for admin review, single and bulk.
"""
from unittest.mock import patch

import pytest

from nexus.exceptions import AlreadyReviewedError, ValidationError
from nexus.extensions import db
from nexus.models.audit import AuditLog
from nexus.models.submission import APPROVED, REJECTED
from nexus.models.user import Notification
from nexus.services.intake import submit
from nexus.services.review import bulk_review, review_submission

WORK = "The user is frustrated; the assistant stays polite. Sentiment: negative overall."


class TestReviewSubmission:
    """Tests for review_submission."""

    def test_approve_credits_wallet_once(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(pay_rate=20.0), freelancer, WORK)

        with patch("nexus.services.review.send_email") as send:
            review_submission(sub, "Approved", admin, feedback="Nice work")

        db.session.refresh(freelancer)
        assert sub.status == APPROVED
        assert sub.admin_feedback == "Nice work"
        assert sub.reviewed_by == admin.id
        assert sub.review_timestamp is not None
        assert freelancer.wallet_available == 20.0
        assert freelancer.wallet_pending_review == 0.0
        assert freelancer.approval_rate == 100.0
        assert freelancer.tier == "Elite"
        send.assert_called_once()
        assert send.call_args.kwargs["template"] == "submission_reviewed.html"

    def test_reject_releases_pending(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(), freelancer, WORK)

        review_submission(sub, "Rejected", admin, feedback="Wrong label")

        db.session.refresh(freelancer)
        assert sub.status == REJECTED
        assert freelancer.wallet_available == 0.0
        assert freelancer.wallet_pending_review == 0.0
        assert freelancer.approval_rate == 0.0
        assert freelancer.tier == "Bronze"
        note = Notification.query.filter_by(user_id=freelancer.id).first()
        assert note.type == "error"
        assert note.link == f"/task/{sub.id}"

    def test_second_review_is_refused(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(), freelancer, WORK)
        review_submission(sub, "Approved", admin)

        with pytest.raises(AlreadyReviewedError):
            review_submission(sub, "Rejected", admin)

        db.session.refresh(freelancer)
        assert sub.status == APPROVED
        assert freelancer.wallet_available == 20.0
        assert freelancer.total_submissions_count == 1

    def test_invalid_decision(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(), freelancer, WORK)

        with pytest.raises(ValidationError):
            review_submission(sub, "Maybe", admin)

    def test_audit_entry_written(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(), freelancer, WORK)

        review_submission(sub, "Approved", admin)

        log = AuditLog.query.filter_by(action_type="SUBMISSION_APPROVED").one()
        assert log.user_id == admin.id
        assert log.resource_id == sub.id
        assert log.details["oldStatus"] == "Pending"
        assert log.details["newStatus"] == "Approved"
        assert log.details["userId"] == freelancer.id

    def test_tier_follows_approval_rate(self, make_project, freelancer, admin, triage):
        project = make_project()
        subs = [submit(project, freelancer, WORK) for _ in range(4)]
        for sub in subs[:3]:
            review_submission(sub, "Approved", admin)
        review_submission(subs[3], "Rejected", admin)

        db.session.refresh(freelancer)
        assert freelancer.approval_rate == 75.0
        assert freelancer.tier == "Silver"
        assert freelancer.wallet_available == 60.0


class TestBulkReview:
    """Tests for bulk_review."""

    def test_terminal_items_fail_others_succeed(self, make_project, freelancer, admin, triage):
        project = make_project()
        subs = [submit(project, freelancer, WORK) for _ in range(5)]
        review_submission(subs[0], "Rejected", admin)

        result = bulk_review([s.id for s in subs], "Approved", admin)

        assert result.processed_count == 4
        assert result.failed_count == 1
        assert result.errors[0]["submissionId"] == subs[0].id
        db.session.refresh(freelancer)
        assert freelancer.wallet_available == 80.0
        assert AuditLog.query.filter_by(action_type="SUBMISSION_APPROVED").count() == 4

    def test_unknown_and_invalid_ids(self, make_project, freelancer, admin, triage):
        sub = submit(make_project(), freelancer, WORK)

        result = bulk_review([sub.id, 9999, "abc"], "Rejected", admin)

        assert result.to_dict()["processedCount"] == 1
        assert result.to_dict()["failedCount"] == 2
        assert {e["submissionId"] for e in result.errors} == {9999, "abc"}

    def test_empty_list_rejected(self, admin):
        with pytest.raises(ValidationError):
            bulk_review([], "Approved", admin)
