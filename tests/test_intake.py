"""
Tests for submission intake and AI triage outcomes.
"""
import json
from unittest.mock import MagicMock, patch

import pytest

from nexus.exceptions import QuotaExceededError, RepeatSubmissionError, ValidationError
from nexus.extensions import db
from nexus.models.submission import APPROVED, PENDING, REJECTED, TRIAGE_APPROVED, TRIAGE_PENDING, Submission
from nexus.services.assignment import assign_next_task
from nexus.services.intake import SKIPPED_FEEDBACK, submit
from nexus.services.review import review_submission
from nexus.services.triage import GeminiTriage


WORK = "The user is frustrated; the assistant stays polite. Sentiment: negative overall."


class TestValidation:
    """Input checks that run before anything is persisted."""

    def test_empty_content_rejected(self, make_project, freelancer, triage):
        project = make_project()

        with pytest.raises(ValidationError):
            submit(project, freelancer, "   ")
        assert triage.calls == []

    def test_hourly_needs_minutes(self, make_project, freelancer, triage):
        project = make_project(payment_type="HOURLY", pay_rate=30.0)

        with pytest.raises(ValidationError):
            submit(project, freelancer, WORK)
        with pytest.raises(ValidationError):
            submit(project, freelancer, WORK, time_spent_minutes=0)

    def test_hourly_payment_is_prorated(self, make_project, freelancer, triage):
        project = make_project(payment_type="HOURLY", pay_rate=30.0)

        sub = submit(project, freelancer, WORK, time_spent_minutes="45")

        assert sub.payment_amount == 22.5
        assert sub.time_spent_minutes == 45

    def test_zero_payment_rejected(self, make_project, freelancer, triage):
        project = make_project(pay_rate=0.0)

        with pytest.raises(ValidationError):
            submit(project, freelancer, WORK)

    def test_comparison_needs_best_model(self, make_project, freelancer, triage):
        project = make_project(task_type="Model_Comparison")

        with pytest.raises(ValidationError):
            submit(project, freelancer, {"chatGpt": {}, "gemini": {}, "comparison": {}})


class TestLimits:
    """Repeat and quota rules."""

    def test_non_repeatable_blocks_second_submission(self, make_project, freelancer, admin, triage):
        project = make_project(is_repeatable=False)
        first = submit(project, freelancer, WORK)
        review_submission(first, "Rejected", admin)

        with pytest.raises(RepeatSubmissionError):
            submit(project, freelancer, WORK)

    def test_quota_counts_non_rejected(self, make_project, make_user, admin, triage):
        project = make_project(max_total_submissions=2)
        rejected = submit(project, make_user(), WORK)
        review_submission(rejected, "Rejected", admin)
        submit(project, make_user(), WORK)
        submit(project, make_user(), WORK)

        with pytest.raises(QuotaExceededError) as exc:
            submit(project, make_user(), WORK)
        assert exc.value.status_code == 403


class TestPoolEntries:
    """taskIndex must point at the caller's own open entry."""

    def test_index_required_for_pool(self, make_project, freelancer, triage):
        project = make_project(pool=["a", "b"])

        with pytest.raises(ValidationError):
            submit(project, freelancer, WORK)

    def test_entry_of_another_user_rejected(self, make_project, make_user, triage):
        project = make_project(pool=["a", "b"])
        owner, other = make_user(), make_user()
        assign_next_task(project, owner)

        with pytest.raises(ValidationError):
            submit(project, other, WORK, task_index=0)

    def test_entry_submitted_once(self, make_project, freelancer, triage):
        project = make_project(pool=["a", "b"])
        task = assign_next_task(project, freelancer)

        sub = submit(project, freelancer, WORK, task_index=task.index)
        assert sub.task_pool_entry_id == task.entry.id
        assert triage.calls[0][1]["taskContent"] == "a"

        with pytest.raises(ValidationError):
            submit(project, freelancer, WORK, task_index=task.index)


class TestTriageOutcome:
    """What the AI result does to a new submission."""

    def test_mid_score_waits_for_review(self, make_project, freelancer, triage):
        project = make_project()
        triage.set(80, verdict="PENDING")

        sub = submit(project, freelancer, WORK)

        assert sub.status == PENDING
        assert sub.triage_status == TRIAGE_PENDING
        assert sub.ai_score == 80
        db.session.refresh(freelancer)
        assert freelancer.wallet_pending_review == 20.0
        assert freelancer.wallet_available == 0.0

    def test_high_score_auto_approves(self, make_project, freelancer, triage):
        project = make_project()
        triage.set(99, verdict="APPROVED")

        sub = submit(project, freelancer, WORK)

        assert sub.status == APPROVED
        assert sub.triage_status == TRIAGE_APPROVED
        assert sub.reviewed_by is None
        db.session.refresh(freelancer)
        assert freelancer.wallet_available == 20.0
        assert freelancer.wallet_pending_review == 0.0
        assert freelancer.approved_submissions_count == 1

    def test_consistency_warning_blocks_auto_approval(self, make_project, freelancer, triage):
        project = make_project()
        triage.set(99, warning=True, verdict="APPROVED")

        sub = submit(project, freelancer, "ok")

        assert sub.status == PENDING
        assert sub.consistency_warning is True

    def test_model_rejection_is_advisory(self, make_project, freelancer, triage):
        project = make_project()
        triage.set(10, verdict="REJECTED", feedback="Off topic.")

        sub = submit(project, freelancer, WORK)

        assert sub.status == PENDING
        assert sub.ai_verdict == "REJECTED"
        assert sub.ai_feedback == "Off topic."

    def test_triage_failure_leaves_submission_pending(self, make_project, freelancer, triage):
        project = make_project()
        triage.fail()

        sub = submit(project, freelancer, WORK)

        assert sub.id is not None
        assert sub.status == PENDING
        assert sub.ai_score is None
        assert sub.ai_feedback == SKIPPED_FEEDBACK

    def test_adapter_crash_keeps_submission(self, make_project, freelancer, triage):
        project = make_project()
        triage.error = RuntimeError("unexpected adapter bug")

        sub = submit(project, freelancer, WORK)

        assert Submission.query.count() == 1
        assert sub.status == PENDING
        assert sub.ai_score is None
        assert sub.ai_feedback == SKIPPED_FEEDBACK
        db.session.refresh(freelancer)
        assert freelancer.wallet_pending_review == 20.0

    def test_malformed_gemini_reason_keeps_submission(self, app, make_project, freelancer):
        app.extensions["nexus.triage"] = GeminiTriage(api_key="test-key", model="m", api_base="https://ai.example")
        project = make_project()
        reply = MagicMock()
        reply.status_code = 200
        reply.json.return_value = {"candidates": [{"content": {"parts": [
            {"text": json.dumps({"status": "PENDING", "score": 70, "reason": ["vague", "answer"]})},
        ]}}]}

        with patch("nexus.services.triage.requests.post", return_value=reply):
            sub = submit(project, freelancer, WORK)

        assert Submission.query.count() == 1
        assert sub.status == PENDING
        assert sub.ai_score == 70
        assert "vague" in sub.ai_feedback


class TestScoringTransaction:
    """The submission is saved before the AI is consulted."""

    def test_submission_saved_before_scoring(self, make_project, freelancer, triage):
        project = make_project()
        seen = []

        def score(content, context):
            db.session.rollback()
            seen.append(Submission.query.filter_by(user_id=freelancer.id).count())
            return triage.result

        triage.score = score
        sub = submit(project, freelancer, WORK)

        assert seen == [1]
        assert sub.status == PENDING
        db.session.refresh(freelancer)
        assert freelancer.wallet_pending_review == 20.0

    def test_review_during_scoring_wins(self, make_project, freelancer, admin, triage):
        project = make_project()
        triage.set(99, verdict="APPROVED")

        def score(content, context):
            pending = Submission.query.filter_by(user_id=freelancer.id).one()
            review_submission(pending, REJECTED, admin)
            return triage.result

        triage.score = score
        sub = submit(project, freelancer, WORK)

        assert sub.status == REJECTED
        assert sub.ai_score == 99
        db.session.refresh(freelancer)
        assert freelancer.wallet_available == 0.0
        assert freelancer.wallet_pending_review == 0.0
