"""
Tests for the Gemini triage adapter.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from nexus.exceptions import TriageError
from nexus.services.triage import GeminiTriage, consistency_warning, get_triage

LONG_WORK = "A careful, complete annotation that easily clears the minimum length check."


def _reply(text, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.raise_for_status.return_value = None
    resp.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return resp


@pytest.fixture
def gemini(app):
    return GeminiTriage(api_key="test-key", model="gemini-test", api_base="https://ai.example/v1beta", timeout=3)


class TestScore:
    """Tests for GeminiTriage.score."""

    def test_parses_verdict(self, gemini):
        body = json.dumps({"status": "approved", "score": 91, "reason": "Follows the guide."})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)) as post:
            result = gemini.score(LONG_WORK, {"title": "Batch"})

        assert result.ai_score == 91
        assert result.verdict == "APPROVED"
        assert result.ai_feedback == "Follows the guide."
        assert result.consistency_warning is False
        assert post.call_args.kwargs["timeout"] == 3
        assert post.call_args.kwargs["params"] == {"key": "test-key"}
        assert "gemini-test:generateContent" in post.call_args.args[0]

    def test_json_wrapped_in_prose(self, gemini):
        body = 'Sure! ```json\n{"status": "PENDING", "score": 60, "reason": "Unclear."}\n```'
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            result = gemini.score(LONG_WORK, {})

        assert result.ai_score == 60
        assert result.verdict == "PENDING"

    def test_score_clamped(self, gemini):
        body = json.dumps({"status": "APPROVED", "score": 140, "reason": "Great."})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            assert gemini.score(LONG_WORK, {}).ai_score == 100

    def test_short_content_with_high_score_warns(self, gemini):
        body = json.dumps({"status": "APPROVED", "score": 95, "reason": "Fine."})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            result = gemini.score("short", {})

        assert result.consistency_warning is True

    def test_missing_reason_gets_default(self, gemini):
        body = json.dumps({"status": "PENDING", "score": 50})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            assert gemini.score(LONG_WORK, {}).ai_feedback == "No reason provided by AI."

    def test_non_string_reason_is_stringified(self, gemini):
        body = json.dumps({"status": "PENDING", "score": 70, "reason": ["too", "short"]})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            result = gemini.score(LONG_WORK, {})

        assert isinstance(result.ai_feedback, str)
        assert "too" in result.ai_feedback


class TestFailures:
    """Every failure mode surfaces as TriageError."""

    def test_no_api_key(self, app):
        adapter = GeminiTriage(api_key="", model="m", api_base="https://ai.example")
        with patch("nexus.services.triage.requests.post") as post:
            with pytest.raises(TriageError):
                adapter.score(LONG_WORK, {})
        post.assert_not_called()

    def test_timeout(self, gemini):
        with patch("nexus.services.triage.requests.post", side_effect=requests.Timeout("slow")):
            with pytest.raises(TriageError):
                gemini.score(LONG_WORK, {})

    def test_not_json(self, gemini):
        with patch("nexus.services.triage.requests.post", return_value=_reply("I think it is fine.")):
            with pytest.raises(TriageError):
                gemini.score(LONG_WORK, {})

    def test_invalid_status(self, gemini):
        body = json.dumps({"status": "MAYBE", "score": 50, "reason": "?"})
        with patch("nexus.services.triage.requests.post", return_value=_reply(body)):
            with pytest.raises(TriageError):
                gemini.score(LONG_WORK, {})

    def test_no_candidates(self, gemini):
        resp = _reply("")
        resp.json.return_value = {"candidates": []}
        with patch("nexus.services.triage.requests.post", return_value=resp):
            with pytest.raises(TriageError):
                gemini.score(LONG_WORK, {})

    def test_null_reply_text(self, gemini):
        resp = _reply("")
        resp.json.return_value = {"candidates": [{"content": {"parts": [{"text": None}]}}]}
        with patch("nexus.services.triage.requests.post", return_value=resp):
            with pytest.raises(TriageError):
                gemini.score(LONG_WORK, {})

    def test_instructions_fall_back_to_empty(self, gemini):
        with patch("nexus.services.triage.requests.post", side_effect=requests.ConnectionError("down")):
            data = gemini.generate_instructions("Batch", "Chat_Sentiment")
        assert data == {"description": "", "detailedInstructions": ""}


class TestHelpers:
    """Tests for consistency_warning and get_triage."""

    def test_consistency_thresholds(self, app):
        assert consistency_warning(81, "x" * 49) is True
        assert consistency_warning(80, "x" * 10) is False
        assert consistency_warning(95, "x" * 50) is False
        assert consistency_warning(None, "") is False

    def test_adapter_built_from_config(self, app):
        app.config["GEMINI_MODEL"] = "gemini-custom"
        adapter = get_triage()
        assert isinstance(adapter, GeminiTriage)
        assert adapter.model == "gemini-custom"
        assert get_triage() is adapter
