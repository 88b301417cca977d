# nexus/services/triage.py
"""
AI quality triage for freelancer submissions.

The adapter talks to the Gemini ``generateContent`` REST endpoint and turns
the model's reply into a :class:`TriageResult`. Anything that goes wrong
(no key, network, timeout, garbage reply) raises :class:`TriageError`; the
intake catches it and leaves the submission for a human reviewer.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests
from flask import current_app

from ..exceptions import TriageError

log = logging.getLogger(__name__)

VERDICTS = ("APPROVED", "REJECTED", "PENDING")

_JSON_OBJECT = re.compile(r"\{.*\}", re.S)

QUALITY_PROMPT = """You are an AI Quality Assurance agent for a data annotation platform called Nexus AI.
Your role is to review a user's submission against a set of project instructions.
You must respond with a JSON object in the format:
{{"status": "APPROVED" | "REJECTED" | "PENDING", "score": <integer 0-100>, "reason": "A brief, one-sentence explanation for your decision."}}
- APPROVED: The submission perfectly follows all instructions.
- REJECTED: The submission clearly violates the instructions or is low quality.
- PENDING: The submission is good but not perfect, or it is too complex for you to judge. It needs human review.
Your response must be *only* the JSON object, with no other text.

--- PROJECT INSTRUCTIONS ---
{criteria}
--- END OF INSTRUCTIONS ---

--- USER SUBMISSION ---
{content}
--- END OF SUBMISSION ---"""

INSTRUCTIONS_PROMPT = """You are an expert Project Manager at Nexus AI.
You will be given a project TITLE and TASK TYPE.
Generate a clear, concise 'description' (1-2 sentences) and detailed, step-by-step 'detailedInstructions' for the freelancers.
The instructions must be formatted as simple HTML (use <ul>, <li>, <p>, <strong> tags).
Respond with ONLY a valid JSON object in the format: {{"description": "...", "detailedInstructions": "..."}}

Project Title: {title}
Task Type: {task_type}"""


@dataclass(frozen=True)
class TriageResult:
    ai_score: Optional[int]
    ai_feedback: str
    consistency_warning: bool
    verdict: str = "PENDING"


def consistency_warning(score: Optional[int], content: str) -> bool:
    """High score on suspiciously short work is flagged for a human."""
    if score is None:
        return False
    floor = current_app.config.get("CONSISTENCY_SCORE_FLOOR", 80)
    min_chars = current_app.config.get("CONSISTENCY_MIN_CHARS", 50)
    return score > floor and len(content or "") < min_chars


def _extract_json(raw: str) -> dict:
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        raise TriageError(f"AI response was not valid JSON: {raw[:200]!r}")
    try:
        data = json.loads(match.group(0))
    except ValueError as e:
        raise TriageError(f"AI failed to parse response: {e}") from e
    if not isinstance(data, dict):
        raise TriageError("AI response was not a JSON object")
    return data


class GeminiTriage:
    def __init__(self, api_key: str, model: str, api_base: str, timeout: float = 15.0):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "GeminiTriage":
        return cls(
            api_key=config.get("GEMINI_API_KEY", ""),
            model=config.get("GEMINI_MODEL", "gemini-1.5-flash"),
            api_base=config.get("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"),
            timeout=config.get("AI_TRIAGE_TIMEOUT", 15.0),
        )

    def _generate(self, prompt: str, temperature: float, max_tokens: int) -> str:
        if not self.api_key:
            raise TriageError("GEMINI_API_KEY is not set")
        try:
            r = requests.post(
                f"{self.api_base}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json={
                    "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                    "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
                },
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
            log.info("Gemini generateContent status=%s", r.status_code)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise TriageError(f"Gemini request failed: {e}") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise TriageError("Gemini returned no candidates") from e
        if not isinstance(text, str):
            raise TriageError("Gemini returned an empty reply")
        return text.strip()

    def score(self, content: str, context: dict) -> TriageResult:
        prompt = QUALITY_PROMPT.format(
            criteria=json.dumps(context, indent=2, default=str),
            content=content,
        )
        payload = _extract_json(self._generate(prompt, temperature=0.2, max_tokens=200))

        verdict = str(payload.get("status") or "PENDING").upper()
        if verdict not in VERDICTS:
            raise TriageError(f"AI returned an invalid status: {verdict}")

        raw_score = payload.get("score")
        try:
            ai_score = None if raw_score is None else max(0, min(100, int(round(float(raw_score)))))
        except (TypeError, ValueError) as e:
            raise TriageError(f"AI returned an invalid score: {raw_score!r}") from e

        reason = str(payload.get("reason") or "No reason provided by AI.")
        return TriageResult(
            ai_score=ai_score,
            ai_feedback=reason,
            consistency_warning=consistency_warning(ai_score, content),
            verdict=verdict,
        )

    def generate_instructions(self, title: str, task_type: str) -> dict:
        try:
            raw = self._generate(
                INSTRUCTIONS_PROMPT.format(title=title, task_type=task_type),
                temperature=0.5,
                max_tokens=2000,
            )
            data = _extract_json(raw)
        except TriageError as e:
            log.warning("Instruction generation failed: %s", e)
            return {"description": "", "detailedInstructions": ""}
        return {
            "description": data.get("description", ""),
            "detailedInstructions": data.get("detailedInstructions", ""),
        }


def get_triage():
    """Adapter registered on the app, built from config on first use."""
    ext = current_app.extensions
    if "nexus.triage" not in ext:
        ext["nexus.triage"] = GeminiTriage.from_config(current_app.config)
    return ext["nexus.triage"]
