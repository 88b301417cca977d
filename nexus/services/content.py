# nexus/services/content.py
"""
Submission content, parsed per task type.

Model comparison work arrives as a JSON document; every other task type is
free text. The stored column keeps the canonical string either way.
"""
import json
from dataclasses import asdict, dataclass
from typing import Optional, Union

from ..exceptions import ValidationError


@dataclass(frozen=True)
class AnnotationContent:
    text: str

    def canonical(self) -> str:
        return self.text


@dataclass(frozen=True)
class EvaluationContent:
    text: str

    def canonical(self) -> str:
        return self.text


@dataclass(frozen=True)
class ModelAnswer:
    input: str
    response: str
    rating: Optional[str]


@dataclass(frozen=True)
class ComparisonContent:
    chat_gpt: ModelAnswer
    gemini: ModelAnswer
    best_model: str
    reasoning: str

    def canonical(self) -> str:
        return json.dumps({
            "chatGpt": asdict(self.chat_gpt),
            "gemini": asdict(self.gemini),
            "comparison": {"bestModel": self.best_model, "reasoning": self.reasoning},
        }, indent=2)


SubmissionContent = Union[AnnotationContent, EvaluationContent, ComparisonContent]


def _model_answer(block, name: str) -> ModelAnswer:
    if not isinstance(block, dict):
        raise ValidationError(f'Comparison content needs a "{name}" object.')
    return ModelAnswer(
        input=str(block.get("input") or ""),
        response=str(block.get("response") or ""),
        rating=None if block.get("rating") in (None, "") else str(block.get("rating")),
    )


def _parse_comparison(raw: str) -> ComparisonContent:
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError("Model comparison content must be a JSON document.")
    if not isinstance(data, dict):
        raise ValidationError("Model comparison content must be a JSON object.")

    comparison = data.get("comparison") or {}
    if not isinstance(comparison, dict):
        raise ValidationError('Model comparison needs a "comparison" object.')
    best = str(comparison.get("bestModel") or "").strip()
    if not best:
        raise ValidationError("Model comparison must name the best model.")
    return ComparisonContent(
        chat_gpt=_model_answer(data.get("chatGpt"), "chatGpt"),
        gemini=_model_answer(data.get("gemini"), "gemini"),
        best_model=best,
        reasoning=str(comparison.get("reasoning") or ""),
    )


def parse_content(task_type: str, raw) -> SubmissionContent:
    if isinstance(raw, (dict, list)):
        raw = json.dumps(raw)
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Submission content is required and cannot be empty.")
    raw = raw.strip()

    if task_type == "Model_Comparison":
        return _parse_comparison(raw)
    if task_type in ("Code_Evaluation", "Text_Classification"):
        return EvaluationContent(raw)
    return AnnotationContent(raw)
