from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionType = Literal["behavioral", "technical", "situational"]
Priority = Literal["high", "medium", "low"]
Speaker = Literal["interviewer", "candidate"]
AnswerCategory = Literal["written", "verbal"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


def _clamp(value: Any, *, field: str, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be numeric") from exc
    return max(low, min(high, number))


class KeywordDensity(FrozenModel):
    term: str
    count: int = 0


class Recommendation(FrozenModel):
    priority: Priority = "medium"
    suggestion: str
    location: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class FitAnalysis(FrozenModel):
    match_score: int
    missing_keywords: tuple[str, ...] = ()
    keyword_density: tuple[KeywordDensity, ...] = ()
    formatting_issues: tuple[str, ...] = ()
    skills_gap: tuple[str, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp_match_score(cls, value: Any) -> int:
        return round(_clamp(value, field="match_score", low=0, high=100))


class ArtifactVersion(FrozenModel):
    id: str
    name: str
    content: str


class ArtifactBatch(FrozenModel):
    versions: tuple[ArtifactVersion, ...] = ()


class InterviewQuestion(FrozenModel):
    type: QuestionType
    question: str
    why_asked: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class QuestionBatch(FrozenModel):
    questions: tuple[InterviewQuestion, ...] = ()


class AnswerFeedback(FrozenModel):
    score: float
    strengths: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()
    model_answer: str = ""
    specific_feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> float:
        return _clamp(value, field="score", low=0, high=10)


class CandidateQuestionFeedback(FrozenModel):
    score: float
    assessment: str = ""
    improved_question: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> float:
        return _clamp(value, field="score", low=0, high=10)


class Identity(FrozenModel):
    email: str
    name: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
