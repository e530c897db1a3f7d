"""Session data model.

A ``Session`` is frozen: every change goes through :func:`evolve` (or one of
the helpers built on it) and produces a new, fully re-validated value. The
previous value stays intact, so a failed merge can never leave a half
updated session behind.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import Field, model_validator

from careercoach.errors import ValidationError
from careercoach.types import (
    AnswerCategory,
    AnswerFeedback,
    ArtifactVersion,
    CandidateQuestionFeedback,
    FitAnalysis,
    FrozenModel,
    InterviewQuestion,
    Speaker,
)


class AnswerRecord(FrozenModel):
    question_index: int
    answer: str
    feedback: AnswerFeedback | None = None


class CandidateQuestionRecord(FrozenModel):
    question: str
    feedback: CandidateQuestionFeedback | None = None


class Utterance(FrozenModel):
    speaker: Speaker
    text: str


class Session(FrozenModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    resume_text: str = ""
    job_description: str = ""
    job_url: str | None = None
    file_name: str = ""
    analysis: FitAnalysis | None = None
    optimized_resumes: tuple[ArtifactVersion, ...] = ()
    selected_resume_index: int = 0
    cover_letters: tuple[ArtifactVersion, ...] = ()
    selected_cover_letter_index: int = 0
    questions: tuple[InterviewQuestion, ...] = ()
    written_answers: tuple[AnswerRecord, ...] = ()
    verbal_answers: tuple[AnswerRecord, ...] = ()
    candidate_questions: tuple[CandidateQuestionRecord, ...] = ()
    mock_transcript: tuple[Utterance, ...] = ()
    mock_feedback: str | None = None

    @model_validator(mode="after")
    def check_invariants(self) -> Session:
        for name, items, index in (
            ("selected_resume_index", self.optimized_resumes, self.selected_resume_index),
            ("selected_cover_letter_index", self.cover_letters, self.selected_cover_letter_index),
        ):
            if not items and index != 0:
                raise ValueError(f"{name} must be 0 when the list is empty")
            if items and not 0 <= index < len(items):
                raise ValueError(f"{name} {index} is out of range")

        for category, records in (("written", self.written_answers), ("verbal", self.verbal_answers)):
            seen: set[int] = set()
            for record in records:
                if not 0 <= record.question_index < len(self.questions):
                    raise ValueError(
                        f"{category} answer references missing question {record.question_index}"
                    )
                if record.question_index in seen:
                    raise ValueError(
                        f"duplicate {category} answer for question {record.question_index}"
                    )
                seen.add(record.question_index)
        return self

    @property
    def selected_resume(self) -> ArtifactVersion | None:
        if not self.optimized_resumes:
            return None
        return self.optimized_resumes[self.selected_resume_index]

    @property
    def selected_cover_letter(self) -> ArtifactVersion | None:
        if not self.cover_letters:
            return None
        return self.cover_letters[self.selected_cover_letter_index]

    def answers_for(self, category: AnswerCategory) -> tuple[AnswerRecord, ...]:
        return self.written_answers if category == "written" else self.verbal_answers


_FIELDS = frozenset(Session.model_fields)


def new_session() -> Session:
    return Session()


def evolve(session: Session, **patch: Any) -> Session:
    unknown = set(patch) - _FIELDS
    if unknown:
        raise TypeError(f"unknown session fields: {sorted(unknown)}")
    return Session.model_validate({**dict(session), **patch})


def replace_resumes(session: Session, versions: tuple[ArtifactVersion, ...]) -> Session:
    return evolve(session, optimized_resumes=versions, selected_resume_index=0)


def replace_cover_letters(session: Session, versions: tuple[ArtifactVersion, ...]) -> Session:
    return evolve(session, cover_letters=versions, selected_cover_letter_index=0)


def replace_questions(session: Session, questions: tuple[InterviewQuestion, ...]) -> Session:
    # Answers are keyed by position in the old batch.
    return evolve(session, questions=questions, written_answers=(), verbal_answers=())


def select_resume(session: Session, index: int) -> Session:
    _check_index(index, session.optimized_resumes, "resume")
    return evolve(session, selected_resume_index=index)


def select_cover_letter(session: Session, index: int) -> Session:
    _check_index(index, session.cover_letters, "cover letter")
    return evolve(session, selected_cover_letter_index=index)


def edit_resume(session: Session, index: int, content: str) -> Session:
    _check_index(index, session.optimized_resumes, "resume")
    return evolve(session, optimized_resumes=_edited(session.optimized_resumes, index, content))


def edit_cover_letter(session: Session, index: int, content: str) -> Session:
    _check_index(index, session.cover_letters, "cover letter")
    return evolve(session, cover_letters=_edited(session.cover_letters, index, content))


def upsert_answer(session: Session, category: AnswerCategory, record: AnswerRecord) -> Session:
    _check_index(record.question_index, session.questions, "question")
    existing = session.answers_for(category)
    updated = tuple(item for item in existing if item.question_index != record.question_index)
    field = "written_answers" if category == "written" else "verbal_answers"
    return evolve(session, **{field: updated + (record,)})


def append_candidate_question(session: Session, record: CandidateQuestionRecord) -> Session:
    return evolve(session, candidate_questions=session.candidate_questions + (record,))


def append_utterances(session: Session, *utterances: Utterance) -> Session:
    return evolve(session, mock_transcript=session.mock_transcript + utterances)


def interview_score(session: Session) -> int:
    """Average graded answer score as a percentage (0 when nothing is graded)."""
    scores = [
        record.feedback.score
        for record in session.written_answers + session.verbal_answers
        if record.feedback is not None
    ]
    if not scores:
        return 0
    return round(sum(scores) / len(scores) * 10)


def _check_index(index: int, items: tuple[Any, ...], label: str) -> None:
    if not 0 <= index < len(items):
        raise ValidationError(f"{label} {index} does not exist")


def _edited(
    versions: tuple[ArtifactVersion, ...], index: int, content: str
) -> tuple[ArtifactVersion, ...]:
    updated = list(versions)
    updated[index] = versions[index].model_copy(update={"content": content})
    return tuple(updated)
