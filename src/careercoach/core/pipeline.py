from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import BaseModel

from careercoach.config import Settings, get_settings
from careercoach.core.session import (
    AnswerRecord,
    CandidateQuestionRecord,
    Session,
    Utterance,
    append_candidate_question,
    append_utterances,
    evolve,
    replace_cover_letters,
    replace_questions,
    replace_resumes,
    upsert_answer,
)
from careercoach.errors import AIServiceError, EmptyResultError, ValidationError
from careercoach.llm.client import AIClient, GenerationConfig, PlainText, StructuredJSON, TextGenerator
from careercoach.llm.prompts import (
    ANSWER_GRADING_PROMPT,
    CANDIDATE_QUESTION_PROMPT,
    COVER_LETTER_VARIANTS,
    COVER_LETTER_VARIANTS_PROMPT,
    FIT_ANALYSIS_PROMPT,
    INTERVIEW_QUESTIONS_PROMPT,
    MOCK_INTERVIEW_FEEDBACK_PROMPT,
    MOCK_INTERVIEW_OPENING_PROMPT,
    MOCK_INTERVIEW_TURN_PROMPT,
    RESUME_VARIANTS,
    RESUME_VARIANTS_PROMPT,
    question_mix,
    variant_lines,
)
from careercoach.types import (
    AnswerCategory,
    AnswerFeedback,
    ArtifactBatch,
    ArtifactVersion,
    CandidateQuestionFeedback,
    FitAnalysis,
    QuestionBatch,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_VERBAL_NOTE = (
    "The answer is a transcript of spoken audio: ignore filler words and transcription "
    "glitches, but comment on structure, clarity and pacing."
)


class ArtifactPipeline:
    """Prompt build, AI call, validation and merge for every generation task.

    Stages never mutate their input: each returns a new ``Session``, and
    raises before building it when the call or its validation fails.
    """

    def __init__(self, client: TextGenerator | None = None, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.client = client or AIClient(settings=self.settings)
        self.configs: dict[str, GenerationConfig] = {
            "fit_analysis": GenerationConfig(
                model=self.settings.model_analysis, response_format=StructuredJSON(FitAnalysis)
            ),
            "resumes": GenerationConfig(
                model=self.settings.model_writer, response_format=StructuredJSON(ArtifactBatch)
            ),
            "cover_letters": GenerationConfig(
                model=self.settings.model_writer, response_format=StructuredJSON(ArtifactBatch)
            ),
            "questions": GenerationConfig(
                model=self.settings.model_interviewer, response_format=StructuredJSON(QuestionBatch)
            ),
            "grade_answer": GenerationConfig(
                model=self.settings.model_grader, response_format=StructuredJSON(AnswerFeedback)
            ),
            "candidate_question": GenerationConfig(
                model=self.settings.model_grader,
                response_format=StructuredJSON(CandidateQuestionFeedback),
            ),
            "mock_turn": GenerationConfig(model=self.settings.model_interviewer, response_format=PlainText()),
            "mock_feedback": GenerationConfig(model=self.settings.model_grader, response_format=PlainText()),
        }

    def analyze_fit(self, session: Session) -> Session:
        prompt = FIT_ANALYSIS_PROMPT.format(
            resume_text=self._clip(session.resume_text),
            job_description=self._clip(session.job_description),
        )
        analysis = self._structured("fit_analysis", prompt, FitAnalysis)
        logger.info("Fit analysis session=%s match_score=%s", session.id, analysis.match_score)
        return evolve(session, analysis=analysis)

    def generate_resumes(self, session: Session) -> Session:
        count = self.settings.resume_variant_count
        prompt = RESUME_VARIANTS_PROMPT.format(
            count=count,
            variant_lines=variant_lines(RESUME_VARIANTS, count),
            analysis_json=session.analysis.model_dump_json(indent=2) if session.analysis else "{}",
            resume_text=self._clip(session.resume_text),
            job_description=self._clip(session.job_description),
        )
        batch = self._structured("resumes", prompt, ArtifactBatch)
        versions = self._require_versions(batch, task="resumes", prefix="v")
        logger.info("Generated %d resume versions session=%s", len(versions), session.id)
        return replace_resumes(session, versions)

    def generate_cover_letters(self, session: Session) -> Session:
        count = self.settings.cover_letter_variant_count
        prompt = COVER_LETTER_VARIANTS_PROMPT.format(
            count=count,
            variant_lines=variant_lines(COVER_LETTER_VARIANTS, count),
            resume_text=self._clip(session.resume_text),
            job_description=self._clip(session.job_description),
        )
        batch = self._structured("cover_letters", prompt, ArtifactBatch)
        versions = self._require_versions(batch, task="cover_letters", prefix="cl")
        logger.info("Generated %d cover letters session=%s", len(versions), session.id)
        return replace_cover_letters(session, versions)

    def generate_questions(self, session: Session) -> Session:
        count = self.settings.question_count
        prompt = INTERVIEW_QUESTIONS_PROMPT.format(
            count=count,
            **question_mix(count),
            job_description=self._clip(session.job_description),
            resume_text=self._clip(session.resume_text),
        )
        batch = self._structured("questions", prompt, QuestionBatch)
        if not batch.questions:
            raise EmptyResultError("No questions generated")
        logger.info("Generated %d interview questions session=%s", len(batch.questions), session.id)
        return replace_questions(session, batch.questions)

    def grade_answer(
        self,
        session: Session,
        *,
        category: AnswerCategory,
        question_index: int,
        answer: str,
    ) -> Session:
        if not 0 <= question_index < len(session.questions):
            raise ValidationError(f"question {question_index} does not exist")
        question = session.questions[question_index]
        prompt = ANSWER_GRADING_PROMPT.format(
            medium="spoken" if category == "verbal" else "written",
            medium_note=_VERBAL_NOTE if category == "verbal" else "",
            job_excerpt=self._excerpt(session.job_description),
            question_type=question.type,
            question=question.question,
            answer=answer,
        )
        feedback = self._structured("grade_answer", prompt, AnswerFeedback)
        logger.info(
            "Graded %s answer session=%s question=%d score=%s",
            category,
            session.id,
            question_index,
            feedback.score,
        )
        record = AnswerRecord(question_index=question_index, answer=answer, feedback=feedback)
        return upsert_answer(session, category, record)

    def review_candidate_question(self, session: Session, question: str) -> Session:
        prompt = CANDIDATE_QUESTION_PROMPT.format(
            job_excerpt=self._excerpt(session.job_description),
            question=question,
        )
        feedback = self._structured("candidate_question", prompt, CandidateQuestionFeedback)
        return append_candidate_question(
            session, CandidateQuestionRecord(question=question, feedback=feedback)
        )

    def start_mock_interview(self, session: Session) -> Session:
        prompt = MOCK_INTERVIEW_OPENING_PROMPT.format(
            job_excerpt=self._excerpt(session.job_description),
            resume_excerpt=self._excerpt(session.resume_text),
        )
        opening = self._text("mock_turn", prompt)
        return evolve(
            session,
            mock_transcript=(Utterance(speaker="interviewer", text=opening),),
            mock_feedback=None,
        )

    def continue_mock_interview(self, session: Session, reply: str) -> Session:
        candidate = Utterance(speaker="candidate", text=reply)
        prompt = MOCK_INTERVIEW_TURN_PROMPT.format(
            job_excerpt=self._excerpt(session.job_description),
            transcript=format_transcript(session.mock_transcript + (candidate,)),
        )
        follow_up = self._text("mock_turn", prompt)
        return append_utterances(session, candidate, Utterance(speaker="interviewer", text=follow_up))

    def finish_mock_interview(self, session: Session) -> Session:
        prompt = MOCK_INTERVIEW_FEEDBACK_PROMPT.format(
            job_excerpt=self._excerpt(session.job_description),
            transcript=format_transcript(session.mock_transcript),
        )
        return evolve(session, mock_feedback=self._text("mock_feedback", prompt))

    def _structured(self, task: str, prompt: str, schema: type[SchemaT]) -> SchemaT:
        result = self.client.generate(prompt, self.configs[task])
        if not isinstance(result, schema):
            raise AIServiceError(f"{task} returned {type(result).__name__}, expected {schema.__name__}")
        return result

    def _text(self, task: str, prompt: str) -> str:
        result = self.client.generate(prompt, self.configs[task])
        text = result.strip() if isinstance(result, str) else ""
        if not text:
            raise EmptyResultError(f"{task} returned no text")
        return text

    @staticmethod
    def _require_versions(
        batch: ArtifactBatch, *, task: str, prefix: str
    ) -> tuple[ArtifactVersion, ...]:
        if not batch.versions:
            raise EmptyResultError(f"No {task} versions generated")
        versions = []
        seen: set[str] = set()
        for idx, version in enumerate(batch.versions, start=1):
            if not version.id or version.id in seen:
                version = version.model_copy(update={"id": f"{prefix}{idx}"})
            seen.add(version.id)
            versions.append(version)
        return tuple(versions)

    def _clip(self, text: str) -> str:
        return text[: self.settings.max_prompt_chars]

    def _excerpt(self, text: str) -> str:
        limit = self.settings.grading_context_chars
        return text if len(text) <= limit else f"{text[:limit]}..."


def format_transcript(utterances: tuple[Utterance, ...]) -> str:
    return "\n".join(f"{item.speaker.title()}: {item.text}" for item in utterances)
