"""Workflow engine: one user's pass through the application workflow.

Concurrency model: every action runs under a non-blocking lock. While a
pipeline stage is in flight any other action, navigation included, fails
fast with ``WorkflowBusyError``; the in-flight call is never cancelled and
its result always lands on the step that started it.

Error model: ``ParseError``, ``ValidationError`` and ``AIServiceError``
(``EmptyResultError`` included) become the single ``ErrorNotice`` shown to
the user and are re-raised. A pending notice blocks further pipeline stages
until ``dismiss_error`` is called.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from careercoach.config import Settings, get_settings
from careercoach.core import session as sessions
from careercoach.core.documents import DocumentExtractor, extract_text
from careercoach.core.history import HistoryStore, IdentityStore
from careercoach.core.job_fetcher import FETCH_FAILED_MESSAGE, fetch_job_text
from careercoach.core.pipeline import ArtifactPipeline
from careercoach.core.session import Session
from careercoach.core.steps import PRACTICE_STEPS, Navigator, Step, can_navigate, progress_display
from careercoach.errors import (
    AIServiceError,
    CareerCoachError,
    ErrorPendingError,
    NavigationError,
    NotFoundError,
    ParseError,
    ValidationError,
    WorkflowBusyError,
)
from careercoach.types import AnswerCategory, Identity

logger = logging.getLogger(__name__)

SURFACED_ERRORS = (ParseError, ValidationError, AIServiceError)

# Data a step cannot be shown without; missing data is generated on entry.
STEP_REQUIREMENTS: dict[Step, str] = {
    "analysis": "analysis",
    "dashboard": "analysis",
    "cover-letter": "cover_letters",
    "written-practice": "questions",
    "verbal-practice": "questions",
}

TASK_MESSAGES = {
    "analysis": "Failed to analyze resume. Please try again.",
    "resumes": "Failed to generate optimized resumes. Please try again.",
    "cover_letters": "Failed to generate cover letters. Please try again.",
    "questions": "Failed to generate interview questions. Please try again.",
    "grading": "Failed to analyze answer. Please try again.",
    "candidate_question": "Failed to review your question. Please try again.",
    "mock_interview": "The interviewer did not respond. Please try again.",
    "mock_feedback": "Failed to generate interview feedback. Please try again.",
}

JobFetcher = Callable[..., str]


@dataclass(frozen=True, slots=True)
class ErrorNotice:
    kind: str
    message: str


class WorkflowEngine:
    def __init__(
        self,
        pipeline: ArtifactPipeline,
        identities: IdentityStore,
        history: HistoryStore,
        *,
        extractor: DocumentExtractor = extract_text,
        fetcher: JobFetcher = fetch_job_text,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.pipeline = pipeline
        self.identities = identities
        self.history_store = history
        self.extractor = extractor
        self.fetcher = fetcher

        self.navigator = Navigator()
        self.session: Session = sessions.new_session()
        self.error: ErrorNotice | None = None
        self.identity: Identity | None = None
        self.history: list[Session] = []
        self._lock = threading.Lock()

    def open(self) -> None:
        """Restore the stored identity and its history."""
        identity = self.identities.current()
        if identity is not None:
            self.identity = identity
            self.history = self.history_store.list(identity)
            logger.info("Restored identity %s with %d history entries", identity.email, len(self.history))

    @property
    def step(self) -> Step:
        return self.navigator.current

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # Navigation

    def navigate_to(self, step: Step) -> None:
        with self._operation():
            self.navigator.navigate_to(step)

    def go_back(self) -> None:
        with self._operation():
            self.navigator.go_back()

    def advance_to(self, step: Step) -> None:
        """Open ``step``, generating whatever data it needs first."""
        with self._operation():
            self._require_edge(step)
            requirement = STEP_REQUIREMENTS.get(step)
            if requirement and not getattr(self.session, requirement):
                self._run_stage(requirement)
            self._move(step)

    def open_dashboard(self) -> None:
        self.advance_to("dashboard")

    def open_practice(self, step: Step) -> None:
        if step not in PRACTICE_STEPS:
            raise NavigationError(f"'{step}' is not a practice module")
        self.advance_to(step)

    # Inputs

    def start_new_analysis(self) -> None:
        with self._operation():
            self._require_edge("upload")
            self.session = sessions.new_session()
            self.error = None
            self._move("upload")

    def upload_resume(self, file_name: str, mime_type: str, blob: bytes) -> None:
        with self._operation():
            self._require_edge("job-description")
            text = self.extractor(blob, mime_type)
            self.session = sessions.evolve(self.session, resume_text=text, file_name=file_name)
            self.error = None
            logger.info("Parsed resume file=%s chars=%d", file_name, len(text))
            self._move("job-description")

    def paste_resume(self, text: str) -> None:
        with self._operation():
            self._require_edge("job-description")
            if not text.strip():
                raise ValidationError("Please paste your resume text")
            self.session = sessions.evolve(self.session, resume_text=text, file_name="Pasted Resume")
            self.error = None
            self._move("job-description")

    def set_job_description(self, text: str, job_url: str | None = None) -> None:
        with self._operation():
            patch: dict[str, Any] = {"job_description": text}
            if job_url is not None:
                patch["job_url"] = job_url.strip() or None
            self.session = sessions.evolve(self.session, **patch)

    def import_job_from_url(self, url: str) -> None:
        with self._operation():
            if not url.strip():
                raise ValidationError("Please enter a job URL")
            text = self.fetcher(url, timeout_sec=self.settings.fetch_timeout_sec)
            if not text.strip():
                raise ParseError(f"no text fetched from {url}", user_message=FETCH_FAILED_MESSAGE)
            self.session = sessions.evolve(self.session, job_description=text, job_url=url)

    # Generation

    def analyze_fit(self) -> None:
        with self._operation():
            self._require_edge("analysis")
            self._run_stage("analysis")
            self._move("analysis")

    def generate_resumes(self) -> None:
        with self._operation():
            if self.session.analysis is None:
                raise ValidationError("Run the fit analysis first")
            self._run_stage("resumes")

    def generate_cover_letters(self) -> None:
        with self._operation():
            self._require_edge("cover-letter")
            self._run_stage("cover_letters")
            self._move("cover-letter")

    def generate_questions(self, target: Step = "written-practice") -> None:
        with self._operation():
            if target not in PRACTICE_STEPS:
                raise NavigationError(f"'{target}' is not a practice module")
            self._require_edge(target)
            self._run_stage("questions")
            self._move(target)

    def submit_written_answer(self, question_index: int, answer: str) -> None:
        self._submit_answer("written", question_index, answer)

    def submit_verbal_answer(self, question_index: int, transcript: str) -> None:
        self._submit_answer("verbal", question_index, transcript)

    def ask_candidate_question(self, question: str) -> None:
        with self._operation():
            self._require_job_description()
            if not question.strip():
                raise ValidationError("Please enter a question")
            self._stage(
                "candidate_question",
                lambda: self.pipeline.review_candidate_question(self.session, question.strip()),
            )

    def start_mock_interview(self) -> None:
        with self._operation():
            self._require_job_description()
            self._stage("mock_interview", lambda: self.pipeline.start_mock_interview(self.session))

    def reply_mock_interview(self, reply: str) -> None:
        with self._operation():
            if not self.session.mock_transcript:
                raise ValidationError("Start the mock interview first")
            if not reply.strip():
                raise ValidationError("Please enter your reply")
            self._stage(
                "mock_interview",
                lambda: self.pipeline.continue_mock_interview(self.session, reply.strip()),
            )

    def finish_mock_interview(self) -> None:
        with self._operation():
            if not any(item.speaker == "candidate" for item in self.session.mock_transcript):
                raise ValidationError("Answer at least one interview question first")
            self._stage("mock_feedback", lambda: self.pipeline.finish_mock_interview(self.session))

    # Artifact edits

    def select_resume(self, index: int) -> None:
        with self._operation():
            self.session = sessions.select_resume(self.session, index)

    def edit_resume(self, index: int, content: str) -> None:
        with self._operation():
            self.session = sessions.edit_resume(self.session, index, content)

    def select_cover_letter(self, index: int) -> None:
        with self._operation():
            self.session = sessions.select_cover_letter(self.session, index)

    def edit_cover_letter(self, index: int, content: str) -> None:
        with self._operation():
            self.session = sessions.edit_cover_letter(self.session, index, content)

    # Identity and history

    def finish_session(self) -> None:
        with self._operation():
            self._require_edge("summary")
            if self.identity is not None:
                self.history = self.history_store.append(self.identity, self.session)
            self._move("summary")

    def login(self, identity: Identity) -> None:
        with self._operation():
            self.identities.login(identity)
            self.identity = identity
            self.history = self.history_store.list(identity)
            if self.step == "summary":
                self.history = self.history_store.append(identity, self.session)
            logger.info("Logged in %s with %d history entries", identity.email, len(self.history))

    def logout(self) -> None:
        with self._operation():
            self.identities.logout()
            self.identity = None
            self.history = []
            self._move("landing")

    def load_history_entry(self, session_id: str) -> None:
        with self._operation():
            if self.identity is None:
                raise ValidationError("Please log in to view your history")
            entry = next((item for item in self.history if item.id == session_id), None)
            if entry is None:
                raise NotFoundError(f"history entry {session_id} not found")
            self._require_edge("dashboard")
            self.session = entry
            self._move("dashboard")

    def dismiss_error(self) -> None:
        self.error = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "can_go_back": self.navigator.can_go_back,
            "progress": progress_display(self.step),
            "busy": self.busy,
            "error": None if self.error is None else {"kind": self.error.kind, "message": self.error.message},
            "identity": None if self.identity is None else self.identity.model_dump(),
            "interview_score": sessions.interview_score(self.session),
            "session": self.session.model_dump(mode="json"),
        }

    # Internals

    @contextmanager
    def _operation(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise WorkflowBusyError("a request is already in flight for this session")
        try:
            yield
        except SURFACED_ERRORS as exc:
            self._surface(exc)
            raise
        finally:
            self._lock.release()

    def _submit_answer(self, category: AnswerCategory, question_index: int, answer: str) -> None:
        with self._operation():
            if not answer.strip():
                raise ValidationError(
                    "Please enter an answer" if category == "written" else "No answer was captured"
                )
            self._stage(
                "grading",
                lambda: self.pipeline.grade_answer(
                    self.session,
                    category=category,
                    question_index=question_index,
                    answer=answer.strip(),
                ),
            )

    def _run_stage(self, task: str) -> None:
        if task == "analysis":
            self._require_resume()
            self._require_job_description()
            self._stage(task, lambda: self.pipeline.analyze_fit(self.session))
        elif task == "resumes":
            self._stage(task, lambda: self.pipeline.generate_resumes(self.session))
        elif task == "cover_letters":
            self._require_resume()
            self._require_job_description()
            self._stage(task, lambda: self.pipeline.generate_cover_letters(self.session))
        elif task == "questions":
            self._require_job_description()
            self._stage(task, lambda: self.pipeline.generate_questions(self.session))
        else:
            raise ValueError(f"unknown pipeline task '{task}'")

    def _stage(self, task: str, run: Callable[[], Session]) -> None:
        if self.error is not None:
            raise ErrorPendingError(f"cannot run {task} while an error is displayed")
        try:
            updated = run()
        except AIServiceError as exc:
            exc.user_message = TASK_MESSAGES.get(task, exc.user_message)
            raise
        self.session = updated

    def _require_resume(self) -> None:
        if not self.session.resume_text.strip():
            raise ValidationError("Please upload or paste your resume")

    def _require_job_description(self) -> None:
        if not self.session.job_description.strip():
            raise ValidationError("Please enter a job description")

    def _require_edge(self, step: Step) -> None:
        current = self.navigator.current
        if step != current and not can_navigate(current, step):
            raise NavigationError(f"cannot navigate from '{current}' to '{step}'")

    def _move(self, step: Step) -> None:
        if self.navigator.current != step:
            self.navigator.navigate_to(step)

    def _surface(self, exc: CareerCoachError) -> None:
        self.error = ErrorNotice(kind=type(exc).__name__, message=exc.user_message)
        logger.warning("Surfaced %s on step=%s: %s", type(exc).__name__, self.step, exc)
