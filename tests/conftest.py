from __future__ import annotations

import os
from collections import deque
from typing import Any

os.environ.setdefault("DATABASE_URL", "sqlite:///./data/test_careercoach.db")
os.environ.setdefault("APP_ENV", "test")

import pytest

from careercoach.config import Settings
from careercoach.core.history import HistoryStore, IdentityStore, SqlKeyValueStore
from careercoach.core.pipeline import ArtifactPipeline
from careercoach.core.workflow import WorkflowEngine
from careercoach.db.base import Base
from careercoach.db.init import ensure_data_directories
from careercoach.db.session import SessionLocal, engine
from careercoach.llm.client import GenerationConfig, StructuredJSON

RESUME_TEXT = (
    "Jane Doe\n"
    "Backend Engineer with 6 years of Python, PostgreSQL and AWS experience.\n"
    "Led a team of 4 building billing APIs."
)
JOB_TEXT = (
    "Senior Backend Engineer\n"
    "Requirements: Python, SQL, Kubernetes, mentoring.\n"
    "Responsibilities: design services, own on-call."
)

DEFAULT_REPLIES: dict[str, Any] = {
    "FitAnalysis": {
        "match_score": 72,
        "missing_keywords": ["Kubernetes"],
        "keyword_density": [{"term": "Python", "count": 3}],
        "formatting_issues": [],
        "skills_gap": ["Kubernetes"],
        "recommendations": [
            {"priority": "high", "suggestion": "Add Kubernetes to Skills", "location": "Skills section"}
        ],
    },
    "ArtifactBatch": {
        "versions": [
            {"id": "v1", "name": "Standard Optimized", "content": "# Jane Doe\nStandard"},
            {"id": "v2", "name": "Action-Oriented", "content": "# Jane Doe\nAction"},
            {"id": "v3", "name": "Skills-Focused", "content": "# Jane Doe\nSkills"},
        ]
    },
    "QuestionBatch": {
        "questions": [
            {"type": "behavioral", "question": "Tell me about a conflict.", "why_asked": "Teamwork"},
            {"type": "behavioral", "question": "Describe a failure.", "why_asked": "Resilience"},
            {"type": "technical", "question": "How do you index a table?", "why_asked": "SQL"},
            {"type": "technical", "question": "Explain the GIL.", "why_asked": "Python"},
            {"type": "situational", "question": "Prod is down. What now?", "why_asked": "On-call"},
        ]
    },
    "AnswerFeedback": {
        "score": 7,
        "strengths": ["Clear structure"],
        "improvements": ["Add metrics"],
        "model_answer": "A stronger answer.",
        "specific_feedback": "Good use of STAR.",
    },
    "CandidateQuestionFeedback": {
        "score": 8,
        "assessment": "Shows interest in the team.",
        "improved_question": "How does the team measure success in the first 90 days?",
    },
}
DEFAULT_TEXT_REPLY = "Thanks for joining. Tell me about yourself."


class ScriptedAIClient:
    """Stands in for ``AIClient``: replies come from a queue, then from defaults."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, GenerationConfig]] = []
        self.replies: deque[Any] = deque()
        self.on_call = None

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    def generate(self, prompt: str, config: GenerationConfig) -> Any:
        self.calls.append((prompt, config))
        if self.on_call is not None:
            self.on_call()

        fmt = config.response_format
        if self.replies:
            reply = self.replies.popleft()
        elif isinstance(fmt, StructuredJSON):
            reply = DEFAULT_REPLIES[fmt.schema.__name__]
        else:
            reply = DEFAULT_TEXT_REPLY

        if isinstance(reply, Exception):
            raise reply
        if isinstance(fmt, StructuredJSON):
            return fmt.schema.model_validate(reply)
        return reply


@pytest.fixture(autouse=True)
def reset_db() -> None:
    ensure_data_directories()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="", app_env="test")


@pytest.fixture
def ai_client() -> ScriptedAIClient:
    return ScriptedAIClient()


@pytest.fixture
def pipeline(ai_client: ScriptedAIClient, settings: Settings) -> ArtifactPipeline:
    return ArtifactPipeline(ai_client, settings=settings)


@pytest.fixture
def kv() -> SqlKeyValueStore:
    return SqlKeyValueStore(SessionLocal)


@pytest.fixture
def workflow(pipeline: ArtifactPipeline, kv: SqlKeyValueStore, settings: Settings) -> WorkflowEngine:
    engine_ = WorkflowEngine(
        pipeline,
        IdentityStore(kv),
        HistoryStore(kv),
        fetcher=lambda url, timeout_sec=30: JOB_TEXT,
        settings=settings,
    )
    engine_.open()
    return engine_


@pytest.fixture
def analyzed_workflow(workflow: WorkflowEngine) -> WorkflowEngine:
    workflow.start_new_analysis()
    workflow.paste_resume(RESUME_TEXT)
    workflow.set_job_description(JOB_TEXT)
    workflow.analyze_fit()
    return workflow
