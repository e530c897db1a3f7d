from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from careercoach.core.steps import Step


class ErrorNoticeResponse(BaseModel):
    kind: str
    message: str


class IdentityResponse(BaseModel):
    email: str
    name: str


class WorkflowStateResponse(BaseModel):
    step: Step
    can_go_back: bool
    progress: int | None
    busy: bool
    error: ErrorNoticeResponse | None
    identity: IdentityResponse | None
    interview_score: int
    session: dict[str, Any]


class NavigateRequest(BaseModel):
    step: Step


class PasteResumeRequest(BaseModel):
    text: str


class JobDescriptionRequest(BaseModel):
    text: str
    job_url: str | None = None


class JobUrlRequest(BaseModel):
    url: str


class PracticeRequest(BaseModel):
    step: Step


class IndexRequest(BaseModel):
    index: int


class EditContentRequest(BaseModel):
    content: str


class AnswerRequest(BaseModel):
    question_index: int
    answer: str


class CandidateQuestionRequest(BaseModel):
    question: str


class MockReplyRequest(BaseModel):
    reply: str


class LoginRequest(BaseModel):
    email: str
    name: str = ""
    password: str = ""


class HistoryEntryResponse(BaseModel):
    id: str
    created_at: datetime
    file_name: str
    job_url: str | None
    match_score: int | None
    interview_score: int
