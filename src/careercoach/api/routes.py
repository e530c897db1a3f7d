from __future__ import annotations

import mimetypes
import re
from collections.abc import Callable
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from careercoach.api.deps import get_workflow
from careercoach.api.schemas import (
    AnswerRequest,
    CandidateQuestionRequest,
    EditContentRequest,
    HistoryEntryResponse,
    IndexRequest,
    JobDescriptionRequest,
    JobUrlRequest,
    LoginRequest,
    MockReplyRequest,
    NavigateRequest,
    PasteResumeRequest,
    PracticeRequest,
    WorkflowStateResponse,
)
from careercoach.core.session import interview_score
from careercoach.core.workflow import WorkflowEngine
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
from careercoach.types import Identity

router = APIRouter(prefix="/api/workflow", tags=["workflow"])

_GENERIC_CONTENT_TYPES = {"application/octet-stream", "binary/octet-stream"}
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def status_for(exc: CareerCoachError) -> int:
    if isinstance(exc, (ValidationError, ParseError)):
        return 422
    if isinstance(exc, AIServiceError):
        return 502
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (NavigationError, WorkflowBusyError, ErrorPendingError)):
        return 409
    return 400


def upload_mime_type(file_name: str, content_type: str | None) -> str:
    """Browsers and HTTP clients often send a generic type; fall back to the file name."""
    if content_type and content_type.split(";", 1)[0].strip().lower() not in _GENERIC_CONTENT_TYPES:
        return content_type
    return mimetypes.guess_type(file_name)[0] or ""


def _run(workflow: WorkflowEngine, action: Callable[[], None]) -> WorkflowStateResponse:
    try:
        action()
    except CareerCoachError as exc:
        raise HTTPException(status_code=status_for(exc), detail=exc.user_message) from exc
    return WorkflowStateResponse.model_validate(workflow.snapshot())


@router.get("", response_model=WorkflowStateResponse)
def get_state(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return WorkflowStateResponse.model_validate(workflow.snapshot())


@router.post("/navigate", response_model=WorkflowStateResponse)
def navigate(payload: NavigateRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.navigate_to(payload.step))


@router.post("/back", response_model=WorkflowStateResponse)
def go_back(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.go_back)


@router.post("/new", response_model=WorkflowStateResponse)
def start_new(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.start_new_analysis)


@router.post("/error/dismiss", response_model=WorkflowStateResponse)
def dismiss_error(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.dismiss_error)


@router.post("/resume/upload", response_model=WorkflowStateResponse)
def upload_resume(
    file: UploadFile = File(...),
    workflow: WorkflowEngine = Depends(get_workflow),
) -> WorkflowStateResponse:
    file_name = file.filename or "resume"
    mime_type = upload_mime_type(file_name, file.content_type)
    blob = file.file.read()
    return _run(workflow, lambda: workflow.upload_resume(file_name, mime_type, blob))


@router.post("/resume/paste", response_model=WorkflowStateResponse)
def paste_resume(payload: PasteResumeRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.paste_resume(payload.text))


@router.put("/job", response_model=WorkflowStateResponse)
def set_job(payload: JobDescriptionRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.set_job_description(payload.text, job_url=payload.job_url))


@router.post("/job/fetch", response_model=WorkflowStateResponse)
def fetch_job(payload: JobUrlRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.import_job_from_url(payload.url))


@router.post("/analyze", response_model=WorkflowStateResponse)
def analyze(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.analyze_fit)


@router.post("/dashboard", response_model=WorkflowStateResponse)
def open_dashboard(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.open_dashboard)


@router.post("/practice", response_model=WorkflowStateResponse)
def open_practice(payload: PracticeRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.open_practice(payload.step))


@router.post("/resumes/generate", response_model=WorkflowStateResponse)
def generate_resumes(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.generate_resumes)


@router.post("/resumes/select", response_model=WorkflowStateResponse)
def select_resume(payload: IndexRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.select_resume(payload.index))


@router.put("/resumes/{index}", response_model=WorkflowStateResponse)
def edit_resume(
    index: int,
    payload: EditContentRequest,
    workflow: WorkflowEngine = Depends(get_workflow),
) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.edit_resume(index, payload.content))


@router.post("/cover-letters/generate", response_model=WorkflowStateResponse)
def generate_cover_letters(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.generate_cover_letters)


@router.post("/cover-letters/select", response_model=WorkflowStateResponse)
def select_cover_letter(payload: IndexRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.select_cover_letter(payload.index))


@router.put("/cover-letters/{index}", response_model=WorkflowStateResponse)
def edit_cover_letter(
    index: int,
    payload: EditContentRequest,
    workflow: WorkflowEngine = Depends(get_workflow),
) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.edit_cover_letter(index, payload.content))


@router.get("/resumes/selected.txt", response_class=PlainTextResponse)
def download_selected_resume(workflow: WorkflowEngine = Depends(get_workflow)) -> PlainTextResponse:
    version = workflow.session.selected_resume
    if version is None:
        raise HTTPException(status_code=404, detail="No optimized resume has been generated yet")
    return _text_download(version.content, f"optimized_{version.id}.txt")


@router.get("/cover-letters/selected.txt", response_class=PlainTextResponse)
def download_selected_cover_letter(workflow: WorkflowEngine = Depends(get_workflow)) -> PlainTextResponse:
    version = workflow.session.selected_cover_letter
    if version is None:
        raise HTTPException(status_code=404, detail="No cover letter has been generated yet")
    return _text_download(version.content, f"cover_letter_{version.name}.txt")


@router.post("/questions/generate", response_model=WorkflowStateResponse)
def generate_questions(payload: PracticeRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.generate_questions(payload.step))


@router.post("/answers/written", response_model=WorkflowStateResponse)
def submit_written(payload: AnswerRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.submit_written_answer(payload.question_index, payload.answer))


@router.post("/answers/verbal", response_model=WorkflowStateResponse)
def submit_verbal(payload: AnswerRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.submit_verbal_answer(payload.question_index, payload.answer))


@router.post("/candidate-questions", response_model=WorkflowStateResponse)
def ask_candidate_question(
    payload: CandidateQuestionRequest,
    workflow: WorkflowEngine = Depends(get_workflow),
) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.ask_candidate_question(payload.question))


@router.post("/mock-interview/start", response_model=WorkflowStateResponse)
def start_mock_interview(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.start_mock_interview)


@router.post("/mock-interview/reply", response_model=WorkflowStateResponse)
def reply_mock_interview(payload: MockReplyRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.reply_mock_interview(payload.reply))


@router.post("/mock-interview/finish", response_model=WorkflowStateResponse)
def finish_mock_interview(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.finish_mock_interview)


@router.post("/finish", response_model=WorkflowStateResponse)
def finish_session(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.finish_session)


@router.post("/login", response_model=WorkflowStateResponse)
def login(payload: LoginRequest, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    # Local credential stand-in: any password is accepted.
    name = payload.name.strip() or payload.email.split("@", 1)[0]
    try:
        identity = Identity(email=payload.email, name=name)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _run(workflow, lambda: workflow.login(identity))


@router.post("/logout", response_model=WorkflowStateResponse)
def logout(workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, workflow.logout)


@router.get("/history", response_model=list[HistoryEntryResponse])
def list_history(workflow: WorkflowEngine = Depends(get_workflow)) -> list[HistoryEntryResponse]:
    if workflow.identity is None:
        raise HTTPException(status_code=401, detail="Please log in to view your history")
    return [
        HistoryEntryResponse(
            id=entry.id,
            created_at=entry.created_at,
            file_name=entry.file_name,
            job_url=entry.job_url,
            match_score=entry.analysis.match_score if entry.analysis else None,
            interview_score=interview_score(entry),
        )
        for entry in workflow.history
    ]


@router.post("/history/{session_id}/load", response_model=WorkflowStateResponse)
def load_history_entry(session_id: str, workflow: WorkflowEngine = Depends(get_workflow)) -> WorkflowStateResponse:
    return _run(workflow, lambda: workflow.load_history_entry(session_id))


@router.get("/history/{session_id}/{document}.txt", response_class=PlainTextResponse)
def download_history_document(
    session_id: str,
    document: Literal["resume", "cover-letter"],
    workflow: WorkflowEngine = Depends(get_workflow),
) -> PlainTextResponse:
    if workflow.identity is None:
        raise HTTPException(status_code=401, detail="Please log in to view your history")
    entry = next((item for item in workflow.history if item.id == session_id), None)
    if entry is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    version = entry.selected_resume if document == "resume" else entry.selected_cover_letter
    # Entries saved before a document was generated download as an empty file.
    return _text_download(version.content if version else "", f"{document}-{entry.id}.txt")


def _text_download(content: str, file_name: str) -> PlainTextResponse:
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", file_name)
    return PlainTextResponse(content, headers={"Content-Disposition": f'attachment; filename="{safe_name}"'})
