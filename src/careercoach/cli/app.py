from __future__ import annotations

import json
import mimetypes
from pathlib import Path

import typer
import uvicorn

from careercoach.api.app import build_workflow, create_app
from careercoach.config import get_settings
from careercoach.core.history import HISTORY_KEY_PREFIX, HistoryStore, SqlKeyValueStore
from careercoach.core.session import interview_score
from careercoach.db.init import init_database
from careercoach.db.repositories import Repository
from careercoach.db.session import SessionLocal, session_scope
from careercoach.errors import CareerCoachError
from careercoach.logging_config import configure_logging
from careercoach.types import Identity

app = typer.Typer(help="CareerCoach CLI")
history_app = typer.Typer(help="Saved session history")

app.add_typer(history_app, name="history")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    configure_logging(log_level)
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@app.command("analyze")
def analyze(
    resume: Path = typer.Option(..., "--resume", exists=True, readable=True),
    job: Path = typer.Option(..., "--job", exists=True, readable=True),
    job_url: str = typer.Option("", "--job-url"),
    resumes: bool = typer.Option(False, "--resumes", help="Also generate optimized resume versions"),
    cover_letters: bool = typer.Option(False, "--cover-letters", help="Also generate cover letters"),
    email: str = typer.Option("", "--email", help="Save the finished session to this identity's history"),
) -> None:
    """Run fit analysis (and optionally document generation) for one resume/job pair."""
    configure_logging()
    ensure_initialized()
    workflow = build_workflow()

    try:
        if email:
            workflow.login(Identity(email=email, name=email.split("@", 1)[0]))
        workflow.start_new_analysis()
        mime_type = mimetypes.guess_type(resume.name)[0] or "text/plain"
        workflow.upload_resume(resume.name, mime_type, resume.read_bytes())
        workflow.set_job_description(job.read_text(encoding="utf-8"), job_url=job_url or None)
        workflow.analyze_fit()
        if resumes:
            workflow.generate_resumes()
        workflow.open_dashboard()
        if cover_letters:
            workflow.generate_cover_letters()
        workflow.finish_session()
    except CareerCoachError as exc:
        typer.echo(json.dumps({"ok": False, "error": type(exc).__name__, "message": exc.user_message}, indent=2))
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(json.dumps(workflow.session.model_dump(mode="json"), indent=2))


@history_app.command("list")
def history_list(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    try:
        identity = Identity(email=email)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    entries = HistoryStore(SqlKeyValueStore(SessionLocal)).list(identity)
    data = [
        {
            "id": entry.id,
            "created_at": entry.created_at.isoformat(),
            "file_name": entry.file_name,
            "job_url": entry.job_url,
            "match_score": entry.analysis.match_score if entry.analysis else None,
            "interview_score": interview_score(entry),
        }
        for entry in entries
    ]
    typer.echo(json.dumps(data, indent=2))


@history_app.command("identities")
def history_identities() -> None:
    configure_logging()
    ensure_initialized()
    with session_scope() as db:
        keys = Repository(db).list_keys(prefix=HISTORY_KEY_PREFIX)
    typer.echo(json.dumps([key[len(HISTORY_KEY_PREFIX):] for key in keys], indent=2))


if __name__ == "__main__":
    app()
