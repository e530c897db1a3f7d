from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from careercoach.cli.app import app
from careercoach.core.pipeline import ArtifactPipeline

runner = CliRunner()


@pytest.fixture(autouse=True)
def scripted_pipeline(monkeypatch, ai_client) -> None:
    monkeypatch.setattr(
        "careercoach.api.app.ArtifactPipeline",
        lambda settings=None: ArtifactPipeline(ai_client, settings=settings),
    )


def _write_inputs(tmp_path: Path, job_text: str) -> tuple[Path, Path]:
    resume = tmp_path / "resume.txt"
    resume.write_text("Jane Doe\nBackend Engineer, Python.", encoding="utf-8")
    job = tmp_path / "job.txt"
    job.write_text(job_text, encoding="utf-8")
    return resume, job


def test_analyze_saves_history_for_email(tmp_path: Path) -> None:
    resume, job = _write_inputs(tmp_path, "Senior Backend Engineer\nRequirements: Python")

    result = runner.invoke(
        app,
        ["analyze", "--resume", str(resume), "--job", str(job), "--resumes", "--email", "jane@example.com"],
    )
    assert result.exit_code == 0, result.output
    assert '"match_score": 72' in result.stdout
    assert '"Action-Oriented"' in result.stdout

    listed = runner.invoke(app, ["history", "list", "--email", "JANE@example.com"])
    assert listed.exit_code == 0
    assert '"file_name": "resume.txt"' in listed.stdout

    identities = runner.invoke(app, ["history", "identities"])
    assert '"jane@example.com"' in identities.stdout


def test_analyze_with_empty_job_exits_with_error(tmp_path: Path, ai_client) -> None:
    resume, job = _write_inputs(tmp_path, "   ")

    result = runner.invoke(app, ["analyze", "--resume", str(resume), "--job", str(job)])
    assert result.exit_code == 1
    assert '"error": "ValidationError"' in result.stdout
    assert ai_client.calls == []
