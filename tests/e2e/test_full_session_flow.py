from fastapi.testclient import TestClient

from careercoach.api.app import create_app
from careercoach.core.history import HistoryStore, SqlKeyValueStore
from careercoach.db.session import SessionLocal
from careercoach.types import Identity


def test_full_session_from_upload_to_saved_summary(workflow, ai_client) -> None:
    client = TestClient(create_app(workflow))

    client.post("/api/workflow/login", json={"email": "Casey@Example.com", "name": "Casey"})
    client.post("/api/workflow/new")
    client.post(
        "/api/workflow/resume/upload",
        files={"file": ("resume.txt", b"Casey\nData Engineer, Spark and Python.", "text/plain")},
    )
    client.post("/api/workflow/job/fetch", json={"url": "https://jobs.example.com/42"})
    state = client.post("/api/workflow/analyze").json()
    assert state["step"] == "analysis"
    assert state["session"]["job_url"] == "https://jobs.example.com/42"

    client.post("/api/workflow/resumes/generate")
    client.post("/api/workflow/resumes/select", json={"index": 1})
    client.post("/api/workflow/dashboard")

    state = client.post("/api/workflow/cover-letters/generate").json()
    assert state["step"] == "cover-letter"
    assert [item["id"] for item in state["session"]["cover_letters"]] == ["v1", "v2", "v3"]

    client.post("/api/workflow/practice", json={"step": "verbal-practice"})
    client.post("/api/workflow/answers/verbal", json={"question_index": 4, "answer": "um, I would page the owner"})
    client.post("/api/workflow/navigate", json={"step": "written-practice"})
    client.post("/api/workflow/answers/written", json={"question_index": 0, "answer": "We disagreed on scope."})

    client.post("/api/workflow/navigate", json={"step": "mock-interview"})
    client.post("/api/workflow/mock-interview/start")
    client.post("/api/workflow/mock-interview/reply", json={"reply": "I build Spark pipelines."})
    ai_client.queue("Strong technical depth.")
    state = client.post("/api/workflow/mock-interview/finish").json()
    assert state["session"]["mock_feedback"] == "Strong technical depth."

    state = client.post("/api/workflow/finish").json()
    assert state["step"] == "summary"
    assert state["progress"] == 100
    assert state["interview_score"] == 70
    assert state["session"]["selected_resume_index"] == 1

    saved = HistoryStore(SqlKeyValueStore(SessionLocal)).list(Identity(email="casey@example.com"))
    assert [entry.id for entry in saved] == [state["session"]["id"]]
    assert len(saved[0].verbal_answers) == 1
    assert len(saved[0].written_answers) == 1
