from __future__ import annotations

from fastapi import Request

from careercoach.core.workflow import WorkflowEngine


def get_workflow(request: Request) -> WorkflowEngine:
    return request.app.state.workflow
