from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from careercoach.api.routes import router as api_router
from careercoach.config import Settings, get_settings
from careercoach.core.history import HistoryStore, IdentityStore, SqlKeyValueStore
from careercoach.core.pipeline import ArtifactPipeline
from careercoach.core.workflow import WorkflowEngine
from careercoach.db.init import init_database
from careercoach.db.session import SessionLocal


def build_workflow(settings: Settings | None = None) -> WorkflowEngine:
    settings = settings or get_settings()
    kv = SqlKeyValueStore(SessionLocal)
    workflow = WorkflowEngine(
        ArtifactPipeline(settings=settings),
        IdentityStore(kv),
        HistoryStore(kv),
        settings=settings,
    )
    workflow.open()
    return workflow


def create_app(workflow: WorkflowEngine | None = None) -> FastAPI:
    settings = get_settings()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if workflow is None:
        init_database()
        workflow = build_workflow(settings)
    app.state.workflow = workflow

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
