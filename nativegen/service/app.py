"""FastAPI application exposing the generate trigger over HTTP."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError
from ..orchestrator import GenerationReport, Orchestrator


class GenerateRequest(BaseModel):
    path: str
    modules: List[str] = Field(default_factory=list)
    output_dir: Optional[str] = None
    include_entry_points: Optional[bool] = None
    dry_run: bool = False


class DroppedFieldModel(BaseModel):
    type_name: str
    field: str
    reason: str


class FailureModel(BaseModel):
    type_name: str
    error: str


class GenerateResponse(BaseModel):
    status: str
    written: List[str] = Field(default_factory=list)
    previewed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[FailureModel] = Field(default_factory=list)
    dropped: List[DroppedFieldModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _to_response(report: GenerationReport) -> GenerateResponse:
    return GenerateResponse(
        status="ok" if report.ok else "partial",
        written=[str(outcome.path) for outcome in report.written],
        previewed=[str(outcome.path) for outcome in report.previewed],
        skipped=[outcome.source_name for outcome in report.skipped],
        failed=[
            FailureModel(type_name=outcome.source_name, error=outcome.error or "")
            for outcome in report.failed
        ],
        dropped=[
            DroppedFieldModel(type_name=outcome.source_name, field=dropped.name, reason=dropped.reason)
            for outcome in report.outcomes
            for dropped in outcome.dropped
        ],
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing nativegen operations."""

    app = FastAPI(title="nativegen Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Fresh orchestrator per request; runs share no state.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        def _run() -> GenerationReport:
            return orchestrator.run_project(
                payload.path,
                modules=payload.modules,
                output_dir=payload.output_dir,
                include_entry_points=payload.include_entry_points,
                dry_run=payload.dry_run,
                raise_on_error=False,
            )

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run)
        return _to_response(report)

    @app.exception_handler(ImportError)
    async def import_error_handler(_: Any, exc: ImportError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(TypeError)
    async def type_error_handler(_: Any, exc: TypeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
