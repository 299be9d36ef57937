"""FastAPI application entrypoint for slicebundle service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

try:  # pragma: no cover - optional dependency
    from fastapi import Depends, FastAPI
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    _FASTAPI_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - service mode optional
    FastAPI = None  # type: ignore[assignment]
    Depends = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment]
    BaseModel = object  # type: ignore[assignment]
    _FASTAPI_AVAILABLE = False

from ..bundling.persister import manifest_payload
from ..orchestrator import BundleOutcome, Orchestrator


class BundleRequest(BaseModel):
    path: str
    analyze_only: bool = False
    config_path: Optional[str] = None


class BundleResponse(BaseModel):
    status: str
    strategy: Optional[str] = None
    metrics: Dict[str, Any] = {}
    manifest: Optional[Dict[str, Any]] = None
    files: List[str] = []
    warnings: List[str] = []


class InfoRequest(BaseModel):
    path: str
    config_path: Optional[str] = None


class InfoResponse(BaseModel):
    manifest: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _metrics_payload(outcome: BundleOutcome) -> Dict[str, Any]:
    metrics = outcome.analysis.metrics
    return {
        "totalComponents": metrics.total_components,
        "totalRoutes": metrics.total_routes,
        "sharedComponents": metrics.shared_components,
        "sharedPercentage": metrics.shared_percentage,
        "totalSize": metrics.total_size,
        "byCategory": dict(metrics.by_category),
    }


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing slicebundle operations."""

    if not _FASTAPI_AVAILABLE:  # pragma: no cover - validated via unit tests
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install fastapi uvicorn`."
        )

    app = FastAPI(title="slicebundle Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/bundle", response_model=BundleResponse)
    async def bundle_project(
        payload: BundleRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> BundleResponse:
        def _run_bundle() -> BundleOutcome:
            return orchestrator.run_bundle(
                payload.path,
                config_path=payload.config_path,
                analyze_only=payload.analyze_only,
            )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover - fallback path when not in async context
            outcome = _run_bundle()
        else:
            outcome = await loop.run_in_executor(None, _run_bundle)

        return BundleResponse(
            status="analyzed" if outcome.analyze_only else "ok",
            strategy=outcome.strategy,
            metrics=_metrics_payload(outcome),
            manifest=manifest_payload(outcome.manifest) if outcome.manifest is not None else None,
            files=[str(path) for path in outcome.files],
            warnings=[str(warning) for warning in outcome.warnings],
        )

    @app.post("/info", response_model=InfoResponse)
    async def project_info(
        payload: InfoRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> InfoResponse:
        manifest = orchestrator.run_info(payload.path, config_path=payload.config_path)
        return InfoResponse(manifest=manifest)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(
        _: Any, exc: NotADirectoryError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    if not _FASTAPI_AVAILABLE:
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install fastapi uvicorn`."
        )

    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install uvicorn`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)
