"""FastAPI application entrypoint for manifestgen service mode."""

from __future__ import annotations

from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, load_config
from ..gateway import GatewayError
from ..manifest import CatalogUnavailable, FileWriteError
from ..orchestrator import Orchestrator


class BuildRequest(BaseModel):
    excludemanaged: Optional[bool] = None
    apiversion: Optional[str] = None
    quickfilter: Optional[str] = None
    outputfile: Optional[str] = None


class BuildResponse(BaseModel):
    output_path: str
    api_version: str
    types: Dict[str, List[str]]


class FieldsRequest(BaseModel):
    names: List[str] = Field(default_factory=list)


class FieldsResponse(BaseModel):
    results: Dict[str, bool]


class HealthResponse(BaseModel):
    status: str


def create_app(
    orchestrator_factory: Optional[Callable[[], Orchestrator]] = None,
    *,
    root: Optional[Path] = None,
) -> FastAPI:
    """Create the FastAPI application exposing manifestgen operations.

    Without an explicit factory every request reloads ``.manifestgen.yml`` from
    ``root`` (the working directory by default), so the file's ``manifest``
    section supplies defaults for ``/build`` as it does for the CLI.
    """

    project_root = Path(root) if root is not None else Path.cwd()

    def _config_orchestrator() -> Orchestrator:
        return Orchestrator.from_config(load_config(project_root))

    factory = orchestrator_factory or _config_orchestrator
    app = FastAPI(title="manifestgen service", version="1.0.0")

    async def get_orchestrator() -> AsyncIterator[Orchestrator]:
        # One run context per request keeps caches from leaking between callers.
        orchestrator = factory()
        try:
            yield orchestrator
        finally:
            await orchestrator.aclose()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/build", response_model=BuildResponse)
    async def build_manifest(
        payload: BuildRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> BuildResponse:
        document = await orchestrator.build_manifest(payload.model_dump())
        return BuildResponse(
            output_path=str(document.path),
            api_version=document.api_version,
            types=document.types,
        )

    @app.post("/fields/exists", response_model=FieldsResponse)
    async def fields_exist(
        payload: FieldsRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> FieldsResponse:
        results = await orchestrator.check_fields(payload.names)
        return FieldsResponse(results=results)

    @app.exception_handler(CatalogUnavailable)
    async def catalog_unavailable_handler(
        _: Any, exc: CatalogUnavailable
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(
        _: Any, exc: GatewayError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(FileWriteError)
    async def file_write_error_handler(
        _: Any, exc: FileWriteError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000, root: Optional[Path] = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(root=root)
    uvicorn.run(app, host=host, port=port)
