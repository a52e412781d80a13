"""HTTP API for the job catalog, market metrics, export and proposals"""
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError

from .ai_engine import AIEngine
from .config import AppConfig, get_config
from .export import EXPORT_FORMATS, ExportError, export_filename, media_type
from .models import JobRecord, ProposalState
from .proposal import ProposalOrchestrator
from .service import METRICS, CatalogService
from .store import RecordStore, StoreError
from .logger import get_logger

logger = get_logger()


class ProposalRequest(BaseModel):
    job_details: dict[str, Any] = Field(alias="jobDetails")


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    """Unparseable or non-positive limits mean no limit"""
    try:
        limit = int(raw) if raw is not None else None
    except ValueError:
        logger.warning(f"Ignoring export limit {raw!r}")
        return None
    return limit if limit and limit > 0 else None


def _error(status_code: int, message: str, details: Any = None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def create_app(
    config: Optional[AppConfig] = None,
    store=None,
    engine: Optional[AIEngine] = None,
) -> FastAPI:
    """
    Build the API. The store and generation engine can be injected; when
    they are not, they are created from config and credentials at startup.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup")
        if app.state.store is None:
            try:
                app.state.store = RecordStore(config=config.catalog)
                logger.info("Supabase client attached to app.state.store")
            except StoreError as e:
                # Routes answer 500 until credentials are fixed
                logger.error(f"Record store unavailable: {e}")
        if app.state.engine is None:
            app.state.engine = AIEngine(ai_config=config.ai)
        yield
        logger.info("Application shutdown")

    app = FastAPI(
        title="Upwork Job Catalog API",
        description="Paged job catalog, market insights and proposal drafting.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error(500, "Failed to fetch data", str(exc))

    def get_service(request: Request) -> CatalogService:
        state = request.app.state
        if state.store is None:
            raise StoreError("Supabase client not available. Check SUPABASE_URL and SUPABASE_KEY.")
        return CatalogService(store=state.store, config=state.config, engine=state.engine)

    @app.get("/healthz")
    def healthz(request: Request):
        return {
            "ok": True,
            "store": request.app.state.store is not None,
            "generation": bool(request.app.state.engine and request.app.state.engine.is_available),
        }

    @app.get("/api/jobs")
    async def list_jobs(
        request: Request,
        page: int = 1,
        search: str = "",
        level: str = "all",
    ):
        service = get_service(request)
        service.set_filter(search_term=search, category_filter=level)
        outcome = await service.open_page(page)
        if not outcome.ok:
            return _error(500, "Failed to fetch jobs", outcome.error)
        return service.view()

    @app.get("/api/metrics/total-count")
    async def total_count(request: Request):
        return await get_service(request).total_count()

    @app.get("/api/metrics/client-activity")
    async def client_activity(request: Request):
        return {"data": await get_service(request).client_activity()}

    @app.get("/api/metrics/{name}")
    async def metric(name: str, request: Request):
        if name not in METRICS:
            return _error(404, f"Unknown metric: {name}")
        return {"data": await get_service(request).metric(name)}

    @app.get("/api/export-data")
    async def export_data(
        request: Request,
        fmt: str = Query("json", alias="format"),
        limit: Optional[str] = None,
    ):
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            return _error(400, f"Unsupported export format: {fmt}")

        service = get_service(request)
        try:
            content = await service.export(fmt, _parse_limit(limit))
        except ExportError as e:
            return _error(404, str(e))

        filename = export_filename(fmt, prefix=service.config.export.filename_prefix)
        return Response(
            content=content,
            media_type=media_type(fmt),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/api/generate-proposal")
    async def generate_proposal(payload: ProposalRequest, request: Request):
        # Drafting needs only the generation engine, not the record store
        orchestrator = ProposalOrchestrator(request.app.state.engine, ai_config=request.app.state.config.ai)
        try:
            outcome = await orchestrator.request(JobRecord(**payload.job_details))
        except ValidationError as e:
            return _error(422, "Invalid job details", e.errors(include_url=False, include_context=False))

        if outcome.state != ProposalState.SUCCESS:
            return _error(outcome.status_code or 500, outcome.error or "Failed to generate proposal")
        return {"proposal": outcome.text}

    return app
