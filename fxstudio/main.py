"""fxstudio render service - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fxstudio.config import settings
from fxstudio.api.v1.router import v1_router
from fxstudio.api.v1.health import router as health_root_router
from fxstudio.api.v1 import health as health_api
from fxstudio.api.v1 import jobs as jobs_api
from fxstudio.effects.registry import registry
from fxstudio.exceptions import FxStudioError, ValidationError
from fxstudio.jobs.in_process_runner import InProcessRunner
from fxstudio.jobs.store import JobStore
from fxstudio.jobs.sweeper import ExpirySweeper
from fxstudio.jobs.worker import RenderWorker
from fxstudio.storage.outputs import OutputStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    logger.info("Output dir: %s", settings.output_dir)
    logger.info("Effects root: %s", settings.effects_root)

    # Discover effects
    registry.discover()
    logger.info("Found %d effect(s)", len(registry.effect_ids()))

    store = JobStore()
    outputs = OutputStore(settings.output_dir)
    outputs.ensure()

    runner = InProcessRunner(
        store,
        RenderWorker(registry=registry, outputs=outputs, settings=settings),
        max_concurrent=settings.max_concurrent_jobs,
        job_timeout=settings.job_timeout_seconds,
    )
    await runner.start()

    sweeper = ExpirySweeper(
        store,
        outputs,
        retention=timedelta(minutes=settings.job_retention_minutes),
        interval=timedelta(minutes=settings.sweep_interval_minutes),
    )
    await sweeper.start()

    # Wire runner and stores into API endpoints
    jobs_api.set_store(store)
    jobs_api.set_dispatcher(runner)
    jobs_api.set_outputs(outputs)
    health_api.set_store(store)

    yield

    # Shutdown
    logger.info("Shutting down %s", settings.app_name)
    await sweeper.stop()
    await runner.stop()
    jobs_api.set_dispatcher(None)
    jobs_api.set_store(None)
    jobs_api.set_outputs(None)
    health_api.set_store(None)


app = FastAPI(
    title="fxstudio",
    description="Render job orchestration for text and particle video effects",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FxStudioError)
async def fxstudio_exception_handler(request: Request, exc: FxStudioError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed [%s]: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies get the same 400 envelope as other validation errors."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = " -> ".join(str(part) for part in first.get("loc", ()))
        msg = first.get("msg", "Validation error")
        message = f"{loc}: {msg}" if loc else msg
    else:
        message = "Request validation failed"
    error = ValidationError(message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
