# src/api/server.py - v2
"""HTTP surface: FastAPI application.

    POST /search           (alias POST /unified-search)
    GET  /health

Every error body has the same shape as a success, {error, results: []},
so callers never special-case transport failures.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reelfinder.api.dependencies import get_pipeline, get_settings
from reelfinder.api.facade import identify
from reelfinder.api.models import ErrorResponse, HealthResponse, SearchRequest, SearchResponse
from reelfinder.config.settings import Settings, load_settings
from reelfinder.core.errors import InputError
from reelfinder.pipeline.orchestrator import ResolutionPipeline
from reelfinder.version import __version__

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


@router.post("/search", response_model=SearchResponse)
@router.post("/unified-search", response_model=SearchResponse, include_in_schema=False)
async def search(
    body: SearchRequest,
    request: Request,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    try:
        return await identify(body, pipeline=pipeline, request_id=request_id)
    except InputError:
        raise
    except Exception:
        logger.exception("Identification failed")
        return _error(500, "Internal error while identifying content")


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(
        version=__version__,
        cache_backend=settings.cache_backend if settings.cache_enabled else "disabled",
        collaborators=settings.configured_collaborators(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is not None:
        await pipeline.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Application settings. Loaded from .env if None.
    """
    settings = settings or load_settings()
    app = FastAPI(title="ReelFinder API", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request: %s", exc.errors())
        return _error(400, "Malformed request body")

    @app.exception_handler(InputError)
    async def _input_error(request: Request, exc: InputError):
        logger.info("Rejected request: %s", exc)
        return _error(400, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(500, "Internal error while identifying content")

    app.include_router(router, tags=["search"])
    return app
