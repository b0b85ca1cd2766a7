import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from zenex_ai.api.v1.router import api_v1_router
from zenex_ai.core.config import settings, validate_settings_for_production
from zenex_ai.core.exceptions import PromptBlockedError, ZenexError
from zenex_ai.core.logging import setup_logging
from zenex_ai.core.metrics import PrometheusMiddleware, metrics_response
from zenex_ai.core.sentry import init_sentry
from zenex_ai.services.site_generation import SiteGenerationService, build_site_generation_service

logger = logging.getLogger(__name__)


def _error_details(exc: Exception) -> str | None:
    """Stack traces only leave the process outside production, with debug on."""
    if settings.is_production or not settings.app_debug:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def create_app(service: SiteGenerationService | None = None) -> FastAPI:
    """Build the API. Without an injected service one is wired from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if getattr(app.state, "generation_service", None) is None:
            validate_settings_for_production()
            app.state.generation_service = build_site_generation_service(settings)
        init_sentry()
        logger.info("Starting Zenex AI generation core...")
        yield
        logger.info("Zenex AI generation core shut down")

    app = FastAPI(
        title="Zenex AI",
        description="Prompt firewall and provider orchestration for AI site generation",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.app_debug else None,
        redoc_url="/api/redoc" if settings.app_debug else None,
    )
    app.state.generation_service = service

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})

    @app.exception_handler(ZenexError)
    async def _zenex_exception_handler(request: Request, exc: ZenexError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        content: dict = {"error": exc.message}
        if isinstance(exc, PromptBlockedError):
            content["risk_level"] = exc.risk_level
        details = _error_details(exc)
        if details and exc.status_code >= 500:
            content["details"] = details
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
        logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
        content: dict = {"error": "Generation failed"}
        details = _error_details(exc)
        if details:
            content["details"] = details
        return JSONResponse(status_code=500, content=content)

    app.add_middleware(PrometheusMiddleware)

    # CORS: allowed_origins is a comma-separated list
    _origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_v1_router)

    @app.get("/api/v1/health")
    async def health(request: Request):
        svc = request.app.state.generation_service
        return {
            "status": "ok",
            "gateway": svc.manager.get_status() if svc is not None else None,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return metrics_response()

    return app


def get_app() -> FastAPI:
    """ASGI factory: ``uvicorn zenex_ai.main:get_app --factory``."""
    setup_logging()
    return create_app()
