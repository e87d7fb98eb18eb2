from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from momo_relay.config import AppInfo, Settings, get_settings
from momo_relay.core.logging import get_logger, setup_logging
from momo_relay.dependencies import Services, build_services
from momo_relay.routers import get_api_router
from momo_relay.services.cron import reconcile_pending_once
from momo_relay.utils.errors import error_response

logger = get_logger(__name__)


def _assert_production_ready(settings: Settings) -> None:
    """Refuse to start in production with a placeholder gateway token."""

    if settings.is_production and settings.token_is_placeholder:
        logger.error(
            "PAWAPAY_API_TOKEN is unset or a placeholder; refusing to start in production.",
            extra={"env": settings.app_env},
        )
        raise RuntimeError("PAWAPAY_API_TOKEN must be configured in production.")
    if settings.app_env.lower() != "dev" and not settings.PAWAPAY_CALLBACK_SECRET:
        logger.warning(
            "PAWAPAY_CALLBACK_SECRET is not configured; callbacks are accepted unsigned.",
            extra={"env": settings.app_env},
        )
    if settings.is_production and settings.ASSUME_COMPLETED_ON_RETURN_FAILURE:
        logger.warning(
            "ASSUME_COMPLETED_ON_RETURN_FAILURE is enabled; failed return status checks are treated as success.",
            extra={"env": settings.app_env},
        )


def _configure_middlewares(fastapi_app: FastAPI, settings: Settings) -> None:
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    if settings.PROMETHEUS_ENABLED:
        from starlette_exporter import PrometheusMiddleware, handle_metrics

        fastapi_app.add_middleware(PrometheusMiddleware)
        fastapi_app.add_route("/metrics", handle_metrics)

    if settings.SENTRY_DSN:
        import sentry_sdk

        sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.2)


def _start_scheduler(services: Services) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.start()
    scheduler.add_job(
        reconcile_pending_once,
        "interval",
        seconds=services.settings.RECONCILE_INTERVAL_SECONDS,
        args=[services.orchestrator],
        id="reconcile-open-transactions",
        replace_existing=True,
        max_instances=1,
    )
    return scheduler


def _register_exception_handlers(fastapi_app: FastAPI) -> None:
    @fastapi_app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception", exc_info=exc)
        return JSONResponse(status_code=500, content=error_response("An unexpected error occurred."))

    @fastapi_app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict) and "error" in detail:
            content: dict[str, Any] = detail
        else:
            content = error_response(str(detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @fastapi_app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content=error_response("Invalid request", details=details))


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the FastAPI application with explicitly constructed services."""

    settings = settings or (services.settings if services else get_settings())
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        setup_logging(settings.LOG_LEVEL, service=AppInfo().name)
        logger.info("Application startup", extra={"env": settings.app_env})
        try:
            _assert_production_ready(settings)
            if settings.SCHEDULER_ENABLED:
                fastapi_app.state.scheduler = _start_scheduler(services)
            yield
        finally:
            scheduler = fastapi_app.state.scheduler
            if scheduler is not None:
                scheduler.shutdown(wait=False)
                fastapi_app.state.scheduler = None
            await services.aclose()
            logger.info("Application shutdown", extra={"env": settings.app_env})

    app_info = AppInfo()
    fastapi_app = FastAPI(title=app_info.name, version=app_info.version, lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.scheduler = None

    _configure_middlewares(fastapi_app, settings)
    fastapi_app.include_router(get_api_router())
    _register_exception_handlers(fastapi_app)
    return fastapi_app


app = create_app()

__all__ = ["app", "create_app"]
