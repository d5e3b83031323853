"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.storefront import __version__
from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
)
from src.storefront.api.http.routers.auth import router as auth_router
from src.storefront.api.http.routers.service.order import router as order_router
from src.storefront.api.http.routers.service.product import router as product_router
from src.storefront.api.utils.app_startup import configure_logging
from src.storefront.core.errors import StorefrontError
from src.storefront.core.services.currency_service import CurrencyService
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt_service import JwtService
from src.storefront.core.services.redis_service import RedisService
from src.storefront.core.storage.otp_storage import build_otp_storage
from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

__all__ = ["app", "create_app", "build_dependencies"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, production: bool):
        super().__init__(app)
        self._production = production

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        if self._production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response


def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    """Construct the process-wide services from ``config``."""
    redis_service = RedisService(config.redis)
    return ApplicationDependencies(
        config=config,
        database_service=DbSessionService(config),
        redis_service=redis_service,
        jwt_service=JwtService(config.jwt),
        otp_storage=build_otp_storage(redis_service.get_client()),
        email_service=EmailService(config.email),
        currency_service=CurrencyService(config.exchange),
    )


def _error_body(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "message": message, **extra}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    )
    message = first.get("msg", "Invalid request")
    return f"{field}: {message}" if field else message


def _register_exception_handlers(app: FastAPI, config: ConfigData) -> None:
    show_details = config.app.show_error_details

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        extra = {}
        if exc.status_code >= 500:
            logger.bind(error_type=type(exc).__name__, **exc.context).error(
                "request.failed: {}", exc.message
            )
            if show_details and "error" in exc.context:
                extra["error"] = str(exc.context["error"])
        return JSONResponse(
            status_code=exc.status_code, content=_error_body(exc.message, **extra)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body(_validation_message(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )


def create_app(
    config: ConfigData | None = None,
    dependencies: ApplicationDependencies | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration to run with (defaults to the active one)
        dependencies: Pre-built services; when given, startup neither builds
            nor closes them
    """
    main_config = config or (dependencies.config if dependencies else get_config())
    main_config.validate_runtime()
    configure_logging(main_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_dependencies = dependencies is None
        deps = build_dependencies(main_config) if owns_dependencies else dependencies
        app.state.app_dependencies = deps
        logger.info(
            "Starting storefront {} in {} environment",
            __version__,
            main_config.app.environment,
        )

        use_redis_limiter = (
            main_config.rate_limiter.enabled and deps.redis_service.enabled
        )
        await configure_rate_limiter(
            deps.redis_service.get_client() if use_redis_limiter else None
        )
        try:
            yield
        finally:
            logger.info("Shutting down application")
            await close_rate_limiter()
            if owns_dependencies:
                await deps.redis_service.close()
                deps.database_service.dispose()

    production = main_config.app.environment == "production"
    app = FastAPI(
        title="Storefront API",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )

    app.add_middleware(SecurityHeadersMiddleware, production=production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=main_config.app.cors.origins,
        allow_credentials=main_config.app.cors.allow_credentials,
        allow_methods=main_config.app.cors.allow_methods,
        allow_headers=main_config.app.cors.allow_headers,
    )

    show_details = main_config.app.show_error_details

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        xff = request.headers.get("x-forwarded-for")
        client_ip = (
            xff.split(",")[0].strip()
            if xff
            else request.client.host
            if request.client
            else "unknown"
        )

        start = time.perf_counter()
        with logger.contextualize(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=client_ip,
        ):
            try:
                logger.info("request.start {} {}", request.method, request.url.path)
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=500,
                    duration_ms=round(duration_ms, 1),
                    error_type=type(exc).__name__,
                ).exception("request.error")
                extra = {"error": str(exc)} if show_details else {}
                return JSONResponse(
                    status_code=500,
                    content=_error_body("Server Error", **extra),
                    headers={"X-Request-ID": request_id},
                )

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code, duration_ms=round(duration_ms, 1)
            ).info("request.end {} in {:.1f} ms", response.status_code, duration_ms)
            response.headers.setdefault("X-Request-ID", request_id)
            return response

    _register_exception_handlers(app, main_config)

    app.include_router(auth_router)
    app.include_router(product_router)
    app.include_router(order_router)

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {"success": True, "message": "Server is running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe; does not touch dependencies."""
        return {"status": "healthy"}

    @app.get("/ready", response_model=None)
    async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
        """Readiness probe: the database must answer, Redis is reported only."""
        deps: ApplicationDependencies = request.app.state.app_dependencies
        db_healthy = deps.database_service.health_check()
        checks = {
            "database": "healthy" if db_healthy else "unhealthy",
            "redis": (
                ("healthy" if await deps.redis_service.health_check() else "unhealthy")
                if deps.redis_service.enabled
                else "disabled"
            ),
        }
        body = {"status": "ready" if db_healthy else "not_ready", "checks": checks}
        if not db_healthy:
            return JSONResponse(status_code=503, content=body)
        return body

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,
    )
