"""Application factory for the FastAPI app.

Centralizes app construction (middleware order, request pipeline, handlers,
routers) so tests can build isolated apps with fresh limiter and store state.

Request order, outermost first:
    security headers -> CORS -> request id -> access log (development)
    -> gzip -> request pipeline -> router -> not-found fallback
The error renderer is reachable from every layer below the request id.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.adapters.payments.hmac_verifier import HmacSignatureVerifier
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.api.routes import (
    WEBHOOK_PATH,
    StaticAssets,
    bookings_router,
    fallback_router,
    health_router,
    reviews_router,
    tours_router,
    users_router,
    views_router,
    webhook_checkout,
)
from app.core.config import AppSettings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import (
    access_log_middleware,
    request_id_middleware,
    security_headers_middleware,
)
from app.core.openapi import apply_openapi_customizations
from app.pipeline import (
    BodyParserStage,
    OperatorSanitizerStage,
    ParameterPollutionStage,
    Pipeline,
    RateLimitStage,
    RawBodyRouteStage,
    RequestTimestampStage,
    ScriptSanitizerStage,
    Stage,
)
from app.services.registry import ServiceRegistry


def build_pipeline(app_settings: AppSettings | None = None) -> Pipeline:
    """Build the ordered request stages from configuration.

    Args:
        app_settings: Overrides the global ``settings.app``.

    Returns:
        Pipeline with a fresh rate limiter.
    """
    cfg = app_settings or settings.app

    stages: list[Stage] = []
    if cfg.rate_limit_enabled:
        limiter = InMemoryFixedWindowRateLimiter(
            limit=cfg.rate_limit_requests,
            window_seconds=cfg.rate_limit_window_seconds,
        )
        stages.append(
            RateLimitStage(
                limiter,
                path_prefix=cfg.rate_limit_path_prefix,
                message=cfg.rate_limit_message,
                include_headers=cfg.rate_limit_include_headers,
            )
        )

    stages.extend(
        [
            # Must precede the parser: the signature covers the exact bytes
            RawBodyRouteStage(
                WEBHOOK_PATH,
                webhook_checkout,
                methods=("POST",),
                max_bytes=cfg.max_raw_body_bytes,
            ),
            BodyParserStage(max_bytes=cfg.max_body_bytes, max_depth=cfg.max_body_depth),
            OperatorSanitizerStage(),
            ScriptSanitizerStage(),
            ParameterPollutionStage(),
            RequestTimestampStage(),
        ]
    )
    return Pipeline(stages, trust_proxy=cfg.trust_proxy)


def build_services() -> ServiceRegistry:
    verifier = HmacSignatureVerifier(
        settings.payments.webhook_secret,
        tolerance_seconds=settings.payments.signature_tolerance_seconds,
    )
    return ServiceRegistry.in_memory(verifier=verifier, page_size=settings.app.page_size)


def create_app(
    *,
    services: ServiceRegistry | None = None,
    pipeline: Pipeline | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Resource services; defaults to fresh in-memory collections.
        pipeline: Request stages; defaults to ``build_pipeline()``.

    Returns:
        Configured app with middleware, pipeline, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Natours API",
        description=(
            "Tour booking API: tours, users, reviews and bookings, plus the "
            "payment provider's checkout webhook. Every request runs through "
            "rate limiting, size-capped parsing, sanitization and parameter "
            "de-duplication before it reaches a handler."
        ),
        version="1.0.0",
    )
    app.state.services = services or build_services()
    app.state.pipeline = pipeline or build_pipeline()

    # Middleware: each registration wraps the previous ones
    app.middleware("http")(app.state.pipeline)
    app.add_middleware(GZipMiddleware, minimum_size=settings.app.gzip_minimum_size)
    if settings.is_development:
        app.middleware("http")(access_log_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            origin.strip()
            for origin in settings.app.cors_allow_origins.split(",")
            if origin.strip()
        ],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(security_headers_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers; the fallback must stay last
    app.mount("/static", StaticAssets(directory=settings.app.static_dir), name="static")
    app.include_router(health_router)
    app.include_router(views_router)
    app.include_router(tours_router, prefix="/api/v1/tours")
    app.include_router(users_router, prefix="/api/v1/users")
    app.include_router(reviews_router, prefix="/api/v1/reviews")
    app.include_router(bookings_router, prefix="/api/v1/bookings")
    app.include_router(fallback_router)

    apply_openapi_customizations(app)

    return app
