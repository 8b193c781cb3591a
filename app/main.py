"""ASGI entry point for the Keystone identity API.

create_app() only wires pieces together; settings are read when it runs so
tests can prepare the environment first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.api.v1.endpoints import health
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.core.limiter import configure_limiter
from app.middleware import RequestIDMiddleware, TimeoutMiddleware
from app.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title="Keystone Identity",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.limiter = configure_limiter(settings.rate_limit_enabled)
    register_exception_handlers(app)

    # Outermost last: timeout wraps request id, which wraps CORS.
    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", settings.request_id_header],
        expose_headers=[settings.request_id_header],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
