from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .admin_registry import AdminRegistry
from .config import Settings
from .credentials import CredentialVerifier
from .db import get_engine
from .errors import AppError, handle_app_errors, handle_broad_exceptions, handle_request_validation_errors
from .logger import configure_logger, log_requests
from .models import Base
from .report_routes import router as api_token_router
from .routes import router as session_router
from .schema_migration import run_startup_migrations


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logger(settings.log_level)

    engine = get_engine(settings)
    Base.metadata.create_all(bind=engine)
    # lightweight migrations for databases created by older releases
    run_startup_migrations(engine, settings.database_url)

    registry = AdminRegistry(settings.admin_file)
    registry.seed(settings.seed_admins())

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.engine = engine
    app.state.admin_registry = registry
    app.state.credential_verifier = CredentialVerifier(settings.ldap_url, timeout=settings.ldap_timeout_seconds)

    # CORS for dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "service": settings.app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(session_router, prefix="/api")
    app.include_router(api_token_router, prefix="/api")

    app.add_exception_handler(AppError, handle_app_errors)
    app.add_exception_handler(RequestValidationError, handle_request_validation_errors)
    app.middleware("http")(log_requests)
    app.middleware("http")(handle_broad_exceptions)

    @app.on_event("shutdown")
    def _shutdown():
        engine.dispose()

    logger.info(
        "Supply Desk API configured",
        database_url=engine.url.render_as_string(hide_password=True),
        auth_url=settings.ldap_url,
        admins=registry.list_admins(),
    )
    return app
