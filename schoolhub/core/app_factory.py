from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.approval_service import ApprovalService
from ..application.services.auth_service import AuthService
from ..application.services.contact_service import ContactService
from ..application.services.records_service import RecordsService
from ..application.services.token_service import TokenService
from ..domain.errors import DomainError, RangeNotSatisfiableError
from ..domain.ports.persistence import CredentialDirectory
from ..infrastructure.credentials.firebase_directory import build_credential_directory
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..infrastructure.repositories.records_repository import RecordsRepository
from ..presentation.api.routers import admin_contacts as admin_contacts_router
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import evaluation as evaluation_router
from ..presentation.api.routers import grading as grading_router
from ..presentation.api.routers import pending_users as pending_users_router
from ..presentation.api.routers import tokens as tokens_router
from ..services.email_service import EmailService
from ..services.video_library import VideoLibrary

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    credential_directory: Optional[CredentialDirectory] = None,
    email_service: Optional[EmailService] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="SchoolHub",
        lifespan=_create_lifespan(settings, credential_directory, email_service),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(auth_router.router)
    app.include_router(tokens_router.router)
    app.include_router(pending_users_router.router)
    app.include_router(admin_contacts_router.router)
    app.include_router(grading_router.router)
    app.include_router(evaluation_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True, "environment": settings.environment}

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        headers = None
        if isinstance(exc, RangeNotSatisfiableError):
            headers = {"Content-Range": f"bytes */{exc.size}"}
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request", "message": problems})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Server error", "message": "An unexpected error occurred."},
        )


def _create_lifespan(
    settings: Settings,
    credential_directory: Optional[CredentialDirectory],
    email_service: Optional[EmailService],
):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        persistence = SQLitePersistence(settings.database_path)
        records_repository = RecordsRepository(str(settings.database_path))
        directory = credential_directory or build_credential_directory(settings.firebase_credentials)
        email = email_service or EmailService.from_settings(settings)

        auth_service = AuthService(
            persistence=persistence,
            secret_key=settings.jwt_secret,
            token_exp_minutes=settings.auth_token_exp_minutes,
            algorithm=settings.jwt_algorithm,
        )
        auth_service.ensure_default_admin(settings.admin_default_email, settings.admin_default_password)

        container = ApplicationContainer(
            settings=settings,
            persistence=persistence,
            credential_directory=directory,
            email_service=email,
            auth_service=auth_service,
            token_service=TokenService(
                persistence,
                auth_service,
                daily_limit=settings.token_daily_limit,
                trial_max_days=settings.trial_token_max_days,
            ),
            approval_service=ApprovalService(persistence, directory, email),
            contact_service=ContactService(persistence, email, settings.admin_contact_email),
            records_service=RecordsService(records_repository),
            video_library=VideoLibrary(settings.video_base_dir),
        )

        app.state.container = container  # type: ignore[attr-defined]
        logger.info("SchoolHub started (%s) with database %s", settings.environment, settings.database_path)

        try:
            yield
        finally:
            persistence.close()

    return lifespan
