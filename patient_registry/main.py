from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from patient_registry.api.v1.api import api_router
from patient_registry.core.config import Settings, settings as default_settings
from patient_registry.core.exceptions import BaseCustomException, ErrorResponse
from patient_registry.core.logging_config import setup_logging
from patient_registry.core.readiness import DatabaseState
from patient_registry.domain.patients.service import PatientService
from patient_registry.infrastructure.database import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    status = await app.state.database_state.initialize()
    logger.info(f"{app.title} started, database {status.value}")
    yield
    await app.state.database.dispose()


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Composition root: one database, one readiness state, one service"""
    app_settings = app_settings or default_settings
    setup_logging(app_settings.LOG_LEVEL, debug=app_settings.DEBUG)

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        openapi_url=f"{app_settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    database = Database(app_settings.DATABASE_URL, echo=app_settings.DEBUG)
    app.state.settings = app_settings
    app.state.database = database
    app.state.database_state = DatabaseState(database)
    app.state.patient_service = PatientService(
        database,
        dob_offset_minutes=app_settings.DOB_UTC_OFFSET_MINUTES,
        query_read_only=app_settings.QUERY_CONSOLE_READ_ONLY,
    )

    # Set all CORS enabled origins
    if app_settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin).rstrip("/") for origin in app_settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(BaseCustomException)
    async def custom_exception_handler(request: Request, exc: BaseCustomException):
        logger.warning(f"{exc.__class__.__name__} [{exc.status_code}]: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.__class__.__name__,
                message=exc.message,
                error_code=exc.error_code,
                details=exc.details or None
            ).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for err in exc.errors():
            field = str(err["loc"][-1]) if err["loc"] else "body"
            errors.setdefault(field, []).append(err["msg"].removeprefix("Value error, "))
        message = ", ".join(f"{field}: {'; '.join(msgs)}" for field, msgs in errors.items())
        logger.warning(f"Request validation failed: {message}")
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="ValidationError",
                message=message,
                error_code="VALIDATION_ERROR",
                details={"fields": errors}
            ).model_dump()
        )

    app.include_router(api_router, prefix=app_settings.API_V1_STR)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
