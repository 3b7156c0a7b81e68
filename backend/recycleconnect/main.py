"""
FastAPI entrypoint for the RecycleConnect marketplace backend.
"""
import logging
from datetime import timedelta
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from recycleconnect.core.config import Settings, settings as default_settings
from recycleconnect.core.exceptions import InternalError, MarketplaceError
from recycleconnect.core.utils import format_error
from recycleconnect.api.router import api_router
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.repositories.memory import InMemoryStore
from recycleconnect.services.session_service import SessionStore

logger = logging.getLogger(__name__)


def build_store(app_settings: Settings) -> MarketplaceStore:
    """Create the configured persistence engine."""
    if app_settings.STORAGE_BACKEND == "sql":
        from recycleconnect.db.session import build_engine, build_session_factory, init_db
        from recycleconnect.repositories.sql import SqlAlchemyStore

        engine = build_engine(app_settings.DATABASE_URL, app_settings.DB_ECHO)
        init_db(engine)
        return SqlAlchemyStore(build_session_factory(engine))
    if app_settings.STORAGE_BACKEND == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown STORAGE_BACKEND: {app_settings.STORAGE_BACKEND}")


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    message = str(errors[0].get("msg", "Invalid request"))
    # Messages from custom validators carry pydantic's prefix
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


def register_exception_handlers(app: FastAPI):
    """Map domain errors, validation failures and crashes to JSON responses."""

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(status_code=exc.status_code, content=format_error(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=format_error(_first_error_message(exc))
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return await marketplace_error_handler(request, InternalError())


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[MarketplaceStore] = None
) -> FastAPI:
    """Build the application with its own store and session map."""
    app_settings = app_settings or default_settings
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = FastAPI(
        title=f"{app_settings.APP_NAME} API",
        description="Marketplace for collectors, transporters and buyers of recyclable waste",
        version="1.0.0",
        debug=app_settings.DEBUG
    )
    app.state.settings = app_settings
    app.state.store = store if store is not None else build_store(app_settings)
    app.state.sessions = SessionStore(
        ttl=timedelta(hours=app_settings.SESSION_EXPIRE_HOURS),
        secret_key=app_settings.SECRET_KEY,
        algorithm=app_settings.ALGORITHM
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": f"{app_settings.APP_NAME} API is running"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
