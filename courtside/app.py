import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtside.core.config import Settings, get_settings
from courtside.core.errors import CourtsideError, InvalidInputError
from courtside.repositories.sql_repository import SQLRepository
from courtside.routers import auth as auth_router
from courtside.routers import events as events_router
from courtside.services.account_service import AccountService
from courtside.services.auth_service import AuthService
from courtside.services.comment_service import CommentService
from courtside.services.event_service import EventService

logger = logging.getLogger(__name__)


def _cors_origins(settings: Settings) -> list[str]:
    allowed = set(settings.cors_origins)
    allowed.add(settings.public_base_url)
    if settings.app_env != "prod":
        allowed.update(
            {
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            }
        )
    return sorted(origin for origin in allowed if origin)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CourtsideError)
    async def courtside_error(request: Request, exc: CourtsideError):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        first = (exc.errors() or [{}])[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid value for '{field}'." if field else "Malformed request body."
        error = InvalidInputError(message)
        return JSONResponse(error.to_dict(), status_code=error.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Error", "code": "Internal", "message": "Internal server error."}, status_code=500)


def create_app(settings: Optional[Settings] = None, repository: Optional[SQLRepository] = None) -> FastAPI:
    """Build the API with its services wired to one repository."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    repository = repository or SQLRepository()

    app = FastAPI(title="Courtside API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    app.state.settings = settings
    app.state.auth_service = AuthService(repository=repository, settings=settings)
    app.state.event_service = EventService(repository=repository, settings=settings)
    app.state.comment_service = CommentService(repository=repository, settings=settings)
    app.state.account_service = AccountService(repository=repository, settings=settings)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(events_router.router)
    return app
