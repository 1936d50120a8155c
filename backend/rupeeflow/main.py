"""FastAPI main application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rupeeflow.config import Settings
from rupeeflow.errors import (
    AuthError,
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    NotFoundError,
    PersistenceError,
    RupeeFlowError,
    ValidationError,
)
from rupeeflow.logging_config import configure_logging
from rupeeflow.routers import advisor, analytics, auth, budgets, sync, transactions
from rupeeflow.state import AppState

load_dotenv()

logger = logging.getLogger(__name__)

# Most specific first
_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (EmailNotVerifiedError, status.HTTP_403_FORBIDDEN),
    (EmailAlreadyRegisteredError, status.HTTP_409_CONFLICT),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(error: RupeeFlowError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def rupeeflow_error_handler(request: Request, exc: RupeeFlowError) -> JSONResponse:
    code = status_for(exc)
    content = {"detail": exc.message}
    headers = None
    if isinstance(exc, EmailNotVerifiedError):
        content["needs_verification"] = True
    if code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    if code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=code, content=content, headers=headers)


def create_app(settings: Optional[Settings] = None, state: Optional[AppState] = None) -> FastAPI:
    settings = settings or (state.settings if state else Settings())
    configure_logging(settings.debug)
    state = state or AppState.create(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting RupeeFlow API", extra={"database_path": settings.database_path})
        yield
        state.close()

    app = FastAPI(title=settings.app_name, debug=settings.debug, version="1.0.0", lifespan=lifespan)
    app.state.rupeeflow = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RupeeFlowError, rupeeflow_error_handler)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "RupeeFlow API", "version": "1.0.0"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth.router)
    app.include_router(transactions.router)
    app.include_router(budgets.router)
    app.include_router(analytics.router)
    app.include_router(analytics.categories_router)
    app.include_router(advisor.router)
    app.include_router(sync.router)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("rupeeflow.main:create_app", factory=True, host="0.0.0.0", port=8000)
