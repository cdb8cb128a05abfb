"""HUB Empresas service entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hub_empresas import __version__
from hub_empresas.api.router import router
from hub_empresas.database import dispose_database, init_database
from hub_empresas.errors import ErrorCode, HubError
from hub_empresas.observability import configure_logging, get_logger
from hub_empresas.settings import get_settings

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    configure_logging(settings)
    init_database(settings)
    logger.info("Service started", service=settings.service_name, version=__version__)
    yield
    await dispose_database()
    logger.info("Service stopped", service=settings.service_name)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def hub_error_handler(request: Request, exc: HubError) -> JSONResponse:
    """Render a domain error in the error envelope."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        code=exc.code.value,
        status_code=exc.status_code,
        error=exc.message,
    )
    return _error_response(exc.status_code, exc.code.value, exc.message)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the error envelope."""
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCode.VALIDATION_ERROR.value,
        "; ".join(messages) or "Invalid request.",
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method) in the envelope."""
    code = ErrorCode.NOT_FOUND.value if exc.status_code == 404 else "HTTP_ERROR"
    return _error_response(exc.status_code, code, str(exc.detail))


def create_app() -> FastAPI:
    """Build the FastAPI application with routes and error handlers."""
    application = FastAPI(
        title="HUB Empresas",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_exception_handler(HubError, hub_error_handler)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    application.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    application.include_router(router, prefix="/api/v1")

    @application.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.service_name}

    return application


app: FastAPI = create_app()
