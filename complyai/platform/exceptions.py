import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from complyai.platform.response import api_response

logger = logging.getLogger(__name__)


class ComplyAIError(Exception):
    """Base class for every error raised by the indexing and search pipeline."""


class FetchError(ComplyAIError):
    """A page could not be loaded by the browser layer."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class NavigationTimeout(FetchError):
    pass


class NetworkError(FetchError):
    pass


class ScanError(ComplyAIError):
    """The accessibility engine could not produce results for a page."""


class CrawlerStateError(ComplyAIError):
    """A crawler instance was asked to run twice."""


class ExternalServiceError(ComplyAIError):
    """Suggestion or embedding provider failure."""

    code = "ServiceError"


class RateLimited(ExternalServiceError):
    code = "RateLimited"


class ProviderTimeout(ExternalServiceError):
    code = "Timeout"


class ServiceError(ExternalServiceError):
    code = "ServiceError"


class PersistenceError(ComplyAIError):
    """A page transaction failed and was rolled back."""


class SuggestionFormatError(ComplyAIError):
    """A suggestion reply is missing one of its required sections. Logged only."""


def add_exception_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(message=str(exc.detail) or "Error", status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(ComplyAIError)
    async def complyai_exception_handler(request: Request, exc: ComplyAIError):
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
        if isinstance(exc, (FetchError, ScanError)):
            status_code = status.HTTP_502_BAD_GATEWAY
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return api_response(message=str(exc), status_code=status_code)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
