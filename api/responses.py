"""
Groundwork - Response Builder

Builds Starlette responses for handlers and maps exceptions to HTTP status
codes through error categories.

Features:
- JSON, text and HTML responses with explicit status codes
- Uniform JSON error body: ``{"error": {"status": ..., "message": ...}}``
- Error categories: ``DomainError`` becomes 400, anything else 500
- Structured logging of internal errors through the container's logger
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Type

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from domain.errors import DomainError

if TYPE_CHECKING:
    from observability.logging import LoggerService

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


@dataclass
class ErrorCategory:
    """Maps a set of exception types to one HTTP status code."""

    status_code: int
    error_types: Tuple[Type[BaseException], ...] = field(default_factory=tuple)
    expose_message: bool = True

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, self.error_types)


def default_error_categories() -> List[ErrorCategory]:
    """Business errors are the caller's fault; everything else is ours."""
    return [ErrorCategory(status_code=400, error_types=(DomainError,))]


class ResponseBuilder:
    """
    Response factory shared by all handlers.

    Usage:
        builder = container.response_builder
        return builder.success({"id": 1})
        return builder.error(exc, request)
    """

    def __init__(
        self,
        logger_service: "LoggerService",
        error_categories: Optional[List[ErrorCategory]] = None,
    ):
        self._logger = logger_service.get_logger("groundwork.api.responses")
        self._categories = error_categories if error_categories is not None else default_error_categories()

    @property
    def error_categories(self) -> List[ErrorCategory]:
        return list(self._categories)

    def success(self, data: Any, status_code: int = 200) -> JSONResponse:
        return JSONResponse(content=jsonable_encoder(data), status_code=status_code)

    def created(self, data: Any) -> JSONResponse:
        return self.success(data, status_code=201)

    def text(self, content: str, status_code: int = 200) -> PlainTextResponse:
        return PlainTextResponse(content, status_code=status_code)

    def html(self, content: str, status_code: int = 200) -> HTMLResponse:
        return HTMLResponse(content, status_code=status_code)

    def error_response(self, status_code: int, message: str) -> JSONResponse:
        return JSONResponse(
            content={"error": {"status": status_code, "message": message}},
            status_code=status_code,
        )

    def bad_request(self, message: str) -> JSONResponse:
        return self.error_response(400, message)

    def not_found(self, message: str = "Not Found") -> JSONResponse:
        return self.error_response(404, message)

    def internal_server_error(
        self,
        error: BaseException,
        request: Optional[Request] = None,
    ) -> JSONResponse:
        """Log the error with request details and answer with a generic 500."""
        self._logger.error(
            "internal server error",
            error=error,
            method=request.method if request is not None else None,
            path=request.url.path if request is not None else None,
        )
        return self.error_response(500, INTERNAL_ERROR_MESSAGE)

    def error(self, error: BaseException, request: Optional[Request] = None) -> Response:
        """Answer with the status of the first matching category, else 500."""
        for category in self._categories:
            if category.matches(error):
                if category.status_code >= 500:
                    return self.internal_server_error(error, request)
                message = str(error) if category.expose_message else ""
                self._logger.info(
                    "request rejected",
                    status=category.status_code,
                    reason=message,
                    path=request.url.path if request is not None else None,
                )
                return self.error_response(category.status_code, message)
        return self.internal_server_error(error, request)
