"""Domain error base class and the API error translation layer.

Service-layer code raises plain ``DomainError`` subclasses and never
imports DRF.  ``DomainExceptionHandler`` plugs into
``drf-standardized-errors`` so every error response, domain or framework,
has the same shape::

    {"type": "client_error",
     "errors": [{"code": "insufficient_stock", "detail": "...", "attr": null}]}

Unexpected exceptions are logged with full context and answered with a
generic 500 body.
"""

from __future__ import annotations

from typing import Any

import structlog
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework import exceptions, status

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for expected, recoverable business outcomes.

    ``code`` is the stable machine-readable identifier clients switch on;
    ``status_code`` is the HTTP status the API answers with.
    """

    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.context = context

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.code


class DomainAPIException(exceptions.APIException):
    """DRF exception carrying a translated ``DomainError``."""

    def __init__(self, error: DomainError) -> None:
        self.status_code = error.status_code
        super().__init__(detail=error.message, code=error.code)


class DomainExceptionHandler(ExceptionHandler):
    """Translate domain errors and hide internals of unexpected failures."""

    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, DomainError):
            logger.info(
                "api.domain_error",
                code=exc.code,
                status_code=exc.status_code,
                detail=exc.message,
            )
            return DomainAPIException(exc)
        return super().convert_known_exceptions(exc)

    def convert_unhandled_exceptions(self, exc: Exception) -> exceptions.APIException:
        if isinstance(exc, exceptions.APIException):
            return exc
        request = self.context.get("request")
        view = self.context.get("view")
        logger.error(
            "api.unhandled_exception",
            error_type=type(exc).__name__,
            method=getattr(request, "method", None),
            path=getattr(request, "path", None),
            view=type(view).__name__ if view is not None else None,
            exc_info=exc,
        )
        return exceptions.APIException()
