"""
errors.py — Client-facing error taxonomy
========================================
Every error the API returns is one of these. Handlers in main.py render
them as ``{"success": false, "error": <kind>, "message": ...}``; the
optional ``detail`` is only exposed when diagnostics are enabled.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class EvaluationAPIError(Exception):
    kind = "InternalError"
    status_code = 500
    default_message = "Internal server error."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        detail: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.detail = detail
        self.extra = extra or {}
        self.headers = headers
        super().__init__(self.message)


class ValidationError(EvaluationAPIError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid request."


class NotFoundError(EvaluationAPIError):
    kind = "NotFoundError"
    status_code = 404
    default_message = "The requested resource does not exist."


class RateLimitExceeded(EvaluationAPIError):
    kind = "RateLimitExceeded"
    status_code = 429
    default_message = "Too many requests. Try again later."

    def __init__(self, retry_after_seconds: int, message: Optional[str] = None, **kwargs: Any) -> None:
        extra = {"retryAfterSeconds": retry_after_seconds, **kwargs.pop("extra", {})}
        headers = {"Retry-After": str(retry_after_seconds), **(kwargs.pop("headers", None) or {})}
        super().__init__(message, extra=extra, headers=headers, **kwargs)
        self.retry_after_seconds = retry_after_seconds


class RequestTimeout(EvaluationAPIError):
    kind = "RequestTimeout"
    status_code = 408
    default_message = "The upstream service did not answer in time."


class ServiceUnavailable(EvaluationAPIError):
    kind = "ServiceUnavailable"
    status_code = 503
    default_message = "Service temporarily unavailable."


class BadGateway(EvaluationAPIError):
    kind = "BadGateway"
    status_code = 502
    default_message = "The upstream service returned an invalid response."

    def __init__(self, message: Optional[str] = None, *, kind: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        if kind:
            self.kind = kind


class AuthenticationError(EvaluationAPIError):
    kind = "AuthenticationError"
    status_code = 500
    default_message = "The service is misconfigured. Contact the administrator."


class InternalError(EvaluationAPIError):
    pass
