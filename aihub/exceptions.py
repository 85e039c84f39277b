"""Custom exceptions for aihub."""

from typing import Any, Optional


class AIHubError(Exception):
    """Base exception for all aihub errors."""

    def __init__(
        self,
        message: str,
        *,
        type: Optional[str] = None,
        param: Optional[str] = None,
        code: Optional[str] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type or "aihub_error"
        self.param = param
        self.code = code
        self.body = body or {}

    def __str__(self) -> str:
        msg = self.message
        if self.type:
            msg = f"{self.type}: {msg}"
        if self.code:
            msg = f"[{self.code}] {msg}"
        return msg

    def to_dict(self) -> dict[str, Any]:
        """Render the error the way the API returns it."""
        return {
            "error": {
                "message": self.message,
                "type": self.type,
                "param": self.param,
                "code": self.code,
            }
        }


class NotFoundError(AIHubError):
    """Requested resource not found."""

    def __init__(self, message: str = "Resource not found", **kwargs: Any) -> None:
        super().__init__(message, type="not_found", code="404", **kwargs)


class BadRequestError(AIHubError):
    """Invalid request (malformed, missing params, etc.)."""

    def __init__(self, message: str = "Bad request", **kwargs: Any) -> None:
        super().__init__(message, type="invalid_request_error", code="400", **kwargs)


class ValidationError(AIHubError):
    """Validation error."""

    def __init__(self, message: str = "Validation error", **kwargs: Any) -> None:
        super().__init__(message, type="validation_error", code="400", **kwargs)


class ConflictError(AIHubError):
    """The write would violate a uniqueness or ownership rule."""

    def __init__(self, message: str = "Conflict", **kwargs: Any) -> None:
        super().__init__(message, type="conflict", code="409", **kwargs)


class ModelUnavailableError(AIHubError):
    """Model is not configured or not enabled, so it is not offered."""

    def __init__(self, model_id: str, reason: str = "not configured", **kwargs: Any) -> None:
        message = f"Model '{model_id}' is not offered ({reason})"
        super().__init__(message, type="model_unavailable", code="403", **kwargs)
        self.model_id = model_id
        self.reason = reason


class MalformedExternalEntryError(ValidationError):
    """A single provider record failed validation."""

    def __init__(
        self,
        reason: str,
        external_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        message = f"Malformed provider entry: {reason}"
        if external_id:
            message = f"Malformed provider entry '{external_id}': {reason}"
        super().__init__(message, **kwargs)
        self.type = "malformed_external_entry"
        self.external_id = external_id
        self.reason = reason


class ExternalFetchError(AIHubError):
    """Network or provider failure while fetching external data."""

    def __init__(
        self,
        message: str = "External fetch failed",
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, type="external_fetch_error", code="502", **kwargs)
        self.status_code = status_code


class ExternalTimeoutError(ExternalFetchError):
    """External request timed out."""

    def __init__(self, message: str = "External request timed out", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.type = "timeout_error"
        self.code = "504"


def map_http_status_to_error(status_code: int, message: str, body: Optional[dict] = None) -> AIHubError:
    """Map an external service's HTTP status code to an exception."""
    if status_code == 504:
        return ExternalTimeoutError(message, status_code=status_code, body=body)
    error = ExternalFetchError(message, status_code=status_code, body=body)
    if status_code in (401, 403):
        error.type = "external_authentication_error"
    elif status_code == 404:
        error.type = "external_not_found"
    elif status_code == 429:
        error.type = "external_rate_limited"
    return error
