"""Exceptions raised while talking to the GuardScore service."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class GuardScoreError(Exception):
    """Base exception for all GuardScore errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}'"
            f")"
        )


class PreconditionError(GuardScoreError):
    """Raised when a request cannot be served with the arguments supplied."""

    def __init__(
        self,
        message: str,
        error_code: str = "PRECONDITION_FAILED",
        details: Optional[Dict[str, Any]] = None,
        fields: Optional[list] = None,
    ):
        super().__init__(message, error_code, details)
        if fields:
            self.details["fields"] = fields


class RemoteServiceError(GuardScoreError):
    """Raised when the remote service answers with a non-2xx status."""

    def __init__(
        self,
        message: str = "Remote service error",
        error_code: str = "REMOTE_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        self.status_code = status_code
        if status_code is not None:
            self.details["status_code"] = status_code
        if path:
            self.details["path"] = path


class RemoteAuthError(RemoteServiceError):
    """Raised on 401/403, i.e. the configured key lacks the required scope."""

    def __init__(
        self,
        message: str = "Insufficient privilege for remote endpoint",
        error_code: str = "REMOTE_AUTH_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, error_code, details, status_code, path)


class RemoteTimeoutError(GuardScoreError):
    """Raised when the remote call exceeds the configured timeout."""

    def __init__(
        self,
        message: str = "Remote request timed out",
        error_code: str = "REMOTE_TIMEOUT",
        details: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message, error_code, details)
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class MalformedResponseError(GuardScoreError):
    """Raised when a 2xx response body cannot be used."""

    def __init__(
        self,
        message: str = "Malformed response body",
        error_code: str = "MALFORMED_RESPONSE",
        details: Optional[Dict[str, Any]] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        if path:
            self.details["path"] = path


class ConfigurationError(GuardScoreError):
    """Raised for configuration files that cannot be loaded."""

    def __init__(
        self,
        message: str = "Configuration error",
        error_code: str = "CONFIGURATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
        config_key: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        if config_key:
            self.details["config_key"] = config_key
