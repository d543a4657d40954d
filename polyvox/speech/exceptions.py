"""Speech Domain Exceptions - Custom exception classes for error handling."""

from typing import Optional

from polyvox.shared.services.tts.models import Failure

from .constants import (
    ERROR_PROVIDER_NOT_CONFIGURED,
    FAILURE_STATUS,
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_SERVICE_UNAVAILABLE,
)


class SpeechError(Exception):
    """Base exception for all Speech domain errors."""

    status_code = HTTP_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: str = "SPEECH_ERROR",
        details: dict = None,
        status_code: Optional[int] = None,
    ):
        """
        Initialize Speech error.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            status_code: HTTP status, defaults to the class value
        """
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        return {"error": self.code, "message": self.message, "details": self.details}


class InvalidRequestError(SpeechError):
    """Raised when a request is invalid or malformed."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message=message, code="INVALID_REQUEST", details=details)


class ProviderNotConfiguredError(SpeechError):
    """Raised when the server holds no credentials for a provider."""

    status_code = HTTP_SERVICE_UNAVAILABLE

    def __init__(self, provider: str, details: dict = None):
        super().__init__(
            message=f"{ERROR_PROVIDER_NOT_CONFIGURED}: {provider}",
            code="PROVIDER_NOT_CONFIGURED",
            details=details or {"provider": provider},
        )


class SynthesisError(SpeechError):
    """Raised when a provider call returned a Failure."""

    def __init__(self, failure: Failure):
        super().__init__(
            message=failure.message,
            code=f"TTS_{failure.kind.name}",
            details=failure.to_dict(),
            status_code=FAILURE_STATUS.get(failure.kind, HTTP_BAD_GATEWAY),
        )
        self.failure = failure

    @property
    def retry_after(self) -> Optional[float]:
        return self.failure.retry_after
