"""TTS core exceptions.

Expected failures (bad input, rejected credentials, HTTP errors) are returned
as ``Failure`` values. These exceptions cover lookups that must not silently
succeed and programming errors.
"""

from typing import Optional


class TTSError(Exception):
    """Base exception for the TTS provider core."""

    def __init__(self, message: str, code: str = "TTS_ERROR", details: Optional[dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        return {"error": self.code, "message": self.message, "details": self.details}


class UnknownProviderError(TTSError):
    """Raised when a provider name is not in the registry."""

    def __init__(self, name: str, available: Optional[list] = None):
        super().__init__(
            message=f"Unknown TTS provider: {name}",
            code="UNKNOWN_PROVIDER",
            details={"provider": name, "available": available or []},
        )
        self.name = name


class SynthesisFailedError(TTSError):
    """Raised by ``TTSService.generate_audio`` when synthesis returns a ``Failure``."""

    def __init__(self, failure):
        super().__init__(
            message=failure.message,
            code=f"TTS_{failure.kind.name}",
            details=failure.to_dict(),
        )
        self.failure = failure
