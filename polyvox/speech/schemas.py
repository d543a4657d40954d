"""Speech Request/Response Schemas - Pydantic validation for API endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_AUDIO_FORMAT, MAX_REQUEST_TEXT_LENGTH, MAX_REQUEST_TIMEOUT


def _parse_bool(v) -> bool:
    """Convert string booleans from query params to actual booleans."""
    if isinstance(v, str):
        return v.lower().strip() in ("true", "1", "yes")
    if v is None:
        return False
    return bool(v)


# Request Schemas
class SynthesizeRequestSchema(BaseModel):
    """Schema for a synthesis request. Credentials come from the server environment."""

    provider: str = Field(..., min_length=1, description="Registered provider name")
    text: str = Field(
        ...,
        min_length=1,
        max_length=MAX_REQUEST_TEXT_LENGTH,
        description="Text to synthesize",
    )
    voice: str = Field(..., min_length=1, description="Provider voice identifier")
    format: str = Field(default=DEFAULT_AUDIO_FORMAT, description="Output audio format")
    advanced_options: Dict[str, Any] = Field(
        default_factory=dict, description="Provider-specific options (speed, model, ...)"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, le=MAX_REQUEST_TIMEOUT, description="Request timeout in seconds"
    )

    @field_validator("provider", "voice", "format")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject whitespace-only text; provider length limits are checked later."""
        if not v.strip():
            raise ValueError("Text cannot be empty or whitespace only")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "provider": "polly",
                "text": "Hello world",
                "voice": "Joanna",
                "format": "mp3",
                "advanced_options": {"engine": "neural"},
            }
        }
    }


class ValidateCredentialsRequestSchema(BaseModel):
    """Schema for a local credential check."""

    provider: str = Field(..., min_length=1, description="Registered provider name")
    credentials: Dict[str, Optional[str]] = Field(
        default_factory=dict, description="Credential fields, e.g. AccessKey/SecretKey/Region"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "provider": "azure",
                "credentials": {"ApiKey": "0123456789abcdef0123456789abcdef", "Region": "eastus"},
            }
        }
    }


class VoiceListQuerySchema(BaseModel):
    """Schema for voice list query parameters."""

    live: bool = Field(default=False, description="Fetch the provider's live voice list")

    @field_validator("live", mode="before")
    @classmethod
    def validate_live(cls, v) -> bool:
        return _parse_bool(v)


# Response Schemas
class ProviderSummarySchema(BaseModel):
    """Schema for one provider descriptor summary."""

    name: str
    display_name: str
    auth_scheme: str
    max_text_length: int
    supported_formats: List[str]
    credential_fields: List[str]
    advanced_options: List[str]
    voice_count: int


class ProviderListResponseSchema(BaseModel):
    """Schema for the provider list response."""

    providers: List[ProviderSummarySchema] = Field(default_factory=list)
    count: int = Field(..., description="Number of registered providers")


class VoiceListResponseSchema(BaseModel):
    """Schema for the voice list response."""

    provider: str
    voices: List[str] = Field(default_factory=list)
    live: bool = False
    count: int = 0


class ValidationResponseSchema(BaseModel):
    """Schema for a credential validation response."""

    provider: str
    valid: bool
    reasons: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = {
        "json_schema_extra": {
            "example": {
                "provider": "polly",
                "valid": False,
                "reasons": ["AccessKey must match AKIA followed by 16 uppercase letters or digits"],
                "timestamp": "2024-01-01T00:00:00Z",
            }
        }
    }


class HealthCheckResponseSchema(BaseModel):
    """Schema for health check response."""

    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    message: str = Field(..., description="Status message")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponseSchema(BaseModel):
    """Schema for error responses."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error details"
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "TTS_TRANSIENT",
                "message": "polly returned HTTP 429",
                "details": {"kind": "Transient", "retry_after": 2.0},
                "timestamp": "2024-01-01T00:00:00Z",
            }
        }
    }
