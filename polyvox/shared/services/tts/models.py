"""
Value objects shared by the TTS provider core.

Everything in here is immutable or caller-owned, so the validator, signer and
client can be called concurrently without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from string import Formatter
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union


class AuthScheme(str, Enum):
    """How a provider expects requests to be authenticated."""

    API_KEY_HEADER = "ApiKeyHeader"
    BASIC_AUTH = "BasicAuth"
    BEARER_TOKEN = "BearerToken"
    AWS_SIGV4 = "AwsSigV4"


class FailureKind(str, Enum):
    """Failure taxonomy returned by validate/sign/synthesize."""

    INVALID_INPUT = "InvalidInput"
    INVALID_CREDENTIALS = "InvalidCredentials"
    UNKNOWN_PROVIDER = "UnknownProvider"
    NETWORK_FAILURE = "NetworkFailure"
    TRANSIENT = "Transient"
    BAD_REQUEST = "BadRequest"
    PROVIDER_ERROR = "ProviderError"


RETRYABLE_KINDS = frozenset({FailureKind.TRANSIENT, FailureKind.NETWORK_FAILURE})


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    Static description of a TTS backend.

    Built once at startup and never mutated. ``endpoint`` is a URL template;
    ``{placeholders}`` are filled from credential fields and the request
    (``{region}``, ``{voice}``, ``{AccountSid}`` ...).
    """

    name: str
    auth_scheme: AuthScheme
    max_text_length: int
    supported_formats: FrozenSet[str]
    voice_catalog: Tuple[str, ...]
    endpoint: str
    display_name: str = ""
    http_method: str = "POST"
    credential_fields: Tuple[str, ...] = ()
    api_key_header: Optional[str] = None
    signing_service: Optional[str] = None
    regions: FrozenSet[str] = frozenset()
    voice_pattern: Optional[str] = None
    advanced_options: FrozenSet[str] = frozenset()
    voices_url: Optional[str] = None
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("ProviderDescriptor.name cannot be empty")
        if self.max_text_length <= 0:
            raise ValueError(f"{self.name}: max_text_length must be positive")
        if self.auth_scheme == AuthScheme.API_KEY_HEADER and not self.api_key_header:
            raise ValueError(f"{self.name}: ApiKeyHeader providers need api_key_header")
        if self.auth_scheme == AuthScheme.AWS_SIGV4 and not self.signing_service:
            raise ValueError(f"{self.name}: AwsSigV4 providers need signing_service")
        if self.auth_scheme == AuthScheme.BASIC_AUTH and len(self.credential_fields) < 2:
            raise ValueError(f"{self.name}: BasicAuth providers need username and password fields")
        for template in (self.endpoint, self.voices_url):
            if template:
                self._check_placeholders(template)

    def _check_placeholders(self, template: str) -> None:
        """URL templates may only name credential fields and ``{voice}``."""
        allowed = set(self.credential_fields) | {"voice"}
        try:
            names = {field for _, field, _, _ in Formatter().parse(template) if field is not None}
        except ValueError as e:
            raise ValueError(f"{self.name}: malformed URL template {template!r}: {e}") from e
        unknown = sorted(names - allowed)
        if unknown:
            raise ValueError(
                f"{self.name}: URL template {template!r} uses unknown placeholder(s) "
                f"{', '.join(unknown)}; allowed: {', '.join(sorted(allowed))}"
            )

    def supports_format(self, audio_format: str) -> bool:
        return audio_format.lower() in self.supported_formats

    def summary(self) -> Dict[str, Any]:
        """Serializable view used by the HTTP layer."""
        return {
            "name": self.name,
            "display_name": self.display_name or self.name,
            "auth_scheme": self.auth_scheme.value,
            "max_text_length": self.max_text_length,
            "supported_formats": sorted(self.supported_formats),
            "credential_fields": list(self.credential_fields),
            "advanced_options": sorted(self.advanced_options),
            "voice_count": len(self.voice_catalog),
        }


class ProviderCredentials:
    """
    Caller-owned secret/identifying fields (AccessKey, SecretKey, ApiKey ...).

    Values are never included in ``repr`` so credentials cannot leak into logs.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        merged = dict(values or {})
        merged.update(kwargs)
        self._values: Dict[str, str] = {
            str(k): "" if v is None else str(v).strip() for k, v in merged.items()
        }

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)

    def missing(self, keys: Iterable[str]) -> List[str]:
        """Return the subset of ``keys`` that are absent or empty."""
        return [k for k in keys if not self._values.get(k)]

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProviderCredentials):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"ProviderCredentials(fields={sorted(self._values)})"


@dataclass(frozen=True)
class SynthesisRequest:
    text: str
    voice: str
    format: str = "mp3"
    advanced_options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationResult:
    reasons: Tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.reasons

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def from_reasons(cls, reasons: Iterable[str]) -> "ValidationResult":
        return cls(reasons=tuple(reasons))

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "reasons": list(self.reasons)}


@dataclass(frozen=True)
class Success:
    """Synthesized audio returned by a provider."""

    audio_bytes: bytes
    provider: str = ""
    content_type: Optional[str] = None

    @property
    def byte_length(self) -> int:
        return len(self.audio_bytes)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """A failed operation; carries enough detail to log and pick a retry policy."""

    kind: FailureKind
    message: str
    provider: str = ""
    status_code: Optional[int] = None
    retry_after: Optional[float] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "provider": self.provider,
            "status_code": self.status_code,
            "retry_after": self.retry_after,
            "retryable": self.retryable,
        }


SynthesisResult = Union[Success, Failure]


@dataclass(frozen=True)
class SignedHeaders:
    """Outcome of signing: the complete header set, or why signing refused."""

    headers: Dict[str, str] = field(default_factory=dict)
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None
