"""
Text-to-Speech provider core.

Leaf to root:
- validation: local credential/request checks (no I/O)
- signing: auth headers, including AWS Signature V4
- client: HTTP synthesis and response classification
- registry: provider name -> immutable descriptor

Plus caller-side helpers: voice catalogs, session pools, bulk synthesis.

Usage:
    # Standard import (recommended)
    from polyvox.shared.services.TTSService import TTSService

    # Or via factory function
    from polyvox.shared.utils.service_loader import get_tts_service
    tts = get_tts_service()
"""

from .client import DEFAULT_TIMEOUT, ProviderClient
from .errors import SynthesisFailedError, TTSError, UnknownProviderError
from .models import (
    AuthScheme,
    Failure,
    FailureKind,
    ProviderCredentials,
    ProviderDescriptor,
    SignedHeaders,
    Success,
    SynthesisRequest,
    SynthesisResult,
    ValidationResult,
)
from .registry import ProviderRegistry, build_default_registry
from .signing import sign
from .validation import validate, validate_request

__all__ = [
    "AuthScheme",
    "DEFAULT_TIMEOUT",
    "Failure",
    "FailureKind",
    "ProviderClient",
    "ProviderCredentials",
    "ProviderDescriptor",
    "ProviderRegistry",
    "SignedHeaders",
    "Success",
    "SynthesisFailedError",
    "SynthesisRequest",
    "SynthesisResult",
    "TTSError",
    "UnknownProviderError",
    "ValidationResult",
    "build_default_registry",
    "sign",
    "validate",
    "validate_request",
]
