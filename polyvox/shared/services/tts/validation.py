"""
Local credential and request validation.

Catches obviously malformed input before a request burns an API call (and
quota). Everything here is pure: no I/O, no logging, no exceptions for bad
input. Callers decide what to log.

Note: the API-key length floor is a heuristic for "looks like a real token".
Only a live call proves a key is valid.
"""

import re
from typing import List

from .models import (
    AuthScheme,
    ProviderCredentials,
    ProviderDescriptor,
    SynthesisRequest,
    ValidationResult,
)

AWS_ACCESS_KEY_PATTERN = re.compile(r"^AKIA[A-Z0-9]{16}$")
AWS_SECRET_KEY_LENGTH = 40
MIN_API_KEY_LENGTH = 20
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

AWS_REGIONS = frozenset(
    {
        "us-east-1",
        "us-east-2",
        "us-west-1",
        "us-west-2",
        "af-south-1",
        "ap-east-1",
        "ap-south-1",
        "ap-northeast-1",
        "ap-northeast-2",
        "ap-northeast-3",
        "ap-southeast-1",
        "ap-southeast-2",
        "ca-central-1",
        "eu-central-1",
        "eu-west-1",
        "eu-west-2",
        "eu-west-3",
        "eu-north-1",
        "eu-south-1",
        "me-south-1",
        "sa-east-1",
        "us-gov-west-1",
        "cn-north-1",
        "cn-northwest-1",
    }
)

AZURE_REGIONS = frozenset(
    {
        "eastus",
        "eastus2",
        "westus",
        "westus2",
        "westus3",
        "centralus",
        "northcentralus",
        "southcentralus",
        "westcentralus",
        "canadacentral",
        "brazilsouth",
        "northeurope",
        "westeurope",
        "uksouth",
        "francecentral",
        "germanywestcentral",
        "switzerlandnorth",
        "norwayeast",
        "swedencentral",
        "eastasia",
        "southeastasia",
        "japaneast",
        "japanwest",
        "koreacentral",
        "australiaeast",
        "centralindia",
        "southafricanorth",
        "uaenorth",
    }
)

# Field names used by the AwsSigV4 scheme.
AWS_ACCESS_KEY_FIELD = "AccessKey"
AWS_SECRET_KEY_FIELD = "SecretKey"
REGION_FIELD = "Region"
API_KEY_FIELD = "ApiKey"


def _require_descriptor(descriptor: ProviderDescriptor) -> None:
    if descriptor is None:
        raise TypeError("descriptor is required")


def _check_aws(credentials: ProviderCredentials, reasons: List[str]) -> None:
    access_key = credentials.get(AWS_ACCESS_KEY_FIELD)
    secret_key = credentials.get(AWS_SECRET_KEY_FIELD)
    region = credentials.get(REGION_FIELD)

    if access_key and not AWS_ACCESS_KEY_PATTERN.match(access_key):
        reasons.append(
            "AccessKey must be 'AKIA' followed by 16 uppercase letters or digits"
        )
    if secret_key and len(secret_key) != AWS_SECRET_KEY_LENGTH:
        reasons.append(
            f"SecretKey must be exactly {AWS_SECRET_KEY_LENGTH} characters "
            f"(got {len(secret_key)})"
        )
    if region and region not in AWS_REGIONS:
        reasons.append(f"Region '{region}' is not a known AWS region")


def _check_api_key(
    descriptor: ProviderDescriptor, credentials: ProviderCredentials, reasons: List[str]
) -> None:
    key_field = descriptor.credential_fields[0] if descriptor.credential_fields else API_KEY_FIELD
    api_key = credentials.get(key_field)
    if api_key and len(api_key) < MIN_API_KEY_LENGTH:
        reasons.append(
            f"{key_field} looks too short to be a real token "
            f"(minimum {MIN_API_KEY_LENGTH} characters)"
        )


def _check_basic(
    descriptor: ProviderDescriptor, credentials: ProviderCredentials, reasons: List[str]
) -> None:
    user_field, password_field = descriptor.credential_fields[:2]
    username = credentials.get(user_field)
    password = credentials.get(password_field)
    if username and len(username) < MIN_USERNAME_LENGTH:
        reasons.append(f"{user_field} must be at least {MIN_USERNAME_LENGTH} characters")
    if password and len(password) < MIN_PASSWORD_LENGTH:
        reasons.append(
            f"{password_field} must be at least {MIN_PASSWORD_LENGTH} characters"
        )


def validate(
    descriptor: ProviderDescriptor, credentials: ProviderCredentials
) -> ValidationResult:
    """Check credential shape for the descriptor's auth scheme."""
    _require_descriptor(descriptor)
    if credentials is None:
        return ValidationResult.from_reasons(["No credentials supplied"])

    reasons = [
        f"{name} is required" for name in credentials.missing(descriptor.credential_fields)
    ]

    scheme = descriptor.auth_scheme
    if scheme == AuthScheme.AWS_SIGV4:
        _check_aws(credentials, reasons)
    elif scheme in (AuthScheme.API_KEY_HEADER, AuthScheme.BEARER_TOKEN):
        _check_api_key(descriptor, credentials, reasons)
        region = credentials.get(REGION_FIELD)
        if descriptor.regions and region and region not in descriptor.regions:
            reasons.append(f"Region '{region}' is not supported by {descriptor.name}")
    elif scheme == AuthScheme.BASIC_AUTH:
        _check_basic(descriptor, credentials, reasons)

    return ValidationResult.from_reasons(reasons)


def validate_request(
    descriptor: ProviderDescriptor, request: SynthesisRequest
) -> ValidationResult:
    """Check a synthesis request against the descriptor's declared capabilities."""
    _require_descriptor(descriptor)
    if request is None:
        raise TypeError("request is required")

    reasons = []
    text = request.text or ""
    if not text.strip():
        reasons.append("Text cannot be empty")
    elif len(text) > descriptor.max_text_length:
        reasons.append(
            f"Text length {len(text)} exceeds {descriptor.name} limit of "
            f"{descriptor.max_text_length} characters"
        )

    if not descriptor.supports_format(request.format or ""):
        reasons.append(
            f"Format '{request.format}' is not supported by {descriptor.name} "
            f"(supported: {', '.join(sorted(descriptor.supported_formats))})"
        )

    if not is_voice_accepted(descriptor, request.voice):
        reasons.append(f"Voice '{request.voice}' is not available for {descriptor.name}")

    unknown = sorted(set(request.advanced_options or {}) - descriptor.advanced_options)
    if unknown:
        reasons.append(
            f"Unsupported advanced options for {descriptor.name}: {', '.join(unknown)}"
        )

    return ValidationResult.from_reasons(reasons)


def is_voice_accepted(descriptor: ProviderDescriptor, voice: str) -> bool:
    """A voice is accepted if it is in the catalog or matches the provider's id pattern."""
    if not voice:
        return False
    if voice in descriptor.voice_catalog:
        return True
    if descriptor.voice_pattern:
        return re.fullmatch(descriptor.voice_pattern, voice) is not None
    return False
