"""Speech Domain Constants - Configuration and constant values."""

from polyvox.shared.services.tts.models import FailureKind

# API Version
API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}/speech"

# Synthesis defaults
DEFAULT_AUDIO_FORMAT = "mp3"
MAX_REQUEST_TEXT_LENGTH = 10000  # characters; providers enforce their own lower limits
MAX_REQUEST_TIMEOUT = 120  # seconds

# HTTP Status Codes
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_ERROR = 500
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503
HTTP_GATEWAY_TIMEOUT = 504

# Failure kind -> HTTP status returned to our callers
FAILURE_STATUS = {
    FailureKind.INVALID_INPUT: HTTP_BAD_REQUEST,
    FailureKind.BAD_REQUEST: HTTP_BAD_REQUEST,
    FailureKind.INVALID_CREDENTIALS: HTTP_UNAUTHORIZED,
    FailureKind.UNKNOWN_PROVIDER: HTTP_NOT_FOUND,
    FailureKind.PROVIDER_ERROR: HTTP_BAD_GATEWAY,
    FailureKind.TRANSIENT: HTTP_SERVICE_UNAVAILABLE,
    FailureKind.NETWORK_FAILURE: HTTP_GATEWAY_TIMEOUT,
}

# Error Messages
ERROR_REQUEST_BODY_REQUIRED = "Request body is required"
ERROR_VALIDATION_FAILED = "Request validation failed"
ERROR_UNEXPECTED = "An unexpected error occurred"
ERROR_PROVIDER_NOT_CONFIGURED = "No server credentials configured for provider"
