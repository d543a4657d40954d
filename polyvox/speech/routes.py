"""Speech API Routes - HTTP endpoints over the TTS provider registry."""

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.local import LocalProxy

from polyvox.config.environment import credentials_from_env
from polyvox.shared.services.tts.errors import UnknownProviderError
from polyvox.shared.services.tts.models import Success
from polyvox.shared.utils.service_loader import get_tts_service

from .constants import (
    ERROR_REQUEST_BODY_REQUIRED,
    ERROR_UNEXPECTED,
    ERROR_VALIDATION_FAILED,
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_ERROR,
    HTTP_NOT_FOUND,
    HTTP_OK,
)
from .exceptions import (
    InvalidRequestError,
    ProviderNotConfiguredError,
    SpeechError,
    SynthesisError,
)
from .schemas import (
    ErrorResponseSchema,
    HealthCheckResponseSchema,
    ProviderListResponseSchema,
    ProviderSummarySchema,
    SynthesizeRequestSchema,
    ValidateCredentialsRequestSchema,
    ValidationResponseSchema,
    VoiceListQuerySchema,
    VoiceListResponseSchema,
)

# Flask Blueprint and logger
speech = Blueprint("speech", __name__)
logger = LocalProxy(lambda: current_app.logger)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequestError(ERROR_REQUEST_BODY_REQUIRED)
    return data


@speech.errorhandler(SpeechError)
def handle_speech_error(error: SpeechError):
    """Handle domain-specific errors."""
    logger.error(f"Speech error ({error.code}): {error.message}")
    response = ErrorResponseSchema(
        error=error.code, message=error.message, details=error.details
    )
    http_response = jsonify(response.model_dump())
    http_response.status_code = error.status_code
    retry_after = getattr(error, "retry_after", None)
    if retry_after is not None:
        http_response.headers["Retry-After"] = str(max(int(round(retry_after)), 1))
    return http_response


@speech.errorhandler(UnknownProviderError)
def handle_unknown_provider(error: UnknownProviderError):
    """Handle lookups of providers that are not registered."""
    logger.warning(f"Unknown provider requested: {error.name}")
    response = ErrorResponseSchema(
        error=error.code, message=error.message, details=error.details
    )
    return jsonify(response.model_dump()), HTTP_NOT_FOUND


@speech.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    """Handle Pydantic validation errors."""
    logger.error(f"Validation error: {error}")
    response = ErrorResponseSchema(
        error="VALIDATION_ERROR",
        message=ERROR_VALIDATION_FAILED,
        details={"errors": error.errors(include_url=False, include_context=False)},
    )
    return jsonify(response.model_dump()), HTTP_BAD_REQUEST


@speech.errorhandler(Exception)
def handle_generic_error(error: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {error}", exc_info=True)
    response = ErrorResponseSchema(
        error="INTERNAL_ERROR", message=ERROR_UNEXPECTED, details={"error": str(error)}
    )
    return jsonify(response.model_dump()), HTTP_INTERNAL_ERROR


@speech.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint for the speech API."""
    response = HealthCheckResponseSchema(
        status="healthy", service="speech", message="Speech API is running"
    )
    return jsonify(response.model_dump()), HTTP_OK


@speech.route("/providers", methods=["GET"])
def list_providers():
    """
    List registered providers.

    Returns:
        JSON with one summary per provider (auth scheme, limits, formats)
    """
    service = get_tts_service()
    summaries = [
        ProviderSummarySchema(**service.describe(name).summary()) for name in service.providers()
    ]
    response = ProviderListResponseSchema(providers=summaries, count=len(summaries))
    return jsonify(response.model_dump()), HTTP_OK


@speech.route("/providers/<name>", methods=["GET"])
def describe_provider(name: str):
    """Return one provider summary; 404 for unknown names."""
    descriptor = get_tts_service().describe(name)
    return jsonify(ProviderSummarySchema(**descriptor.summary()).model_dump()), HTTP_OK


@speech.route("/providers/<name>/voices", methods=["GET"])
def list_voices(name: str):
    """
    List voices for a provider.

    Query Parameters:
        live (bool): Fetch the provider's live voice list using the server's
            credentials; falls back to the static catalog on any failure
    """
    params = VoiceListQuerySchema(live=request.args.get("live", False))
    service = get_tts_service()
    descriptor = service.describe(name)

    credentials = credentials_from_env(descriptor.name) if params.live else None
    voices = service.list_voices(descriptor.name, credentials, live=params.live)
    response = VoiceListResponseSchema(
        provider=descriptor.name, voices=voices, live=params.live, count=len(voices)
    )
    return jsonify(response.model_dump()), HTTP_OK


@speech.route("/credentials/validate", methods=["POST"])
def validate_credentials():
    """
    Check credentials locally without contacting the provider.

    Request Body:
        {
            "provider": "polly",
            "credentials": {"AccessKey": "...", "SecretKey": "...", "Region": "us-east-1"}
        }
    """
    params = ValidateCredentialsRequestSchema(**_json_body())
    service = get_tts_service()
    descriptor = service.describe(params.provider)

    result = service.validate_credentials(descriptor.name, params.credentials)
    if not result.valid:
        logger.info(f"Credentials for {descriptor.name} rejected: {len(result.reasons)} reason(s)")
    response = ValidationResponseSchema(
        provider=descriptor.name, valid=result.valid, reasons=list(result.reasons)
    )
    return jsonify(response.model_dump()), HTTP_OK


@speech.route("/synthesize", methods=["POST"])
def synthesize():
    """
    Synthesize speech with the server's credentials for the provider.

    Request Body:
        {
            "provider": "polly",
            "text": "Hello world",
            "voice": "Joanna",
            "format": "mp3",
            "advanced_options": {"engine": "neural"},
            "timeout": 15
        }

    Returns:
        Audio bytes with the provider's content type, or an error body whose
        status reflects the failure kind
    """
    params = SynthesizeRequestSchema(**_json_body())
    service = get_tts_service()
    descriptor = service.describe(params.provider)

    credentials = credentials_from_env(descriptor.name)
    if credentials is None:
        raise ProviderNotConfiguredError(descriptor.name)

    result = service.synthesize(
        descriptor.name,
        credentials,
        params.text,
        params.voice,
        audio_format=params.format,
        advanced_options=params.advanced_options,
        timeout=params.timeout,
    )
    if not isinstance(result, Success):
        raise SynthesisError(result)

    logger.info(f"Synthesized {result.byte_length} bytes with {descriptor.name}")
    audio_format = params.format.lower()
    return Response(
        result.audio_bytes,
        status=HTTP_OK,
        mimetype=result.content_type or "application/octet-stream",
        headers={
            "Content-Disposition": f'inline; filename="speech.{audio_format}"',
            "X-TTS-Provider": descriptor.name,
        },
    )
