"""
Provider client: validate, build, sign, send, classify.

The client never retries and never fabricates audio. Every outcome is a
``Success`` or a typed ``Failure`` so the caller can pick a retry policy.

Thread Safety: YES - no shared mutable state besides the session pools
CPU Bound: NO - I/O-bound (network operations)
"""

import base64
import binascii
import dataclasses
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple, Union

import requests

from .models import (
    Failure,
    FailureKind,
    ProviderCredentials,
    ProviderDescriptor,
    Success,
    SynthesisRequest,
    SynthesisResult,
)
from .payloads import PreparedRequest, content_type_for, prepare_request, render_url
from .session_pool import SessionPoolManager
from .signing import sign
from .validation import validate, validate_request

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0

# Leading bytes of the audio containers providers return.
_AUDIO_SIGNATURES = (b"ID3", b"\xff\xfb", b"\xff\xf3", b"\xff\xf2", b"RIFF", b"OggS", b"fLaC")


def _failure(
    descriptor: ProviderDescriptor,
    kind: FailureKind,
    message: str,
    status_code: Optional[int] = None,
    retry_after: Optional[float] = None,
) -> Failure:
    return Failure(
        kind=kind,
        message=message,
        provider=descriptor.name,
        status_code=status_code,
        retry_after=retry_after,
    )


def _media_type(response: requests.Response) -> str:
    return (response.headers.get("Content-Type") or "").split(";")[0].strip().lower()


def _error_detail(response: requests.Response) -> str:
    """Best-effort human-readable error message from a provider response."""
    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()[:200] or response.reason or "no details"

    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("errors")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if isinstance(error, list) and error:
            first = error[0]
            return str(first.get("detail") or first.get("title") or first) if isinstance(first, dict) else str(first)
        if error:
            return str(error)
        for key in ("message", "detail", "Message"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)[:200]


def _retry_after(response: requests.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class ProviderClient:
    """
    Issues synthesis requests for any registered provider.

    Args:
        default_timeout: Seconds per request unless the descriptor or the
            call overrides it
        session: Use this session for every request (tests inject a fake)
        session_pools: Pool manager used when ``session`` is not given
    """

    def __init__(
        self,
        default_timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        session_pools: Optional[SessionPoolManager] = None,
    ):
        if default_timeout <= 0:
            raise ValueError("default_timeout must be positive")
        self.default_timeout = default_timeout
        self._session = session
        self._pools = session_pools if session is None else None
        if self._session is None and self._pools is None:
            self._pools = SessionPoolManager()

    # ==================== Public API ====================

    def synthesize(
        self,
        descriptor: ProviderDescriptor,
        credentials: ProviderCredentials,
        request: SynthesisRequest,
        timeout: Optional[float] = None,
    ) -> SynthesisResult:
        """
        Synthesize ``request`` with the provider described by ``descriptor``.

        Input and credential problems are reported without any network call.
        """
        if descriptor is None:
            raise TypeError("descriptor is required")
        if request is None:
            raise TypeError("request is required")

        request = dataclasses.replace(request, format=(request.format or "").lower())

        request_check = validate_request(descriptor, request)
        if not request_check.valid:
            return _failure(descriptor, FailureKind.INVALID_INPUT, "; ".join(request_check.reasons))

        credential_check = validate(descriptor, credentials)
        if not credential_check.valid:
            logger.warning(
                "[%s TTS] Rejected credentials locally: %s",
                descriptor.name,
                "; ".join(credential_check.reasons),
            )
            return _failure(
                descriptor, FailureKind.INVALID_CREDENTIALS, "; ".join(credential_check.reasons)
            )

        prepared = prepare_request(descriptor, credentials, request)
        logger.info(
            "[%s TTS] Synthesizing: text='%s...', voice=%s, format=%s",
            descriptor.name,
            request.text[:50],
            request.voice,
            request.format,
        )

        outcome = self._send(descriptor, credentials, prepared, timeout)
        if isinstance(outcome, Failure):
            return outcome

        result = self._classify(descriptor, outcome, prepared, request.format)
        if isinstance(result, Success):
            logger.info("[%s TTS] Received %d bytes of audio", descriptor.name, result.byte_length)
        else:
            logger.warning(
                "[%s TTS] Synthesis failed (%s): %s", descriptor.name, result.kind.value, result.message
            )
        return result

    def request_json(
        self,
        descriptor: ProviderDescriptor,
        credentials: ProviderCredentials,
        url_template: str,
        timeout: Optional[float] = None,
    ) -> Union[Any, Failure]:
        """Signed GET returning decoded JSON, or a ``Failure``."""
        credential_check = validate(descriptor, credentials)
        if not credential_check.valid:
            return _failure(
                descriptor, FailureKind.INVALID_CREDENTIALS, "; ".join(credential_check.reasons)
            )

        prepared = PreparedRequest(
            method="GET",
            url=render_url(url_template, credentials),
            headers={"Accept": "application/json"},
        )
        outcome = self._send(descriptor, credentials, prepared, timeout)
        if isinstance(outcome, Failure):
            return outcome
        if not 200 <= outcome.status_code < 300:
            return self._classify_error(descriptor, outcome)
        try:
            return outcome.json()
        except ValueError:
            return _failure(descriptor, FailureKind.PROVIDER_ERROR, "Response is not valid JSON")

    def close(self) -> None:
        if self._pools is not None:
            self._pools.close()

    def get_stats(self) -> dict:
        return self._pools.get_stats() if self._pools is not None else {}

    # ==================== Transport ====================

    @contextmanager
    def _session_for(self, descriptor: ProviderDescriptor) -> Iterator[requests.Session]:
        if self._session is not None:
            yield self._session
            return
        with self._pools.pool_for(descriptor.name).session() as session:
            yield session

    def _send(
        self,
        descriptor: ProviderDescriptor,
        credentials: ProviderCredentials,
        prepared: PreparedRequest,
        timeout: Optional[float],
    ) -> Union[requests.Response, Failure]:
        signed = sign(
            descriptor,
            credentials,
            prepared.method,
            prepared.url,
            prepared.headers,
            prepared.body,
        )
        if not signed.ok:
            return signed.failure

        effective_timeout = timeout or descriptor.timeout or self.default_timeout
        try:
            with self._session_for(descriptor) as session:
                return session.request(
                    prepared.method,
                    prepared.url,
                    headers=signed.headers,
                    data=prepared.body or None,
                    timeout=effective_timeout,
                )
        except requests.exceptions.Timeout as e:
            return _failure(
                descriptor,
                FailureKind.NETWORK_FAILURE,
                f"Request timed out after {effective_timeout}s: {e}",
            )
        except requests.exceptions.RequestException as e:
            return _failure(descriptor, FailureKind.NETWORK_FAILURE, f"Request failed: {e}")
        except TimeoutError as e:
            # Local session pool exhausted; the provider was never contacted.
            return _failure(descriptor, FailureKind.TRANSIENT, str(e))

    # ==================== Response mapping ====================

    def _classify(
        self,
        descriptor: ProviderDescriptor,
        response: requests.Response,
        prepared: PreparedRequest,
        audio_format: str,
    ) -> SynthesisResult:
        if 200 <= response.status_code < 300:
            return self._extract_audio(descriptor, response, prepared, audio_format)
        return self._classify_error(descriptor, response)

    def _classify_error(self, descriptor: ProviderDescriptor, response: requests.Response) -> Failure:
        status = response.status_code
        detail = _error_detail(response)
        if status in (401, 403):
            kind = FailureKind.INVALID_CREDENTIALS
        elif status == 429 or status >= 500:
            kind = FailureKind.TRANSIENT
        elif 400 <= status < 500:
            kind = FailureKind.BAD_REQUEST
        else:
            kind = FailureKind.PROVIDER_ERROR
        return _failure(
            descriptor,
            kind,
            f"HTTP {status}: {detail}",
            status_code=status,
            retry_after=_retry_after(response) if kind == FailureKind.TRANSIENT else None,
        )

    def _extract_audio(
        self,
        descriptor: ProviderDescriptor,
        response: requests.Response,
        prepared: PreparedRequest,
        audio_format: str,
    ) -> SynthesisResult:
        body = response.content or b""
        media_type = _media_type(response)
        status = response.status_code

        if not body:
            return _failure(descriptor, FailureKind.PROVIDER_ERROR, "Empty response body", status)

        if media_type.startswith("audio/") or media_type == "application/octet-stream":
            return Success(audio_bytes=body, provider=descriptor.name, content_type=media_type)

        if media_type.endswith("json") or body.lstrip()[:1] in (b"{", b"["):
            audio, error = self._decode_json_audio(response, prepared.audio_field)
            if error:
                return _failure(descriptor, FailureKind.PROVIDER_ERROR, error, status)
            return Success(
                audio_bytes=audio,
                provider=descriptor.name,
                content_type=content_type_for(audio_format),
            )

        if not media_type and body.startswith(_AUDIO_SIGNATURES):
            return Success(
                audio_bytes=body,
                provider=descriptor.name,
                content_type=content_type_for(audio_format),
            )

        return _failure(
            descriptor,
            FailureKind.PROVIDER_ERROR,
            f"Response is not audio (Content-Type: {media_type or 'unknown'})",
            status,
        )

    @staticmethod
    def _decode_json_audio(
        response: requests.Response, audio_field: Optional[str]
    ) -> Tuple[bytes, Optional[str]]:
        try:
            payload = response.json()
        except ValueError:
            return b"", "Response claims JSON but could not be parsed"

        if not isinstance(payload, dict):
            return b"", "Unexpected JSON response shape"
        if payload.get("error"):
            return b"", f"Provider error: {_error_detail(response)}"
        if not audio_field:
            return b"", "Provider returned JSON where audio was expected"

        encoded = payload.get(audio_field)
        if not encoded or not isinstance(encoded, str):
            return b"", f"Response has no '{audio_field}' audio field"
        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            return b"", f"'{audio_field}' is not valid base64"
        if not audio:
            return b"", f"'{audio_field}' decoded to empty audio"
        return audio, None
