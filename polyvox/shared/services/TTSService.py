"""
Text-to-Speech Service - Unified interface for multiple TTS providers.

This service provides a facade over the provider core:
- polyvox.shared.services.tts.registry: Provider descriptors by name
- polyvox.shared.services.tts.validation: Local credential/request checks
- polyvox.shared.services.tts.client: HTTP synthesis and failure classification
- polyvox.shared.services.tts.voices: Static and live voice catalogs
"""

import logging
import os
import tempfile
from typing import Any, Dict, List, Mapping, Optional, Union

from .tts.client import DEFAULT_TIMEOUT, ProviderClient
from .tts.errors import SynthesisFailedError, UnknownProviderError
from .tts.models import (
    Failure,
    FailureKind,
    ProviderCredentials,
    ProviderDescriptor,
    Success,
    SynthesisRequest,
    SynthesisResult,
    ValidationResult,
)
from .tts.registry import ProviderRegistry, build_default_registry
from .tts.simple_cache import SimpleCache
from .tts.validation import validate
from .tts.voices import VoiceCatalogService

logger = logging.getLogger(__name__)

CredentialsLike = Union[ProviderCredentials, Mapping[str, str], None]


def _as_credentials(credentials: CredentialsLike) -> Optional[ProviderCredentials]:
    if credentials is None or isinstance(credentials, ProviderCredentials):
        return credentials
    return ProviderCredentials(credentials)


class TTSService:
    """
    Text-to-Speech service facade providing a unified interface across providers.

    Usage:
        # Via factory function (recommended)
        from polyvox.shared.utils.service_loader import get_tts_service
        tts = get_tts_service()

        # Direct instantiation
        tts = TTSService()

        # Value-style result
        result = tts.synthesize("polly", creds, "Hello", "Joanna")
        if result.ok:
            audio = result.audio_bytes

        # File-style result (raises SynthesisFailedError on failure)
        info = tts.generate_audio("polly", creds, "Hello", "Joanna")
        # Returns: {local_path, audio_format, byte_length, content_type, provider}

    Thread Safety:
        The registry is read-only after construction and the client holds
        no per-request state, so one instance can serve all threads.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        client: Optional[ProviderClient] = None,
        default_timeout: float = DEFAULT_TIMEOUT,
        voice_cache_ttl: int = 3600,
    ) -> None:
        self.registry = registry if registry is not None else build_default_registry()
        self.client = client if client is not None else ProviderClient(default_timeout=default_timeout)
        self.voices = VoiceCatalogService(
            self.client, cache=SimpleCache(max_size=50, ttl=voice_cache_ttl)
        )
        logger.info(f"TTSService initialized with {len(self.registry)} providers")

    # ==================== Provider metadata ====================

    def providers(self) -> List[str]:
        return self.registry.list()

    def describe(self, provider: str) -> ProviderDescriptor:
        """Descriptor for ``provider``; raises UnknownProviderError."""
        return self.registry.get(provider)

    def list_voices(
        self, provider: str, credentials: CredentialsLike = None, live: bool = False
    ) -> List[str]:
        descriptor = self.registry.get(provider)
        return self.voices.list_voices(descriptor, _as_credentials(credentials), live=live)

    def validate_credentials(self, provider: str, credentials: CredentialsLike) -> ValidationResult:
        descriptor = self.registry.get(provider)
        return validate(descriptor, _as_credentials(credentials))

    # ==================== Synthesis ====================

    def synthesize(
        self,
        provider: str,
        credentials: CredentialsLike,
        text: str,
        voice: str,
        audio_format: str = "mp3",
        advanced_options: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> SynthesisResult:
        """
        Synthesize speech and return ``Success`` or ``Failure``.

        Unlike ``describe``, an unknown provider is reported as
        ``Failure(UnknownProvider)`` rather than raised.
        """
        try:
            descriptor = self.registry.get(provider)
        except UnknownProviderError as e:
            return Failure(kind=FailureKind.UNKNOWN_PROVIDER, message=e.message, provider=provider)

        request = SynthesisRequest(
            text=text,
            voice=voice,
            format=audio_format,
            advanced_options=dict(advanced_options or {}),
        )
        return self.client.synthesize(
            descriptor, _as_credentials(credentials), request, timeout=timeout
        )

    def generate_audio(
        self,
        provider: str,
        credentials: CredentialsLike,
        text: str,
        voice: str,
        audio_format: str = "mp3",
        advanced_options: Optional[Dict[str, Any]] = None,
        output_filepath: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Generate TTS audio and write it to disk.

        Args:
            provider: Registered provider name
            credentials: Provider credentials (mapping or ProviderCredentials)
            text: Text to synthesize
            voice: Voice identifier
            audio_format: Output format, e.g. 'mp3', 'wav'
            advanced_options: Provider-specific options
            output_filepath: Optional local path; a temp file is used otherwise
            timeout: Per-request timeout in seconds

        Returns:
            Dict with keys:
                - local_path: str (path to the written file)
                - audio_format: str
                - byte_length: int
                - content_type: str
                - provider: str

        Raises:
            SynthesisFailedError: If synthesis returned a Failure
        """
        result = self.synthesize(
            provider,
            credentials,
            text,
            voice,
            audio_format=audio_format,
            advanced_options=advanced_options,
            timeout=timeout,
        )
        if not isinstance(result, Success):
            raise SynthesisFailedError(result)

        extension = f".{audio_format.lower()}" if audio_format else ""
        if output_filepath is None:
            with tempfile.NamedTemporaryFile(suffix=extension, delete=False) as f:
                output_filepath = f.name
            temp_file = True
        else:
            directory = os.path.dirname(output_filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)
            temp_file = False

        try:
            with open(output_filepath, "wb") as audio_file:
                audio_file.write(result.audio_bytes)
        except OSError:
            if temp_file and os.path.exists(output_filepath):
                os.remove(output_filepath)
            raise

        logger.info(
            f"[{result.provider} TTS] Wrote {result.byte_length} bytes to {output_filepath}"
        )
        return {
            "local_path": output_filepath,
            "audio_format": audio_format.lower(),
            "byte_length": result.byte_length,
            "content_type": result.content_type,
            "provider": result.provider,
        }

    def get_stats(self) -> Dict[str, Any]:
        return {
            "providers": len(self.registry),
            "session_pools": self.client.get_stats(),
            "voice_cache": self.voices.cache.get_stats(),
        }

    def close(self) -> None:
        """Release pooled HTTP sessions."""
        self.client.close()
        logger.info("TTSService closed")

    def __enter__(self) -> "TTSService":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Context manager exit."""
        self.close()
        return False

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"TTSService(providers={self.registry.list()!r})"


__all__ = ["TTSService"]
