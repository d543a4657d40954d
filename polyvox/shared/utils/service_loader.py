from functools import lru_cache

from polyvox.config.environment import endpoint_overrides, get_env
from polyvox.shared.services.TTSService import TTSService
from polyvox.shared.services.tts.bulk import BulkSynthesizer
from polyvox.shared.services.tts.client import ProviderClient
from polyvox.shared.services.tts.registry import ProviderRegistry, build_default_registry


@lru_cache(maxsize=1)
def get_provider_registry() -> ProviderRegistry:
    """Lazy load and cache the provider registry, honoring endpoint overrides."""
    return build_default_registry(endpoint_overrides())


@lru_cache(maxsize=1)
def get_provider_client() -> ProviderClient:
    """Lazy load and cache the shared ProviderClient (pooled sessions)."""
    return ProviderClient(default_timeout=get_env("TTS_HTTP_TIMEOUT", 15.0))


@lru_cache(maxsize=1)
def get_tts_service() -> TTSService:
    """Lazy load and cache the TTSService instance.

    Returns:
        TTSService instance sharing the cached registry and client
    """
    return TTSService(
        registry=get_provider_registry(),
        client=get_provider_client(),
        voice_cache_ttl=get_env("TTS_VOICE_CACHE_TTL", 3600),
    )


@lru_cache(maxsize=1)
def get_bulk_synthesizer() -> BulkSynthesizer:
    """Lazy load and cache the BulkSynthesizer instance."""
    return BulkSynthesizer(
        client=get_provider_client(),
        max_workers=get_env("TTS_BULK_MAX_WORKERS", 4),
        max_retries=get_env("TTS_BULK_MAX_RETRIES", 2),
    )


def reset_services() -> None:
    """Drop every cached service so the next getter call re-reads settings."""
    for getter in (get_bulk_synthesizer, get_tts_service, get_provider_client, get_provider_registry):
        getter.cache_clear()
