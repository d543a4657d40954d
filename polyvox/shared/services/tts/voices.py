"""Voice catalogs: static defaults, optionally refreshed from the provider."""

import hashlib
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from .client import ProviderClient
from .models import Failure, ProviderCredentials, ProviderDescriptor
from .providers import (
    PROVIDER_AZURE,
    PROVIDER_ELEVENLABS,
    PROVIDER_GOOGLE,
    PROVIDER_MURF,
    PROVIDER_POLLY,
)
from .simple_cache import SimpleCache

logger = logging.getLogger(__name__)


def _pluck(items: Any, key: str) -> List[str]:
    if not isinstance(items, list):
        raise ValueError("expected a list of voices")
    return [str(item[key]) for item in items if isinstance(item, dict) and item.get(key)]


VOICE_PARSERS: Dict[str, Callable[[Any], List[str]]] = {
    PROVIDER_AZURE: lambda payload: _pluck(payload, "ShortName"),
    PROVIDER_POLLY: lambda payload: _pluck(payload.get("Voices"), "Id"),
    PROVIDER_GOOGLE: lambda payload: _pluck(payload.get("voices"), "name"),
    PROVIDER_MURF: lambda payload: _pluck(payload, "voiceId"),
    PROVIDER_ELEVENLABS: lambda payload: _pluck(payload.get("voices"), "voice_id"),
}


def credential_fingerprint(credentials: ProviderCredentials) -> str:
    digest = hashlib.sha256(json.dumps(credentials.as_dict(), sort_keys=True).encode())
    return digest.hexdigest()[:16]


class VoiceCatalogService:
    """
    Lists voices for a provider.

    The static catalog on the descriptor is always available. With
    ``live=True`` and a provider that publishes a voice list, the live list is
    fetched and cached; a failed fetch falls back to the static catalog.
    """

    def __init__(self, client: ProviderClient, cache: Optional[SimpleCache] = None):
        self.client = client
        self.cache = cache or SimpleCache(max_size=50, ttl=3600)

    def list_voices(
        self,
        descriptor: ProviderDescriptor,
        credentials: Optional[ProviderCredentials] = None,
        live: bool = False,
    ) -> List[str]:
        static = list(descriptor.voice_catalog)
        parser = VOICE_PARSERS.get(descriptor.name)
        if not live or not descriptor.voices_url or parser is None:
            return static
        if credentials is None:
            logger.warning(
                "[%s TTS] Live voice list requested without credentials, using static catalog",
                descriptor.name,
            )
            return static

        cache_key = SimpleCache.make_key(descriptor.name, credential_fingerprint(credentials))
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        payload = self.client.request_json(descriptor, credentials, descriptor.voices_url)
        if isinstance(payload, Failure):
            logger.warning(
                "[%s TTS] Live voice list unavailable (%s: %s), using static catalog",
                descriptor.name,
                payload.kind.value,
                payload.message,
            )
            return static

        try:
            voices = parser(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "[%s TTS] Could not parse live voice list (%s), using static catalog",
                descriptor.name,
                e,
            )
            return static

        if not voices:
            logger.warning("[%s TTS] Live voice list was empty, using static catalog", descriptor.name)
            return static

        self.cache.set(cache_key, tuple(voices))
        logger.info("[%s TTS] Loaded %d live voices", descriptor.name, len(voices))
        return voices
