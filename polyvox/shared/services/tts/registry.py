"""
Provider registry.

Maps a provider name to its immutable descriptor. Adding a provider means
registering one descriptor (and, if its wire format is not the generic JSON
body, one payload builder).
"""

import dataclasses
import logging
import threading
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import UnknownProviderError
from .models import ProviderDescriptor
from .providers import DEFAULT_PROVIDERS

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Name -> descriptor lookup. ``get`` never falls back to a default provider."""

    def __init__(self, descriptors: Optional[Iterable[ProviderDescriptor]] = None):
        self._descriptors: Dict[str, ProviderDescriptor] = {}
        self._lock = threading.Lock()
        for descriptor in descriptors or ():
            self.register(descriptor)

    @staticmethod
    def _key(name: str) -> str:
        return (name or "").strip().lower()

    def register(self, descriptor: ProviderDescriptor) -> None:
        """
        Register a descriptor.

        Raises:
            TypeError: If descriptor is None
            ValueError: If a provider with the same name is already registered
        """
        if descriptor is None:
            raise TypeError("descriptor is required")
        key = self._key(descriptor.name)
        with self._lock:
            if key in self._descriptors:
                raise ValueError(f"Provider already registered: {descriptor.name}")
            self._descriptors[key] = descriptor
        logger.debug(f"Registered TTS provider: {descriptor.name}")

    def get(self, name: str) -> ProviderDescriptor:
        """
        Look up a descriptor by name (case-insensitive).

        Raises:
            UnknownProviderError: If no provider has that name
        """
        descriptor = self._descriptors.get(self._key(name))
        if descriptor is None:
            raise UnknownProviderError(name, available=self.list())
        return descriptor

    def list(self) -> List[str]:
        """Registered provider names, in registration order."""
        return [d.name for d in self._descriptors.values()]

    def descriptors(self) -> List[ProviderDescriptor]:
        return list(self._descriptors.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"ProviderRegistry(providers={self.list()!r})"


def build_default_registry(
    endpoint_overrides: Optional[Mapping[str, str]] = None,
) -> ProviderRegistry:
    """
    Build the registry from the static provider table.

    ``endpoint_overrides`` maps provider name to a replacement endpoint
    template (e.g. a regional gateway or a test double).
    """
    overrides = {k.lower(): v for k, v in (endpoint_overrides or {}).items() if v}
    registry = ProviderRegistry()
    for descriptor in DEFAULT_PROVIDERS:
        endpoint = overrides.get(descriptor.name)
        if endpoint:
            descriptor = dataclasses.replace(descriptor, endpoint=endpoint)
            logger.info(f"Endpoint override for {descriptor.name}: {endpoint}")
        registry.register(descriptor)

    logger.info(f"Provider registry initialized with {len(registry)} providers")
    return registry
