"""
Tests for the provider registry.
"""

import pytest

from polyvox.shared.services.tts.errors import UnknownProviderError
from polyvox.shared.services.tts.models import AuthScheme, ProviderDescriptor
from polyvox.shared.services.tts.providers import DEFAULT_PROVIDERS, POLLY
from polyvox.shared.services.tts.registry import ProviderRegistry, build_default_registry


def _descriptor(name="custom", **overrides):
    params = dict(
        name=name,
        auth_scheme=AuthScheme.BEARER_TOKEN,
        credential_fields=("ApiKey",),
        max_text_length=500,
        supported_formats=frozenset({"mp3"}),
        voice_catalog=("default",),
        endpoint="https://tts.example.com/v1/speak",
    )
    params.update(overrides)
    return ProviderDescriptor(**params)


@pytest.mark.unit
class TestProviderRegistry:
    """register/get/list semantics"""

    def test_default_registry_has_every_provider(self):
        registry = build_default_registry()

        assert registry.list() == [d.name for d in DEFAULT_PROVIDERS]
        assert len(registry) == 10

    def test_get_returns_registered_descriptor(self):
        registry = build_default_registry()
        assert registry.get("polly") is POLLY

    def test_lookup_is_case_insensitive(self):
        registry = build_default_registry()
        assert registry.get("  Polly ") is POLLY
        assert "ELEVENLABS" in registry

    def test_unknown_provider_raises(self):
        registry = build_default_registry()

        with pytest.raises(UnknownProviderError) as exc_info:
            registry.get("nonexistent")

        error = exc_info.value
        assert error.code == "UNKNOWN_PROVIDER"
        assert error.name == "nonexistent"
        assert "polly" in error.details["available"]
        assert error.to_dict()["error"] == "UNKNOWN_PROVIDER"

    def test_empty_name_never_falls_back(self):
        registry = build_default_registry()
        with pytest.raises(UnknownProviderError):
            registry.get("")

    def test_duplicate_registration_is_rejected(self):
        registry = ProviderRegistry([_descriptor()])

        with pytest.raises(ValueError, match="already registered"):
            registry.register(_descriptor(name="CUSTOM"))

        assert len(registry) == 1

    def test_register_none_is_programming_error(self):
        with pytest.raises(TypeError):
            ProviderRegistry().register(None)

    def test_register_custom_provider(self):
        registry = build_default_registry()
        registry.register(_descriptor())

        assert registry.get("custom").endpoint == "https://tts.example.com/v1/speak"
        assert registry.list()[-1] == "custom"

    def test_endpoint_overrides(self):
        registry = build_default_registry(
            {"TWILIO": "https://gateway.internal/twilio", "polly": ""}
        )

        assert registry.get("twilio").endpoint == "https://gateway.internal/twilio"
        assert registry.get("polly").endpoint == POLLY.endpoint
        assert registry.get("twilio").auth_scheme == AuthScheme.BASIC_AUTH


@pytest.mark.unit
class TestProviderDescriptor:
    """Descriptors refuse configurations the signer cannot honor"""

    def test_endpoint_override_with_unknown_placeholder_fails_at_startup(self):
        with pytest.raises(ValueError, match="Tenant"):
            build_default_registry({"google": "https://gw.internal/{Tenant}/tts"})

    def test_endpoint_override_may_use_credential_fields(self):
        registry = build_default_registry({"azure": "https://gw.internal/{Region}/azure"})
        assert registry.get("azure").endpoint == "https://gw.internal/{Region}/azure"

    @pytest.mark.parametrize(
        "template",
        ["https://tts.example.com/{Region}/speak", "https://tts.example.com/{0}", "https://x/{ApiKey"],
    )
    def test_url_templates_are_checked(self, template):
        with pytest.raises(ValueError):
            _descriptor(endpoint=template)
        with pytest.raises(ValueError):
            _descriptor(voices_url=template)

    def test_url_template_may_name_voice(self):
        descriptor = _descriptor(endpoint="https://tts.example.com/{voice}?key={ApiKey}")
        assert descriptor.endpoint.endswith("{voice}?key={ApiKey}")

    def test_descriptor_is_immutable(self):
        with pytest.raises(AttributeError):
            POLLY.max_text_length = 10

    def test_api_key_header_scheme_needs_header_name(self):
        with pytest.raises(ValueError, match="api_key_header"):
            _descriptor(auth_scheme=AuthScheme.API_KEY_HEADER)

    def test_sigv4_scheme_needs_service(self):
        with pytest.raises(ValueError, match="signing_service"):
            _descriptor(auth_scheme=AuthScheme.AWS_SIGV4)

    def test_basic_auth_needs_two_fields(self):
        with pytest.raises(ValueError):
            _descriptor(auth_scheme=AuthScheme.BASIC_AUTH, credential_fields=("User",))

    def test_max_text_length_must_be_positive(self):
        with pytest.raises(ValueError):
            _descriptor(max_text_length=0)

    def test_summary(self):
        summary = POLLY.summary()

        assert summary["name"] == "polly"
        assert summary["auth_scheme"] == "AwsSigV4"
        assert summary["supported_formats"] == ["mp3", "ogg", "pcm"]
        assert summary["voice_count"] == len(POLLY.voice_catalog)
