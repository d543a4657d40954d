"""
Integration tests for speech synthesis against real TTS providers.
These tests spend provider quota; each provider is skipped when its
credentials are not present in the environment (.env supported).

Run with: pytest tests/integration/test_tts_integration.py --run-integration -v
"""

import logging
import os
import tempfile

import pytest

from polyvox.config.environment import credentials_from_env, load_environment
from polyvox.shared.services.TTSService import TTSService
from polyvox.shared.services.tts.models import FailureKind, ProviderCredentials
from polyvox.shared.services.tts.validation import validate

logger = logging.getLogger(__name__)

# Provider -> a voice every account can use
LIVE_VOICES = {
    "polly": "Joanna",
    "azure": "en-US-JennyNeural",
    "google": "en-US-Neural2-F",
    "openai": "alloy",
    "elevenlabs": "21m00Tcm4TlvDq8ikWAM",
}

MIN_AUDIO_BYTES = 1000


# ==================== Fixtures ====================


@pytest.fixture(scope="module")
def temp_audio_dir():
    """Create temporary directory for audio files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        logger.info(f"Created temp audio directory: {tmpdir}")
        yield tmpdir


@pytest.fixture(scope="module")
def tts_service():
    load_environment.cache_clear()
    with TTSService() as service:
        yield service


def live_credentials(provider: str, service: TTSService) -> ProviderCredentials:
    credentials = credentials_from_env(provider)
    if credentials is None:
        pytest.skip(f"No {provider} credentials in the environment")
    check = validate(service.describe(provider), credentials)
    if not check.valid:
        pytest.skip(f"{provider} credentials are malformed: {'; '.join(check.reasons)}")
    return credentials


# ==================== Synthesis ====================


@pytest.mark.integration
@pytest.mark.requires_api_key
class TestLiveSynthesis:
    """Real synthesis round trips"""

    @pytest.mark.parametrize("provider", sorted(LIVE_VOICES))
    def test_generate_audio(self, provider, tts_service, temp_audio_dir):
        credentials = live_credentials(provider, tts_service)
        output_path = os.path.join(temp_audio_dir, f"{provider}_test.mp3")

        info = tts_service.generate_audio(
            provider,
            credentials,
            "Hello, this is a test of the text to speech system.",
            LIVE_VOICES[provider],
            output_filepath=output_path,
        )

        assert info["provider"] == provider
        assert info["byte_length"] >= MIN_AUDIO_BYTES
        assert os.path.getsize(output_path) == info["byte_length"]
        logger.info(f"✓ {provider}: {info['byte_length']} bytes ({info['content_type']})")

    def test_polly_rejects_wrong_secret(self, tts_service):
        credentials = live_credentials("polly", tts_service).as_dict()
        credentials["SecretKey"] = "x" * 40

        result = tts_service.synthesize("polly", credentials, "Hello", "Joanna")

        assert result.kind == FailureKind.INVALID_CREDENTIALS

    @pytest.mark.slow
    def test_text_at_provider_limit(self, tts_service):
        credentials = live_credentials("polly", tts_service)
        limit = tts_service.describe("polly").max_text_length
        text = ("The quick brown fox jumps over the lazy dog. " * 100)[:limit]

        result = tts_service.synthesize("polly", credentials, text, "Joanna")

        assert result.ok, getattr(result, "message", "")


# ==================== Voices ====================


@pytest.mark.integration
@pytest.mark.requires_api_key
class TestLiveVoices:
    @pytest.mark.parametrize("provider", ["azure", "elevenlabs", "google", "polly"])
    def test_live_voice_list(self, provider, tts_service):
        credentials = live_credentials(provider, tts_service)

        voices = tts_service.list_voices(provider, credentials, live=True)

        assert voices
        logger.info(f"✓ {provider}: {len(voices)} voices")
