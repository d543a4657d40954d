from functools import lru_cache
from os import environ
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from polyvox.shared.services.tts.models import ProviderCredentials
from polyvox.shared.services.tts.providers import DEFAULT_PROVIDERS

# Provider credential field -> environment variable
PROVIDER_CREDENTIAL_ENV = {
    "azure": {"ApiKey": "AZURE_SPEECH_KEY", "Region": "AZURE_SPEECH_REGION"},
    "polly": {
        "AccessKey": "AWS_ACCESS_KEY_ID",
        "SecretKey": "AWS_SECRET_ACCESS_KEY",
        "Region": "AWS_REGION",
        "SessionToken": "AWS_SESSION_TOKEN",
    },
    "google": {"ApiKey": "GOOGLE_TTS_API_KEY"},
    "murf": {"ApiKey": "MURF_API_KEY"},
    "telnyx": {"ApiKey": "TELNYX_API_KEY"},
    "twilio": {"AccountSid": "TWILIO_ACCOUNT_SID", "AuthToken": "TWILIO_AUTH_TOKEN"},
    "cloudpronouncer": {
        "Username": "CLOUDPRONOUNCER_USERNAME",
        "Password": "CLOUDPRONOUNCER_PASSWORD",
    },
    "voiceforge": {"ApiKey": "VOICEFORGE_API_KEY"},
    "openai": {"ApiKey": "OPENAI_API_KEY"},
    "elevenlabs": {"ApiKey": "EL_API_KEY"},  # ElevenLabs API key
}

# Settings passed to create_app(); they win over the environment process-wide
_overrides: Dict[str, Any] = {}


@lru_cache(maxsize=1)
def load_environment():
    """Load and cache environment variables"""
    # Load .env file only once
    load_dotenv()

    settings = {
        "APP_NAME": environ.get("APP_NAME") or "polyvox",
        "APPLICATION_ENV": environ.get("APPLICATION_ENV") or "development",
        "PORT": int(environ.get("PORT", 8080)),
        # Provider client
        "TTS_HTTP_TIMEOUT": float(environ.get("TTS_HTTP_TIMEOUT", 15)),
        "TTS_VOICE_CACHE_TTL": int(environ.get("TTS_VOICE_CACHE_TTL", 3600)),
        # Bulk synthesis
        "TTS_BULK_MAX_WORKERS": int(environ.get("TTS_BULK_MAX_WORKERS", 4)),
        "TTS_BULK_MAX_RETRIES": int(environ.get("TTS_BULK_MAX_RETRIES", 2)),
    }

    # Provider credentials
    for fields in PROVIDER_CREDENTIAL_ENV.values():
        for env_name in fields.values():
            settings[env_name] = environ.get(env_name)

    # Endpoint overrides, e.g. TTS_ENDPOINT_TWILIO=https://gateway.internal/tts
    for descriptor in DEFAULT_PROVIDERS:
        env_name = f"TTS_ENDPOINT_{descriptor.name.upper()}"
        settings[env_name] = environ.get(env_name)

    return settings


def apply_overrides(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Let app-factory settings win over the environment for known keys.

    Unknown keys (Flask settings such as TESTING) are left to app.config.
    Returns the settings that were applied.
    """
    known = load_environment()
    applied = {k: v for k, v in (overrides or {}).items() if k in known}
    _overrides.update(applied)
    return applied


def clear_overrides() -> None:
    _overrides.clear()


def get_env(key: str, default: Any = "") -> Any:
    """Get environment variable by key"""
    value = _overrides[key] if key in _overrides else load_environment().get(key)
    return value if value is not None else default


def endpoint_overrides() -> Dict[str, str]:
    """Provider name -> endpoint template from TTS_ENDPOINT_<NAME> variables."""
    overrides = {}
    for descriptor in DEFAULT_PROVIDERS:
        value = get_env(f"TTS_ENDPOINT_{descriptor.name.upper()}")
        if value:
            overrides[descriptor.name] = value
    return overrides


def credentials_from_env(provider: str) -> Optional[ProviderCredentials]:
    """
    Build server-side credentials for ``provider`` from the environment.

    Returns None when the provider has no credential mapping or none of its
    variables are set.
    """
    fields = PROVIDER_CREDENTIAL_ENV.get((provider or "").lower())
    if not fields:
        return None

    values = {field: get_env(env_name) for field, env_name in fields.items()}
    values = {field: value for field, value in values.items() if value}
    if not values:
        return None
    return ProviderCredentials(values)
