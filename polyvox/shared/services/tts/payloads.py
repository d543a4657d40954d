"""
Per-provider request builders.

Each builder turns a validated ``SynthesisRequest`` into the provider's wire
shape (JSON, form, SSML or query string). Builders are looked up by provider
name; providers without a dedicated builder get the generic JSON body.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import quote, urlencode
from xml.sax.saxutils import escape, quoteattr

from .models import ProviderCredentials, ProviderDescriptor, SynthesisRequest
from .providers import (
    DEFAULT_ELEVENLABS_MODEL_ID,
    PROVIDER_AZURE,
    PROVIDER_ELEVENLABS,
    PROVIDER_GOOGLE,
    PROVIDER_MURF,
    PROVIDER_OPENAI,
    PROVIDER_POLLY,
    PROVIDER_TWILIO,
    PROVIDER_VOICEFORGE,
)

USER_AGENT = "polyvox-tts"

CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "pcm": "audio/L16",
}


@dataclass(frozen=True)
class PreparedRequest:
    """An unsigned HTTP request plus how to find audio in the response."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    audio_field: Optional[str] = None  # JSON key holding base64 audio


def render_url(template: str, credentials: ProviderCredentials, voice: str = "") -> str:
    """Fill ``{Field}`` placeholders from credentials and ``{voice}`` from the request."""
    values = {k: quote(v, safe="") for k, v in credentials.as_dict().items()}
    values["voice"] = quote(voice, safe="")
    return template.format_map(values)


def _json(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def _language_of(voice: str, default: str = "en-US") -> str:
    parts = voice.split("-")
    if len(parts) >= 2 and len(parts[0]) in (2, 3) and len(parts[1]) == 2:
        return f"{parts[0]}-{parts[1]}"
    return default


# ==================== Azure ====================

AZURE_OUTPUT_FORMATS = {
    "mp3": "audio-24khz-48kbitrate-mono-mp3",
    "wav": "riff-24khz-16bit-mono-pcm",
    "ogg": "ogg-24khz-16bit-mono-opus",
}


def build_azure_ssml(request: SynthesisRequest) -> str:
    opts = request.advanced_options or {}
    body = escape(request.text)

    prosody = {k: opts[k] for k in ("rate", "pitch", "volume") if opts.get(k) is not None}
    if prosody:
        attrs = " ".join(f"{k}={quoteattr(str(v))}" for k, v in prosody.items())
        body = f"<prosody {attrs}>{body}</prosody>"
    if opts.get("style"):
        body = f"<mstts:express-as style={quoteattr(str(opts['style']))}>{body}</mstts:express-as>"

    lang = _language_of(request.voice)
    return (
        f"<speak version='1.0' xml:lang='{lang}' "
        "xmlns='http://www.w3.org/2001/10/synthesis' "
        "xmlns:mstts='https://www.w3.org/2001/mstts'>"
        f"<voice name={quoteattr(request.voice)}>{body}</voice></speak>"
    )


def _build_azure(descriptor, credentials, request) -> PreparedRequest:
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": AZURE_OUTPUT_FORMATS[request.format],
            "User-Agent": USER_AGENT,
        },
        body=build_azure_ssml(request).encode("utf-8"),
    )


# ==================== Amazon Polly ====================

POLLY_OUTPUT_FORMATS = {"mp3": "mp3", "ogg": "ogg_vorbis", "pcm": "pcm"}


def _build_polly(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    payload = _drop_none(
        {
            "Engine": opts.get("engine", "neural"),
            "OutputFormat": POLLY_OUTPUT_FORMATS[request.format],
            "Text": request.text,
            "TextType": opts.get("text_type", "text"),
            "VoiceId": request.voice,
            "SampleRate": str(opts["sample_rate"]) if opts.get("sample_rate") else None,
            "LanguageCode": opts.get("language_code"),
        }
    )
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/json"},
        body=_json(payload),
    )


# ==================== Google Cloud ====================

GOOGLE_AUDIO_ENCODINGS = {"mp3": "MP3", "wav": "LINEAR16", "ogg": "OGG_OPUS"}


def _build_google(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    text_key = "ssml" if opts.get("text_type") == "ssml" else "text"
    audio_config = _drop_none(
        {
            "audioEncoding": GOOGLE_AUDIO_ENCODINGS[request.format],
            "speakingRate": opts.get("speaking_rate"),
            "pitch": opts.get("pitch"),
            "volumeGainDb": opts.get("volume_gain_db"),
            "sampleRateHertz": opts.get("sample_rate"),
        }
    )
    payload = {
        "input": {text_key: request.text},
        "voice": {"languageCode": _language_of(request.voice), "name": request.voice},
        "audioConfig": audio_config,
    }
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/json; charset=utf-8"},
        body=_json(payload),
        audio_field="audioContent",
    )


# ==================== Murf AI ====================


def _build_murf(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    payload = _drop_none(
        {
            "voiceId": request.voice,
            "text": request.text,
            "format": request.format.upper(),
            "encodeAsBase64": True,
            "rate": opts.get("rate"),
            "pitch": opts.get("pitch"),
            "style": opts.get("style"),
            "sampleRate": opts.get("sample_rate"),
        }
    )
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        body=_json(payload),
        audio_field="encodedAudio",
    )


# ==================== Twilio ====================


def _build_twilio(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    form = _drop_none(
        {
            "Text": request.text,
            "Voice": request.voice,
            "Format": request.format,
            "Language": opts.get("language"),
        }
    )
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=urlencode(form).encode("ascii"),
    )


# ==================== VoiceForge ====================


def _build_voiceforge(descriptor, credentials, request) -> PreparedRequest:
    query = urlencode({"msg": request.text, "voice": request.voice, "format": request.format})
    url = render_url(descriptor.endpoint, credentials, request.voice)
    return PreparedRequest(method=descriptor.http_method, url=f"{url}?{query}")


# ==================== OpenAI ====================


def _build_openai(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    payload = _drop_none(
        {
            "model": opts.get("model", "tts-1"),
            "input": request.text,
            "voice": request.voice,
            "response_format": request.format,
            "speed": opts.get("speed"),
            "instructions": opts.get("instructions"),
        }
    )
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/json"},
        body=_json(payload),
    )


# ==================== ElevenLabs ====================

ELEVENLABS_OUTPUT_FORMATS = {
    "mp3": "mp3_44100_128",
    "pcm": "pcm_24000",
    "opus": "opus_48000_128",
}
ELEVENLABS_VOICE_SETTINGS = ("stability", "similarity_boost", "style", "use_speaker_boost")


def _build_elevenlabs(descriptor, credentials, request) -> PreparedRequest:
    opts = request.advanced_options or {}
    voice_settings = {k: opts[k] for k in ELEVENLABS_VOICE_SETTINGS if opts.get(k) is not None}
    payload = _drop_none(
        {
            "text": request.text,
            "model_id": opts.get("model_id", DEFAULT_ELEVENLABS_MODEL_ID),
            "voice_settings": voice_settings or None,
            "language_code": opts.get("language_code"),
        }
    )
    url = render_url(descriptor.endpoint, credentials, request.voice)
    query = urlencode({"output_format": ELEVENLABS_OUTPUT_FORMATS[request.format]})
    return PreparedRequest(
        method=descriptor.http_method,
        url=f"{url}?{query}",
        headers={"Content-Type": "application/json", "Accept": "audio/mpeg"},
        body=_json(payload),
    )


# ==================== Generic ====================


def _build_generic_json(descriptor, credentials, request) -> PreparedRequest:
    payload = {"text": request.text, "voice": request.voice, "format": request.format}
    payload.update(request.advanced_options or {})
    return PreparedRequest(
        method=descriptor.http_method,
        url=render_url(descriptor.endpoint, credentials, request.voice),
        headers={"Content-Type": "application/json"},
        body=_json(payload),
    )


PayloadBuilder = Callable[
    [ProviderDescriptor, ProviderCredentials, SynthesisRequest], PreparedRequest
]

PAYLOAD_BUILDERS: Dict[str, PayloadBuilder] = {
    PROVIDER_AZURE: _build_azure,
    PROVIDER_POLLY: _build_polly,
    PROVIDER_GOOGLE: _build_google,
    PROVIDER_MURF: _build_murf,
    PROVIDER_TWILIO: _build_twilio,
    PROVIDER_VOICEFORGE: _build_voiceforge,
    PROVIDER_OPENAI: _build_openai,
    PROVIDER_ELEVENLABS: _build_elevenlabs,
}


def prepare_request(
    descriptor: ProviderDescriptor,
    credentials: ProviderCredentials,
    request: SynthesisRequest,
) -> PreparedRequest:
    builder = PAYLOAD_BUILDERS.get(descriptor.name, _build_generic_json)
    return builder(descriptor, credentials, request)


def content_type_for(audio_format: str) -> str:
    return CONTENT_TYPES.get(audio_format, "application/octet-stream")
