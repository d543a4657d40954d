"""Static provider table used to populate the registry at startup."""

from typing import Tuple

from .models import AuthScheme, ProviderDescriptor
from .validation import (
    API_KEY_FIELD,
    AWS_ACCESS_KEY_FIELD,
    AWS_REGIONS,
    AWS_SECRET_KEY_FIELD,
    AZURE_REGIONS,
    REGION_FIELD,
)

PROVIDER_AZURE = "azure"
PROVIDER_POLLY = "polly"
PROVIDER_GOOGLE = "google"
PROVIDER_MURF = "murf"
PROVIDER_TELNYX = "telnyx"
PROVIDER_TWILIO = "twilio"
PROVIDER_CLOUDPRONOUNCER = "cloudpronouncer"
PROVIDER_VOICEFORGE = "voiceforge"
PROVIDER_OPENAI = "openai"
PROVIDER_ELEVENLABS = "elevenlabs"

# ElevenLabs defaults
DEFAULT_ELEVENLABS_VOICE_ID = "nPczCjzI2devNBz1zQrb"  # Brian - conversational
DEFAULT_ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"


AZURE = ProviderDescriptor(
    name=PROVIDER_AZURE,
    display_name="Microsoft Azure Speech",
    auth_scheme=AuthScheme.API_KEY_HEADER,
    api_key_header="Ocp-Apim-Subscription-Key",
    credential_fields=(API_KEY_FIELD, REGION_FIELD),
    regions=AZURE_REGIONS,
    endpoint="https://{Region}.tts.speech.microsoft.com/cognitiveservices/v1",
    voices_url="https://{Region}.tts.speech.microsoft.com/cognitiveservices/voices/list",
    max_text_length=5000,
    supported_formats=frozenset({"mp3", "wav", "ogg"}),
    voice_catalog=(
        "en-US-JennyNeural",
        "en-US-GuyNeural",
        "en-US-AriaNeural",
        "en-US-DavisNeural",
        "en-GB-SoniaNeural",
        "en-GB-RyanNeural",
        "en-AU-NatashaNeural",
        "en-AU-WilliamNeural",
    ),
    voice_pattern=r"[a-z]{2,3}-[A-Z]{2}-[A-Za-z0-9:]+Neural",
    advanced_options=frozenset({"rate", "pitch", "volume", "style"}),
)

POLLY = ProviderDescriptor(
    name=PROVIDER_POLLY,
    display_name="Amazon Polly",
    auth_scheme=AuthScheme.AWS_SIGV4,
    signing_service="polly",
    credential_fields=(AWS_ACCESS_KEY_FIELD, AWS_SECRET_KEY_FIELD, REGION_FIELD),
    regions=AWS_REGIONS,
    endpoint="https://polly.{Region}.amazonaws.com/v1/speech",
    voices_url="https://polly.{Region}.amazonaws.com/v1/voices",
    max_text_length=3000,
    supported_formats=frozenset({"mp3", "ogg", "pcm"}),
    voice_catalog=(
        "Joanna",
        "Matthew",
        "Ivy",
        "Kendra",
        "Kimberly",
        "Salli",
        "Joey",
        "Justin",
        "Kevin",
        "Amy",
        "Brian",
        "Emma",
        "Olivia",
    ),
    voice_pattern=r"[A-Z][a-zA-Z]{1,31}",
    advanced_options=frozenset({"engine", "sample_rate", "text_type", "language_code"}),
)

GOOGLE = ProviderDescriptor(
    name=PROVIDER_GOOGLE,
    display_name="Google Cloud Text-to-Speech",
    auth_scheme=AuthScheme.API_KEY_HEADER,
    api_key_header="X-Goog-Api-Key",
    credential_fields=(API_KEY_FIELD,),
    endpoint="https://texttospeech.googleapis.com/v1/text:synthesize",
    voices_url="https://texttospeech.googleapis.com/v1/voices",
    max_text_length=5000,
    supported_formats=frozenset({"mp3", "wav", "ogg"}),
    voice_catalog=(
        "en-US-Neural2-A",
        "en-US-Neural2-C",
        "en-US-Neural2-D",
        "en-US-Wavenet-D",
        "en-GB-Neural2-B",
        "en-GB-Chirp3-HD-Enceladus",
        "en-AU-Neural2-A",
    ),
    voice_pattern=r"[a-z]{2,3}-[A-Z]{2}-[A-Za-z0-9]+(-[A-Za-z0-9]+)*",
    advanced_options=frozenset(
        {"speaking_rate", "pitch", "volume_gain_db", "sample_rate", "text_type"}
    ),
)

MURF = ProviderDescriptor(
    name=PROVIDER_MURF,
    display_name="Murf AI",
    auth_scheme=AuthScheme.API_KEY_HEADER,
    api_key_header="api-key",
    credential_fields=(API_KEY_FIELD,),
    endpoint="https://api.murf.ai/v1/speech/generate",
    voices_url="https://api.murf.ai/v1/speech/voices",
    max_text_length=3000,
    supported_formats=frozenset({"mp3", "wav", "flac"}),
    voice_catalog=(
        "en-US-natalie",
        "en-US-terrell",
        "en-US-ken",
        "en-UK-hazel",
        "en-UK-theo",
        "en-AU-kylie",
    ),
    voice_pattern=r"[a-z]{2}-[A-Z]{2}-[a-z]+",
    advanced_options=frozenset({"rate", "pitch", "style", "sample_rate"}),
)

TELNYX = ProviderDescriptor(
    name=PROVIDER_TELNYX,
    display_name="Telnyx",
    auth_scheme=AuthScheme.BEARER_TOKEN,
    credential_fields=(API_KEY_FIELD,),
    endpoint="https://api.telnyx.com/v2/text-to-speech/speech",
    max_text_length=3000,
    supported_formats=frozenset({"mp3"}),
    voice_catalog=(
        "Telnyx.NaturalHD.astra",
        "Telnyx.NaturalHD.andersen_johan",
        "Telnyx.KokoroTTS.af_heart",
        "Telnyx.KokoroTTS.am_michael",
    ),
    voice_pattern=r"(Telnyx|AWS\.Polly|Azure)\.[A-Za-z0-9_.:-]+",
)

TWILIO = ProviderDescriptor(
    name=PROVIDER_TWILIO,
    display_name="Twilio",
    auth_scheme=AuthScheme.BASIC_AUTH,
    credential_fields=("AccountSid", "AuthToken"),
    endpoint="https://api.twilio.com/2010-04-01/Accounts/{AccountSid}/Speech",
    max_text_length=4000,
    supported_formats=frozenset({"mp3", "wav"}),
    voice_catalog=(
        "Polly.Joanna",
        "Polly.Matthew",
        "Polly.Amy",
        "Google.en-US-Neural2-F",
        "alice",
        "man",
        "woman",
    ),
    voice_pattern=r"(Polly|Google)\.[A-Za-z0-9_.-]+",
    advanced_options=frozenset({"language"}),
)

CLOUDPRONOUNCER = ProviderDescriptor(
    name=PROVIDER_CLOUDPRONOUNCER,
    display_name="CloudPronouncer",
    auth_scheme=AuthScheme.BASIC_AUTH,
    credential_fields=("Username", "Password"),
    endpoint="https://api.cloudpronouncer.com/v1/synthesize",
    max_text_length=2000,
    supported_formats=frozenset({"mp3", "wav"}),
    voice_catalog=("en-US-Female", "en-US-Male", "en-GB-Female", "en-GB-Male"),
    advanced_options=frozenset({"rate", "pitch"}),
)

VOICEFORGE = ProviderDescriptor(
    name=PROVIDER_VOICEFORGE,
    display_name="VoiceForge",
    auth_scheme=AuthScheme.API_KEY_HEADER,
    api_key_header="HTTP_X_API_KEY",
    credential_fields=(API_KEY_FIELD,),
    http_method="GET",
    endpoint="https://api.voiceforge.com/swift_engine",
    max_text_length=1000,
    supported_formats=frozenset({"wav", "mp3"}),
    voice_catalog=("Frank", "Callie", "Kate", "Paul", "Wiseguy", "Dallas", "Susan"),
    voice_pattern=r"[A-Z][a-zA-Z]{1,31}",
)

OPENAI = ProviderDescriptor(
    name=PROVIDER_OPENAI,
    display_name="OpenAI",
    auth_scheme=AuthScheme.BEARER_TOKEN,
    credential_fields=(API_KEY_FIELD,),
    endpoint="https://api.openai.com/v1/audio/speech",
    max_text_length=4096,
    supported_formats=frozenset({"mp3", "opus", "aac", "flac", "wav", "pcm"}),
    voice_catalog=(
        "alloy",
        "ash",
        "ballad",
        "coral",
        "echo",
        "fable",
        "onyx",
        "nova",
        "sage",
        "shimmer",
        "verse",
    ),
    # New voices ship often; ids are short lowercase names
    voice_pattern=r"[a-z]{3,20}",
    advanced_options=frozenset({"model", "speed", "instructions"}),
    timeout=30.0,
)

ELEVENLABS = ProviderDescriptor(
    name=PROVIDER_ELEVENLABS,
    display_name="ElevenLabs",
    auth_scheme=AuthScheme.API_KEY_HEADER,
    api_key_header="xi-api-key",
    credential_fields=(API_KEY_FIELD,),
    endpoint="https://api.elevenlabs.io/v1/text-to-speech/{voice}",
    voices_url="https://api.elevenlabs.io/v1/voices",
    max_text_length=5000,
    supported_formats=frozenset({"mp3", "pcm", "opus"}),
    voice_catalog=(
        DEFAULT_ELEVENLABS_VOICE_ID,
        "21m00Tcm4TlvDq8ikWAM",  # Rachel
        "EXAVITQu4vr4xnSDxMaL",  # Sarah
        "ErXwobaYiN019PkySvjV",  # Antoni
        "pNInz6obpgDQGcFmaJgB",  # Adam
    ),
    voice_pattern=r"[A-Za-z0-9]{20}",
    advanced_options=frozenset(
        {
            "model_id",
            "stability",
            "similarity_boost",
            "style",
            "use_speaker_boost",
            "language_code",
        }
    ),
)


DEFAULT_PROVIDERS: Tuple[ProviderDescriptor, ...] = (
    AZURE,
    POLLY,
    GOOGLE,
    MURF,
    TELNYX,
    TWILIO,
    CLOUDPRONOUNCER,
    VOICEFORGE,
    OPENAI,
    ELEVENLABS,
)
