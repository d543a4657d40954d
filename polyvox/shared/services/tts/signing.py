"""
Request signing for TTS providers.

Simple schemes (bearer token, basic auth, raw API-key header) are plain
header construction. AWS providers use Signature Version 4:

    canonical request -> string to sign -> derived signing key -> signature

Every header the caller passes in is signed, ``content-type`` included, plus
``host`` and ``x-amz-date``. Timestamps are always UTC.
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, urlsplit

from .models import (
    AuthScheme,
    Failure,
    FailureKind,
    ProviderCredentials,
    ProviderDescriptor,
    SignedHeaders,
)
from .validation import (
    API_KEY_FIELD,
    AWS_ACCESS_KEY_FIELD,
    AWS_SECRET_KEY_FIELD,
    REGION_FIELD,
)

logger = logging.getLogger(__name__)

SIGV4_ALGORITHM = "AWS4-HMAC-SHA256"
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_FORMAT = "%Y%m%d"
SESSION_TOKEN_FIELD = "SessionToken"

# Headers that are never part of the canonical header set.
_UNSIGNED_HEADERS = {"authorization", "user-agent", "content-length"}

Body = Union[bytes, str, None]


def _to_bytes(body: Body) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    return body


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def sha256_hex(data: Union[bytes, str]) -> str:
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def utc_timestamps(now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Return ``(amz_date, date_stamp)`` for ``now``.

    Aware datetimes are converted to UTC; naive ones are taken to already be
    UTC. Never formats local time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.strftime(AMZ_DATE_FORMAT), now.strftime(DATE_STAMP_FORMAT)


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """kDate -> kRegion -> kService -> kSigning."""
    k_date = _hmac(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


def canonical_uri(path: str) -> str:
    return quote(path or "/", safe="/-_.~")


def canonical_query_string(query: str) -> str:
    pairs = [
        (quote(k, safe="-_.~"), quote(v, safe="-_.~"))
        for k, v in parse_qsl(query, keep_blank_values=True)
    ]
    return "&".join(f"{k}={v}" for k, v in sorted(pairs))


def canonical_headers(headers: Mapping[str, str]) -> Tuple[str, str]:
    """
    Return ``(canonical_headers, signed_headers)``.

    Names are lower-cased and sorted; values are trimmed with inner runs of
    whitespace collapsed. Each canonical header line ends with ``\\n``.
    """
    merged: Dict[str, List[str]] = {}
    for name, value in headers.items():
        key = name.strip().lower()
        if key in _UNSIGNED_HEADERS:
            continue
        merged.setdefault(key, []).append(" ".join(str(value).split()))

    names = sorted(merged)
    lines = "".join(f"{name}:{','.join(merged[name])}\n" for name in names)
    return lines, ";".join(names)


def build_canonical_request(
    http_method: str,
    url: str,
    headers: Mapping[str, str],
    payload_hash: str,
) -> Tuple[str, str]:
    """Return ``(canonical_request, signed_headers)``."""
    parts = urlsplit(url)
    header_lines, signed_headers = canonical_headers(headers)
    canonical_request = "\n".join(
        [
            http_method.upper(),
            canonical_uri(parts.path),
            canonical_query_string(parts.query),
            header_lines,
            signed_headers,
            payload_hash,
        ]
    )
    return canonical_request, signed_headers


def build_string_to_sign(amz_date: str, credential_scope: str, canonical_request: str) -> str:
    return "\n".join(
        [SIGV4_ALGORITHM, amz_date, credential_scope, sha256_hex(canonical_request)]
    )


def sign_sigv4(
    http_method: str,
    url: str,
    headers: Mapping[str, str],
    body: Body,
    access_key: str,
    secret_key: str,
    region: str,
    service: str,
    now: Optional[datetime] = None,
    session_token: Optional[str] = None,
) -> Dict[str, str]:
    """
    Sign a request with AWS Signature Version 4.

    Returns the full header set to send: the caller's headers plus ``Host``,
    ``X-Amz-Date``, ``Authorization`` and, for temporary credentials,
    ``X-Amz-Security-Token``.

    Raises:
        ValueError: If any signing input is empty
    """
    missing = [
        label
        for label, value in (
            ("access key", access_key),
            ("secret key", secret_key),
            ("region", region),
            ("service name", service),
        )
        if not value
    ]
    if missing:
        raise ValueError(f"Cannot sign request, missing {', '.join(missing)}")

    amz_date, date_stamp = utc_timestamps(now)

    # Drop caller-supplied values we own so they can't disagree with what we sign.
    outgoing = {
        k: v
        for k, v in headers.items()
        if k.lower() not in ("x-amz-date", "authorization", "x-amz-security-token")
    }
    if not any(k.lower() == "host" for k in outgoing):
        outgoing["Host"] = urlsplit(url).netloc
    outgoing["X-Amz-Date"] = amz_date
    if session_token:
        outgoing["X-Amz-Security-Token"] = session_token

    canonical_request, signed_headers = build_canonical_request(
        http_method, url, outgoing, sha256_hex(_to_bytes(body))
    )
    credential_scope = f"{date_stamp}/{region}/{service}/aws4_request"
    string_to_sign = build_string_to_sign(amz_date, credential_scope, canonical_request)
    signing_key = derive_signing_key(secret_key, date_stamp, region, service)
    signature = hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()

    outgoing["Authorization"] = (
        f"{SIGV4_ALGORITHM} Credential={access_key}/{credential_scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    return outgoing


def _credentials_failure(descriptor: ProviderDescriptor, message: str) -> SignedHeaders:
    return SignedHeaders(
        failure=Failure(
            kind=FailureKind.INVALID_CREDENTIALS,
            message=message,
            provider=descriptor.name,
        )
    )


def _api_key(descriptor: ProviderDescriptor, credentials: ProviderCredentials) -> str:
    field = descriptor.credential_fields[0] if descriptor.credential_fields else API_KEY_FIELD
    return credentials.get(field)


def _sign_bearer(descriptor, credentials, http_method, url, headers, body, now):
    token = _api_key(descriptor, credentials)
    if not token:
        return _credentials_failure(descriptor, f"{descriptor.name}: API key is empty")
    return SignedHeaders(headers={**headers, "Authorization": f"Bearer {token}"})


def _sign_api_key_header(descriptor, credentials, http_method, url, headers, body, now):
    key = _api_key(descriptor, credentials)
    if not key:
        return _credentials_failure(descriptor, f"{descriptor.name}: API key is empty")
    return SignedHeaders(headers={**headers, descriptor.api_key_header: key})


def _sign_basic(descriptor, credentials, http_method, url, headers, body, now):
    user_field, password_field = descriptor.credential_fields[:2]
    username = credentials.get(user_field)
    password = credentials.get(password_field)
    if not username or not password:
        return _credentials_failure(
            descriptor, f"{descriptor.name}: {user_field} and {password_field} are required"
        )
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return SignedHeaders(headers={**headers, "Authorization": f"Basic {token}"})


def _sign_aws(descriptor, credentials, http_method, url, headers, body, now):
    try:
        signed = sign_sigv4(
            http_method=http_method,
            url=url,
            headers=headers,
            body=body,
            access_key=credentials.get(AWS_ACCESS_KEY_FIELD),
            secret_key=credentials.get(AWS_SECRET_KEY_FIELD),
            region=credentials.get(REGION_FIELD),
            service=descriptor.signing_service or "",
            now=now,
            session_token=credentials.get(SESSION_TOKEN_FIELD) or None,
        )
    except ValueError as e:
        logger.debug("[%s TTS] SigV4 signing refused: %s", descriptor.name, e)
        return _credentials_failure(descriptor, f"{descriptor.name}: {e}")
    return SignedHeaders(headers=signed)


Signer = Callable[..., SignedHeaders]

SIGNERS: Dict[AuthScheme, Signer] = {
    AuthScheme.BEARER_TOKEN: _sign_bearer,
    AuthScheme.API_KEY_HEADER: _sign_api_key_header,
    AuthScheme.BASIC_AUTH: _sign_basic,
    AuthScheme.AWS_SIGV4: _sign_aws,
}


def sign(
    descriptor: ProviderDescriptor,
    credentials: ProviderCredentials,
    http_method: str,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Body = b"",
    now: Optional[datetime] = None,
) -> SignedHeaders:
    """
    Compute authentication headers for ``descriptor``'s auth scheme.

    Returns a ``SignedHeaders`` holding either the complete outgoing header
    set or an ``InvalidCredentials`` failure. Never signs with partial input.
    """
    if descriptor is None:
        raise TypeError("descriptor is required")
    if credentials is None:
        return _credentials_failure(descriptor, "No credentials supplied")

    signer = SIGNERS[descriptor.auth_scheme]
    return signer(descriptor, credentials, http_method, url, dict(headers or {}), body, now)
