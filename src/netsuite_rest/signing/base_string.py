"""
Signature base string construction for OAuth 1.0a

This module builds the canonical representation that is signed, following
RFC 5849 section 3.4.1: the request method, the base string URI and the
normalized request parameters, each percent-encoded and joined with ``&``.
"""

from typing import List, Tuple
from urllib.parse import urlsplit, parse_qsl

from ..exceptions import SignatureError
from .types import SignatureContext
from .utils import percent_encode

_DEFAULT_PORTS = {'http': 80, 'https': 443}


def base_string_uri(url: str) -> str:
    """
    Build the base string URI: scheme and host lower-cased, default port
    dropped, query and fragment removed.

    Raises:
        SignatureError: If the URL has no scheme or host
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise SignatureError(f"Invalid request URL: {e}", details={'url': url}) from e

    if not parts.scheme or not parts.hostname:
        raise SignatureError(f"Invalid request URL: {url}", details={'url': url})

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"

    return f"{scheme}://{host}{parts.path or '/'}"


def oauth_parameters(context: SignatureContext) -> List[Tuple[str, str]]:
    """Protocol parameters that take part in the signature (realm excluded)."""
    return [
        ('oauth_consumer_key', context.credentials.consumer_key),
        ('oauth_nonce', context.nonce),
        ('oauth_signature_method', context.signature_method),
        ('oauth_timestamp', str(context.timestamp)),
        ('oauth_token', context.credentials.token_id),
        ('oauth_version', context.version),
    ]


def normalize_parameters(context: SignatureContext) -> str:
    """
    Normalize query and protocol parameters (RFC 5849 section 3.4.1.3.2).

    Names and values are encoded first, then sorted by name and value.
    """
    query = urlsplit(context.url).query
    params = parse_qsl(query, keep_blank_values=True)
    params.extend(oauth_parameters(context))

    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return '&'.join(f"{k}={v}" for k, v in encoded)


def build_base_string(context: SignatureContext) -> str:
    """
    Build the signature base string for a signing context.

    Returns:
        str: ``METHOD&enc(base-uri)&enc(normalized-params)``
    """
    return '&'.join((
        percent_encode(context.method.upper()),
        percent_encode(base_string_uri(context.url)),
        percent_encode(normalize_parameters(context)),
    ))


def build_signing_key(context: SignatureContext) -> bytes:
    """Signing key: ``enc(consumer_secret)&enc(token_secret)``."""
    credentials = context.credentials
    key = f"{percent_encode(credentials.consumer_secret)}&{percent_encode(credentials.token_secret)}"
    return key.encode('utf-8')
