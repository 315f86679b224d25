"""
NetSuite REST client - Request Signing Module

Token-based authentication (one-legged OAuth 1.0a) with HMAC-SHA256.
This module computes the per-request ``Authorization`` header value for
NetSuite's REST web services.
"""

from .types import (
    Credentials,
    SignatureContext,
    SignatureMethod,
    OAUTH_VERSION,
)

from .algorithms import (
    SignatureAlgorithm,
    HmacSha256,
    DEFAULT_ALGORITHM,
    register_algorithm,
    get_algorithm,
    available_algorithms,
)

from .base_string import (
    base_string_uri,
    normalize_parameters,
    build_base_string,
    build_signing_key,
)

from .signer import (
    SignatureGenerator,
    render_authorization_header,
    generate_authorization_header,
)

from .utils import (
    generate_nonce,
    generate_timestamp,
    validate_nonce,
    percent_encode,
    normalize_realm,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'SignatureGenerator',
    'render_authorization_header',
    'generate_authorization_header',
    # Types
    'Credentials',
    'SignatureContext',
    'SignatureMethod',
    'OAUTH_VERSION',
    # Algorithms
    'SignatureAlgorithm',
    'HmacSha256',
    'DEFAULT_ALGORITHM',
    'register_algorithm',
    'get_algorithm',
    'available_algorithms',
    # Base string
    'base_string_uri',
    'normalize_parameters',
    'build_base_string',
    'build_signing_key',
    # Utilities
    'generate_nonce',
    'generate_timestamp',
    'validate_nonce',
    'percent_encode',
    'normalize_realm',
]
