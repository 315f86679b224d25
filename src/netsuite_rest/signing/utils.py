"""
Utility functions for request signing

This module provides nonce and timestamp generation, RFC 3986 percent
encoding and realm normalization for OAuth 1.0a token-based signing.
"""

import re
import secrets
import string
import time
from urllib.parse import quote

NONCE_LENGTH = 20
NONCE_ALPHABET = string.ascii_letters + string.digits

_nonce_pattern = re.compile(r'^[A-Za-z0-9]{8,64}$')


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """
    Generate a cryptographically random alphanumeric nonce.

    Args:
        length: Number of characters

    Returns:
        str: Random nonce
    """
    return ''.join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


def generate_timestamp() -> int:
    """
    Generate current Unix timestamp.

    Returns:
        int: Current Unix timestamp (seconds since epoch)
    """
    return int(time.time())


def validate_nonce(nonce: str) -> bool:
    """
    Validate nonce format (alphanumeric, 8 to 64 characters).

    Args:
        nonce: Nonce string to validate

    Returns:
        bool: True if nonce is usable
    """
    if not isinstance(nonce, str):
        return False
    return bool(_nonce_pattern.match(nonce))


def percent_encode(value) -> str:
    """
    Percent-encode a value as required by RFC 5849 section 3.6.

    Only unreserved characters (ALPHA, DIGIT, '-', '.', '_', '~') are left
    as-is. Spaces become ``%20``, never ``+``.
    """
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    return quote(str(value), safe='~')


def normalize_realm(account_id: str) -> str:
    """
    Convert an account id to NetSuite realm format.

    Sandbox account ids such as ``1234567-sb1`` are written with an
    underscore in the realm: ``1234567_sb1``.
    """
    return account_id.replace('-', '_')
