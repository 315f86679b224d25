"""
Type definitions for token-based request signing

This module provides the data classes used to sign NetSuite REST requests
with OAuth 1.0a token-based authentication.
"""

from typing import Callable
from dataclasses import dataclass
from enum import Enum


OAUTH_VERSION = "1.0"


class SignatureMethod(str, Enum):
    """Signature method tags understood by NetSuite"""
    HMAC_SHA256 = "HMAC-SHA256"


@dataclass(frozen=True)
class Credentials:
    """
    Token-based authentication credentials

    Attributes:
        consumer_key: Integration record consumer key
        consumer_secret: Integration record consumer secret
        token_id: Access token id
        token_secret: Access token secret
    """
    consumer_key: str = ""
    consumer_secret: str = ""
    token_id: str = ""
    token_secret: str = ""

    def is_complete(self) -> bool:
        """Return True when all four credential fields are set."""
        return all((self.consumer_key, self.consumer_secret, self.token_id, self.token_secret))

    def __repr__(self) -> str:
        return (
            f"Credentials(consumer_key='{self.consumer_key}', consumer_secret='***', "
            f"token_id='{self.token_id}', token_secret='***')"
        )


@dataclass(frozen=True)
class SignatureContext:
    """
    Everything a single signature is computed from

    A context is created per request and never reused.

    Attributes:
        method: HTTP method
        url: Fully resolved request URL, query string included
        credentials: Consumer and token credentials
        realm: Account identifier in realm format
        signature_method: Signature method tag
        nonce: Per-request random value
        timestamp: Unix timestamp in seconds
        version: OAuth protocol version
    """
    method: str
    url: str
    credentials: Credentials
    realm: str
    signature_method: str
    nonce: str
    timestamp: int
    version: str = OAUTH_VERSION


# Type aliases for convenience
NonceGenerator = Callable[[], str]
TimestampGenerator = Callable[[], int]
