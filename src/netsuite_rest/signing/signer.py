"""
Token-based authorization header generation

This module provides the signature generator for NetSuite token-based
authentication (one-legged OAuth 1.0a). Every call builds a fresh signing
context with its own nonce and timestamp, so signatures are never reused.
"""

import logging
from typing import Optional, List, Tuple

from ..exceptions import SignatureError
from .algorithms import get_algorithm, DEFAULT_ALGORITHM
from .base_string import build_base_string, build_signing_key
from .types import (
    Credentials,
    SignatureContext,
    NonceGenerator,
    TimestampGenerator,
    OAUTH_VERSION,
)
from .utils import generate_nonce, generate_timestamp, normalize_realm, percent_encode, validate_nonce

logger = logging.getLogger(__name__)


class SignatureGenerator:
    """
    Generator for ``Authorization: OAuth ...`` header values

    The generator holds credentials only. It keeps no per-request state and
    may be shared between threads.
    """

    def __init__(
        self,
        credentials: Credentials,
        account_id: str,
        signature_method: str = DEFAULT_ALGORITHM,
        nonce_generator: Optional[NonceGenerator] = None,
        timestamp_generator: Optional[TimestampGenerator] = None,
    ):
        """
        Initialize the generator.

        Args:
            credentials: Consumer and token credentials
            account_id: NetSuite account id, normalized into the realm
            signature_method: Name of a registered signature algorithm
            nonce_generator: Optional custom nonce generator function
            timestamp_generator: Optional custom timestamp generator function
        """
        self.credentials = credentials
        self.realm = normalize_realm(account_id or "")
        self.signature_method = signature_method
        self.nonce_generator = nonce_generator or generate_nonce
        self.timestamp_generator = timestamp_generator or generate_timestamp

    def new_context(
        self,
        method: str,
        url: str,
        nonce: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> SignatureContext:
        """
        Create a signing context for one request.

        Args:
            method: HTTP method
            url: Full request URL including the query string
            nonce: Fixed nonce, generated when omitted
            timestamp: Fixed timestamp, generated when omitted

        Returns:
            SignatureContext: Fresh signing context

        Raises:
            SignatureError: If the nonce is not 8 to 64 alphanumeric characters
        """
        context_nonce = nonce if nonce is not None else self.nonce_generator()
        if not validate_nonce(context_nonce):
            raise SignatureError(
                "Invalid nonce: expected 8 to 64 alphanumeric characters",
                details={'nonce': context_nonce},
            )

        return SignatureContext(
            method=method.upper(),
            url=url,
            credentials=self.credentials,
            realm=self.realm,
            signature_method=self.signature_method,
            nonce=context_nonce,
            timestamp=timestamp if timestamp is not None else self.timestamp_generator(),
            version=OAUTH_VERSION,
        )

    def sign(self, context: SignatureContext) -> str:
        """
        Compute the base64 signature for a context.

        Raises:
            SignatureError: On empty key material or algorithm failure
        """
        self._validate_key_material(context)
        algorithm = get_algorithm(context.signature_method)

        try:
            base_string = build_base_string(context)
            signature = algorithm.sign_to_base64(build_signing_key(context), base_string.encode('utf-8'))
        except SignatureError:
            raise
        except Exception as e:
            raise SignatureError(
                f"Request signing failed: {e}",
                details={'signature_method': context.signature_method, 'original_error': str(e)},
            ) from e

        logger.debug(f"Signed {context.method} {context.url} with {context.signature_method}")
        return signature

    def render_header(self, context: SignatureContext, signature: str) -> str:
        """Render the single-line ``OAuth`` header value."""
        return render_authorization_header(header_parameters(context, signature))

    def generate(
        self,
        method: str,
        url: str,
        nonce: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """
        Compute the authorization header value for a request.

        Args:
            method: HTTP method
            url: Full request URL including the query string
            nonce: Fixed nonce, generated when omitted
            timestamp: Fixed timestamp, generated when omitted

        Returns:
            str: Authorization header value

        Raises:
            SignatureError: If signing fails
        """
        context = self.new_context(method, url, nonce=nonce, timestamp=timestamp)
        return self.render_header(context, self.sign(context))

    def _validate_key_material(self, context: SignatureContext) -> None:
        credentials = context.credentials
        missing = [
            name for name, value in (
                ('consumer_key', credentials.consumer_key),
                ('consumer_secret', credentials.consumer_secret),
                ('token_id', credentials.token_id),
                ('token_secret', credentials.token_secret),
                ('realm', context.realm),
            )
            if not value
        ]
        if missing:
            raise SignatureError(
                f"Missing key material: {', '.join(missing)}",
                details={'missing': missing},
            )


def header_parameters(context: SignatureContext, signature: str) -> List[Tuple[str, str]]:
    """Header parameters in wire order."""
    return [
        ('realm', context.realm),
        ('oauth_consumer_key', context.credentials.consumer_key),
        ('oauth_token', context.credentials.token_id),
        ('oauth_signature_method', context.signature_method),
        ('oauth_timestamp', str(context.timestamp)),
        ('oauth_nonce', context.nonce),
        ('oauth_version', context.version),
        ('oauth_signature', signature),
    ]


def render_authorization_header(params: List[Tuple[str, str]]) -> str:
    """
    Render header parameters as ``OAuth k="v", ...``.

    Values are percent-encoded and line breaks are removed.
    """
    rendered = ', '.join(f'{name}="{percent_encode(value)}"' for name, value in params)
    return f"OAuth {rendered}".replace('\r', '').replace('\n', '')


def generate_authorization_header(
    method: str,
    url: str,
    credentials: Credentials,
    account_id: str,
    signature_method: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Compute an authorization header value with a fresh nonce and timestamp.

    Args:
        method: HTTP method
        url: Full request URL including the query string
        credentials: Consumer and token credentials
        account_id: NetSuite account id
        signature_method: Name of a registered signature algorithm

    Returns:
        str: Authorization header value
    """
    generator = SignatureGenerator(credentials, account_id, signature_method=signature_method)
    return generator.generate(method, url)
