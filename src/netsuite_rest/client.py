"""
NetSuite REST client

The client ties endpoint resolution, request building, signing, dispatch and
decoding together behind three calls used by record-level wrappers:
``endpoint_url``, ``new_request`` and ``do``.
"""

import logging
import threading
from typing import Any, Optional

import requests

from .config import ClientConfig, BeforeSendHook, AfterCompleteHook
from .decoding import DecodeTarget
from .dispatcher import Dispatcher
from .endpoints import ParamsLike, resolve_base_url, resolve_endpoint
from .request_builder import ApiRequest, RequestContext, build_request
from .signing import Credentials, SignatureGenerator

logger = logging.getLogger(__name__)


class NetSuiteClient:
    """
    Client for the NetSuite SuiteTalk REST web services

    Configuration is an immutable ``ClientConfig``. Setters swap in a
    modified copy under a lock; every call works on the snapshot taken when
    it starts, so requests in flight are unaffected by reconfiguration.
    """

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[ClientConfig] = None):
        """
        Initialize the client.

        Args:
            session: Transport, a plain ``requests.Session`` when omitted
            config: Client configuration, defaults when omitted
        """
        self._lock = threading.Lock()
        self._session = session if session is not None else requests.Session()
        self._config = config or ClientConfig()

        logger.info(f"Initialized NetSuite client for account: {self._config.account_id or '<unset>'}")

    # -- configuration ------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        """Current configuration snapshot."""
        with self._lock:
            return self._config

    @property
    def session(self) -> requests.Session:
        with self._lock:
            return self._session

    def _update(self, **changes) -> None:
        with self._lock:
            self._config = self._config.evolve(**changes)
        logger.info(f"Client configuration updated: {', '.join(sorted(changes))}")

    def set_session(self, session: requests.Session) -> None:
        with self._lock:
            self._session = session

    @property
    def debug(self) -> bool:
        return self.config.debug

    def set_debug(self, debug: bool) -> None:
        """
        Enable request and response wire dumps.

        Dumps are logged at INFO on the ``netsuite_rest.dispatcher`` logger.
        The library configures no handlers, so the application must route
        that logger (for example with ``logging.basicConfig(level=logging.INFO)``).
        """
        self._update(debug=debug)

    @property
    def account_id(self) -> str:
        return self.config.account_id

    def set_account_id(self, account_id: str) -> None:
        self._update(account_id=account_id)

    @property
    def use_token_auth(self) -> bool:
        return self.config.use_token_auth

    def set_use_token_auth(self, use_token_auth: bool) -> None:
        self._update(use_token_auth=use_token_auth)

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials

    def set_credentials(self, consumer_key: str, consumer_secret: str, token_id: str, token_secret: str) -> None:
        """Replace all four token-based authentication credentials."""
        self._update(credentials=Credentials(consumer_key, consumer_secret, token_id, token_secret))

    @property
    def content_language(self) -> str:
        return self.config.content_language

    def set_content_language(self, content_language: str) -> None:
        self._update(content_language=content_language)

    def base_url(self) -> str:
        """
        Base URL with the account id filled in.

        Raises:
            TemplateError: If the template cannot be expanded
        """
        config = self.config
        return resolve_base_url(config.base_url, config.account_id)

    def set_base_url(self, base_url: str) -> None:
        self._update(base_url=base_url)

    @property
    def media_type(self) -> str:
        return self.config.media_type

    def set_media_type(self, media_type: str) -> None:
        self._update(media_type=media_type)

    @property
    def charset(self) -> str:
        return self.config.charset

    def set_charset(self, charset: str) -> None:
        self._update(charset=charset)

    @property
    def user_agent(self) -> str:
        return self.config.user_agent

    def set_user_agent(self, user_agent: str) -> None:
        self._update(user_agent=user_agent)

    def set_disallow_unknown_fields(self, disallow_unknown_fields: bool) -> None:
        self._update(disallow_unknown_fields=disallow_unknown_fields)

    def add_before_send_hook(self, hook: BeforeSendHook) -> None:
        """Register an observer called as ``hook(session, prepared_request, body)``."""
        with self._lock:
            self._config = self._config.evolve(before_send_hooks=self._config.before_send_hooks + (hook,))
        logger.debug(f"Added before-send hook: {hook}")

    def add_after_complete_hook(self, hook: AfterCompleteHook) -> None:
        """Register an observer called as ``hook(prepared_request, response)``."""
        with self._lock:
            self._config = self._config.evolve(after_complete_hooks=self._config.after_complete_hooks + (hook,))
        logger.debug(f"Added after-complete hook: {hook}")

    # -- request pipeline ---------------------------------------------------

    def endpoint_url(self, path: str, params: ParamsLike = None) -> str:
        """
        Resolve a path template into an absolute endpoint URL.

        Args:
            path: Path template relative to the base URL, may carry a query
            params: Placeholder values

        Raises:
            TemplateError: On malformed templates or unresolved placeholders
        """
        config = self.config
        return resolve_endpoint(config.base_url, path, params, account_id=config.account_id)

    def new_request(
        self,
        method: str,
        url: str,
        body: Any = None,
        context: Optional[RequestContext] = None,
    ) -> ApiRequest:
        """
        Build a request for an endpoint URL.

        Raises:
            EncodingError: If the body cannot be serialized
        """
        return build_request(self.config, method, url, body, context)

    def do(self, request: ApiRequest, *targets: DecodeTarget) -> requests.Response:
        """
        Sign and send a request, decoding the response into ``targets``.

        Raises:
            ValidationError: If a target is not a DecodeTarget; nothing is sent
            SignatureError, TransportError, DecodeError, ResponseError
        """
        with self._lock:
            config, session = self._config, self._session
        return Dispatcher(config, session).send(request, *targets)

    def request(
        self,
        method: str,
        path: str,
        *targets: DecodeTarget,
        params: ParamsLike = None,
        body: Any = None,
        context: Optional[RequestContext] = None,
    ) -> requests.Response:
        """Resolve, build and send in one call."""
        url = self.endpoint_url(path, params)
        return self.do(self.new_request(method, url, body, context), *targets)

    def signature_generator(self) -> SignatureGenerator:
        """Signature generator for the current credentials and account."""
        config = self.config
        return SignatureGenerator(config.credentials, config.account_id)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
        logger.debug("HTTP session closed")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_client(
    account_id: str,
    consumer_key: str = "",
    consumer_secret: str = "",
    token_id: str = "",
    token_secret: str = "",
    session: Optional[requests.Session] = None,
    **options,
) -> NetSuiteClient:
    """
    Create a NetSuite client, enabling token auth when all credentials are given.

    Args:
        account_id: NetSuite account id
        consumer_key: Integration consumer key
        consumer_secret: Integration consumer secret
        token_id: Access token id
        token_secret: Access token secret
        session: Optional transport
        **options: Further ``ClientConfig`` fields

    Returns:
        NetSuiteClient: Configured client
    """
    credentials = Credentials(consumer_key, consumer_secret, token_id, token_secret)
    options.setdefault('use_token_auth', credentials.is_complete())
    config = ClientConfig(account_id=account_id, credentials=credentials, **options)
    return NetSuiteClient(session=session, config=config)
