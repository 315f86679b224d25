"""
Request dispatch

Signs, observes, traces and sends built requests through a caller-supplied
``requests.Session``, then hands the response to the decoder. The order of
the steps is fixed: sign, before-send hooks, request trace, send,
after-complete hooks, response trace, decode.
"""

import concurrent.futures
import logging
import threading
from typing import Optional
from urllib.parse import urlsplit

import requests

from .config import ClientConfig
from .decoding import DecodeTarget, ResponseDecoder, resolve_targets
from .exceptions import TransportError
from .request_builder import ApiRequest, RequestContext
from .signing import SignatureGenerator

logger = logging.getLogger(__name__)


def _close_abandoned(future: concurrent.futures.Future) -> None:
    """Close the response of a send the caller stopped waiting for."""
    error = future.exception()
    if error is not None:
        logger.debug(f"Abandoned request failed: {error}")
        return
    future.result().close()
    logger.debug("Closed response of abandoned request")


def _body_text(body) -> str:
    if not body:
        return ""
    if isinstance(body, bytes):
        return body.decode('utf-8', errors='replace')
    return str(body)


def dump_request(prepared: requests.PreparedRequest) -> str:
    """Render a prepared request as HTTP/1.1 wire text."""
    parts = urlsplit(prepared.url)
    target = parts.path or '/'
    if parts.query:
        target = f"{target}?{parts.query}"

    lines = [f"{prepared.method} {target} HTTP/1.1", f"Host: {parts.netloc}"]
    lines.extend(f"{name}: {value}" for name, value in prepared.headers.items())
    return '\r\n'.join(lines) + '\r\n\r\n' + _body_text(prepared.body)


def dump_response(response: requests.Response) -> str:
    """Render a response as HTTP/1.1 wire text. Reads the (buffered) body."""
    lines = [f"HTTP/1.1 {response.status_code} {response.reason or ''}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    return '\r\n'.join(lines) + '\r\n\r\n' + _body_text(response.content)


class Dispatcher:
    """
    Sends requests and decodes responses for one configuration snapshot
    """

    def __init__(
        self,
        config: ClientConfig,
        session: requests.Session,
        decoder: Optional[ResponseDecoder] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            config: Client configuration snapshot
            session: Transport; TLS, proxies and adapters are the caller's
            decoder: Response decoder, built from ``config`` when omitted
        """
        self.config = config
        self.session = session
        self.decoder = decoder or ResponseDecoder(
            disallow_unknown_fields=config.disallow_unknown_fields,
            error_media_type=config.error_media_type,
        )

    def authorization_header(self, prepared: requests.PreparedRequest) -> str:
        """
        Compute the token-based authorization header for a prepared request.

        Raises:
            SignatureError: If signing fails
        """
        generator = SignatureGenerator(self.config.credentials, self.config.account_id)
        return generator.generate(prepared.method, prepared.url)

    def send(self, request: ApiRequest, *targets: DecodeTarget) -> requests.Response:
        """
        Send a request and decode the response into ``targets``.

        Args:
            request: Built request
            *targets: Decode targets for the response body

        Returns:
            requests.Response: The (closed, buffered) response

        Raises:
            ValidationError: If a target is not a DecodeTarget; nothing is sent
            SignatureError: If signing fails; nothing is sent
            TransportError: On connection failure, timeout or cancellation
            DecodeError: If the response cannot be decoded
            ResponseError: If NetSuite returned an error payload
        """
        config = self.config
        resolved = resolve_targets(targets)
        prepared = request.prepare()

        if config.use_token_auth:
            prepared.headers['Authorization'] = self.authorization_header(prepared)

        for hook in config.before_send_hooks:
            hook(self.session, prepared, request.payload)

        if config.debug:
            logger.info(dump_request(prepared))

        response = self._transport(prepared, request.context)

        try:
            for hook in config.after_complete_hooks:
                hook(prepared, response)

            self._buffer_body(response)

            if config.debug:
                logger.info(dump_response(response))

            return self.decoder.decode(response, *resolved)
        finally:
            response.close()

    def _transport(self, prepared: requests.PreparedRequest, context: RequestContext) -> requests.Response:
        context.check()
        timeout = context.remaining()

        logger.debug(f"Sending {prepared.method} request to {prepared.url}")

        # The send runs on a worker so cancel() and the deadline wake the
        # caller while the network call is still blocked.
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="netsuite-send")
        try:
            future = executor.submit(self.session.send, prepared, timeout=timeout, stream=True)
        finally:
            executor.shutdown(wait=False)

        wake = threading.Event()
        future.add_done_callback(lambda f: wake.set())
        remove_callback = context.add_cancel_callback(wake.set)
        try:
            wake.wait(timeout)
        finally:
            remove_callback()

        if not future.done():
            future.add_done_callback(_close_abandoned)
            if context.cancelled:
                logger.error(f"Request to {prepared.url} cancelled while in flight")
                raise TransportError("Request cancelled", "REQUEST_CANCELLED", {'url': prepared.url})
            logger.error(f"Request to {prepared.url} exceeded its {timeout} second deadline")
            raise TransportError(
                f"Request deadline exceeded after {timeout} seconds",
                "REQUEST_TIMEOUT",
                {'url': prepared.url, 'timeout': timeout},
            )

        try:
            response = future.result()
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {prepared.url} timed out: {e}")
            raise TransportError(
                f"Request timeout after {timeout} seconds",
                "REQUEST_TIMEOUT",
                {'url': prepared.url, 'timeout': timeout},
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection to {prepared.url} failed: {e}")
            raise TransportError(f"Connection error: {e}", "CONNECTION_ERROR", {'url': prepared.url}) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {prepared.url} failed: {e}")
            raise TransportError(f"Request failed: {e}", details={'url': prepared.url}) from e

        if context.cancelled:
            response.close()
            raise TransportError("Request cancelled", "REQUEST_CANCELLED", {'url': prepared.url})

        return response

    def _buffer_body(self, response: requests.Response) -> bytes:
        # requests caches the body after the first read, later reads hit the buffer
        try:
            return response.content or b""
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Failed to read response body: {e}",
                "BODY_READ_ERROR",
                {'status_code': response.status_code},
            ) from e
