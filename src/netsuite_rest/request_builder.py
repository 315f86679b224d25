"""
Outgoing request construction

Serializes request bodies to JSON, sets the content negotiation headers and
binds a cancellation-aware execution context. Requests are not signed here;
signing happens at dispatch time so the signature covers the final request
line.
"""

import dataclasses
import datetime
import decimal
import enum
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import requests
from requests.structures import CaseInsensitiveDict

from .config import ClientConfig
from .exceptions import EncodingError, TransportError, ValidationError

logger = logging.getLogger(__name__)


class RequestContext:
    """
    Execution context bound to a request

    Carries an optional timeout (seconds, measured from context creation)
    and a cancellation flag that may be set from another thread.
    """

    def __init__(self, timeout: Optional[float] = None):
        if timeout is not None and timeout <= 0:
            raise ValidationError("Timeout must be positive")
        self.timeout = timeout
        self._created = time.monotonic()
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    def cancel(self) -> None:
        """Cancel every request bound to this context, waking blocked sends."""
        with self._lock:
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_cancel_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback run once when the context is cancelled.

        The callback runs immediately when the context is already cancelled.

        Returns:
            Callable: Removes the callback again
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)
        callback()
        return lambda: None

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a timeout."""
        if self.timeout is None:
            return None
        return max(0.0, self.timeout - (time.monotonic() - self._created))

    def check(self) -> None:
        """
        Raise if the context is cancelled or past its deadline.

        Raises:
            TransportError: On cancellation or an expired deadline
        """
        if self.cancelled:
            raise TransportError("Request cancelled", "REQUEST_CANCELLED")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise TransportError(
                f"Request deadline exceeded after {self.timeout} seconds",
                "REQUEST_TIMEOUT",
                {'timeout': self.timeout},
            )


@dataclass
class ApiRequest:
    """
    A fully built, not yet signed request

    Attributes:
        method: Upper-case HTTP method
        url: Absolute request URL
        headers: Request headers (case-insensitive)
        body: Encoded request body, None when the request has none
        payload: The caller's original body value
        context: Execution context
    """
    method: str
    url: str
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Optional[bytes] = None
    payload: Any = None
    context: RequestContext = field(default_factory=RequestContext)

    def prepare(self) -> requests.PreparedRequest:
        """Convert into a ``requests.PreparedRequest`` ready to send."""
        return requests.Request(
            method=self.method,
            url=self.url,
            headers=dict(self.headers),
            data=self.body,
        ).prepare()


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, 'to_dict') and callable(value.to_dict):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_body(body: Any, charset: str = "utf-8") -> bytes:
    """
    Serialize a request body to compact JSON.

    Args:
        body: Any JSON-serializable value, dataclass or object with ``to_dict``
        charset: Output character set

    Returns:
        bytes: Encoded body

    Raises:
        EncodingError: If the value cannot be serialized
    """
    try:
        text = json.dumps(body, default=_json_default, separators=(',', ':'), ensure_ascii=False, allow_nan=False)
        return text.encode(charset)
    except (TypeError, ValueError, LookupError) as e:
        raise EncodingError(
            f"Failed to encode request body: {e}",
            details={'body_type': type(body).__name__},
        ) from e


def build_request(
    config: ClientConfig,
    method: str,
    url: str,
    body: Any = None,
    context: Optional[RequestContext] = None,
) -> ApiRequest:
    """
    Build an outgoing request.

    Args:
        config: Client configuration snapshot
        method: HTTP method
        url: Absolute endpoint URL
        body: Optional body value
        context: Execution context, a fresh one when omitted

    Returns:
        ApiRequest: Built request

    Raises:
        ValidationError: If the method or URL is empty
        EncodingError: If the body cannot be serialized
    """
    if not method:
        raise ValidationError("HTTP method cannot be empty")
    if not url:
        raise ValidationError("Request URL cannot be empty")

    encoded = encode_body(body, config.charset) if body is not None else None

    headers = CaseInsensitiveDict()
    headers['Content-Type'] = f"{config.media_type}; charset={config.charset}"
    headers['Accept'] = config.media_type
    headers['User-Agent'] = config.user_agent

    if config.content_language:
        headers['Accept-Language'] = config.content_language
        headers['Content-Language'] = config.content_language

    request = ApiRequest(
        method=method.upper(),
        url=url,
        headers=headers,
        body=encoded,
        payload=body,
        context=context or RequestContext(),
    )

    logger.debug(f"Built {request.method} request to {url}")
    return request
