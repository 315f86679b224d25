"""
Response decoding

Validates status codes and content types, decodes NetSuite error payloads
into ``ResponseError`` and decodes success bodies into one or more decode
targets. A call succeeds when at least one target accepts the body.

Typed decoding is done with pydantic: record models subclass
``NetSuiteModel`` and are decoded through ``ModelTarget``.
"""

import functools
import json
import logging
import types
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Union, get_args, get_origin

import pydantic
import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator

from .config import ERROR_MEDIA_TYPE
from .exceptions import DecodeError, ResponseError, ValidationError

logger = logging.getLogger(__name__)

#: Validation context key that turns on unknown-field rejection
DISALLOW_UNKNOWN_FIELDS = 'disallow_unknown_fields'

_UNION_TYPES = (Union, getattr(types, 'UnionType', Union))
_ZERO_VALUES = {str: "", int: 0, float: 0.0, bool: False}


def _allows_none(annotation: Any) -> bool:
    if annotation is Any or annotation is None or annotation is type(None):
        return True
    return get_origin(annotation) in _UNION_TYPES and type(None) in get_args(annotation)


def _zero_value(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is list:
        return []
    if origin is dict:
        return {}
    return _ZERO_VALUES.get(annotation)


class NetSuiteModel(BaseModel):
    """
    Base class for NetSuite record models

    Fields may be populated by name or by alias (``Field(alias='o:x')``).
    Unknown fields are ignored unless the decoder is configured with
    ``disallow_unknown_fields``. JSON ``null`` leaves a field at its default;
    a required field without a nullable type receives its type's zero value.
    """

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='before')
    @classmethod
    def _prepare_input(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data

        fields = cls.model_fields
        if info.context and info.context.get(DISALLOW_UNKNOWN_FIELDS):
            known = set(fields) | {f.alias for f in fields.values() if f.alias}
            unknown = [key for key in data if key not in known]
            if unknown:
                raise ValueError(f"unknown field \"{unknown[0]}\"")

        prepared = dict(data)
        for name, f in fields.items():
            for key in {f.alias or name, name}:
                if key not in prepared or prepared[key] is not None or _allows_none(f.annotation):
                    continue
                if not f.is_required():
                    del prepared[key]
                else:
                    zero = _zero_value(f.annotation)
                    if zero is not None:
                        prepared[key] = zero
        return prepared


# {
#   "type": "https://www.w3.org/Protocols/rfc2616/rfc2616-sec10.html#sec10.4.4",
#   "title": "Forbidden",
#   "status": 403,
#   "o:errorDetails": [
#     {
#       "detail": "The account record is only available as a beta record.",
#       "o:errorCode": "INSUFFICIENT_PERMISSION"
#     }
#   ]
# }

class ErrorDetail(NetSuiteModel):
    """A single ``o:errorDetails`` entry"""
    detail: str = ""
    error_code: str = Field(default="", alias='o:errorCode')

    def message(self) -> str:
        """``CODE: detail``, or an empty string without an error code."""
        if self.error_code:
            return f"{self.error_code}: {self.detail}"
        return ""


class ErrorResponse(NetSuiteModel):
    """NetSuite error payload"""
    type: str = ""
    title: Any = None
    status: int = 0
    error_details: List[ErrorDetail] = Field(default_factory=list, alias='o:errorDetails')

    def message(self) -> str:
        """Non-empty detail messages joined by CRLF."""
        messages = [d.message() for d in self.error_details]
        return '\r\n'.join(m for m in messages if m)

    def to_exception(self, response: Optional[requests.Response] = None) -> ResponseError:
        return ResponseError(
            self.message(),
            response=response,
            type=self.type,
            title=self.title,
            status=self.status,
            error_details=self.error_details,
        )


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


def media_type_of(response: requests.Response) -> str:
    """Content type of a response without parameters, lower-cased."""
    header = response.headers.get('Content-Type', '')
    return header.split(';')[0].strip().lower()


def validation_message(error: pydantic.ValidationError) -> str:
    """First pydantic error as ``location: message``, plus a count of the rest."""
    errors = error.errors()
    first = errors[0]
    location = '.'.join(str(part) for part in first['loc'])
    message = f"{location}: {first['msg']}" if location else first['msg']
    if len(errors) > 1:
        message += f" (and {len(errors) - 1} more)"
    return message


# ---------------------------------------------------------------------------
# Decode targets
# ---------------------------------------------------------------------------

class DecodeTarget(ABC):
    """
    A destination the decoder populates

    Targets are reset at the start of every decode. After a successful
    decode ``decoded`` is True and ``value`` holds the result; otherwise both
    stay at their defaults and ``error`` may hold the reason.
    """

    def __init__(self):
        self.reset()

    @abstractmethod
    def convert(self, data: Any, strict: bool) -> Any:
        """Convert parsed JSON into the target value, raising DecodeError on mismatch."""

    def describe(self) -> str:
        return type(self).__name__

    def reset(self) -> None:
        self.value: Any = None
        self.decoded = False
        self.error: Optional[DecodeError] = None

    def decode(self, data: Any, strict: bool = False) -> None:
        value = self.convert(data, strict)
        self.value = value
        self.decoded = True
        self.error = None

    def fail(self, error: DecodeError) -> None:
        self.value = None
        self.decoded = False
        self.error = error

    def __repr__(self) -> str:
        return f"{self.describe()}(decoded={self.decoded}, value={self.value!r})"


class JsonTarget(DecodeTarget):
    """Accepts any JSON value as-is"""

    def convert(self, data: Any, strict: bool) -> Any:
        return data


@functools.lru_cache(maxsize=None)
def _adapter_for(tp: Any) -> pydantic.TypeAdapter:
    return pydantic.TypeAdapter(tp)


class ModelTarget(DecodeTarget):
    """
    Validates the body against a type with pydantic

    ``tp`` is usually a ``NetSuiteModel`` subclass, but any type pydantic
    can validate works, e.g. ``List[Customer]`` or a dataclass.
    """

    def __init__(self, tp: Any):
        try:
            self.adapter = _adapter_for(tp)
        except (pydantic.PydanticUserError, TypeError) as e:
            raise ValidationError(f"Cannot decode into {tp!r}: {e}") from e
        self.tp = tp
        super().__init__()

    def describe(self) -> str:
        return getattr(self.tp, '__name__', None) or repr(self.tp)

    def convert(self, data: Any, strict: bool) -> Any:
        try:
            return self.adapter.validate_python(data, context={DISALLOW_UNKNOWN_FIELDS: strict})
        except pydantic.ValidationError as e:
            raise DecodeError(validation_message(e), details={'errors': e.errors(include_url=False)}) from e


class FactoryTarget(DecodeTarget):
    """Decodes by calling ``factory(parsed_json)``"""

    def __init__(self, factory: Callable[[Any], Any]):
        if not callable(factory):
            raise ValidationError(f"{factory!r} is not callable")
        self.factory = factory
        super().__init__()

    def describe(self) -> str:
        return getattr(self.factory, '__name__', type(self.factory).__name__)

    def convert(self, data: Any, strict: bool) -> Any:
        try:
            return self.factory(data)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(str(e)) from e


def resolve_targets(targets: Sequence[DecodeTarget]) -> List[DecodeTarget]:
    """
    Check that every target is a ``DecodeTarget`` instance.

    Raises:
        ValidationError: For types, callables or other values; wrap those in
            ``ModelTarget`` or ``FactoryTarget`` so the caller keeps a handle
            on the decoded value
    """
    for target in targets:
        if not isinstance(target, DecodeTarget):
            name = getattr(target, '__name__', type(target).__name__)
            raise ValidationError(
                f"Decode target must be a DecodeTarget instance, got {name}; "
                f"wrap it in ModelTarget or FactoryTarget",
                details={'target': name},
            )
    return list(targets)


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

_EMPTY = object()


def parse_json(data: bytes, encoding: str = "utf-8") -> Any:
    """
    Parse the first JSON value in ``data``.

    Trailing content after the first value is ignored. A blank body returns
    a sentinel rather than raising.

    Raises:
        DecodeError: If the body is not valid JSON
    """
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise DecodeError(f"response body is not valid {encoding}: {e}") from e

    stripped = text.lstrip()
    if not stripped:
        return _EMPTY

    try:
        value, _ = json.JSONDecoder().raw_decode(stripped)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    return value


def parse_error_response(parsed: Any) -> ErrorResponse:
    """
    Validate parsed JSON as a NetSuite error payload.

    Raises:
        DecodeError: If the value is not error-shaped
    """
    try:
        return ErrorResponse.model_validate(parsed)
    except pydantic.ValidationError as e:
        raise DecodeError(f"invalid error payload: {validation_message(e)}") from e


class ResponseDecoder:
    """Status, content type and payload decoding for NetSuite responses"""

    def __init__(self, disallow_unknown_fields: bool = False, error_media_type: str = ERROR_MEDIA_TYPE):
        self.disallow_unknown_fields = disallow_unknown_fields
        self.error_media_type = error_media_type.lower()

    def unmarshal(self, data: bytes, *targets: DecodeTarget) -> List[DecodeTarget]:
        """
        Decode the same bytes into every target independently.

        Args:
            data: Buffered body
            *targets: Decode targets, reset before decoding

        Returns:
            list: The decode targets, populated where decoding succeeded

        Raises:
            ValidationError: If a target is not a DecodeTarget
            DecodeError: When every target failed, with all messages combined
        """
        resolved = resolve_targets(targets)
        for target in resolved:
            target.reset()
        if not resolved:
            return resolved

        try:
            parsed = parse_json(data)
        except DecodeError as e:
            for target in resolved:
                target.fail(e)
            raise self._aggregate(resolved) from e

        if parsed is _EMPTY:
            return resolved

        for target in resolved:
            try:
                target.decode(parsed, self.disallow_unknown_fields)
            except DecodeError as e:
                logger.debug(f"Decode into {target.describe()} failed: {e}")
                target.fail(e)

        if all(not t.decoded for t in resolved):
            raise self._aggregate(resolved)

        return resolved

    def check_content_type(self, response: requests.Response) -> None:
        """
        Require the error media type on a non-2xx response.

        Raises:
            DecodeError: On a content type mismatch
        """
        content_type = media_type_of(response)
        if content_type != self.error_media_type:
            raise DecodeError(
                f"Expected Content-Type \"{self.error_media_type}\", got \"{content_type}\"",
                "CONTENT_TYPE_MISMATCH",
                {'status_code': response.status_code, 'content_type': content_type},
            )

    def check_response(self, response: requests.Response) -> Optional[ErrorResponse]:
        """
        Check a response for errors.

        A response outside 200-299 must carry a non-empty body in the error
        media type. Error payloads with actionable details raise
        ``ResponseError``; payloads without details are returned.

        Returns:
            ErrorResponse: Parsed error without details, None on success

        Raises:
            DecodeError: On content type mismatch, empty or unparseable body
            ResponseError: On an error payload with details
        """
        if is_success(response.status_code):
            return None

        data = response.content or b""
        self.check_content_type(response)

        parsed = parse_json(data) if data else _EMPTY
        if parsed is _EMPTY:
            raise DecodeError(
                "response body is empty",
                "EMPTY_ERROR_BODY",
                {'status_code': response.status_code},
            )

        error = parse_error_response(parsed)
        if error.message():
            logger.debug(f"NetSuite error response {response.status_code}: {error.message()}")
            raise error.to_exception(response)

        return error

    def decode(self, response: requests.Response, *targets: DecodeTarget) -> requests.Response:
        """
        Validate a response and decode its body into ``targets``.

        Every target is reset first, so a target reused across calls only
        ever reflects the latest response. The body is also tried against
        the error payload shape, so a success status carrying NetSuite error
        details still raises ``ResponseError``.

        Returns:
            requests.Response: The response, for convenience

        Raises:
            ValidationError: If a target is not a DecodeTarget
            DecodeError: See ``check_response`` and ``unmarshal``
            ResponseError: On an error payload with details
        """
        resolved = resolve_targets(targets)
        for target in resolved:
            target.reset()

        self.check_response(response)

        data = response.content or b""
        if not resolved or not data:
            return response

        failure: Optional[DecodeError] = None
        try:
            self.unmarshal(data, *resolved)
        except DecodeError as e:
            failure = e

        error = self._error_payload(data)
        if error is not None and error.message():
            raise error.to_exception(response)

        if failure is not None:
            raise failure

        return response

    def _error_payload(self, data: bytes) -> Optional[ErrorResponse]:
        try:
            parsed = parse_json(data)
            if parsed is _EMPTY:
                return None
            return parse_error_response(parsed)
        except DecodeError:
            # body is not error-shaped
            return None

    def _aggregate(self, targets: List[DecodeTarget]) -> DecodeError:
        messages = [f"{t.describe()}: {t.error}" for t in targets]
        return DecodeError(
            ', '.join(messages),
            "DECODE_FAILED",
            {'targets': [t.describe() for t in targets]},
        )
