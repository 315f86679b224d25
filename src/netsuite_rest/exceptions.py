"""
Exception classes for the NetSuite REST Python client
"""

from typing import Optional, Dict, Any, List, TYPE_CHECKING

if TYPE_CHECKING:
    import requests
    from .decoding import ErrorDetail


class NetSuiteError(Exception):
    """Base exception for all NetSuite client errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(NetSuiteError):
    """Exception raised for invalid configuration or caller input"""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ConfigError(NetSuiteError):
    """Exception raised when client configuration cannot be loaded"""

    def __init__(self, message: str, error_code: str = "CONFIG_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class TemplateError(NetSuiteError):
    """Exception raised for malformed URL templates or unresolved placeholders"""

    def __init__(self, message: str, error_code: str = "TEMPLATE_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class EncodingError(NetSuiteError):
    """Exception raised when a request body cannot be serialized"""

    def __init__(self, message: str, error_code: str = "ENCODING_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class SignatureError(NetSuiteError):
    """Exception raised when the authorization signature cannot be computed"""

    def __init__(self, message: str, error_code: str = "SIGNATURE_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class TransportError(NetSuiteError):
    """Exception raised for connection failures, timeouts and cancellation"""

    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class DecodeError(NetSuiteError):
    """Exception raised when a response body cannot be decoded"""

    def __init__(self, message: str, error_code: str = "DECODE_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ResponseError(NetSuiteError):
    """
    Exception raised for a well-formed NetSuite error payload.

    Attributes:
        response: The HTTP response that carried the error
        type: Machine-readable error type URI
        title: Human-readable error title
        status: HTTP status reported in the payload
        error_details: Ordered error detail records
    """

    def __init__(
        self,
        message: str,
        response: Optional['requests.Response'] = None,
        type: str = "",
        title: Any = None,
        status: int = 0,
        error_details: Optional[List['ErrorDetail']] = None,
    ):
        super().__init__(
            message,
            "RESPONSE_ERROR",
            {'status': status, 'type': type, 'title': title},
        )
        self.response = response
        self.type = type
        self.title = title
        self.status = status
        self.error_details = list(error_details or [])

    @property
    def status_code(self) -> int:
        """HTTP status code of the underlying response, falling back to the payload status."""
        if self.response is not None:
            return self.response.status_code
        return self.status
