"""
NetSuite REST Python client
Signed request/response core for the SuiteTalk REST web services
"""

from .version import __version__
from .exceptions import (
    NetSuiteError,
    ValidationError,
    ConfigError,
    TemplateError,
    EncodingError,
    SignatureError,
    TransportError,
    DecodeError,
    ResponseError,
)
from .config import (
    ClientConfig,
    DEFAULT_BASE_URL,
    ERROR_MEDIA_TYPE,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)
from .endpoints import (
    PathParams,
    resolve_endpoint,
    resolve_base_url,
)
from .request_builder import (
    ApiRequest,
    RequestContext,
    build_request,
    encode_body,
)
from .decoding import (
    ErrorDetail,
    ErrorResponse,
    DecodeTarget,
    JsonTarget,
    ModelTarget,
    NetSuiteModel,
    FactoryTarget,
    ResponseDecoder,
)
from .dispatcher import Dispatcher
from .client import NetSuiteClient, create_client
from .signing import (
    Credentials,
    SignatureGenerator,
    SignatureAlgorithm,
    SignatureMethod,
    register_algorithm,
    generate_authorization_header,
    generate_nonce,
    generate_timestamp,
)

# Public API exports
__all__ = [
    '__version__',
    # Client
    'NetSuiteClient',
    'create_client',
    'Dispatcher',
    # Configuration
    'ClientConfig',
    'DEFAULT_BASE_URL',
    'ERROR_MEDIA_TYPE',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    # Endpoints
    'PathParams',
    'resolve_endpoint',
    'resolve_base_url',
    # Requests
    'ApiRequest',
    'RequestContext',
    'build_request',
    'encode_body',
    # Decoding
    'ErrorDetail',
    'ErrorResponse',
    'DecodeTarget',
    'JsonTarget',
    'ModelTarget',
    'NetSuiteModel',
    'FactoryTarget',
    'ResponseDecoder',
    # Signing
    'Credentials',
    'SignatureGenerator',
    'SignatureAlgorithm',
    'SignatureMethod',
    'register_algorithm',
    'generate_authorization_header',
    'generate_nonce',
    'generate_timestamp',
    # Exceptions
    'NetSuiteError',
    'ValidationError',
    'ConfigError',
    'TemplateError',
    'EncodingError',
    'SignatureError',
    'TransportError',
    'DecodeError',
    'ResponseError',
]
