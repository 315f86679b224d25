"""
Client configuration for the NetSuite REST client

Provides the immutable configuration value shared by every request made
through a client, plus loaders for dictionaries, JSON documents, files and
environment variables.
"""

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..exceptions import ConfigError, ValidationError
from ..signing.types import Credentials
from ..version import __version__

DEFAULT_BASE_URL = "https://{account_id}.suitetalk.api.netsuite.com/services/rest"
DEFAULT_USER_AGENT = f"netsuite-rest-python/{__version__}"
DEFAULT_MEDIA_TYPE = "application/json"
DEFAULT_CHARSET = "utf-8"
ERROR_MEDIA_TYPE = "application/vnd.oracle.resource+json"

ENV_PREFIX = "NETSUITE_"

# before_send(session, prepared_request, body) / after_complete(prepared_request, response)
BeforeSendHook = Callable[[Any, Any, Any], None]
AfterCompleteHook = Callable[[Any, Any], None]

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration

    Attributes:
        base_url: Base address template with an ``{account_id}`` placeholder
        account_id: NetSuite account (company) id
        credentials: Token-based authentication credentials
        use_token_auth: Sign every request with token-based authentication
        content_language: Optional value for Accept-Language/Content-Language
        media_type: Media type for Content-Type and Accept
        charset: Character set for request bodies
        user_agent: User-Agent header value
        disallow_unknown_fields: Reject unknown JSON fields while decoding
        debug: Log full request and response dumps
        error_media_type: Content type expected on error responses
        before_send_hooks: Observers called before a request is sent
        after_complete_hooks: Observers called once a response arrives
    """
    base_url: str = DEFAULT_BASE_URL
    account_id: str = ""
    credentials: Credentials = field(default_factory=Credentials)
    use_token_auth: bool = False
    content_language: str = ""
    media_type: str = DEFAULT_MEDIA_TYPE
    charset: str = DEFAULT_CHARSET
    user_agent: str = DEFAULT_USER_AGENT
    disallow_unknown_fields: bool = False
    debug: bool = False
    error_media_type: str = ERROR_MEDIA_TYPE
    before_send_hooks: Tuple[BeforeSendHook, ...] = ()
    after_complete_hooks: Tuple[AfterCompleteHook, ...] = ()

    def __post_init__(self):
        """Validate configuration"""
        if not self.base_url:
            raise ValidationError("Base URL template cannot be empty")

        if not self.media_type:
            raise ValidationError("Media type cannot be empty")

        if not self.charset:
            raise ValidationError("Charset cannot be empty")

        if not isinstance(self.credentials, Credentials):
            raise ValidationError("credentials must be a Credentials instance")

        # Hooks may be passed as lists
        object.__setattr__(self, 'before_send_hooks', tuple(self.before_send_hooks))
        object.__setattr__(self, 'after_complete_hooks', tuple(self.after_complete_hooks))

    def evolve(self, **changes) -> 'ClientConfig':
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ClientConfig':
        """
        Build a configuration from a flat mapping.

        Credentials may be given either as a nested ``credentials`` mapping
        or as top-level ``consumer_key``/``consumer_secret``/``token_id``/
        ``token_secret`` keys. Token auth defaults to on when all four are
        present.

        Raises:
            ConfigError: On unknown keys or wrongly typed values
        """
        data = dict(data)
        credential_keys = ('consumer_key', 'consumer_secret', 'token_id', 'token_secret')

        raw_credentials = data.pop('credentials', None) or {}
        if not isinstance(raw_credentials, Mapping):
            raise ConfigError("'credentials' must be a mapping", "INVALID_FORMAT")
        raw_credentials = dict(raw_credentials)
        for key in credential_keys:
            if key in data:
                raw_credentials[key] = data.pop(key)

        try:
            credentials = Credentials(**{k: str(v) for k, v in raw_credentials.items()})
        except TypeError as e:
            raise ConfigError(f"Invalid credentials: {e}", "INVALID_FORMAT") from e

        known = {f for f in cls.__dataclass_fields__} - {'credentials'}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}", "INVALID_FORMAT")

        for key in ('use_token_auth', 'disallow_unknown_fields', 'debug'):
            if key in data:
                data[key] = _parse_bool(key, data[key])

        data.setdefault('use_token_auth', credentials.is_complete())

        try:
            return cls(credentials=credentials, **data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", "INVALID_CONFIG") from e


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigError(f"Invalid boolean for '{name}': {value!r}", "INVALID_FORMAT")


def load_config_from_json(json_string: str) -> ClientConfig:
    """Load client configuration from a JSON string"""
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR") from e

    if not isinstance(data, dict):
        raise ConfigError("Configuration JSON must be an object", "INVALID_FORMAT")

    return ClientConfig.from_dict(data)


def load_config_from_file(path: Union[str, Path]) -> ClientConfig:
    """Load client configuration from a JSON file"""
    path = Path(path)
    try:
        content = path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file {path}: {e}", "FILE_ERROR") from e

    return load_config_from_json(content)


def load_config_from_env(environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX) -> ClientConfig:
    """
    Load client configuration from ``NETSUITE_*`` environment variables.

    Recognised variables: ``ACCOUNT_ID``, ``BASE_URL``, ``CONSUMER_KEY``,
    ``CONSUMER_SECRET``, ``TOKEN_ID``, ``TOKEN_SECRET``,
    ``CONTENT_LANGUAGE``, ``USER_AGENT``, ``USE_TOKEN_AUTH``, ``DEBUG`` and
    ``DISALLOW_UNKNOWN_FIELDS``.
    """
    environ = os.environ if environ is None else environ
    names = (
        'account_id', 'base_url', 'consumer_key', 'consumer_secret', 'token_id',
        'token_secret', 'content_language', 'user_agent', 'use_token_auth',
        'debug', 'disallow_unknown_fields',
    )

    data: Dict[str, Any] = {}
    for name in names:
        value = environ.get(f"{prefix}{name.upper()}")
        if value is not None:
            data[name] = value

    return ClientConfig.from_dict(data)
