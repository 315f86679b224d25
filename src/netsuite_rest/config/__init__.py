"""
Configuration management for the NetSuite REST client
"""

from .client_config import (
    ClientConfig,
    BeforeSendHook,
    AfterCompleteHook,
    DEFAULT_BASE_URL,
    DEFAULT_USER_AGENT,
    DEFAULT_MEDIA_TYPE,
    DEFAULT_CHARSET,
    ERROR_MEDIA_TYPE,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)

__all__ = [
    'ClientConfig',
    'BeforeSendHook',
    'AfterCompleteHook',
    'DEFAULT_BASE_URL',
    'DEFAULT_USER_AGENT',
    'DEFAULT_MEDIA_TYPE',
    'DEFAULT_CHARSET',
    'ERROR_MEDIA_TYPE',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
]
