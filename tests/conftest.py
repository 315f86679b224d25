"""
Shared fixtures for the NetSuite REST client tests
"""

import io
import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from netsuite_rest import ClientConfig, Credentials, ERROR_MEDIA_TYPE


ACCOUNT_ID = "123456"


def make_response(
    status: int = 200,
    body: Any = b"",
    content_type: Optional[str] = "application/json",
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://123456.suitetalk.api.netsuite.com/services/rest/record/v1/customer",
) -> requests.Response:
    """Build a real requests.Response backed by a single-read byte stream."""
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode('utf-8')
    elif isinstance(body, str):
        body = body.encode('utf-8')

    response = requests.Response()
    response.status_code = status
    response.reason = requests.status_codes._codes.get(status, ("",))[0].replace('_', ' ').upper()
    response.headers = CaseInsensitiveDict(headers or {})
    if content_type:
        response.headers['Content-Type'] = content_type
    response.raw = io.BytesIO(body)
    response.url = url
    return response


def make_error_response(status: int, details, title: str = "Error") -> requests.Response:
    """Build a NetSuite error response."""
    payload = {
        "type": "https://www.w3.org/Protocols/rfc2616/rfc2616-sec10.html#sec10.4.4",
        "title": title,
        "status": status,
        "o:errorDetails": details,
    }
    return make_response(status, payload, content_type=ERROR_MEDIA_TYPE)


@pytest.fixture
def credentials():
    """Test token-based credentials."""
    return Credentials(
        consumer_key="ck",
        consumer_secret="cs",
        token_id="tk",
        token_secret="ts",
    )


@pytest.fixture
def config(credentials):
    """Client configuration with token auth enabled."""
    return ClientConfig(
        account_id=ACCOUNT_ID,
        credentials=credentials,
        use_token_auth=True,
    )


@pytest.fixture
def mock_session():
    """Session whose send() returns an empty 204 by default."""
    session = MagicMock(spec=requests.Session)
    session.send.return_value = make_response(204, b"", content_type=None)
    return session
