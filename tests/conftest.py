"""
Shared fixtures: a WsdotHTTPClient over a mocked requests session.
"""

from unittest.mock import Mock

import pytest

from wsdottie.config import ClientSettings
from wsdottie.http_client import WsdotHTTPClient


def _make_response(status_code=200, body=None, reason="OK", invalid_json=False):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def make_response():
    """Factory for mocked requests responses"""
    return _make_response


@pytest.fixture
def settings():
    return ClientSettings(access_token="test-token", timeout=5.0, user_agent="wsdottie-tests")


@pytest.fixture
def session():
    """Mocked requests session; set session.get.return_value per test"""
    return Mock()


@pytest.fixture
def client(settings, session):
    return WsdotHTTPClient(settings=settings, session=session)
