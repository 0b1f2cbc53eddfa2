from unittest import mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from app import create_app
from settings import Settings


def make_upstream(content=b"", content_type=None, status_code=200):
    headers = CaseInsensitiveDict()
    if content_type is not None:
        headers["Content-Type"] = content_type
    return mock.Mock(
        spec=requests.Response,
        status_code=status_code,
        headers=headers,
        content=content,
    )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upstream_request():
    with mock.patch("forwarding.requests.request") as request:
        request.return_value = make_upstream()
        yield request
