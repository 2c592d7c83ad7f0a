"""Shared pytest fixtures for flask-mor tests."""

import json

import pytest
import requests
from flask import Flask

from flask_mor import FlaskMor

SIGNING_KEY = "test-signing-key"
PARTNER_DOMAIN = "partner.example.com"
API_BASE_URL = "https://mor.example.com/api/v1"


def make_response(status_code=200, body=None, *, text=None, headers=None):
    """Build a real :class:`requests.Response` without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    if text is not None:
        response._content = text.encode("utf-8")
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    return response


class FakeSession:
    """Stands in for :class:`requests.Session`; records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, response):
        self.responses.append(response)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def app(session):
    """Flask app configured with a fake transport and test settings."""
    application = Flask(__name__)
    application.config["TESTING"] = True
    application.config["SERVER_NAME"] = "shop.example.com"
    application.config["MOR_API_BASE_URL"] = API_BASE_URL
    application.config["MOR_SIGNING_KEY"] = SIGNING_KEY
    application.config["MOR_PARTNER_DOMAIN"] = PARTNER_DOMAIN

    FlaskMor(application, session=session)

    yield application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def ext(app):
    """The FlaskMor extension instance."""
    return app.extensions["mor"]
