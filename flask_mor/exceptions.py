"""Exceptions raised by flask-mor.

Transport and response errors come from :class:`~flask_mor.client.MorClient`;
callback errors come from :mod:`flask_mor.callback`.  None of them are retried.
"""

from __future__ import annotations


class MorError(Exception):
    """Base class for every flask-mor error."""


class TransportError(MorError):
    """The request never completed (connection, TLS or timeout failure)."""


class MalformedResponse(MorError):
    """The API answered, but the body was not the JSON we expected."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(MorError, RuntimeError):
    """A required setting (such as the signing key) is missing."""


class CallbackError(MorError):
    """A redirect-return callback could not be trusted."""


class MissingParameter(CallbackError):
    """One or more required callback query parameters are absent."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required parameter(s): {', '.join(missing)}")
        self.missing = missing


class ExpiredTimestamp(CallbackError):
    """The callback timestamp is outside the freshness window (possible replay)."""


class InvalidSignature(CallbackError):
    """The callback nonce does not match the expected HMAC."""
