"""flask_mor – Flask extension for the Merchant of Record hosted-checkout API."""

from __future__ import annotations

from typing import Any

from flask_mor.client import DispatchResult, MorClient, MorConfig
from flask_mor.callback import RedirectCallback, validate, verify_nonce
from flask_mor.exceptions import (
    CallbackError,
    ConfigurationError,
    ExpiredTimestamp,
    InvalidSignature,
    MalformedResponse,
    MissingParameter,
    MorError,
    TransportError,
)
from flask_mor.signing import sign, sign_nonce, utc_timestamp
from flask_mor.version import __version__
from flask_mor.views import create_blueprint

__all__ = [
    "FlaskMor",
    "MorClient",
    "MorConfig",
    "DispatchResult",
    "RedirectCallback",
    "sign",
    "sign_nonce",
    "utc_timestamp",
    "validate",
    "verify_nonce",
    "MorError",
    "TransportError",
    "MalformedResponse",
    "ConfigurationError",
    "CallbackError",
    "MissingParameter",
    "ExpiredTimestamp",
    "InvalidSignature",
]


class FlaskMor:
    """Flask extension that wires a :class:`~flask_mor.client.MorClient` into an app.

    Usage – application factory pattern::

        from flask import Flask
        from flask_mor import FlaskMor

        mor = FlaskMor()

        def create_app():
            app = Flask(__name__)
            app.config["MOR_SIGNING_KEY"] = "..."
            app.config["MOR_PARTNER_DOMAIN"] = "partner.example.com"
            mor.init_app(app)
            return app

    Usage – direct initialisation::

        app = Flask(__name__)
        ext = FlaskMor(app)

    Configuration keys (set on ``app.config``):

    ``MOR_API_BASE_URL``
        Base URL of the API (default: the staging environment).
    ``MOR_SIGNING_KEY``
        Shared HMAC-SHA256 secret.  Required before any request is sent.
    ``MOR_PARTNER_DOMAIN``
        Registered partner domain, sent as ``X-SPT-MOR-Domain``.
    ``MOR_URL_PREFIX``
        URL prefix for the blueprint (default: ``"/mor"``).
    ``MOR_HTTP_TIMEOUT``
        Request timeout in seconds (default: ``None``, no timeout).
    ``MOR_CALLBACK_MAX_AGE``
        Oldest acceptable redirect-return timestamp, in seconds (default 300).
    ``MOR_CALLBACK_MAX_FUTURE_SKEW``
        How far in the future a redirect-return timestamp may be (default 60).
    """

    def __init__(self, app=None, *, session=None) -> None:
        self._session = session
        self._client: MorClient | None = None
        # Checkouts submitted by this process: {external_order_id: dict}
        self._checkouts: dict[str, dict[str, Any]] = {}

        if app is not None:
            self.init_app(app)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def init_app(self, app, *, session=None) -> None:
        """Initialise the extension against *app*."""
        if session is not None:
            self._session = session

        app.config.setdefault("MOR_API_BASE_URL", None)
        app.config.setdefault("MOR_SIGNING_KEY", "")
        app.config.setdefault("MOR_PARTNER_DOMAIN", "")
        app.config.setdefault("MOR_URL_PREFIX", "/mor")
        app.config.setdefault("MOR_HTTP_TIMEOUT", None)
        app.config.setdefault("MOR_CALLBACK_MAX_AGE", 300)
        app.config.setdefault("MOR_CALLBACK_MAX_FUTURE_SKEW", 60)

        self._client = MorClient(MorConfig.from_mapping(app.config), session=self._session)

        blueprint = create_blueprint(self)
        app.register_blueprint(blueprint, url_prefix=app.config["MOR_URL_PREFIX"])

        app.extensions["mor"] = self

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def client(self) -> MorClient:
        """The underlying :class:`~flask_mor.client.MorClient`."""
        if self._client is None:
            raise RuntimeError("FlaskMor extension not initialised. Call init_app(app) first.")
        return self._client

    @property
    def config(self) -> MorConfig:
        return self.client.config

    def verify_callback(self, args) -> RedirectCallback:
        """Extract and verify a redirect-return callback from query *args*.

        Raises:
            MissingParameter: A required parameter is absent.
            ExpiredTimestamp: The timestamp is outside the freshness window.
            InvalidSignature: The nonce does not match, or no signing key is set.
        """
        callback = RedirectCallback.from_args(args)
        callback.verify(
            self.config.signing_key,
            max_age=self.config.callback_max_age,
            max_future_skew=self.config.callback_max_future_skew,
        )
        return callback

    # ------------------------------------------------------------------
    # Checkout log helpers
    # ------------------------------------------------------------------

    def record_checkout(self, external_order_id: str, cart: dict, result: DispatchResult) -> None:
        """Remember a submitted checkout so the return handlers can show it."""
        if result.is_redirect:
            status = "redirected"
        elif result.ok:
            status = "submitted"
        else:
            status = "rejected"
        self._checkouts[external_order_id] = {
            "external_order_id": external_order_id,
            "status_code": result.status_code,
            "redirect_url": result.redirect_url,
            "status": status,
            "mor_order_id": None,
            "request_payload": cart,
        }

    def get_checkout(self, external_order_id: str) -> dict[str, Any] | None:
        """Return the recorded checkout for *external_order_id*, or ``None``."""
        return self._checkouts.get(external_order_id)

    def update_status(self, external_order_id: str, status: str, *, mor_order_id: str | None = None) -> bool:
        """Update a recorded checkout. Returns ``True`` when it was known."""
        record = self._checkouts.get(external_order_id)
        if record is None:
            return False
        record["status"] = status
        if mor_order_id is not None:
            record["mor_order_id"] = mor_order_id
        return True

    def all_checkouts(self) -> list[dict[str, Any]]:
        """Return every recorded checkout."""
        return list(self._checkouts.values())
