"""Synchronous client for the MOR checkout API.

Usage::

    from flask_mor.client import MorClient, MorConfig

    client = MorClient(
        MorConfig(signing_key="...", partner_domain="partner.example.com")
    )
    result = client.create_checkout(cart)
    if result.is_redirect:
        send_the_customer_to(result.redirect_url)

    status = client.get_checkout_status_by_external_id("ORD-2024-123456")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote, urlencode

import requests

from flask_mor.exceptions import ConfigurationError, MalformedResponse, TransportError
from flask_mor.signing import canonical_payload, sign, utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://staging-morcheckout.standardpartstoolkit.com/api/v1"

SIGNATURE_HEADER = "X-SPT-MOR-Signature"
DOMAIN_HEADER = "X-SPT-MOR-Domain"
TIMESTAMP_HEADER = "X-SPT-MOR-Timestamp"

# how much of a non-JSON body to keep on MalformedResponse
_BODY_EXCERPT = 500


@dataclass(frozen=True)
class MorConfig:
    """Connection and validation settings for one MOR partner account."""

    api_base_url: str = DEFAULT_API_BASE_URL
    signing_key: str = ""
    partner_domain: str = ""
    timeout: float | None = None
    callback_max_age: float = 300
    callback_max_future_skew: float = 60

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "MorConfig":
        """Build a config from ``MOR_*`` keys (e.g. a Flask ``app.config``)."""
        timeout = mapping.get("MOR_HTTP_TIMEOUT")
        return cls(
            api_base_url=mapping.get("MOR_API_BASE_URL") or DEFAULT_API_BASE_URL,
            signing_key=mapping.get("MOR_SIGNING_KEY") or "",
            partner_domain=mapping.get("MOR_PARTNER_DOMAIN") or "",
            timeout=float(timeout) if timeout is not None else None,
            callback_max_age=float(mapping.get("MOR_CALLBACK_MAX_AGE", 300)),
            callback_max_future_skew=float(mapping.get("MOR_CALLBACK_MAX_FUTURE_SKEW", 60)),
        )

    def url(self, path: str) -> str:
        return self.api_base_url.rstrip("/") + path


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one API round-trip.

    For a 3xx response ``redirect_url`` is the ``Location`` header verbatim
    and the body is never read.  Otherwise ``data`` is the parsed JSON body,
    whatever the status code.
    """

    status_code: int
    data: Any = None
    redirect_url: str | None = None

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class MorClient:
    """Signs, sends and interprets MOR API requests.

    Args:
        config: Account settings.  The signing key and partner domain are
            bound here rather than passed to each call.
        session: Optional :class:`requests.Session` used as the transport.
    """

    def __init__(self, config: MorConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session if session is not None else requests.Session()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def build_headers(self, payload: str, timestamp: str) -> dict[str, str]:
        """Return the headers every MOR request must carry."""
        return {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign(payload, timestamp, self.config.signing_key),
            DOMAIN_HEADER: self.config.partner_domain,
            TIMESTAMP_HEADER: timestamp,
        }

    def dispatch(self, url: str, body: Any, method: str = "POST") -> DispatchResult:
        """Sign *body*, send it to *url* and interpret the response.

        *body* is either a JSON-serialisable structure (sent as the request
        body) or a raw string that is signed but not sent, for GET lookups
        keyed by an identifier.

        Raises:
            ConfigurationError: If no signing key is configured.
            TransportError: If the request could not be completed.
            MalformedResponse: If a non-redirect response is not valid JSON.
        """
        if not self.config.signing_key:
            raise ConfigurationError("MOR signing key is not configured (MOR_SIGNING_KEY).")

        method = method.upper()
        payload = canonical_payload(body)
        # the signed timestamp has to be taken at send time
        timestamp = utc_timestamp()
        headers = self.build_headers(payload, timestamp)
        data = payload.encode("utf-8") if method == "POST" else None

        logger.debug("%s %s (timestamp %s)", method, url, timestamp)
        try:
            response = self._session.request(
                method,
                url,
                data=data,
                headers=headers,
                timeout=self.config.timeout,
                allow_redirects=False,
                verify=True,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        status = response.status_code
        if 300 <= status < 400:
            location = response.headers.get("Location")
            logger.info("%s %s -> HTTP %s redirect to %s", method, url, status, location)
            return DispatchResult(
                status_code=status,
                data={"redirect": True, "url": location},
                redirect_url=location,
            )

        try:
            parsed = response.json()
        except ValueError as exc:
            excerpt = response.text[:_BODY_EXCERPT]
            logger.warning("%s %s -> HTTP %s with non-JSON body", method, url, status)
            raise MalformedResponse(
                f"Invalid JSON response (HTTP {status}): {exc}",
                status_code=status,
                body=excerpt,
            ) from exc

        logger.info("%s %s -> HTTP %s", method, url, status)
        return DispatchResult(status_code=status, data=parsed)

    # ------------------------------------------------------------------
    # API surface
    # ------------------------------------------------------------------

    def create_checkout(self, cart: Mapping[str, Any]) -> DispatchResult:
        """Submit a cart; a successful call normally redirects to the payment page."""
        return self.dispatch(self.config.url("/checkout"), cart, "POST")

    def get_checkout_status(self, mor_order_id: str) -> DispatchResult:
        """Look up an order by the MOR's own order id."""
        mor_order_id = str(mor_order_id)
        url = self.config.url("/checkout-status/" + quote(mor_order_id, safe=""))
        return self.dispatch(url, mor_order_id, "GET")

    def get_checkout_status_by_external_id(self, external_order_id: str) -> DispatchResult:
        """Look up an order by the partner-assigned ``externalOrderId``."""
        external_order_id = str(external_order_id)
        query = urlencode({"external_order_id": external_order_id})
        return self.dispatch(self.config.url("/checkout-status?" + query), external_order_id, "GET")

    def calculate_tax_estimate(self, cart: Mapping[str, Any]) -> DispatchResult:
        """Ask for a tax breakdown of *cart* without starting a checkout."""
        return self.dispatch(self.config.url("/calculate-tax-estimate"), cart, "POST")
