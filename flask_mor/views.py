"""Blueprint with checkout, return, status and tax-estimate routes."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from flask import Blueprint, jsonify, request, url_for

from flask_mor.client import DispatchResult
from flask_mor.exceptions import (
    ConfigurationError,
    ExpiredTimestamp,
    InvalidSignature,
    MalformedResponse,
    MissingParameter,
    TransportError,
)

if TYPE_CHECKING:
    from flask_mor import FlaskMor

logger = logging.getLogger(__name__)

_CALL_ERRORS = (TransportError, MalformedResponse, ConfigurationError)


def _new_external_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex[:12].upper()}"


def _upstream_error(exc: Exception):
    """Map a client failure to a JSON error response."""
    if isinstance(exc, ConfigurationError):
        logger.error("MOR client misconfigured: %s", exc)
        return jsonify({"error": "checkout service not configured", "detail": str(exc)}), 503
    if isinstance(exc, MalformedResponse):
        return (
            jsonify(
                {
                    "error": "malformed upstream response",
                    "detail": str(exc),
                    "status_code": exc.status_code,
                }
            ),
            502,
        )
    return jsonify({"error": "upstream unreachable", "detail": str(exc)}), 502


def _proxy(result: DispatchResult):
    """Relay a JSON API result with its original status code."""
    if result.is_redirect:
        return (
            jsonify(
                {
                    "error": "unexpected redirect",
                    "status_code": result.status_code,
                    "redirect_url": result.redirect_url,
                }
            ),
            502,
        )
    return jsonify(result.data), result.status_code


def create_blueprint(ext: "FlaskMor") -> Blueprint:
    """Return a Blueprint pre-configured with the extension instance."""

    bp = Blueprint("mor", __name__)

    # ------------------------------------------------------------------
    # Checkout – submit a cart and hand back the payment page
    # ------------------------------------------------------------------

    @bp.route("/checkout", methods=["POST"])
    def checkout():
        """Submit a cart to the MOR and return the hosted payment page URL.

        The JSON body is the cart as the API expects it.  Missing
        ``configuration.successReturnUrl`` / ``failureReturnUrl`` default to
        this blueprint's return routes, and a missing
        ``configuration.externalOrderId`` is generated.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "a JSON cart object is required"}), 400

        cart = dict(data)
        configuration = dict(cart.get("configuration") or {})
        configuration.setdefault("successReturnUrl", url_for("mor.success", _external=True))
        configuration.setdefault("failureReturnUrl", url_for("mor.failure", _external=True))
        configuration.setdefault("externalOrderId", _new_external_order_id())
        cart["configuration"] = configuration
        external_order_id = str(configuration["externalOrderId"])

        try:
            result = ext.client.create_checkout(cart)
        except _CALL_ERRORS as exc:
            return _upstream_error(exc)

        ext.record_checkout(external_order_id, cart, result)

        if result.is_redirect:
            return jsonify(
                {
                    "external_order_id": external_order_id,
                    "status_code": result.status_code,
                    "redirect_url": result.redirect_url,
                }
            )
        if result.ok:
            return jsonify(
                {
                    "external_order_id": external_order_id,
                    "status_code": result.status_code,
                    "redirect_url": None,
                    "data": result.data,
                }
            )

        logger.warning("Checkout %s rejected with HTTP %s", external_order_id, result.status_code)
        return (
            jsonify(
                {
                    "error": "checkout rejected",
                    "external_order_id": external_order_id,
                    "status_code": result.status_code,
                    "data": result.data,
                }
            ),
            502,
        )

    # ------------------------------------------------------------------
    # Success / failure return URLs
    # ------------------------------------------------------------------

    def _handle_return(outcome: str):
        try:
            callback = ext.verify_callback(request.args)
        except MissingParameter as exc:
            return jsonify({"error": str(exc), "missing": exc.missing}), 400
        except ExpiredTimestamp as exc:
            return jsonify({"error": "expired timestamp", "detail": str(exc)}), 400
        except InvalidSignature:
            return jsonify({"error": "invalid signature"}), 400

        try:
            result = ext.client.get_checkout_status_by_external_id(callback.external_order_id)
        except _CALL_ERRORS as exc:
            return _upstream_error(exc)

        ext.update_status(callback.external_order_id, outcome, mor_order_id=callback.mor_order_id)

        return jsonify(
            {
                "status": outcome,
                "mor_order_id": callback.mor_order_id,
                "external_order_id": callback.external_order_id,
                "order_status_code": result.status_code,
                "order": result.data,
                "checkout": ext.get_checkout(callback.external_order_id),
            }
        )

    @bp.route("/success")
    def success():
        """Return URL after a completed payment."""
        return _handle_return("success")

    @bp.route("/failure")
    def failure():
        """Return URL after a failed or abandoned payment."""
        return _handle_return("failure")

    # ------------------------------------------------------------------
    # Order status
    # ------------------------------------------------------------------

    @bp.route("/status")
    def status_by_external_id():
        """Return the order status for ``?external_order_id=...``."""
        external_order_id = request.args.get("external_order_id", "")
        if not external_order_id:
            return jsonify({"error": "external_order_id is required"}), 400
        try:
            result = ext.client.get_checkout_status_by_external_id(external_order_id)
        except _CALL_ERRORS as exc:
            return _upstream_error(exc)
        return _proxy(result)

    @bp.route("/status/<mor_order_id>")
    def status(mor_order_id: str):
        """Return the order status for a MOR order id."""
        try:
            result = ext.client.get_checkout_status(mor_order_id)
        except _CALL_ERRORS as exc:
            return _upstream_error(exc)
        return _proxy(result)

    # ------------------------------------------------------------------
    # Tax estimate
    # ------------------------------------------------------------------

    @bp.route("/tax-estimate", methods=["POST"])
    def tax_estimate():
        """Return the MOR's tax breakdown for a cart."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "a JSON cart object is required"}), 400
        try:
            result = ext.client.calculate_tax_estimate(data)
        except _CALL_ERRORS as exc:
            return _upstream_error(exc)
        return _proxy(result)

    return bp
