"""Tests for the checkout, status and tax-estimate views."""

import json

import pytest
import requests
from flask import Flask

from conftest import API_BASE_URL, make_response
from flask_mor import FlaskMor

CART = {
    "cartInformation": {
        "lineItems": [{"sku": "PROD-001", "price": 29.99, "quantity": 2, "description": "Premium Widget"}]
    },
    "email": "john.doe@example.com",
}

PAY_URL = "https://pay.example.com/checkout/abc"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def test_checkout_redirect(client, session):
    """A 302 from the API is returned as the payment page URL."""
    session.queue(make_response(302, headers={"Location": PAY_URL}))

    resp = client.post("/mor/checkout", json=CART)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["redirect_url"] == PAY_URL
    assert data["status_code"] == 302
    assert data["external_order_id"].startswith("ORD-")


def test_checkout_fills_configuration(client, session):
    """Return URLs and an external order id are added when missing."""
    session.queue(make_response(302, headers={"Location": PAY_URL}))
    client.post("/mor/checkout", json=CART)

    sent = json.loads(session.last["data"])
    configuration = sent["configuration"]
    assert configuration["successReturnUrl"] == "http://shop.example.com/mor/success"
    assert configuration["failureReturnUrl"] == "http://shop.example.com/mor/failure"
    assert configuration["externalOrderId"].startswith("ORD-")
    assert sent["cartInformation"] == CART["cartInformation"]


def test_checkout_keeps_caller_configuration(client, session):
    session.queue(make_response(302, headers={"Location": PAY_URL}))
    cart = dict(
        CART,
        configuration={
            "successReturnUrl": "https://partner.example.com/ok",
            "externalOrderId": "ORD-2024-123456",
            "allowUserDiscountCodes": True,
        },
    )

    resp = client.post("/mor/checkout", json=cart)
    assert resp.get_json()["external_order_id"] == "ORD-2024-123456"

    configuration = json.loads(session.last["data"])["configuration"]
    assert configuration["successReturnUrl"] == "https://partner.example.com/ok"
    assert configuration["externalOrderId"] == "ORD-2024-123456"
    assert configuration["allowUserDiscountCodes"] is True


def test_checkout_records_submission(client, session, ext):
    session.queue(make_response(302, headers={"Location": PAY_URL}))
    cart = dict(CART, configuration={"externalOrderId": "ORD-7"})
    client.post("/mor/checkout", json=cart)

    stored = ext.get_checkout("ORD-7")
    assert stored is not None
    assert stored["status"] == "redirected"
    assert stored["redirect_url"] == PAY_URL
    assert stored["request_payload"]["email"] == "john.doe@example.com"


def test_checkout_json_result(client, session):
    """A 200 JSON result (non-redirect API variant) is passed through."""
    body = {"status": {"message": "Complete"}, "merchantOfRecord": {"orderId": "MOR-1"}}
    session.queue(make_response(200, body))

    resp = client.post("/mor/checkout", json=CART)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["redirect_url"] is None
    assert data["data"] == body


def test_checkout_rejected(client, session):
    session.queue(make_response(422, {"error": "invalid sku"}))

    resp = client.post("/mor/checkout", json=CART)
    assert resp.status_code == 502
    data = resp.get_json()
    assert data["error"] == "checkout rejected"
    assert data["status_code"] == 422
    assert data["data"] == {"error": "invalid sku"}


def test_checkout_requires_json(client, session):
    resp = client.post("/mor/checkout", data="amount=1", content_type="application/x-www-form-urlencoded")
    assert resp.status_code == 400
    assert session.calls == []


def test_checkout_rejects_json_list(client, session):
    resp = client.post("/mor/checkout", json=[1, 2])
    assert resp.status_code == 400


def test_checkout_transport_error(client, session):
    session.queue(requests.ConnectionError("connection refused"))

    resp = client.post("/mor/checkout", json=CART)
    assert resp.status_code == 502
    assert resp.get_json()["error"] == "upstream unreachable"


def test_checkout_malformed_response(client, session):
    session.queue(make_response(200, text="<html>gateway</html>"))

    resp = client.post("/mor/checkout", json=CART)
    assert resp.status_code == 502
    data = resp.get_json()
    assert data["error"] == "malformed upstream response"
    assert data["status_code"] == 200


# ---------------------------------------------------------------------------
# Order status
# ---------------------------------------------------------------------------

STATUS_BODY = {
    "status": {"message": "Payment complete"},
    "merchantOfRecord": {"customerId": "C-1", "transactionId": "T-1", "orderId": "MOR-123456"},
    "financials": {
        "totalAmount": 53.98,
        "totalDiscount": 5.0,
        "totalTax": 4.32,
        "lineItemTotals": [{"sku": "PROD-001", "tax": 4.32, "total": 53.98}],
    },
}


def test_status_by_mor_order_id(client, session):
    session.queue(make_response(200, STATUS_BODY))

    resp = client.get("/mor/status/MOR-123456")
    assert resp.status_code == 200
    assert resp.get_json() == STATUS_BODY
    assert session.last["url"] == f"{API_BASE_URL}/checkout-status/MOR-123456"


def test_status_not_found_passed_through(client, session):
    session.queue(make_response(404, {"error": "Order not found"}))

    resp = client.get("/mor/status/MOR-404")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Order not found"


def test_status_by_external_id(client, session):
    session.queue(make_response(200, STATUS_BODY))

    resp = client.get("/mor/status?external_order_id=ORD-2024-123456")
    assert resp.status_code == 200
    assert session.last["url"] == f"{API_BASE_URL}/checkout-status?external_order_id=ORD-2024-123456"


def test_status_by_external_id_requires_param(client, session):
    resp = client.get("/mor/status")
    assert resp.status_code == 400
    assert session.calls == []


def test_status_unexpected_redirect(client, session):
    session.queue(make_response(302, headers={"Location": "https://login.example.com"}))

    resp = client.get("/mor/status/MOR-1")
    assert resp.status_code == 502
    assert resp.get_json()["redirect_url"] == "https://login.example.com"


def test_status_timeout(client, session):
    session.queue(requests.Timeout("read timed out"))

    resp = client.get("/mor/status/MOR-1")
    assert resp.status_code == 502


# ---------------------------------------------------------------------------
# Tax estimate
# ---------------------------------------------------------------------------


def test_tax_estimate(client, session):
    body = {"financials": {"totalTax": 4.32, "lineItemTotals": [{"sku": "PROD-001", "tax": 4.32}]}}
    session.queue(make_response(200, body))

    resp = client.post("/mor/tax-estimate", json=CART)
    assert resp.status_code == 200
    assert resp.get_json() == body
    assert session.last["url"] == f"{API_BASE_URL}/calculate-tax-estimate"
    assert json.loads(session.last["data"]) == CART


def test_tax_estimate_requires_json(client, session):
    resp = client.post("/mor/tax-estimate", data=b"not-json", content_type="text/plain")
    assert resp.status_code == 400
    assert session.calls == []


# ---------------------------------------------------------------------------
# Missing configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def unconfigured_client(session):
    app = Flask(__name__)
    app.config["TESTING"] = True
    FlaskMor(app, session=session)
    return app.test_client()


def test_checkout_without_signing_key(unconfigured_client, session):
    resp = unconfigured_client.post("/mor/checkout", json=CART)
    assert resp.status_code == 503
    assert resp.is_json
    assert resp.get_json()["error"] == "checkout service not configured"
    assert session.calls == []


@pytest.mark.parametrize(
    "path",
    ["/mor/status/MOR-1", "/mor/status?external_order_id=ORD-1"],
)
def test_status_without_signing_key(unconfigured_client, path):
    resp = unconfigured_client.get(path)
    assert resp.status_code == 503
    assert "error" in resp.get_json()


def test_tax_estimate_without_signing_key(unconfigured_client):
    resp = unconfigured_client.post("/mor/tax-estimate", json=CART)
    assert resp.status_code == 503


def test_rejected_checkout_recorded_as_rejected(client, session, ext):
    session.queue(make_response(422, {"error": "invalid sku"}))
    client.post("/mor/checkout", json=dict(CART, configuration={"externalOrderId": "ORD-422"}))

    stored = ext.get_checkout("ORD-422")
    assert stored["status"] == "rejected"
    assert stored["status_code"] == 422


def test_json_checkout_recorded_as_submitted(client, session, ext):
    session.queue(make_response(200, {"status": {"message": "Complete"}}))
    client.post("/mor/checkout", json=dict(CART, configuration={"externalOrderId": "ORD-200"}))

    assert ext.get_checkout("ORD-200")["status"] == "submitted"
