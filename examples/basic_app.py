"""Basic Flask app using flask-mor.

Run with::

    export MOR_SIGNING_KEY=...
    export MOR_PARTNER_DOMAIN=partner.example.com
    python examples/basic_app.py

Then:

    # Submit a cart; returns the hosted payment page URL
    curl -X POST http://localhost:5000/mor/checkout \\
         -H "Content-Type: application/json" \\
         -d '{"cartInformation": {"lineItems": [{"sku": "PROD-001", "price": 29.99, "quantity": 1}]}, "email": "john.doe@example.com"}'

    # Order status by MOR order id or by external order id
    curl http://localhost:5000/mor/status/MOR-123456
    curl "http://localhost:5000/mor/status?external_order_id=ORD-2024-123456"

    # Tax estimate for a cart
    curl -X POST http://localhost:5000/mor/tax-estimate \\
         -H "Content-Type: application/json" -d @cart.json

After payment the MOR redirects the customer to /mor/success or /mor/failure,
which validate the nonce and fetch the order status.
"""

import logging
import os

from flask import Flask

from flask_mor import FlaskMor

logging.basicConfig(level=logging.INFO)

app = Flask(__name__)
app.config["MOR_SIGNING_KEY"] = os.environ.get("MOR_SIGNING_KEY", "")
app.config["MOR_PARTNER_DOMAIN"] = os.environ.get("MOR_PARTNER_DOMAIN", "")
app.config["MOR_URL_PREFIX"] = "/mor"

ext = FlaskMor(app)

if __name__ == "__main__":
    app.run(debug=True)
