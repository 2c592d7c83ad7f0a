"""Submit a checkout and look up an order by its MOR order id.

Run with::

    export MOR_SIGNING_KEY=...
    export MOR_PARTNER_DOMAIN=partner.example.com
    python examples/checkout_script.py

A successful checkout answers with a redirect to the hosted payment page.
After payment the customer comes back to ``successReturnUrl`` or
``failureReturnUrl`` with ``mor_order_id`` and ``external_order_id``
parameters (see ``basic_app.py`` for a handler).
"""

import json
import logging
import os

from flask_mor import MorClient, MorConfig, MorError
from sample_cart import SAMPLE_CART

# Replace with an MOR order id you actually received
SAMPLE_MOR_ORDER_ID = "MOR-123456"


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    client = MorClient(MorConfig.from_mapping(os.environ))

    print("Processing checkout...")
    try:
        result = client.create_checkout(SAMPLE_CART)
    except MorError as exc:
        print(f"Error: {exc}")
        return

    print(f"API Response (Status: {result.status_code}):")
    print(json.dumps(result.data, indent=4))

    if not result.is_redirect:
        print(f"Checkout failed with status: {result.status_code}")
        return

    print("Checkout initiated with redirect!")
    print(f"You should redirect the user to: {result.redirect_url}")

    print("\n--- Example: Checking Order Status ---")
    print(f"Attempting to check status for order: {SAMPLE_MOR_ORDER_ID}")
    try:
        status = client.get_checkout_status(SAMPLE_MOR_ORDER_ID)
    except MorError as exc:
        print(f"Status check example failed: {exc}")
        return

    if status.status_code == 200:
        data = status.data if isinstance(status.data, dict) else {}
        print("Order Status Retrieved Successfully!")
        if "status" in data:
            print(f"Status: {data['status']['message']}")
        if "merchantOfRecord" in data:
            mor = data["merchantOfRecord"]
            print(f"Customer ID: {mor['customerId']}")
            print(f"Transaction ID: {mor['transactionId']}")
            print(f"Order ID: {mor.get('orderId') or mor.get('paymentId')}")
        if "financials" in data:
            financials = data["financials"]
            print(f"Total Amount: ${financials['totalAmount']}")
            print(f"Total Discount: ${financials['totalDiscount']}")
            print(f"Total Tax: ${financials.get('totalTax', financials.get('totalTaxCharged'))}")
    elif status.status_code == 404:
        print("Order not found (this is expected for the sample order ID)")
    else:
        print(f"Status check failed with code: {status.status_code}")


if __name__ == "__main__":
    main()
