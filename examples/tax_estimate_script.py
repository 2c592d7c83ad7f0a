"""Ask the MOR for a tax estimate, then look an order up by external order id.

Run with::

    export MOR_SIGNING_KEY=...
    export MOR_PARTNER_DOMAIN=partner.example.com
    python examples/tax_estimate_script.py
"""

import json
import logging
import os

from flask_mor import MorClient, MorConfig, MorError
from sample_cart import SAMPLE_CART


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    client = MorClient(MorConfig.from_mapping(os.environ))

    print("--- Tax estimate ---")
    try:
        estimate = client.calculate_tax_estimate(SAMPLE_CART)
    except MorError as exc:
        print(f"Tax estimate failed: {exc}")
    else:
        print(f"HTTP {estimate.status_code}")
        data = estimate.data if isinstance(estimate.data, dict) else {}
        for line in data.get("financials", {}).get("lineItemTotals", []):
            print(f"  {line['sku']}: tax {line['tax']} / total {line['total']}")
        print(json.dumps(estimate.data, indent=4))

    external_order_id = SAMPLE_CART["configuration"]["externalOrderId"]
    print(f"\n--- Status for external order {external_order_id} ---")
    try:
        status = client.get_checkout_status_by_external_id(external_order_id)
    except MorError as exc:
        print(f"Status lookup failed: {exc}")
        return
    print(f"HTTP {status.status_code}")
    print(json.dumps(status.data, indent=4))


if __name__ == "__main__":
    main()
