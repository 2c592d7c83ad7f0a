"""Sample cart used by the example scripts."""

SAMPLE_CART = {
    "cartInformation": {
        "lineItems": [
            {
                "sku": "PROD-001",
                "price": 29.99,
                "quantity": 2,
                "description": "Premium Widget",
                "discounts": [
                    {
                        "discountId": "DISC-001",
                        "description": "10% off",
                        "type": "percentage",
                        "value": 10.0,
                    }
                ],
            }
        ]
    },
    "orderDiscounts": [
        {
            "discountId": "ORDER-DISC-001",
            "description": "Order discount",
            "type": "fixed",
            "value": 5.0,
        }
    ],
    "shippingAddress": {
        "firstName": "John",
        "lastName": "Doe",
        "addressLine1": "123 Main St",
        "addressLine2": "Apt 4B",
        "city": "New York",
        "state": "NY",
        "postalCode": "10001",
        "country": "US",
        "phone": "+1-555-123-4567",
    },
    "billingAddress": {
        "sameAsShipping": False,
        "firstName": "John",
        "lastName": "Doe",
        "addressLine1": "456 Oak Ave",
        "addressLine2": "Suite 100",
        "city": "New York",
        "state": "NY",
        "postalCode": "10002",
        "country": "US",
        "phone": "+1-555-987-6543",
    },
    "email": "john.doe@example.com",
    "renewal": {
        "originalPurchaseDate": "2023-01-15",
        "originalTransactionId": "TXN-12345",
    },
    "existingClientId": "CLIENT-789",
    "configuration": {
        "successReturnUrl": "https://example-partner.com/success",
        "failureReturnUrl": "https://example-partner.com/failure",
        "allowUserDiscountCodes": True,
        "externalOrderId": "ORD-2024-123456",
    },
}
