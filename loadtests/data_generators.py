"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that match the exact field names expected
by the ordering API's Pydantic request schemas. Product ids must exist in
the inventory service the target deployment talks to; they are read from
``LOADTEST_PRODUCT_IDS`` (comma-separated).
"""

import os
import random
import uuid

from faker import Faker

fake = Faker("es_CO")

PRODUCT_IDS = [pid.strip() for pid in os.getenv("LOADTEST_PRODUCT_IDS", "1,2,3,4,5").split(",") if pid.strip()]
TABLE_IDS = [tid.strip() for tid in os.getenv("LOADTEST_TABLE_IDS", "").split(",") if tid.strip()]


def customer_id() -> str:
    """Generate customer ids like 'cust-lt-a1b2c3d4'."""
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def staff_id() -> str:
    return f"emp-lt-{uuid.uuid4().hex[:6]}"


def customer_headers(user_id: str) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": "cliente"}


def staff_headers(user_id: str) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": random.choice(["empleado", "administrador"])}


def cart_item_data() -> dict:
    """Generate AddCartItemRequest payload."""
    return {"product_id": random.choice(PRODUCT_IDS), "quantity": random.randint(1, 3)}


def quantity_update_data() -> dict:
    return {"quantity": random.randint(1, 4)}


def confirm_data() -> dict:
    """Generate ConfirmOrderRequest payload; some customers rely on their profile address."""
    if random.random() < 0.3:
        return {}
    return {"delivery_address": fake.street_address()[:500]}


def customer_order_data() -> dict:
    """Generate CreateCustomerOrderRequest payload for an in-person order."""
    lines = [
        {"product_id": product_id, "quantity": random.randint(1, 2)}
        for product_id in random.sample(PRODUCT_IDS, k=min(len(PRODUCT_IDS), random.randint(1, 3)))
    ]
    payload = {"lines": lines}
    if TABLE_IDS and random.random() < 0.5:
        payload["table_id"] = random.choice(TABLE_IDS)
    return payload


def payment_method_name() -> str:
    return f"LT {fake.credit_card_provider()} {uuid.uuid4().hex[:4]}"[:100]
