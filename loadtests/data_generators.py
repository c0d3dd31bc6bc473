"""Faker-based data generators for Locust load test scenarios.

Payloads use the camelCase field names the API's request schemas expose.
Product ids come from the environment: seed the catalogue with
``python src/manage.py seed-products <file>`` and export the ids as
``LOADTEST_PRODUCT_IDS`` (comma separated).
"""

import os
import random
import uuid

from faker import Faker

from storefront.api.auth import create_access_token

fake = Faker("es_CL")

REGIONS = ["Metropolitana", "Valparaíso", "Biobío", "Araucanía", "Los Lagos", "Antofagasta"]


def product_ids() -> list[str]:
    ids = [pid.strip() for pid in os.environ.get("LOADTEST_PRODUCT_IDS", "").split(",")]
    return [pid for pid in ids if pid]


def contended_product_id() -> str | None:
    """The single product every contention user fights over."""
    return os.environ.get("LOADTEST_HOT_PRODUCT_ID") or next(iter(product_ids()), None)


def shopper() -> tuple[str, dict]:
    """A fresh user id and the bearer header for it.

    Tokens are signed with JWT_SECRET from the environment, which must
    match the server's.
    """
    user_id = f"lt-{uuid.uuid4().hex[:12]}"
    token = create_access_token(user_id, email=f"{user_id}@loadtest.example.com")
    return user_id, {"Authorization": f"Bearer {token}"}


def admin_headers() -> dict:
    token = create_access_token("lt-admin", is_admin=True)
    return {"Authorization": f"Bearer {token}"}


def shipping_address() -> dict:
    return {
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": random.choice(REGIONS),
        "zipCode": fake.postcode()[:20],
        "country": "Chile",
    }


def cart_lines(max_lines: int = 3) -> list[dict]:
    ids = product_ids()
    chosen = random.sample(ids, k=min(len(ids), random.randint(1, max_lines)))
    return [{"productId": pid, "quantity": random.randint(1, 2)} for pid in chosen]


def order_notes() -> str | None:
    return fake.sentence(nb_words=6) if random.random() < 0.3 else None


def cancel_reason() -> str:
    return random.choice(["Changed my mind", "Found a better price", "Ordered by mistake"])
