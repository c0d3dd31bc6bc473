"""Storefront Load Testing — Locust entry point.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Shopper mix only:
    locust -f loadtests/locustfile.py ShopperUser

    # Stock contention on one product:
    LOADTEST_HOT_PRODUCT_ID=<id> locust -f loadtests/locustfile.py LastUnitRaceUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py ShopperUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

from locust import events

# Import all user classes so Locust discovers them
from loadtests.data_generators import product_ids
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.checkout import ShopperUser  # noqa: F401
from loadtests.scenarios.contention import LastUnitRaceUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print(f"[LOADTEST] Products under test: {len(product_ids())}")
    if not product_ids():
        print("[LOADTEST] LOADTEST_PRODUCT_IDS is empty; shoppers will have nothing to buy")
    print()


@events.test_stop.add_listener
def on_test_stop(**_kwargs):
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}\n")
