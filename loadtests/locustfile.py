"""Ordering Service Load Testing: Locust entry point.

Usage:
    # Web UI:
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Headless (CI mode):
    LOADTEST_PRODUCT_IDS=1,2,3 locust -f loadtests/locustfile.py OrderingUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest --host http://localhost:8000
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.ordering import OrderingUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Fires globally for all scenarios; no per-task wiring needed.
    Extracts the envelope message so you see "Insufficient stock for product ..."
    instead of just "409".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Log a marker when load test begins."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Confirm the service is still healthy when the test ends."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        resp = requests.get(f"{environment.host.rstrip('/')}/health", timeout=5)
        print(f"[LOADTEST] Health after run: {resp.status_code} {resp.text}")
    except requests.RequestException as e:
        print(f"[LOADTEST] Could not reach health endpoint: {e}")
    print()
