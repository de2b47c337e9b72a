"""Storefront Reviews Load Testing — Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Vote contention only:
    locust -f loadtests/locustfile.py VoteContentionUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py RatingChurnUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.data_generators import HOT_PRODUCTS
from loadtests.helpers.response import extract_error_detail, is_expected_conflict
from loadtests.scenarios.reviews import RatingChurnUser, ReviewerUser, VoteContentionUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Fires globally for all scenarios — no per-task wiring needed.
    Extracts the API error body so you see "review: You have already
    reviewed this product" instead of just "409".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400 and not is_expected_conflict(response):
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
    """Reconcile stragglers, then print the final rating of each hot product."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        resp = requests.post(
            f"{environment.host}/reviews/maintenance/reconcile-ratings",
            headers={"X-User-Id": "lt-admin", "X-User-Role": "Moderator"},
            timeout=30,
        )
        print(f"[LOADTEST] Reconciliation: {resp.json()}")

        print("\n[LOADTEST] Final product ratings:")
        for product_id in HOT_PRODUCTS:
            summary = requests.get(f"{environment.host}/reviews/products/{product_id}/rating", timeout=5).json()
            print(f"  {product_id}: {summary['average_rating']:.2f} over {summary['review_count']} review(s)")
        print()
    except requests.RequestException as e:
        print(f"[LOADTEST] Could not fetch final ratings: {e}\n")
