"""
Pre-Deploy and Smoke Test Script.

Validates a running pricing backend:
1. Health Check
2. Price resolution for a known service
3. Client price history endpoint reachable

Usage:
    python scripts/validate_deployment.py [base_url] [service_id] [client_id]
"""

import sys
import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"OK: {msg}")


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    service_id = int(sys.argv[2]) if len(sys.argv) > 2 else 1
    client_id = int(sys.argv[3]) if len(sys.argv) > 3 else 1

    print("Starting Deployment Validation...")

    with httpx.Client(base_url=base_url, timeout=10) as client:
        print_step("PRE-DEPLOY", "Checking /health...")
        try:
            response = client.get("/health")
        except httpx.HTTPError as e:
            fail(f"Health check died: {e}")
        if response.status_code != 200:
            fail(f"Health check returned {response.status_code}")
        success(f"Health: {response.json()}")

        print_step("SMOKE", f"Resolving prices of service {service_id}...")
        response = client.get(f"{API_PREFIX}/services/{service_id}/prices", params={"client_id": client_id})
        if response.status_code != 200:
            fail(f"Price resolution failed: {response.status_code} {response.text}")
        prices = response.json()
        if not prices:
            # Empty is also what a degraded store returns; check the diagnostics log
            print("WARNING: No prices resolved. Service may be unpriced or the store degraded.")
        else:
            success(f"Resolved {len(prices)} prices, cheapest {prices[0]['price']} {prices[0]['currency']}")

        print_step("SMOKE", "Checking client price history...")
        response = client.get(f"{API_PREFIX}/clients/{client_id}/services/{service_id}/prices/history")
        if response.status_code != 200:
            fail(f"History lookup failed: {response.status_code} {response.text}")
        success(f"Found {len(response.json())} client price versions")

    success("Deployment Validation Passed!")


if __name__ == "__main__":
    main()
