#!/usr/bin/env python3
"""Smoke test for the workflow API against a running dev server (ENV=dev uses the in-memory back end)."""

import sys

import httpx


BASE_URL = "http://127.0.0.1:8001"


def check_workflow_view(booking_id: str) -> bool:
    print("=" * 60)
    print(f"Testing GET /api/v1/bookings/{booking_id}/workflow")
    print("=" * 60)
    try:
        response = httpx.get(f"{BASE_URL}/api/v1/bookings/{booking_id}/workflow", timeout=10.0)
        if response.status_code == 404:
            print(f"Booking {booking_id} not found (seed it in the back end first)")
            return False
        response.raise_for_status()
        data = response.json()
        print(f"Status: {data['status']}")
        for step in data["steps"]:
            print(f"  {step['number']}. {step['label']} [{step['step_status']}] action={step['action']}")
        return True
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False
    except Exception as e:
        print(f"Error: {e}")
        return False


def check_settlement_preview() -> bool:
    print("\n" + "=" * 60)
    print("Testing GET /api/v1/settlement/preview")
    print("=" * 60)
    try:
        response = httpx.get(
            f"{BASE_URL}/api/v1/settlement/preview",
            params={"total_deposit": 500000, "late_fee": 150000},
            timeout=10.0,
        )
        response.raise_for_status()
        data = response.json()
        print(f"refund_amount={data['refund_amount']} action={data['action']}")
        return True
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False
    except Exception as e:
        print(f"Error: {e}")
        return False


def main():
    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
    except Exception:
        print("Server is not running!")
        print("   Please start it with: uvicorn evrental.main:app --reload --port 8001")
        sys.exit(1)

    check_settlement_preview()
    check_workflow_view(sys.argv[1] if len(sys.argv) > 1 else "demo_booking")


if __name__ == "__main__":
    main()
