#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import uuid
from typing import Any

import httpx
from httpx import ConnectError


def guest_details(email: str) -> dict[str, Any]:
    return {
        "visited_before": False,
        "booker": {
            "full_name": "Ada Obi",
            "email": email,
            "phone": "08012345678",
            "gender": "Female",
            "date_of_birth": "1990-04-12",
        },
    }


def show(label: str, resp: httpx.Response) -> dict[str, Any]:
    print(f"{label}: {resp.status_code}")
    body = resp.json() if resp.content else {}
    if resp.status_code >= 400:
        print(json.dumps(body, indent=2))
    return body


def main() -> None:
    parser = argparse.ArgumentParser(description="Walk one guest booking through a running dev server")
    parser.add_argument("--base-url", default="http://127.0.0.1:8001/api/v1")
    parser.add_argument("--provider", default="prov-1")
    parser.add_argument("--date", required=True, help="YYYY-MM-DD on an open weekday")
    parser.add_argument("--email", default="ada@example.com")
    parser.add_argument("--coupon", default="")
    args = parser.parse_args()

    base = f"{args.base_url}/booking-sessions/{uuid.uuid4().hex}"
    client = httpx.Client(timeout=10.0)

    try:
        show("mount", client.post(f"{base}/mount", json={"provider_id": args.provider}))
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn booking_portal.main:app --reload --port 8001")
        return

    slots = show("slots", client.get(f"{base}/slots", params={"date": args.date}))
    if not slots.get("slots"):
        print(f"No slots on {args.date}; next available: {slots.get('next_available_date')}")
        return

    show("service", client.patch(f"{base}/selection", json={"service": "General Consultation"}))
    show("slot", client.patch(f"{base}/selection", json={"date": args.date, "time": slots["slots"][0]}))
    show("continue", client.post(f"{base}/continue"))
    show("details", client.patch(f"{base}/form", json=guest_details(args.email)))
    show("login", client.post(f"{base}/continue"))
    show("guest", client.post(f"{base}/guest"))
    booked = show("book", client.post(f"{base}/continue"))
    print(f"  action={booked.get('action')} message={booked.get('message')}")

    if args.coupon:
        coupon = show("coupon", client.post(f"{base}/coupon", json={"code": args.coupon}))
        print(f"  {coupon.get('message')}")

    payment = show("payment", client.post(f"{base}/payment"))
    print(f"  action={payment.get('action')} amount={payment.get('amount')} url={payment.get('authorization_url')}")


if __name__ == "__main__":
    main()
