import os
import sys
import json
import uuid
from typing import Tuple

import requests

from receipts.relay_client import RelayClient, RelayRejectedError, RelayUnavailableError, draft_from_analysis, ensure_json


API_BASE = os.environ.get("API_BASE", "http://localhost:8000")


def print_step(name: str, ok: bool, detail: str = "") -> None:
    status = "OK" if ok else "FAIL"
    line = f"[ {status} ] {name}"
    if detail:
        line += f" -> {detail}"
    print(line)


def call(method: str, path: str, token: str | None = None, **kwargs) -> Tuple[bool, dict]:
    headers = kwargs.pop("headers", {})
    if token:
        headers["Authorization"] = f"Bearer {token}"
    r = requests.request(method, f"{API_BASE}{path}", headers=headers, timeout=15, **kwargs)
    return r.ok, ensure_json(r)


def main() -> int:
    email = os.environ.get("SMOKE_EMAIL", f"smoke_{uuid.uuid4().hex[:8]}@example.com")
    password = os.environ.get("SMOKE_PASSWORD", "Secret123!@#")

    ok, data = call("GET", "/test")
    print_step("GET /test", ok, json.dumps(data))
    if not ok:
        return 1

    ok, data = call("POST", "/auth/register", json={"email": email, "password": password})
    print_step("POST /auth/register", ok, json.dumps(data))
    # If already exists, proceed to login anyway

    ok, data = call(
        "POST",
        "/auth/jwt/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    print_step("POST /auth/jwt/login", ok, json.dumps(data))
    token = data.get("access_token")
    if not ok or not token:
        return 2

    ok, data = call("POST", "/budgets/", token, json={"category_id": "other", "budget_type": "daily", "budget_amount": 50})
    print_step("POST /budgets/", ok, json.dumps(data))

    expense = {"amount": 46, "merchant_name": "Smoke Test Mart", "category_id": "other"}
    pdf_path = os.environ.get("SMOKE_PDF")
    if pdf_path:
        try:
            extracted = RelayClient(endpoint=f"{API_BASE}/extract-text").extract(pdf_path)
            print_step("POST /extract-text", True, json.dumps(extracted.analysis.model_dump(by_alias=True)))
            draft = draft_from_analysis(extracted.analysis)
            if draft.amount > 0 and draft.merchant_name:
                expense.update(amount=float(draft.amount), merchant_name=draft.merchant_name, reference_id=draft.reference_id)
        except (RelayUnavailableError, RelayRejectedError) as e:
            print_step("POST /extract-text", False, str(e))

    ok, data = call("POST", "/expenses/", token, json=expense)
    print_step("POST /expenses/", ok, json.dumps(data.get("alerts", data)))
    return 0 if ok else 3


if __name__ == "__main__":
    sys.exit(main())
