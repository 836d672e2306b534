import os
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

API_BASE = os.getenv("API_BASE_URL", "http://localhost:8000")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))


def _error_message(resp: requests.Response) -> str:
    try:
        detail = resp.json().get("error", resp.text)
    except (ValueError, AttributeError):
        detail = resp.text
    return f"API error {resp.status_code}: {detail}"


def create_expense(payload: dict, idempotency_key: str) -> tuple[bool, str, Optional[dict]]:
    """POST /expenses. Returns (success, message, data)."""
    try:
        resp = requests.post(
            f"{API_BASE}/expenses",
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
            timeout=API_TIMEOUT,
        )
    except requests.exceptions.ConnectionError:
        return False, "Could not connect to the API. Please try again.", None
    except requests.exceptions.Timeout:
        return False, "Request timed out. Submitting again will not create a duplicate.", None

    if resp.status_code == 201:
        return True, "Expense saved successfully!", resp.json()
    if resp.status_code == 200:
        return True, "Expense was already saved.", resp.json()
    return False, _error_message(resp), None


def fetch_expenses(category: str = "", sort: str = "desc") -> tuple[bool, str, Optional[list]]:
    """GET /expenses. Returns (success, message, data)."""
    params = {"sort_date": sort}
    if category:
        params["category"] = category
    try:
        resp = requests.get(f"{API_BASE}/expenses", params=params, timeout=API_TIMEOUT)
    except requests.exceptions.ConnectionError:
        return False, "Could not connect to the API.", None
    except requests.exceptions.Timeout:
        return False, "Request timed out while loading expenses.", None

    if resp.status_code == 200:
        return True, "", resp.json()
    return False, _error_message(resp), None


def fetch_categories() -> list[str]:
    """GET /expenses/categories. Falls back to an empty list."""
    try:
        resp = requests.get(f"{API_BASE}/expenses/categories", timeout=API_TIMEOUT)
    except requests.exceptions.RequestException:
        return []
    return resp.json() if resp.status_code == 200 else []


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse a positive amount typed by the user, or None."""
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def total_cents(expenses: list[dict]) -> int:
    """Sum of amountCents over the currently loaded expenses."""
    return sum(int(e["amountCents"]) for e in expenses)


def format_money(cents: int) -> str:
    return f"${Decimal(cents) / 100:,.2f}"
