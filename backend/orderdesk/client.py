"""HTTP client for the order API, with local countdown re-projection.

The server reports ``timeRemaining`` at the moment it answered. Between
fetches a display re-derives the countdown from that value and the local
monotonic time elapsed since the fetch. The result is only ever a display
value; the server re-checks eligibility on every cancel.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx


class OrderDeskClientError(Exception):
    """Non-2xx response from the order API."""

    def __init__(self, status_code: int, message: str, code: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code} {code}: {message}".strip())


@dataclass(frozen=True)
class TrackedOrder:
    """A fetched client order plus the local instant it was fetched."""

    payload: dict[str, Any]
    fetched_at: float = field(default_factory=time.monotonic)

    @property
    def order_id(self) -> str:
        return str(self.payload["id"])

    @property
    def status(self) -> str:
        return str(self.payload["status"])

    @property
    def total(self) -> Decimal:
        return Decimal(str(self.payload["total"]))


def local_time_remaining(order: TrackedOrder, now: float | None = None) -> int:
    """Seconds left in the window as of local monotonic ``now``.

    Never exceeds the server-reported value and floors at 0.
    """
    if not order.payload.get("cancellable"):
        return 0
    if now is None:
        now = time.monotonic()
    elapsed = max(0.0, now - order.fetched_at)
    reported = int(order.payload.get("timeRemaining", 0))
    return max(0, reported - math.ceil(elapsed))


def locally_cancellable(order: TrackedOrder, now: float | None = None) -> bool:
    return local_time_remaining(order, now) > 0


class OrderDeskClient:
    """Thin synchronous client over httpx."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OrderDeskClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def login(self, email: str, password: str) -> str:
        """Exchange credentials for a token and use it for later calls."""
        body = self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
        )
        token = str(body["token"])
        self._http.headers["Authorization"] = f"Bearer {token}"
        return token

    def place_order(
        self,
        line_items: list[dict[str, Any]],
        table_number: str | None = None,
    ) -> str:
        body = self._request(
            "POST",
            "/orders",
            json={"lineItems": line_items, "tableNumber": table_number},
        )
        return str(body["orderId"])

    def my_orders(self) -> list[TrackedOrder]:
        body = self._request("GET", "/orders/user")
        fetched_at = time.monotonic()
        return [TrackedOrder(payload=o, fetched_at=fetched_at) for o in body]

    def all_orders(self) -> list[dict[str, Any]]:
        return list(self._request("GET", "/orders"))

    def cancel(self, order_id: str) -> str:
        body = self._request("POST", f"/orders/{order_id}/cancel")
        return str(body["message"])

    def update_status(
        self,
        order_id: str,
        status: str,
        estimated_prep_minutes: int | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": status}
        if estimated_prep_minutes is not None:
            payload["estimatedPrepMinutes"] = estimated_prep_minutes
        body = self._request("PUT", f"/orders/{order_id}/status", json=payload)
        return dict(body["order"])

    def health(self) -> dict[str, Any]:
        return dict(self._request("GET", "/health"))

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._http.request(method, path, **kwargs)
        if response.is_success:
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = {}
        raise OrderDeskClientError(
            response.status_code,
            str(body.get("message", response.reason_phrase)),
            str(body.get("code", "")),
        )
