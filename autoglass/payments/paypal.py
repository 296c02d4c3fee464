"""
PayPal Orders v2 client.

Only the two calls the booking flow needs: create an order for a
booking and capture it after the customer approves. The OAuth access
token is cached until shortly before it expires.
"""

import logging
import time
from typing import Any, Optional, Protocol

import httpx

from autoglass.config import PaymentConfig
from autoglass.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

# Refresh the token this many seconds before PayPal says it expires.
_TOKEN_EXPIRY_MARGIN = 60


class PaymentGateway(Protocol):
    async def create_charge(self, amount: float, reference: str) -> dict[str, Any]: ...

    async def capture_charge(self, order_id: str) -> dict[str, Any]: ...


class PayPalClient:
    def __init__(self, config: PaymentConfig, http: Optional[httpx.AsyncClient] = None) -> None:
        self._config = config
        self._http = http or httpx.AsyncClient(base_url=config.api_base, timeout=config.timeout_seconds)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not (self._config.client_id and self._config.client_secret):
            raise PaymentGatewayError("PayPal credentials are not configured")
        response = await self._request(
            "POST",
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self._config.client_id, self._config.client_secret),
        )
        self._token = response["access_token"]
        self._token_expires_at = time.monotonic() + int(response.get("expires_in", 0)) - _TOKEN_EXPIRY_MARGIN
        return self._token

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("PayPal %s %s returned %s: %s", method, path, exc.response.status_code, exc.response.text)
            raise PaymentGatewayError(f"PayPal request failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("PayPal %s %s failed: %s", method, path, exc)
            raise PaymentGatewayError("PayPal is unreachable") from exc
        return response.json()

    async def create_charge(self, amount: float, reference: str) -> dict[str, Any]:
        """Create a CAPTURE-intent order. Returns ``{order_id, approval_url}``."""
        token = await self._access_token()
        order = await self._request(
            "POST",
            "/v2/checkout/orders",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "reference_id": reference,
                        "description": f"Booking {reference}",
                        "amount": {
                            "currency_code": self._config.currency,
                            "value": f"{amount:.2f}",
                        },
                    }
                ],
            },
        )
        approval_url = next(
            (link["href"] for link in order.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        logger.info("Created PayPal order %s for %s", order["id"], reference)
        return {"order_id": order["id"], "approval_url": approval_url}

    async def capture_charge(self, order_id: str) -> dict[str, Any]:
        """Capture an approved order. Returns ``{status, captured_amount, transaction_id}``."""
        token = await self._access_token()
        capture = await self._request(
            "POST",
            f"/v2/checkout/orders/{order_id}/capture",
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        captured_amount = 0.0
        transaction_id = None
        units = capture.get("purchase_units") or []
        captures = (units[0].get("payments", {}).get("captures") or []) if units else []
        if captures:
            captured_amount = float(captures[0]["amount"]["value"])
            transaction_id = captures[0].get("id")
        logger.info("Captured PayPal order %s with status %s", order_id, capture.get("status"))
        return {
            "status": capture.get("status"),
            "captured_amount": captured_amount,
            "transaction_id": transaction_id,
        }
