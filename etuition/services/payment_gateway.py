"""Checkout session client for a Stripe-compatible payment API."""

import logging
from urllib.parse import quote

import httpx

from etuition.core import config

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the payment gateway cannot be reached or rejects a call."""


class CheckoutGateway:
    """Thin wrapper over the hosted-checkout endpoints.

    Amounts are passed in major units and converted to the smallest currency
    unit the API expects.
    """

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key if secret_key is not None else config.STRIPE_SECRET_KEY
        self.client = httpx.Client(
            base_url=base_url or config.STRIPE_API_BASE,
            auth=(self.secret_key, ""),
            timeout=timeout or config.STRIPE_TIMEOUT_SECONDS,
            transport=transport,
        )
        if not self.secret_key:
            logger.warning("STRIPE_SECRET_KEY not set; checkout endpoints will fail until configured")

    def is_available(self) -> bool:
        return bool(self.secret_key)

    def create_checkout_session(
        self,
        *,
        amount: float,
        product_name: str,
        metadata: dict[str, str],
        customer_email: str | None = None,
        currency: str | None = None,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> dict:
        form = {
            "mode": "payment",
            "success_url": success_url or config.CHECKOUT_SUCCESS_URL,
            "cancel_url": cancel_url or config.CHECKOUT_CANCEL_URL,
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": (currency or config.PAYMENT_CURRENCY).lower(),
            "line_items[0][price_data][unit_amount]": str(int(round(amount * 100))),
            "line_items[0][price_data][product_data][name]": product_name,
        }
        if customer_email:
            form["customer_email"] = customer_email
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = str(value)

        return self._request("POST", "/checkout/sessions", data=form)

    def retrieve_checkout_session(self, session_id: str) -> dict:
        return self._request("GET", f"/checkout/sessions/{quote(session_id, safe='')}")

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        if not self.is_available():
            raise PaymentGatewayError("Payment gateway is not configured.")
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Payment gateway returned %s for %s %s: %s",
                exc.response.status_code,
                method,
                path,
                exc.response.text[:500],
            )
            raise PaymentGatewayError(f"Payment gateway rejected the request ({exc.response.status_code}).") from exc
        except httpx.HTTPError as exc:
            logger.error("Payment gateway request %s %s failed: %s", method, path, exc)
            raise PaymentGatewayError("Payment gateway unavailable.") from exc
        return response.json()
