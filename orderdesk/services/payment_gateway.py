"""
Client for the hosted payment gateway (Paystack REST API).

Only two calls are needed by the order pipeline:
- ``initialize`` starts a hosted checkout and returns the redirect URL
- ``verify`` confirms what the gateway actually collected for a reference

A payment that merely did not go through is a normal answer
(``VerificationResult.ok is False``), not an exception. The only thing that
raises during verification is a missing secret key, because that is a
deployment problem rather than a customer one.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from orderdesk.core import config
from orderdesk.core.errors import PaymentGatewayNotConfigured, PaymentGatewayUnavailable
from orderdesk.services.order_validator import to_minor_units

log = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Outcome of ``GET /transaction/verify/{reference}``; amount is in minor units."""
    ok: bool
    amount: Optional[int] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    paid_at: Optional[str] = None
    channel: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False)


@dataclass
class InitializedTransaction:
    authorization_url: str
    reference: str


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class PaymentGateway:
    """
    Thin async wrapper around the gateway's REST API.

    Every call runs with an explicit timeout so a hung gateway cannot hold an
    order request open forever.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = config.PAYSTACK_SECRET_KEY if secret_key is None else secret_key
        self.base_url = base_url or config.PAYSTACK_BASE_URL
        self.timeout = httpx.Timeout(timeout or config.PAYMENT_TIMEOUT_SECONDS)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _ensure_configured(self):
        if not self.is_configured:
            raise PaymentGatewayNotConfigured("Payment gateway not configured")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            },
        )

    async def verify(self, reference: str) -> VerificationResult:
        """
        Asks the gateway whether ``reference`` was paid.

        Returns:
            VerificationResult: ``ok`` is True only when the gateway reports status "success".
        Raises:
            PaymentGatewayNotConfigured: If no secret key is set.
        """
        self._ensure_configured()
        path = f"/transaction/verify/{quote(reference, safe='')}"
        try:
            async with self._client() as client:
                response = await client.get(path)
        except httpx.HTTPError as e:
            log.warning(f"[Payment: {reference}] Verify call failed: {e!r}")
            return VerificationResult(ok=False, reference=reference)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error or not isinstance(body, dict) or not body.get("status"):
            log.warning(f"[Payment: {reference}] Gateway refused verification (HTTP {response.status_code}).")
            return VerificationResult(ok=False, reference=reference, raw=body if isinstance(body, dict) else None)

        tx = body.get("data") if isinstance(body.get("data"), dict) else {}
        amount = tx.get("amount")
        return VerificationResult(
            ok=tx.get("status") == "success",
            amount=amount if isinstance(amount, int) and not isinstance(amount, bool) else None,
            currency=_str_or_none(tx.get("currency")),
            reference=_str_or_none(tx.get("reference")) or reference,
            paid_at=_str_or_none(tx.get("paid_at")),
            channel=_str_or_none(tx.get("channel")),
            raw=body,
        )

    async def initialize(
        self,
        amount: Decimal,
        currency: Optional[str],
        email: str,
        callback_url: Optional[str] = None,
    ) -> InitializedTransaction:
        """
        Starts a hosted checkout for ``amount`` (major units).

        Raises:
            PaymentGatewayNotConfigured: If no secret key is set.
            PaymentGatewayUnavailable: If the gateway errors or answers without a URL/reference.
        """
        self._ensure_configured()
        payload = {
            "email": email,
            "amount": to_minor_units(Decimal(str(amount))),
            "currency": currency or config.DEFAULT_CURRENCY,
        }
        if callback_url:
            payload["callback_url"] = callback_url

        try:
            async with self._client() as client:
                response = await client.post("/transaction/initialize", json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Payment initialize failed: {e!r}")
            raise PaymentGatewayUnavailable("Unable to start payment")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not body.get("status") \
                or not data.get("authorization_url") or not data.get("reference"):
            log.error(f"Payment initialize returned an unusable body: {body}")
            raise PaymentGatewayUnavailable("Unable to start payment")

        return InitializedTransaction(
            authorization_url=data["authorization_url"],
            reference=data["reference"],
        )
