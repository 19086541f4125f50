"""
Stripe Connect transfers

Moves funds from the platform balance to a connected account (dancers and
partners). Uses the Stripe REST API directly over httpx.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from core.config import get_settings

logger = logging.getLogger(__name__)


class TransferError(Exception):
    """Stripe transfer could not be created."""


class StripeTransferClient:
    """Creates transfers to connected Stripe accounts."""

    def __init__(
        self,
        secret_key: Optional[str],
        api_base: str = "https://api.stripe.com",
        currency: str = "usd",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self.transport = transport

    async def create_transfer(
        self,
        amount_cents: int,
        destination: str,
        metadata: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> str:
        """
        Create a transfer and return its Stripe id.

        Args:
            amount_cents: Amount in minor units
            destination: Connected account id (acct_...)
            metadata: Extra key/value pairs stored on the transfer
            idempotency_key: Sent as Stripe's Idempotency-Key; repeats return the first transfer

        Returns:
            Transfer id (tr_...)

        Raises:
            TransferError: Stripe is not configured, unreachable, or rejected the request
        """
        if not self.secret_key:
            raise TransferError("Stripe is not configured")

        payload: dict[str, Any] = {
            "amount": amount_cents,
            "currency": self.currency,
            "destination": destination,
        }
        for key, value in (metadata or {}).items():
            if value is not None:
                payload[f"metadata[{key}]"] = str(value)

        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_base}/v1/transfers",
                    data=payload,
                    headers=headers,
                )
        except httpx.TimeoutException:
            logger.error("Stripe transfer timed out", extra={"amount_cents": amount_cents})
            raise TransferError("Stripe transfer timed out") from None
        except httpx.HTTPError as e:
            logger.error("Stripe transfer request failed", extra={"error": str(e)})
            raise TransferError(f"Stripe request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            message = (body.get("error") or {}).get("message") or f"HTTP {response.status_code}"
            logger.error(
                "Stripe rejected transfer",
                extra={"amount_cents": amount_cents, "status": response.status_code, "error": message},
            )
            raise TransferError(message)

        transfer_id = body.get("id")
        if not transfer_id:
            raise TransferError("Stripe response did not include a transfer id")

        logger.info("Stripe transfer created", extra={"transfer_id": transfer_id, "amount_cents": amount_cents})
        return transfer_id


def get_transfer_client() -> StripeTransferClient:
    """FastAPI dependency / factory built from settings."""
    settings = get_settings()
    return StripeTransferClient(
        secret_key=settings.stripe_secret_key,
        api_base=settings.stripe_api_base,
        currency=settings.payout_currency,
    )
