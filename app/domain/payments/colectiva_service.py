"""Colectiva payments service - escrow operations for bookings"""

import logging
import time
from typing import Optional

import httpx

from ...config import (
    COLECTIVA_API_KEY,
    COLECTIVA_API_URL,
    COLECTIVA_CURRENCY,
    COLECTIVA_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """Raised when Colectiva rejects a request or cannot be reached"""


class ColectivaPaymentsService:
    """Service for Colectiva escrow API operations.

    Without credentials the service runs in mock mode and returns synthetic
    identifiers, so bookings can be exercised end to end in development.
    """

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None):
        self.api_url = (api_url or COLECTIVA_API_URL or "").rstrip("/")
        self.api_key = api_key or COLECTIVA_API_KEY

        if not self.is_configured():
            logger.warning("COLECTIVA_API_URL/COLECTIVA_API_KEY not set; payments run in mock mode")

    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = httpx.post(
                f"{self.api_url}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=COLECTIVA_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Error connecting to Colectiva ({path}): {e}")
            raise PaymentProviderError("Error connecting to payment provider") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            logger.error(f"❌ Colectiva {path} failed: HTTP {response.status_code} {message or ''}")
            raise PaymentProviderError(message or f"Payment provider error ({response.status_code})")

        return response.json()

    def create_escrow(
        self,
        booking_id: int,
        amount_cents: int,
        client_id: int,
        therapist_id: int,
        description: str,
        payee_wallet_id: Optional[str] = None,
    ) -> dict:
        """Hold the client's payment until the session is completed"""
        if not self.is_configured():
            return {
                "escrow_id": f"mock_escrow_{booking_id}",
                "payment_url": f"/booking/{booking_id}/pay-mock",
            }

        data = self._post(
            "/escrows",
            {
                "external_id": str(booking_id),
                "amount_cents": amount_cents,
                "currency": COLECTIVA_CURRENCY,
                "payer_id": str(client_id),
                "payee_id": str(therapist_id),
                "payee_wallet_id": payee_wallet_id,
                "description": description,
                "metadata": {"booking_id": str(booking_id), "platform": "plenura"},
            },
        )
        logger.info(f"✅ Created escrow {data.get('id')} for booking {booking_id}")
        return {"escrow_id": data.get("id"), "payment_url": data.get("payment_url")}

    def release_escrow(self, escrow_id: str, commission_cents: int) -> dict:
        """Release held funds to the therapist, keeping the platform fee"""
        if not self.is_configured():
            return {"escrow_id": escrow_id}

        data = self._post(f"/escrows/{escrow_id}/release", {"platform_fee_cents": commission_cents})
        logger.info(f"✅ Released escrow {escrow_id} (fee {commission_cents} cents)")
        return {"escrow_id": data.get("id", escrow_id)}

    def refund_escrow(self, escrow_id: str, amount_cents: int) -> dict:
        """Refund part or all of an escrow to the client"""
        if not self.is_configured():
            return {
                "refund_id": f"mock_refund_{int(time.time())}",
                "amount_refunded_cents": amount_cents,
            }

        data = self._post(f"/escrows/{escrow_id}/refund", {"amount_cents": amount_cents})
        logger.info(f"✅ Refunded {amount_cents} cents from escrow {escrow_id}")
        return {
            "refund_id": data.get("refund_id"),
            "amount_refunded_cents": data.get("amount_cents", amount_cents),
        }


colectiva_service = ColectivaPaymentsService()
