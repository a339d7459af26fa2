"""
Payment-status client.

Looks up a mini-app payment transaction so a sponsor's funding can be confirmed. Reward
claiming never calls this; it only backs `confirm_payment`.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from tokenhunt.config.settings import PaymentSettings
from tokenhunt.core.http import get_json
from tokenhunt.domain.errors import PaymentServiceUnavailable, ValidationError
from tokenhunt.domain.models import PaymentStatus

logger = logging.getLogger(__name__)


class PaymentStatusClient(Protocol):
    def get_payment_status(self, transaction_id: str) -> PaymentStatus: ...


class HttpPaymentStatusClient:
    """`PaymentStatusClient` backed by the developer-portal transaction endpoint."""

    def __init__(self, settings: PaymentSettings):
        self._settings = settings

    def get_payment_status(self, transaction_id: str) -> PaymentStatus:
        transaction_id = transaction_id.strip()
        if not transaction_id:
            raise ValidationError("transaction_id is required")
        if not self._settings.api_key:
            raise PaymentServiceUnavailable("Payment API key is not configured")

        url = f"{self._settings.base_url.rstrip('/')}/{transaction_id}"
        params = {"app_id": self._settings.app_id} if self._settings.app_id else None
        logger.info("Fetching payment status for transaction=%s", transaction_id)
        try:
            payload = get_json(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self._settings.api_key}"},
                timeout_seconds=self._settings.http_timeout_seconds,
            )
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Payment status lookup failed (%s) for transaction=%s",
                exc.response.status_code,
                transaction_id,
            )
            raise PaymentServiceUnavailable(
                f"Payment service returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Payment status lookup failed for transaction=%s: %s", transaction_id, exc)
            raise PaymentServiceUnavailable(f"Payment service unreachable: {exc}") from exc

        if not isinstance(payload, dict):
            raise PaymentServiceUnavailable("Payment service returned an unexpected payload")

        return PaymentStatus(
            transaction_id=transaction_id,
            reference=payload.get("reference"),
            status=payload.get("status") or payload.get("transactionStatus"),
            raw=payload,
        )
